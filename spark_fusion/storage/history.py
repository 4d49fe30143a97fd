"""
Epiphany History

Bounded FIFO of the most recent epiphanies with a JSON snapshot on disk.
The snapshot is rewritten after every append; a failed write is logged
and the in-memory history keeps the event.
"""

import asyncio
import json
from collections import deque
from pathlib import Path
from typing import List, Optional, Union

from loguru import logger
from pydantic import ValidationError

from spark_fusion.core.config import settings
from spark_fusion.core.exceptions import EncodingError
from spark_fusion.core.models import EpiphanyEvent


class EpiphanyHistory:
    """Most recent epiphanies, oldest evicted first once `cap` is reached"""

    def __init__(
        self,
        snapshot_path: Optional[Union[Path, str]] = None,
        cap: Optional[int] = None,
    ) -> None:
        self.cap = settings.HISTORY_CAP if cap is None else cap
        self.snapshot_path = Path(snapshot_path) if snapshot_path else None
        self._events: deque = deque(maxlen=self.cap)
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._events)

    @property
    def events(self) -> List[EpiphanyEvent]:
        """Oldest first"""
        return list(self._events)

    @property
    def last(self) -> Optional[EpiphanyEvent]:
        return self._events[-1] if self._events else None

    def recent(self, n: int) -> List[EpiphanyEvent]:
        if n <= 0:
            return []
        return list(self._events)[-n:]

    async def append(self, event: EpiphanyEvent) -> None:
        async with self._lock:
            self._events.append(event)
            try:
                self._write_snapshot()
            except EncodingError as e:
                logger.error(f"History snapshot not written, keeping event in memory: {e}")

    def load(self) -> int:
        """
        Replace the in-memory history with the snapshot on disk.

        A missing file is an empty history. An unreadable file is logged
        and ignored. Returns the number of events loaded.
        """
        if not self.snapshot_path or not self.snapshot_path.exists():
            return 0

        try:
            with open(self.snapshot_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            events = [EpiphanyEvent.model_validate(item) for item in raw]
        except (OSError, ValueError, TypeError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable history snapshot {self.snapshot_path}: {e}")
            return 0

        self._events = deque(events[-self.cap:], maxlen=self.cap)
        logger.info(f"Loaded {len(self._events)} epiphanies from {self.snapshot_path}")
        return len(self._events)

    def _write_snapshot(self) -> None:
        if not self.snapshot_path:
            return

        try:
            payload = json.dumps(
                [event.model_dump(mode="json") for event in self._events],
                indent=2,
            )
            self.snapshot_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.snapshot_path.with_suffix(self.snapshot_path.suffix + ".tmp")
            tmp_path.write_text(payload, encoding="utf-8")
            tmp_path.replace(self.snapshot_path)
        except (OSError, TypeError, ValueError) as e:
            raise EncodingError(f"Cannot write {self.snapshot_path}: {e}") from e
