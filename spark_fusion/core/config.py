"""Configuration management using Pydantic Settings"""

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings with environment variable support (SPARK_ prefix)"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SPARK_",
        extra="ignore",
    )

    # Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent.parent
    DB_PATH: Path = PROJECT_ROOT / "data" / "memory.db"
    HISTORY_PATH: Path = PROJECT_ROOT / "data" / "epiphany_history.json"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Spark timer (interval = 60 / frequency seconds)
    SPARK_FREQUENCY: float = 0.3
    MIN_SPARK_FREQUENCY: float = 0.1
    MAX_SPARK_FREQUENCY: float = 1.0

    # Signal gathering windows
    RECENT_CONCEPT_LIMIT: int = 15
    CLUSTER_COUNT: int = 5
    CLUSTER_MEMORY_WINDOW: int = 100
    PATTERN_MESSAGE_WINDOW: int = 50
    VISUAL_SCAN_WINDOW: int = 200
    CROSS_MODAL_LIMIT: int = 10
    RELATED_MEMORY_LIMIT: int = 10
    NEIGHBOR_LIMIT_PER_KEYWORD: int = 5
    FALLBACK_SCAN_WINDOW: int = 200

    # Epiphany history and chaining
    HISTORY_CAP: int = 100
    CHAIN_TRIGGER_IMPORTANCE: float = 0.8
    CHAIN_DEPTH: int = 3
    CHAIN_BRANCHING: int = 2
    CHAIN_MAX_GENERATIONS: int = 2
    EPIPHANY_CORTICAL_LAYER: int = 6

    # Durable store calls are bounded so a stalled backend never blocks the timer
    STORE_TIMEOUT_SECONDS: float = 5.0

    # Associative linking on ingest
    LINK_TOP_K: int = 3
    LINK_SIMILARITY_THRESHOLD: float = 0.3
    REINFORCEMENT_RATE: float = 0.1

    # Embeddings
    EMBEDDING_DIMENSION: int = 384
    EMBEDDING_MODEL: str = "all-MiniLM-L6-v2"

    # Flavor text selection (False = draw from random.Random)
    DETERMINISTIC_PHRASES: bool = True

    @property
    def SPARK_INTERVAL_SECONDS(self) -> float:
        return 60.0 / self.SPARK_FREQUENCY


settings = Settings()
