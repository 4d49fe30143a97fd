"""Exceptions raised by the fusion engine."""


class SparkFusionError(Exception):
    """Base exception for all engine errors."""


class NotFoundError(SparkFusionError):
    """Raised when a memory node or connection id has no record."""

    def __init__(self, kind: str, identifier: object) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class DimensionMismatchError(SparkFusionError, ValueError):
    """Raised when two vectors of different length are compared."""

    def __init__(self, left: int, right: int) -> None:
        self.left = left
        self.right = right
        super().__init__(f"Vector dimensions differ: {left} != {right}")


class InvalidConnectionError(SparkFusionError, ValueError):
    """Raised on an attempt to connect a node to itself."""


class StoreUnavailableError(SparkFusionError):
    """Raised when the durable backend is not connected, failing or too slow."""


class EncodingError(SparkFusionError):
    """Raised when a node or the epiphany history cannot be serialized."""
