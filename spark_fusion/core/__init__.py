"""Core data models, configuration and errors"""

from spark_fusion.core.models import (
    ConceptType,
    FusionMethod,
    PatternType,
    Modality,
    MemoryNode,
    Connection,
    ExtractedConcept,
    MemoryConcept,
    SemanticCluster,
    ConversationPattern,
    CrossModalConcept,
    ConceptRelationship,
    SemanticNeighbor,
    EpiphanyEvent,
    EpiphanyAnalytics,
)
from spark_fusion.core.exceptions import (
    SparkFusionError,
    NotFoundError,
    DimensionMismatchError,
    InvalidConnectionError,
    StoreUnavailableError,
    EncodingError,
)
from spark_fusion.core.config import settings

__all__ = [
    "ConceptType",
    "FusionMethod",
    "PatternType",
    "Modality",
    "MemoryNode",
    "Connection",
    "ExtractedConcept",
    "MemoryConcept",
    "SemanticCluster",
    "ConversationPattern",
    "CrossModalConcept",
    "ConceptRelationship",
    "SemanticNeighbor",
    "EpiphanyEvent",
    "EpiphanyAnalytics",
    "SparkFusionError",
    "NotFoundError",
    "DimensionMismatchError",
    "InvalidConnectionError",
    "StoreUnavailableError",
    "EncodingError",
    "settings",
]
