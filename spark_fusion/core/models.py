"""Core data models for the memory fusion engine"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, JsonValue


class ConceptType(str, Enum):
    """What a concept or epiphany is about"""

    ABSTRACT_CONCEPT = "abstract_concept"
    PERSON = "person"
    LOCATION = "location"
    ORGANIZATION = "organization"
    ENTITY = "entity"

    # Only produced by the fusion engine
    CONTEXTUAL = "contextual"
    CHAIN_REACTION = "chain_reaction"
    CROSS_MODAL = "cross_modal"


class FusionMethod(str, Enum):
    """How an epiphany was synthesized"""

    SEMANTIC_CLUSTERING = "semantic_clustering"
    PATTERN_RECOGNITION = "pattern_recognition"
    CROSS_MODAL_SYNTHESIS = "cross_modal_synthesis"
    CONTEXTUAL_SYNTHESIS = "contextual_synthesis"
    CHAIN_SYNTHESIS = "chain_synthesis"
    MULTI_LAYERED_FUSION = "multi_layered_fusion"

    @property
    def sophistication_score(self) -> float:
        return {
            FusionMethod.SEMANTIC_CLUSTERING: 0.3,
            FusionMethod.PATTERN_RECOGNITION: 0.4,
            FusionMethod.CROSS_MODAL_SYNTHESIS: 0.6,
            FusionMethod.CONTEXTUAL_SYNTHESIS: 0.5,
            FusionMethod.CHAIN_SYNTHESIS: 0.7,
            FusionMethod.MULTI_LAYERED_FUSION: 0.8,
        }[self]


class PatternType(str, Enum):
    """Conversation pattern categories"""

    QUESTION_RESPONSE = "question_response"
    TOPIC_TRANSITION = "topic_transition"


class Modality(str, Enum):
    """Input modalities for cross-modal signals"""

    VISION = "vision"
    TEXT = "text"
    DOCUMENT = "document"


# ========== STORED RECORDS ==========


class MemoryNode(BaseModel):
    """
    One stored unit of text content, the atomic unit of recall.

    Content is immutable once created. The embedding may be attached
    later with `with_embedding`. Layer 6 is reserved for synthesized
    epiphanies.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    content: str
    created_at: datetime = Field(default_factory=datetime.now)
    cortical_layer: int = Field(default=1, ge=1, le=6)
    embedding: Optional[list[float]] = None
    is_user: bool = True

    # Serialization boundary only: string | number | bool | null | list | map
    metadata: dict[str, JsonValue] = Field(default_factory=dict)

    def with_embedding(self, embedding: list[float]) -> "MemoryNode":
        """Return a copy of this node with the embedding attached"""
        return self.model_copy(update={"embedding": [float(x) for x in embedding]})


class Connection(BaseModel):
    """Weighted directed associative link between two memory nodes"""

    id: UUID = Field(default_factory=uuid4)
    source_node_id: UUID
    target_node_id: UUID
    strength: float = Field(ge=0.0, le=1.0)
    last_activated: datetime = Field(default_factory=datetime.now)


# ========== EXTRACTION ==========


class ExtractedConcept(BaseModel):
    """A typed, importance-scored concept pulled out of raw text"""

    text: str
    concept_type: ConceptType
    importance: float = Field(ge=0.0, le=1.0)
    source_span: tuple[int, int] = (0, 0)


class MemoryConcept(BaseModel):
    """The top concept of one memory, tagged with the memory it came from"""

    memory_id: UUID
    content: str
    concept_type: ConceptType
    importance: float = Field(ge=0.0, le=1.0)
    timestamp: datetime = Field(default_factory=datetime.now)


# ========== FUSION INPUTS ==========


class SemanticCluster(BaseModel):
    """Keyword bucket of memories, recomputed every cycle"""

    theme: str
    memory_ids: list[UUID] = Field(default_factory=list)
    coherence: float = Field(default=0.0, ge=0.0, le=1.0)


class ConversationPattern(BaseModel):
    pattern_type: PatternType
    description: str
    frequency: float = 1.0
    contextual_significance: float = 0.0


class CrossModalConcept(BaseModel):
    primary_modality: Modality
    secondary_modality: Modality
    correlation: str
    description: str
    strength: float = Field(ge=0.0, le=1.0)


class ConceptRelationship(BaseModel):
    concept1: str
    concept2: str
    relationship_type: str
    strength: float


class SemanticNeighbor(BaseModel):
    text: str
    similarity: float
    source_memory_id: UUID


# ========== OUTPUTS ==========


class EpiphanyEvent(BaseModel):
    """
    A synthesized insight.

    Created only by the fusion engine. Every field serializes to a JSON
    primitive, so `model_dump(mode="json")` is the snapshot format.
    """

    id: UUID = Field(default_factory=uuid4)
    concept: str
    concept_type: ConceptType
    timestamp: datetime = Field(default_factory=datetime.now)
    importance: float = Field(ge=0.0, le=1.0)
    source_memories: list[UUID] = Field(default_factory=list)
    fusion_method: FusionMethod
    confidence: float = Field(ge=0.0, le=1.0)
    novelty: float = Field(ge=0.0, le=1.0)


class EpiphanyAnalytics(BaseModel):
    """Rolling averages over the most recent epiphanies"""

    total_epiphanies: int
    average_importance: float
    average_novelty: float
    spark_frequency: float
    last_epiphany_at: Optional[datetime] = None
