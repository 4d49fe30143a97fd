"""
Spark Fusion: synthetic memory fusion engine

Stores text memories as embedded nodes, links them associatively and
periodically fuses recent concepts, keyword clusters, conversation
patterns and cross-modal signals into scored "epiphany" records.
"""

from spark_fusion.core.models import EpiphanyEvent, MemoryNode
from spark_fusion.extraction.concept_extractor import ConceptExtractor
from spark_fusion.fusion.fusion_engine import FusionEngine
from spark_fusion.memory.memory_store import MemoryStore
from spark_fusion.session import SparkSession, create_session
from spark_fusion.spark.scheduler import SparkScheduler

__version__ = "0.1.0"

__all__ = [
    "EpiphanyEvent",
    "MemoryNode",
    "ConceptExtractor",
    "FusionEngine",
    "MemoryStore",
    "SparkScheduler",
    "SparkSession",
    "create_session",
]
