"""Concept fusion: signal gathering and epiphany synthesis"""

from spark_fusion.fusion.fusion_engine import FusionEngine, PhraseSelector
from spark_fusion.fusion.signals import SignalGatherer

__all__ = [
    "FusionEngine",
    "PhraseSelector",
    "SignalGatherer",
]
