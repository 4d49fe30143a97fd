"""Periodic spark cycles and epiphany processing"""

from spark_fusion.spark.scheduler import SchedulerState, SparkScheduler, clamp_frequency

__all__ = [
    "SchedulerState",
    "SparkScheduler",
    "clamp_frequency",
]
