# Domain Stats Package
from .models import (
    CardStats,
    DeckStats,
    PerformanceCurve,
    PerformancePoint,
    SchedulingAccuracy,
    WorkloadDay,
)

__all__ = [
    "CardStats",
    "DeckStats",
    "PerformanceCurve",
    "PerformancePoint",
    "SchedulingAccuracy",
    "WorkloadDay",
]
