# Application Stats Package
from .metrics_calculator import MetricsCalculator
from .service import ReviewStatsService

__all__ = ["MetricsCalculator", "ReviewStatsService"]
