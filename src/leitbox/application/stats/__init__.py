# Application Stats Package
from .metrics_calculator import MetricsCalculator, ReviewMetrics, compute_metrics
from .service import ReviewStatsService

__all__ = ["MetricsCalculator", "ReviewMetrics", "compute_metrics", "ReviewStatsService"]
