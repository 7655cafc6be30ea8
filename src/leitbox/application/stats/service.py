"""
Review Stats Service: Application layer orchestrator.

Coordinates loading the collection from the card store and summarizing it.
"""

import logging
from datetime import datetime

from leitbox.application.card_store import CardStore

from .metrics_calculator import MetricsCalculator, ReviewMetrics

logger = logging.getLogger(__name__)


class ReviewStatsService:
    """
    Application service for review statistics.

    Read-only: never takes the store's write lock.
    """

    def __init__(
        self,
        store: CardStore,
        calculator: MetricsCalculator | None = None,
    ):
        """
        Args:
            store: Card store to read from.
            calculator: Optional custom calculator; uses default if not provided.
        """
        self._store = store
        self._calc = calculator or MetricsCalculator()

    async def get_metrics(self, now: datetime | None = None) -> ReviewMetrics:
        """
        Load the collection and compute summary metrics.

        Args:
            now: Evaluation moment for the due count (default: now).
        """
        cards = await self._store.load()
        metrics = self._calc.compute(cards, now)
        logger.debug(f"Metrics over {metrics.total_cards} card(s): accuracy={metrics.accuracy_percent}%")
        return metrics
