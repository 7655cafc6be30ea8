"""
Metrics calculator for review summaries.

This is a pure computation module with no I/O.
"""

import math
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from leitbox.application.scheduling import to_date_key
from leitbox.domain.models import ReviewCard


@dataclass
class ReviewMetrics:
    """
    Summary counters over the card collection.
    """

    total_cards: int = 0
    due_today: int = 0
    reviewed_cards: int = 0  # cards with at least one review
    total_reviews: int = 0
    total_success: int = 0
    accuracy_percent: int = 0  # 0-100, 0 when nothing was reviewed
    box_counts: dict[int, int] = field(default_factory=dict)


class MetricsCalculator:
    """
    Computes ReviewMetrics from a card collection.

    Stateless and side-effect free.
    """

    def compute(self, cards: Sequence[ReviewCard], now: datetime | None = None) -> ReviewMetrics:
        today = to_date_key(now or datetime.now().astimezone())

        total_reviews = sum(card.review_count for card in cards)
        total_success = sum(card.success_count for card in cards)

        return ReviewMetrics(
            total_cards=len(cards),
            due_today=sum(1 for card in cards if card.due_date <= today),
            reviewed_cards=sum(1 for card in cards if card.review_count > 0),
            total_reviews=total_reviews,
            total_success=total_success,
            accuracy_percent=self._compute_accuracy(total_success, total_reviews),
            box_counts=dict(sorted(Counter(card.box for card in cards).items())),
        )

    def _compute_accuracy(self, total_success: int, total_reviews: int) -> int:
        """
        Percentage of successful reviews, rounded half up.
        """
        if total_reviews <= 0:
            return 0
        return math.floor(100 * total_success / total_reviews + 0.5)


def compute_metrics(cards: Sequence[ReviewCard], now: datetime | None = None) -> ReviewMetrics:
    return MetricsCalculator().compute(cards, now)
