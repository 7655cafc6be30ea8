"""
Due queue selection.

Builds today's review queue by:
1. Keeping cards whose due date has arrived
2. Ordering by due date, then box (weaker cards first), then id
3. Capping at the daily limit
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from leitbox.domain.constants import DEFAULT_DAILY_CAP
from leitbox.domain.models import ReviewCard

from .card_store import CardStore
from .scheduling import to_date_key

logger = logging.getLogger(__name__)


def due_sort_key(card: ReviewCard) -> tuple[str, int, str]:
    return (card.due_date, card.box, card.id)


def select_due(
    cards: Iterable[ReviewCard],
    date: datetime | None = None,
    cap: int | None = None,
) -> list[ReviewCard]:
    """
    Select the cards to review on ``date``.

    Args:
        cards: The full collection.
        date: Evaluation moment (default: now).
        cap: Maximum queue length (default: DEFAULT_DAILY_CAP); negative means 0.

    Returns:
        At most ``cap`` due cards, sorted by (due_date, box, id).
    """
    today = to_date_key(date or datetime.now().astimezone())
    limit = max(0, DEFAULT_DAILY_CAP if cap is None else cap)

    due = sorted((card for card in cards if card.due_date <= today), key=due_sort_key)
    return due[:limit]


async def load_due_queue(
    store: CardStore,
    date: datetime | None = None,
    cap: int | None = None,
) -> list[ReviewCard]:
    """Load the collection and select today's due queue from it."""
    cards = await store.load()
    queue = select_due(cards, date=date, cap=cap)
    logger.debug(f"Due queue: {len(queue)} of {len(cards)} card(s)")
    return queue
