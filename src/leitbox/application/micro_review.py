"""
Micro-review selection.

Picks a short refresher from older lesson days: eligible cards are
ordered oldest content first and capped, and their answers double as
deduplicated memory sentences.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from leitbox.domain.models import DailyMicroReview, MicroReviewSource, ReviewCard, ReviewPlan

from .card_store import CardStore

logger = logging.getLogger(__name__)


@dataclass
class MicroReviewPayload:
    """Result of micro-review selection."""

    cards: list[ReviewCard] = field(default_factory=list)
    memory_sentences: list[str] = field(default_factory=list)
    source: MicroReviewSource = "none"


def is_eligible(card: ReviewCard, current_day: int, plan: DailyMicroReview) -> bool:
    """
    A card is eligible when its lesson day is at least
    ``anki_cards_from_at_least_days_ago`` days old and, if a maximum is
    configured, no older than ``anki_cards_from_at_most_days_ago``.
    """
    age = current_day - card.day_number
    if age < plan.anki_cards_from_at_least_days_ago:
        return False
    if plan.anki_cards_from_at_most_days_ago is not None and age > plan.anki_cards_from_at_most_days_ago:
        return False
    return True


def unique_sentences(values: Iterable[str], limit: int) -> list[str]:
    """Non-blank values, first occurrence wins, at most ``limit`` entries."""
    # dict preserves insertion order
    seen = dict.fromkeys(value for value in values if value.strip())
    return list(seen)[: max(0, limit)]


def latest_eligible_day(current_day: int, plan: DailyMicroReview) -> int:
    """The lesson day immediately preceding ``current_day`` under the threshold."""
    return current_day - max(1, plan.anki_cards_from_at_least_days_ago)


def classify_source(pool: list[ReviewCard], current_day: int, plan: DailyMicroReview) -> MicroReviewSource:
    """
    Label the eligible pool.

    ``previous_day`` when every card comes from the latest eligible day,
    ``older_day`` when they share any other single day, ``multi_day`` when
    they span several days and ``none`` when the pool is empty.
    """
    if not pool:
        return "none"
    days = {card.day_number for card in pool}
    if len(days) > 1:
        return "multi_day"
    if days == {latest_eligible_day(current_day, plan)}:
        return "previous_day"
    return "older_day"


def select_micro_review(
    cards: Iterable[ReviewCard],
    current_day: int,
    review_plan: ReviewPlan,
) -> MicroReviewPayload:
    """
    Build the micro-review payload for ``current_day``.

    Args:
        cards: The full collection.
        current_day: Lesson day the learner is on.
        review_plan: Plan whose ``daily_micro_review`` sets the window and caps.

    Returns:
        MicroReviewPayload with at most ``anki_card_count`` cards and
        ``memory_sentence_count`` sentences.
    """
    plan = review_plan.daily_micro_review

    pool = sorted(
        (card for card in cards if is_eligible(card, current_day, plan)),
        key=lambda card: (card.day_number, card.id),
    )
    selected = pool[: max(0, plan.anki_card_count)]

    return MicroReviewPayload(
        cards=selected,
        memory_sentences=unique_sentences((card.answer for card in selected), plan.memory_sentence_count),
        source=classify_source(pool, current_day, plan),
    )


async def load_micro_review(store: CardStore, current_day: int, review_plan: ReviewPlan) -> MicroReviewPayload:
    cards = await store.load()
    payload = select_micro_review(cards, current_day, review_plan)
    logger.debug(
        f"Micro-review for day {current_day}: {len(payload.cards)} card(s), source={payload.source}"
    )
    return payload
