"""
Card lifecycle service: Application layer orchestrator.

Materializes cards for newly introduced lesson content and applies review
outcomes. Both operations are full read-modify-write cycles over the
whole collection.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any

from leitbox.consts import VERSION
from leitbox.domain.constants import CARD_REVIEWED_EVENT, REVIEW_SECTION_TYPE
from leitbox.domain.models import GRADES, Grade, LessonDay, ReviewCard
from leitbox.domain.ports import AnalyticsSink

from .card_store import CardStore
from .scheduling import Scheduler, build_card_id, parse_pair, to_date_key, to_iso

logger = logging.getLogger(__name__)


def build_analytics_payload(
    day_number: int,
    section_id: str,
    app_version: str = VERSION,
    **extras: Any,
) -> dict[str, Any]:
    """Core analytics dimensions plus event-specific extras."""
    return {
        "dayNumber": day_number,
        "sectionId": section_id,
        "appVersion": app_version,
        **extras,
    }


class CardLifecycleService:
    """
    Creates and reviews cards.

    Depends on the CardStore for persistence and, optionally, an
    AnalyticsSink for review events. Analytics delivery runs in the
    background and never affects persistence.
    """

    def __init__(
        self,
        store: CardStore,
        analytics: AnalyticsSink | None = None,
        scheduler: Scheduler | None = None,
        app_version: str = VERSION,
    ):
        self._store = store
        self._analytics = analytics
        self._scheduler = scheduler or Scheduler()
        self._app_version = app_version
        self._pending: set[asyncio.Task] = set()

    async def ensure_cards_for_day(self, day: LessonDay, now: datetime | None = None) -> list[ReviewCard]:
        """
        Create box-1 cards for every sentence of the day's review section.

        Idempotent: sentences that already have a card are skipped, and the
        collection is only written back when something was added.

        Returns:
            The full collection, including any new cards.
        """
        section = day.find_section(REVIEW_SECTION_TYPE)
        if section is None:
            logger.debug(f"Day {day.day_number} has no '{REVIEW_SECTION_TYPE}' section")
            return await self._store.load()

        now = now or datetime.now().astimezone()
        today = to_date_key(now)
        now_iso = to_iso(now)

        async with self._store.write_lock:
            cards = await self._store.load()
            known_ids = {card.id for card in cards}
            added = 0

            for sentence_index, sentence in enumerate(section.sentences):
                card_id = build_card_id(day.day_number, section.id, sentence_index)
                if card_id in known_ids:
                    continue

                prompt, answer = parse_pair(sentence)
                if not prompt:
                    logger.debug(f"Skipping blank sentence {card_id}")
                    continue

                cards.append(
                    ReviewCard(
                        id=card_id,
                        day_number=day.day_number,
                        section_id=section.id,
                        sentence_index=sentence_index,
                        prompt=prompt,
                        answer=answer,
                        box=1,
                        due_date=today,
                        created_at=now_iso,
                        updated_at=now_iso,
                    )
                )
                known_ids.add(card_id)
                added += 1

            if added:
                await self._store.save(cards)
                logger.info(f"Created {added} card(s) for day {day.day_number}")

        return cards

    async def review_card(
        self,
        day_number: int,
        section_id: str,
        sentence_index: int,
        sentence: str,
        grade: Grade,
        now: datetime | None = None,
    ) -> ReviewCard:
        """
        Apply a grade to one card and persist the whole collection.

        A card missing from the store is reviewed from a box-1 baseline and
        inserted. Prompt and answer are always re-derived from ``sentence``.

        Raises:
            ValueError: Unknown grade or a sentence with no content.
        """
        if grade not in GRADES:
            raise ValueError(f"Unknown grade: {grade!r}")
        prompt, answer = parse_pair(sentence)
        if not prompt:
            raise ValueError("Sentence has no content to review.")

        now = now or datetime.now().astimezone()
        now_iso = to_iso(now)
        card_id = build_card_id(day_number, section_id, sentence_index)

        async with self._store.write_lock:
            cards = await self._store.load()
            index = next((i for i, card in enumerate(cards) if card.id == card_id), None)
            existing = cards[index] if index is not None else None

            previous_box = existing.box if existing else 1
            box = self._scheduler.next_box(previous_box, grade)

            reviewed = ReviewCard(
                id=card_id,
                day_number=day_number,
                section_id=section_id,
                sentence_index=sentence_index,
                prompt=prompt,
                answer=answer,
                box=box,
                due_date=self._scheduler.next_due_date(now, box),
                created_at=existing.created_at if existing else now_iso,
                updated_at=now_iso,
                last_reviewed_at=now_iso,
                last_grade=grade,
                review_count=(existing.review_count if existing else 0) + 1,
                success_count=(existing.success_count if existing else 0) + (0 if grade == "again" else 1),
            )

            if index is not None:
                cards[index] = reviewed
            else:
                cards.append(reviewed)

            await self._store.save(cards)

        self._emit(
            CARD_REVIEWED_EVENT,
            build_analytics_payload(
                day_number,
                section_id,
                app_version=self._app_version,
                grade=grade,
                previousBox=previous_box,
                nextBox=box,
            ),
        )
        return reviewed

    def _emit(self, event: str, payload: dict[str, Any]) -> None:
        if self._analytics is None:
            return
        try:
            task = asyncio.get_running_loop().create_task(self._deliver(event, payload))
        except RuntimeError as e:
            logger.warning(f"Analytics event '{event}' not scheduled: {e}")
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, event: str, payload: dict[str, Any]) -> None:
        try:
            await self._analytics.track(event, payload)
        except Exception as e:
            logger.warning(f"Analytics event '{event}' failed: {e}")

    async def flush_analytics(self) -> None:
        """Wait for in-flight analytics deliveries to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    async def close(self) -> None:
        """Flush pending analytics, then close the sink."""
        await self.flush_analytics()
        if self._analytics is not None:
            await self._analytics.close()
