"""Tests for card creation and review."""

import asyncio
import json
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from leitbox.application.card_store import CardStore
from leitbox.application.lifecycle import CardLifecycleService, build_analytics_payload
from leitbox.domain.constants import SRS_STORAGE_KEY
from leitbox.domain.models import LessonDay, LessonSection
from leitbox.infrastructure.adapters.storage import InMemoryCardStorage

DAY_ONE = datetime(2026, 2, 19, 10, 0)


@pytest.fixture
def analytics():
    return AsyncMock()


@pytest.fixture
def service(store, analytics):
    return CardLifecycleService(store, analytics=analytics, app_version="9.9.9")


async def _review(service, sample_day, grade, now, index=0):
    return await service.review_card(
        day_number=31,
        section_id="anki-a",
        sentence_index=index,
        sentence=sample_day.sections[1].sentences[index],
        grade=grade,
        now=now,
    )


class TestEnsureCardsForDay:
    @pytest.mark.asyncio
    async def test_creates_box_one_cards(self, service, sample_day):
        cards = await service.ensure_cards_for_day(sample_day, DAY_ONE)

        assert [card.id for card in cards] == ["d31:anki-a:0", "d31:anki-a:1"]
        first = cards[0]
        assert first.box == 1
        assert first.review_count == 0
        assert first.success_count == 0
        assert first.due_date == "2026-02-19"
        assert first.prompt == "I start now."
        assert first.answer == "Ich beginne jetzt."
        assert first.created_at == first.updated_at
        assert first.last_grade is None

    @pytest.mark.asyncio
    async def test_is_idempotent_and_skips_second_write(self, sample_day):
        storage = InMemoryCardStorage()
        storage.save = AsyncMock(wraps=storage.save)
        service = CardLifecycleService(CardStore(storage))

        first = await service.ensure_cards_for_day(sample_day, DAY_ONE)
        second = await service.ensure_cards_for_day(sample_day, datetime(2026, 2, 20, 9, 0))

        assert second == first
        assert len({card.id for card in second}) == 2
        storage.save.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_day_without_review_section_returns_collection_unchanged(self, service, store, card_factory):
        await store.save([card_factory(1, 0)])
        day = LessonDay(day_number=2, sections=[LessonSection("p", "patterns", "Patterns", ["A -> B"])])

        cards = await service.ensure_cards_for_day(day, DAY_ONE)

        assert [card.id for card in cards] == ["d1:anki:0"]

    @pytest.mark.asyncio
    async def test_only_missing_sentences_are_added(self, service, store, sample_day, card_factory):
        existing = card_factory(31, 0, id="d31:anki-a:0", section_id="anki-a", box=3)
        await store.save([existing])

        cards = await service.ensure_cards_for_day(sample_day, DAY_ONE)

        assert cards[0] == existing
        assert [card.id for card in cards] == ["d31:anki-a:0", "d31:anki-a:1"]

    @pytest.mark.asyncio
    async def test_blank_sentences_are_skipped(self, service):
        day = LessonDay(day_number=4, sections=[LessonSection("anki-b", "anki", "Anki", ["  ", "x -> y"])])
        cards = await service.ensure_cards_for_day(day, DAY_ONE)
        assert [card.id for card in cards] == ["d4:anki-b:1"]


class TestReviewCard:
    @pytest.mark.asyncio
    async def test_again_good_easy_sequence(self, service, sample_day):
        await service.ensure_cards_for_day(sample_day, DAY_ONE)

        again = await _review(service, sample_day, "again", DAY_ONE)
        assert again.box == 1
        assert again.due_date == "2026-02-20"

        good = await _review(service, sample_day, "good", datetime(2026, 2, 20, 10, 0))
        assert good.box == 2
        assert good.due_date == "2026-02-23"

        easy = await _review(service, sample_day, "easy", datetime(2026, 2, 23, 10, 0))
        assert easy.box == 4
        assert easy.due_date == "2026-03-09"
        assert easy.review_count == 3
        assert easy.success_count == 2
        assert easy.last_grade == "easy"

    @pytest.mark.asyncio
    async def test_review_persists_and_keeps_created_at(self, service, store, sample_day):
        created = await service.ensure_cards_for_day(sample_day, DAY_ONE)
        later = datetime(2026, 2, 21, 8, 30)

        reviewed = await _review(service, sample_day, "good", later)

        assert reviewed.created_at == created[0].created_at
        assert reviewed.updated_at == reviewed.last_reviewed_at
        assert reviewed.updated_at != created[0].updated_at
        stored = await store.load()
        assert len(stored) == 2
        assert stored[0] == reviewed

    @pytest.mark.asyncio
    async def test_unknown_card_is_inserted_from_box_one(self, service, store, sample_day):
        reviewed = await _review(service, sample_day, "easy", DAY_ONE, index=1)

        assert reviewed.box == 3
        assert reviewed.review_count == 1
        assert reviewed.success_count == 1
        assert [card.id for card in await store.load()] == ["d31:anki-a:1"]

    @pytest.mark.asyncio
    async def test_prompt_and_answer_follow_new_source_text(self, service, sample_day):
        await service.ensure_cards_for_day(sample_day, DAY_ONE)
        reviewed = await service.review_card(31, "anki-a", 0, "I begin now. -> Ich fange jetzt an.", "good", DAY_ONE)
        assert reviewed.prompt == "I begin now."
        assert reviewed.answer == "Ich fange jetzt an."

    @pytest.mark.asyncio
    async def test_invalid_grade_raises_before_io(self, storage, sample_day):
        storage.load = AsyncMock()
        service = CardLifecycleService(CardStore(storage))
        with pytest.raises(ValueError):
            await service.review_card(31, "anki-a", 0, "a -> b", "hard", DAY_ONE)
        storage.load.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_storage_failure_propagates(self, sample_day):
        storage = InMemoryCardStorage()
        storage.save = AsyncMock(side_effect=OSError("disk full"))
        service = CardLifecycleService(CardStore(storage))
        with pytest.raises(OSError, match="disk full"):
            await _review(service, sample_day, "good", DAY_ONE)


class TestAnalytics:
    @pytest.mark.asyncio
    async def test_review_emits_event(self, service, analytics, sample_day):
        await service.ensure_cards_for_day(sample_day, DAY_ONE)
        await _review(service, sample_day, "good", DAY_ONE)
        await service.flush_analytics()

        analytics.track.assert_awaited_once_with(
            "card_reviewed",
            {
                "dayNumber": 31,
                "sectionId": "anki-a",
                "appVersion": "9.9.9",
                "grade": "good",
                "previousBox": 1,
                "nextBox": 2,
            },
        )

    @pytest.mark.asyncio
    async def test_analytics_failure_does_not_affect_review(self, store, sample_day, caplog):
        analytics = AsyncMock()
        analytics.track.side_effect = RuntimeError("collector down")
        service = CardLifecycleService(store, analytics=analytics)

        reviewed = await _review(service, sample_day, "good", DAY_ONE)
        await service.flush_analytics()

        assert reviewed.box == 2
        assert (await store.load())[0] == reviewed
        assert "collector down" in caplog.text

    @pytest.mark.asyncio
    async def test_no_sink_is_fine(self, store, sample_day):
        service = CardLifecycleService(store)
        await _review(service, sample_day, "again", DAY_ONE)
        await service.flush_analytics()
        await service.close()

    @pytest.mark.asyncio
    async def test_close_delivers_then_closes_sink(self, service, analytics, sample_day):
        await _review(service, sample_day, "easy", DAY_ONE)
        await service.close()

        analytics.track.assert_awaited_once()
        analytics.close.assert_awaited_once()

    def test_payload_builder(self):
        payload = build_analytics_payload(3, "anki-a", app_version="1.0", grade="easy")
        assert payload == {"dayNumber": 3, "sectionId": "anki-a", "appVersion": "1.0", "grade": "easy"}


@pytest.mark.asyncio
async def test_overlapping_reviews_do_not_lose_updates(store, sample_day):
    service = CardLifecycleService(store)
    await service.ensure_cards_for_day(sample_day, DAY_ONE)

    await asyncio.gather(
        _review(service, sample_day, "good", DAY_ONE, index=0),
        _review(service, sample_day, "easy", DAY_ONE, index=1),
    )

    boxes = {card.id: card.box for card in await store.load()}
    assert boxes == {"d31:anki-a:0": 2, "d31:anki-a:1": 3}


@pytest.mark.asyncio
async def test_persisted_blob_is_json_array(storage, store, sample_day):
    await CardLifecycleService(store).ensure_cards_for_day(sample_day, DAY_ONE)
    data = json.loads(storage.data[SRS_STORAGE_KEY])
    assert [item["id"] for item in data] == ["d31:anki-a:0", "d31:anki-a:1"]
