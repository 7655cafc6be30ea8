import pytest

from leitbox.application.card_store import CardStore
from leitbox.domain.models import LessonDay, LessonSection, ReviewCard
from leitbox.infrastructure.adapters.storage import InMemoryCardStorage


def make_card(day_number: int, index: int, **overrides) -> ReviewCard:
    """Builds a box-1, never-reviewed card; keyword overrides replace any field."""
    fields = dict(
        id=f"d{day_number}:anki:{index}",
        day_number=day_number,
        section_id="anki-a",
        sentence_index=index,
        prompt=f"Prompt {day_number}-{index}",
        answer=f"Answer {day_number}-{index}",
        box=1,
        due_date="2026-01-01",
        created_at="2026-01-01T00:00:00.000Z",
        updated_at="2026-01-01T00:00:00.000Z",
    )
    fields.update(overrides)
    return ReviewCard(**fields)


@pytest.fixture
def storage():
    return InMemoryCardStorage()


@pytest.fixture
def store(storage):
    return CardStore(storage)


@pytest.fixture
def sample_day():
    """Day 31 with a two-sentence review section."""
    return LessonDay(
        day_number=31,
        sections=[
            LessonSection(
                id="warmup-a",
                type="warmup",
                title="Warm-up",
                sentences=["Hello -> Hallo"],
            ),
            LessonSection(
                id="anki-a",
                type="anki",
                title="Anki Review (10min)",
                sentences=[
                    "I start now. -> Ich beginne jetzt.",
                    "I learn every day. -> Ich lerne jeden Tag.",
                ],
                reps=1,
                duration=600,
            ),
        ],
    )


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Isolate config files and the default data dir
    monkeypatch.setenv("HOME", str(home))
    for var in (
        "LEITBOX_STORAGE_BACKEND",
        "LEITBOX_DATA_DIR",
        "LEITBOX_LESSONS_FILE",
        "LEITBOX_ANALYTICS_BACKEND",
        "LEITBOX_ANALYTICS_URL",
    ):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def card_factory():
    return make_card
