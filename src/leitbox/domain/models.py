"""
Domain models for the Leitner review engine.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from typing import Literal, get_args

Grade = Literal["again", "good", "easy"]
GRADES: tuple[str, ...] = get_args(Grade)

MicroReviewSource = Literal["previous_day", "older_day", "multi_day", "none"]


@dataclass(frozen=True)
class ReviewCard:
    """
    One flashcard derived from one sentence of a lesson-day section.

    Attributes:
        id: ``d{day_number}:{section_id}:{sentence_index}``, unique in the collection.
        box: Current Leitner box, 1-based.
        due_date: Local calendar date (``YYYY-MM-DD``) of the next review.
        created_at: ISO-8601 timestamp of creation.
        updated_at: ISO-8601 timestamp of the last mutation.
        last_reviewed_at: ISO-8601 timestamp, None until the first review.
        last_grade: Grade of the last review, None until the first review.
        review_count: Number of reviews.
        success_count: Number of reviews graded good or easy.
    """

    id: str
    day_number: int
    section_id: str
    sentence_index: int
    prompt: str
    answer: str
    box: int
    due_date: str
    created_at: str
    updated_at: str
    review_count: int = 0
    success_count: int = 0
    last_reviewed_at: str | None = None
    last_grade: Grade | None = None


@dataclass(frozen=True)
class LessonSection:
    """A block of sentences inside a lesson day."""

    id: str
    type: str
    title: str
    sentences: list[str]
    reps: float = 1
    duration: float = 0


@dataclass(frozen=True)
class LessonDay:
    """Lesson content for one course day."""

    day_number: int
    sections: list[LessonSection] = field(default_factory=list)

    def find_section(self, section_type: str) -> LessonSection | None:
        """Return the first section of the given type, if any."""
        for section in self.sections:
            if section.type == section_type:
                return section
        return None


@dataclass(frozen=True)
class DailyMicroReview:
    """
    Caps and eligibility window for the daily micro-review.

    Attributes:
        anki_cards_from_at_least_days_ago: Minimum lesson-day age of eligible cards.
        anki_card_count: Maximum number of cards in the payload.
        memory_sentence_count: Maximum number of memory sentences in the payload.
        anki_cards_from_at_most_days_ago: Optional maximum lesson-day age.
    """

    anki_cards_from_at_least_days_ago: int
    anki_card_count: int
    memory_sentence_count: int
    anki_cards_from_at_most_days_ago: int | None = None


@dataclass(frozen=True)
class ReviewPlan:
    """Review plan slice consumed by the engine."""

    daily_micro_review: DailyMicroReview
