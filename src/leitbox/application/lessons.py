"""
Lesson content loading.

Reads the course's day descriptors from a YAML (or JSON) file and
validates them. Unlike the card store, bad lesson content is a hard
error: it ships with the app and must be fixed at the source.
"""

import logging
from pathlib import Path
from typing import Any, Literal

import yaml  # type: ignore
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from leitbox.domain.models import LessonDay, LessonSection

logger = logging.getLogger(__name__)

SectionType = Literal["warmup", "verbs", "sentences", "modals", "patterns", "anki", "free"]


class LessonContentError(ValueError):
    """Lesson content is missing or malformed."""


class SectionSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    type: SectionType
    title: str = Field(min_length=1)
    sentences: list[str] = Field(min_length=1)
    reps: float = Field(gt=0)
    duration: float = Field(gt=0)


class DaySchema(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    day_number: int = Field(alias="dayNumber", gt=0, strict=True)
    sections: list[SectionSchema] = Field(min_length=1)

    def to_day(self) -> LessonDay:
        return LessonDay(
            day_number=self.day_number,
            sections=[LessonSection(**section.model_dump()) for section in self.sections],
        )


def parse_days(raw: Any, expected_day_count: int | None = None) -> list[LessonDay]:
    """
    Validate raw day descriptors and return them sorted by day number.

    Days must form the contiguous sequence 1..n.

    Raises:
        LessonContentError: On any structural problem.
    """
    if not isinstance(raw, list):
        raise LessonContentError("Days data must be a list.")
    if not raw:
        raise LessonContentError("Expected at least one day, received 0.")

    days: list[LessonDay] = []
    for index, item in enumerate(raw):
        try:
            days.append(DaySchema.model_validate(item).to_day())
        except ValidationError as e:
            label = item.get("dayNumber", f"at index {index}") if isinstance(item, dict) else f"at index {index}"
            raise LessonContentError(f"Day {label}: {e}") from e

    days.sort(key=lambda day: day.day_number)

    if expected_day_count is not None and len(days) != expected_day_count:
        raise LessonContentError(f"Expected {expected_day_count} days, received {len(days)}.")

    for index, day in enumerate(days):
        if day.day_number != index + 1:
            raise LessonContentError(
                f"Day sequence is invalid at index {index}: "
                f"expected day {index + 1}, received day {day.day_number}."
            )

    return days


def load_days(path: Path, expected_day_count: int | None = None) -> list[LessonDay]:
    """Load and validate lesson days from a YAML or JSON file."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise LessonContentError(f"Lesson file not found: {path}") from e

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise LessonContentError(f"Lesson file {path.name} is not valid YAML/JSON: {e}") from e

    days = parse_days(raw, expected_day_count)
    logger.debug(f"Loaded {len(days)} lesson day(s) from {path}")
    return days


def find_day(days: list[LessonDay], day_number: int) -> LessonDay:
    for day in days:
        if day.day_number == day_number:
            return day
    raise LessonContentError(f"Day {day_number} not found in lesson content.")
