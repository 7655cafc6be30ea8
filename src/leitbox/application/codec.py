"""
Card store codec.

Serializes the card collection to a JSON array and reads it back,
validating every record on the way in. Malformed blobs read as an empty
collection; malformed records are dropped individually so that schema
drift across app versions never blocks loading.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from leitbox.domain.constants import LEITNER_INTERVALS_DAYS
from leitbox.domain.models import GRADES, Grade, ReviewCard

logger = logging.getLogger(__name__)

_DATE_KEY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# (dataclass attribute, persisted key)
FIELD_ALIASES: tuple[tuple[str, str], ...] = (
    ("id", "id"),
    ("day_number", "dayNumber"),
    ("section_id", "sectionId"),
    ("sentence_index", "sentenceIndex"),
    ("prompt", "prompt"),
    ("answer", "answer"),
    ("box", "box"),
    ("due_date", "dueDate"),
    ("created_at", "createdAt"),
    ("updated_at", "updatedAt"),
    ("last_reviewed_at", "lastReviewedAt"),
    ("last_grade", "lastGrade"),
    ("review_count", "reviewCount"),
    ("success_count", "successCount"),
)


class CardRecord(BaseModel):
    """Persisted shape of one card. Strict: no coercion between types."""

    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)

    id: str = Field(min_length=1)
    day_number: int = Field(alias="dayNumber", gt=0)
    section_id: str = Field(alias="sectionId", min_length=1)
    sentence_index: int = Field(alias="sentenceIndex", ge=0)
    prompt: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    box: int = Field(ge=1)
    due_date: str = Field(alias="dueDate", min_length=1)
    created_at: str = Field(alias="createdAt", min_length=1)
    updated_at: str = Field(alias="updatedAt", min_length=1)
    review_count: int = Field(alias="reviewCount", ge=0)
    success_count: int = Field(alias="successCount", ge=0)
    last_reviewed_at: str | None = Field(default=None, alias="lastReviewedAt")
    last_grade: Grade | None = Field(default=None, alias="lastGrade")

    @field_validator("box")
    @classmethod
    def box_within_table(cls, v: int, info: ValidationInfo) -> int:
        max_box = (info.context or {}).get("max_box", len(LEITNER_INTERVALS_DAYS))
        if v > max_box:
            raise ValueError(f"box {v} exceeds {max_box}")
        return v

    @field_validator("due_date")
    @classmethod
    def due_date_is_calendar_date(cls, v: str) -> str:
        if not _DATE_KEY.match(v):
            raise ValueError(f"dueDate {v!r} is not YYYY-MM-DD")
        date.fromisoformat(v)
        return v

    # Optional fields are cleared rather than rejected when mistyped.
    @field_validator("last_reviewed_at", mode="before")
    @classmethod
    def clear_bad_timestamp(cls, v: Any) -> str | None:
        return v if isinstance(v, str) else None

    @field_validator("last_grade", mode="before")
    @classmethod
    def clear_bad_grade(cls, v: Any) -> str | None:
        return v if isinstance(v, str) and v in GRADES else None

    def to_card(self) -> ReviewCard:
        return ReviewCard(**{name: getattr(self, name) for name, _ in FIELD_ALIASES})


@dataclass
class DecodeResult:
    """Outcome of decoding a blob: surviving cards plus the number of dropped records."""

    cards: list[ReviewCard] = field(default_factory=list)
    dropped: int = 0


def decode_with_report(raw: str | None, max_box: int = len(LEITNER_INTERVALS_DAYS)) -> DecodeResult:
    """
    Parse a persisted blob, dropping records that fail validation.

    Never raises: an absent, unparsable or non-list blob yields an empty result.
    """
    if not raw:
        return DecodeResult()

    try:
        parsed = json.loads(raw)
    except (ValueError, TypeError, RecursionError):
        logger.warning("Card store blob is not valid JSON; treating as empty")
        return DecodeResult()

    if not isinstance(parsed, list):
        logger.warning(f"Card store blob is a {type(parsed).__name__}, expected a list; treating as empty")
        return DecodeResult()

    result = DecodeResult()
    for position, item in enumerate(parsed):
        if not isinstance(item, dict):
            result.dropped += 1
            continue
        try:
            record = CardRecord.model_validate(item, context={"max_box": max_box})
        except ValidationError as e:
            logger.debug(f"Dropping card record #{position}: {e.error_count()} error(s)")
            result.dropped += 1
            continue
        result.cards.append(record.to_card())

    return result


def decode(raw: str | None, max_box: int = len(LEITNER_INTERVALS_DAYS)) -> list[ReviewCard]:
    return decode_with_report(raw, max_box=max_box).cards


def card_to_dict(card: ReviewCard) -> dict[str, Any]:
    """Persisted mapping of a card; unset optional fields are omitted."""
    out: dict[str, Any] = {}
    for name, key in FIELD_ALIASES:
        value = getattr(card, name)
        if value is None:
            continue
        out[key] = value
    return out


def encode(cards: list[ReviewCard]) -> str:
    return json.dumps([card_to_dict(card) for card in cards], ensure_ascii=False)
