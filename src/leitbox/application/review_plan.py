"""
Review plan loading.

Only the ``dailyMicroReview`` slice of the plan is consumed here; other
plan sections are ignored. Invalid plans fall back to the defaults.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml  # type: ignore
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from leitbox.domain.constants import (
    DEFAULT_MICRO_CARD_COUNT,
    DEFAULT_MICRO_MIN_DAYS_AGO,
    DEFAULT_MICRO_SENTENCE_COUNT,
)
from leitbox.domain.models import DailyMicroReview, ReviewPlan

logger = logging.getLogger(__name__)

DEFAULT_REVIEW_PLAN = ReviewPlan(
    daily_micro_review=DailyMicroReview(
        anki_cards_from_at_least_days_ago=DEFAULT_MICRO_MIN_DAYS_AGO,
        anki_card_count=DEFAULT_MICRO_CARD_COUNT,
        memory_sentence_count=DEFAULT_MICRO_SENTENCE_COUNT,
    )
)


class DailyMicroReviewSchema(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")

    anki_cards_from_at_least_days_ago: int = Field(alias="ankiCardsFromAtLeastDaysAgo", ge=0)
    anki_card_count: int = Field(alias="ankiCardCount", ge=0)
    memory_sentence_count: int = Field(alias="memorySentenceCount", ge=0)
    anki_cards_from_at_most_days_ago: int | None = Field(default=None, alias="ankiCardsFromAtMostDaysAgo", ge=0)

    @model_validator(mode="after")
    def window_is_ordered(self) -> "DailyMicroReviewSchema":
        upper = self.anki_cards_from_at_most_days_ago
        if upper is not None and upper < self.anki_cards_from_at_least_days_ago:
            raise ValueError("ankiCardsFromAtMostDaysAgo must not be below ankiCardsFromAtLeastDaysAgo")
        return self


class ReviewPlanSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    daily_micro_review: DailyMicroReviewSchema = Field(alias="dailyMicroReview")

    def to_plan(self) -> ReviewPlan:
        return ReviewPlan(daily_micro_review=DailyMicroReview(**self.daily_micro_review.model_dump()))


def parse_review_plan(value: Any) -> ReviewPlan:
    """Validate a raw plan mapping; any problem yields DEFAULT_REVIEW_PLAN."""
    if not isinstance(value, dict):
        logger.warning("Review plan is not a mapping; using defaults")
        return DEFAULT_REVIEW_PLAN
    try:
        return ReviewPlanSchema.model_validate(value).to_plan()
    except ValidationError as e:
        logger.warning(f"Invalid review plan ({e.error_count()} error(s)); using defaults")
        return DEFAULT_REVIEW_PLAN


def load_review_plan(path: Path | None) -> ReviewPlan:
    """Load a plan file (YAML or JSON). A missing path means the default plan."""
    if path is None:
        return DEFAULT_REVIEW_PLAN
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning(f"Review plan file not found: {path}; using defaults")
        return DEFAULT_REVIEW_PLAN
    except yaml.YAMLError as e:
        logger.warning(f"Review plan file {path.name} is unreadable: {e}; using defaults")
        return DEFAULT_REVIEW_PLAN
    return parse_review_plan(raw)


def plan_to_dict(plan: ReviewPlan) -> dict[str, Any]:
    micro = plan.daily_micro_review
    return {
        "dailyMicroReview": {
            "ankiCardsFromAtLeastDaysAgo": micro.anki_cards_from_at_least_days_ago,
            "ankiCardCount": micro.anki_card_count,
            "memorySentenceCount": micro.memory_sentence_count,
            "ankiCardsFromAtMostDaysAgo": micro.anki_cards_from_at_most_days_ago,
        }
    }


def dump_review_plan(plan: ReviewPlan) -> str:
    return json.dumps(plan_to_dict(plan), indent=2)
