# Domain Package
from .models import (
    GRADES,
    DailyMicroReview,
    Grade,
    LessonDay,
    LessonSection,
    MicroReviewSource,
    ReviewCard,
    ReviewPlan,
)
from .ports import AnalyticsSink, CardStorage

__all__ = [
    "GRADES",
    "Grade",
    "MicroReviewSource",
    "ReviewCard",
    "LessonSection",
    "LessonDay",
    "DailyMicroReview",
    "ReviewPlan",
    "CardStorage",
    "AnalyticsSink",
]
