"""Centralized constants for the leitbox engine.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Leitner schedule ----------
LEITNER_INTERVALS_DAYS = (1, 3, 7, 14, 30)  # index 0 = box 1

# ---------- Due queue ----------
DEFAULT_DAILY_CAP = 50

# ---------- Persistence ----------
SRS_STORAGE_KEY = "leitbox:srs:v1"

# ---------- Lesson content ----------
PAIR_DELIMITER = "->"
REVIEW_SECTION_TYPE = "anki"
SECTION_TYPES = ("warmup", "verbs", "sentences", "modals", "patterns", "anki", "free")

# ---------- Micro-review defaults ----------
DEFAULT_MICRO_MIN_DAYS_AGO = 30
DEFAULT_MICRO_CARD_COUNT = 5
DEFAULT_MICRO_SENTENCE_COUNT = 5

# ---------- Analytics ----------
CARD_REVIEWED_EVENT = "card_reviewed"
ANALYTICS_TIMEOUT = 5.0
