"""
Leitner scheduling engine.

Pure box-transition and due-date math. This is a pure computation module
with no I/O; the interval table can be swapped by constructing a
``Scheduler`` with different intervals.
"""

from collections.abc import Sequence
from datetime import UTC, date, datetime, timedelta

from leitbox.domain.constants import LEITNER_INTERVALS_DAYS, PAIR_DELIMITER
from leitbox.domain.models import GRADES, Grade


def ensure_intervals(intervals: Sequence[int]) -> tuple[int, ...]:
    """Validate an interval table and freeze it as a tuple."""
    table = tuple(intervals)
    if not table:
        raise ValueError("Interval table must contain at least one entry.")
    for days in table:
        if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
            raise ValueError(f"Interval entries must be positive integers, got {days!r}.")
    return table


def to_local_date(moment: datetime) -> date:
    """Calendar date of ``moment`` in local time. Naive datetimes are already local."""
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone().date()


def to_date_key(moment: datetime) -> str:
    """Format the local calendar date of ``moment`` as ``YYYY-MM-DD``."""
    return to_local_date(moment).isoformat()


def to_iso(moment: datetime) -> str:
    """UTC ISO-8601 timestamp with millisecond precision and a ``Z`` suffix."""
    utc = moment.astimezone(UTC)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_card_id(day_number: int, section_id: str, sentence_index: int) -> str:
    return f"d{day_number}:{section_id}:{sentence_index}"


def parse_pair(source_line: str) -> tuple[str, str]:
    """
    Split a bilingual source line into ``(prompt, answer)``.

    Only the first delimiter separates the sides. An empty right side
    mirrors the prompt, and an empty prompt mirrors the answer, so both
    sides are non-empty whenever the line has any content.
    """
    left, _, right = source_line.partition(PAIR_DELIMITER)
    prompt = left.strip()
    answer = right.strip() or prompt
    return prompt or answer, answer


class Scheduler:
    """
    Box transitions over a fixed interval table.

    Stateless apart from the immutable table and side-effect free.
    """

    def __init__(self, intervals: Sequence[int] = LEITNER_INTERVALS_DAYS):
        self.intervals = ensure_intervals(intervals)

    @property
    def max_box(self) -> int:
        return len(self.intervals)

    def next_box(self, current_box: int, grade: Grade) -> int:
        """
        again -> 1, good -> +1, easy -> +2, saturating at the last box.
        """
        if grade not in GRADES:
            raise ValueError(f"Unknown grade: {grade!r}")
        if grade == "again":
            return 1
        step = 2 if grade == "easy" else 1
        return max(1, min(self.max_box, current_box + step))

    def interval_for(self, box: int) -> int:
        """Interval in days for a box, clamped into the table."""
        index = min(max(box, 1), self.max_box) - 1
        return self.intervals[index]

    def next_due_date(self, now: datetime, box: int) -> str:
        due = to_local_date(now) + timedelta(days=self.interval_for(box))
        return due.isoformat()


default_scheduler = Scheduler()


def _scheduler_for(intervals: Sequence[int] | None) -> Scheduler:
    return default_scheduler if intervals is None else Scheduler(intervals)


def next_box(current_box: int, grade: Grade, intervals: Sequence[int] | None = None) -> int:
    return _scheduler_for(intervals).next_box(current_box, grade)


def next_due_date(now: datetime, box: int, intervals: Sequence[int] | None = None) -> str:
    return _scheduler_for(intervals).next_due_date(now, box)
