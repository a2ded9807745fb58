"""Cron expression evaluator. No external dependencies.

Supports standard 5-field cron: minute hour day_of_month month day_of_week

Examples:
    "0 16 * * 1-5"   -> weekdays at 4pm
    "0 9 * * 0"      -> Sundays at 9am
    "*/5 * * * *"     -> every 5 minutes
    "0 9,17 * * *"    -> 9am and 5pm daily

Three pieces:
    parse_field()               token -> set of integers
    validate_cron_expression()  fast syntactic verdict for a whole expression
    next_run_times()            forward search for upcoming matches

Everything here is pure: no caches, no module state, safe to call from
anywhere at any time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta

from core.models.cron import ValidationResult

DEFAULT_OCCURRENCE_COUNT = 5

# Search horizon in minutes: 8 years, the longest gap between two Feb 29ths.
# Impossible dates (Feb 30) come back empty once it runs out.
DEFAULT_SEARCH_LIMIT = 8 * 366 * 24 * 60

# ASCII digits only; longer values are out of every domain anyway.
_INT_RE = re.compile(r"^[0-9]{1,9}$")

_WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
_MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


# ---------------------------------------------------------------------------
# Field values
# ---------------------------------------------------------------------------

class ParsedField(frozenset):
    """The integer values one cron field denotes.

    Compares equal to a plain set of the same values. A field written as a
    bare ``*`` is a `Wildcard` instead, which matters for the day-of-month /
    day-of-week combination rule.
    """

    wildcard = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({sorted(self)})"


class Wildcard(ParsedField):
    """The full domain of a field written as ``*`` (unconstrained)."""

    wildcard = True


@dataclass(frozen=True)
class FieldDomain:
    """Inclusive numeric range of one field position."""

    name: str
    minimum: int
    maximum: int

    def parse(self, token: str) -> ParsedField:
        return parse_field(token, self.minimum, self.maximum)

    def __contains__(self, value: int) -> bool:
        return self.minimum <= value <= self.maximum


MINUTE = FieldDomain("minute", 0, 59)
HOUR = FieldDomain("hour", 0, 23)
DAY_OF_MONTH = FieldDomain("day", 1, 31)
MONTH = FieldDomain("month", 1, 12)
DAY_OF_WEEK = FieldDomain("weekday", 0, 6)  # 0=Sun, 6=Sat

FIELD_DOMAINS = (MINUTE, HOUR, DAY_OF_MONTH, MONTH, DAY_OF_WEEK)


def _to_int(text: str) -> int | None:
    text = text.strip()
    return int(text) if _INT_RE.match(text) else None


def parse_field(token: str, min_val: int, max_val: int) -> ParsedField:
    """Expand a single cron field into the values it denotes.

    Supports: *, */N, N/N, N-M/N, N, N-M, N,M,O

    Never raises. Malformed pieces are dropped, so a completely malformed
    field comes back empty and simply never matches.
    """
    token = token.strip()

    # Wildcard
    if token == "*":
        return Wildcard(range(min_val, max_val + 1))

    # Step: */N, N/N, N-M/N
    if "/" in token:
        base, step_text = token.split("/", 1)
        step = _to_int(step_text)
        if step is None or step <= 0:
            return ParsedField()

        if base == "*":
            start, end = min_val, max_val
        elif "-" in base:
            first, last = (_to_int(part) for part in base.split("-", 1))
            if first is None or last is None:
                return ParsedField()
            start, end = first, min(last, max_val)
        else:
            first = _to_int(base)
            if first is None:
                return ParsedField()
            start, end = first, max_val

        return ParsedField(v for v in range(start, end + 1, step) if min_val <= v <= max_val)

    # List: N,M,O
    if "," in token:
        values = (_to_int(part) for part in token.split(","))
        return ParsedField(v for v in values if v is not None and min_val <= v <= max_val)

    # Range: N-M
    if "-" in token:
        first, last = (_to_int(part) for part in token.split("-", 1))
        if first is None or last is None:
            return ParsedField()
        return ParsedField(range(max(first, min_val), min(last, max_val) + 1))

    # Exact value
    value = _to_int(token)
    if value is None or not min_val <= value <= max_val:
        return ParsedField()
    return ParsedField((value,))


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def split_expression(expression: str) -> list[str]:
    """Split an expression into its whitespace-separated fields."""
    return expression.strip().split()


def validate_cron_expression(expression: str) -> ValidationResult:
    """Quick syntactic check of a cron expression.

    Simple numeric fields are checked against their domain. Fields using
    ``/``, ``,`` or ``-`` only need to contain the separator here; their
    contents are interpreted leniently by parse_field() during the search.
    """
    parts = split_expression(expression)
    if len(parts) != 5:
        return ValidationResult.invalid("CRON expression must have exactly 5 parts")

    for token, domain in zip(parts, FIELD_DOMAINS):
        if token == "*" or any(sep in token for sep in "/,-"):
            continue
        value = _to_int(token)
        if value is None or value not in domain:
            return ValidationResult.invalid(f"Invalid {domain.name}: {token}")

    return ValidationResult.valid("Valid CRON expression")


# ---------------------------------------------------------------------------
# Occurrence search
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CronSchedule:
    """Parsed value sets for all five fields of an expression."""

    minutes: ParsedField
    hours: ParsedField
    days: ParsedField
    months: ParsedField
    weekdays: ParsedField

    @classmethod
    def from_expression(cls, expression: str) -> CronSchedule:
        """Parse an expression. Raises ValueError unless it has 5 fields."""
        parts = split_expression(expression)
        if len(parts) != 5:
            raise ValueError(f"Invalid cron expression (need 5 fields): {expression!r}")

        return cls(*(domain.parse(token) for token, domain in zip(parts, FIELD_DOMAINS)))

    def can_match(self) -> bool:
        """False when some field is empty, so no instant could ever match."""
        if not (self.minutes and self.hours and self.months):
            return False
        if not self.days.wildcard and not self.weekdays.wildcard:
            return bool(self.days or self.weekdays)
        return bool(self.days and self.weekdays)

    def day_matches(self, dt: datetime) -> bool:
        """Day-of-month OR day-of-week when both are constrained."""
        weekday = dt.isoweekday() % 7
        if not self.days.wildcard and not self.weekdays.wildcard:
            return dt.day in self.days or weekday in self.weekdays
        if not self.days.wildcard:
            return dt.day in self.days
        if not self.weekdays.wildcard:
            return weekday in self.weekdays
        return True

    def matches(self, dt: datetime) -> bool:
        return (
            dt.minute in self.minutes
            and dt.hour in self.hours
            and dt.month in self.months
            and self.day_matches(dt)
        )


def cron_matches(expression: str, dt: datetime) -> bool:
    """Check if a datetime matches a cron expression.

    Raises ValueError if the expression does not have 5 fields.
    """
    return CronSchedule.from_expression(expression).matches(dt)


def next_run_times(
    expression: str,
    reference: datetime | None = None,
    count: int = DEFAULT_OCCURRENCE_COUNT,
    search_limit: int = DEFAULT_SEARCH_LIMIT,
) -> list[datetime]:
    """Find the next `count` instants strictly after `reference`.

    Walks forward in wall-clock time, one minute at a time inside matching
    hours; days and hours that cannot match are stepped over whole. Gives
    up `search_limit` minutes after `reference`, so the result may be
    shorter than `count` (or empty) for rare or impossible schedules. An
    expression without exactly 5 fields yields an empty list.
    """
    if count <= 0:
        return []
    try:
        schedule = CronSchedule.from_expression(expression)
    except ValueError:
        return []
    if not schedule.can_match():
        return []

    reference = reference or datetime.now()
    cursor = reference.replace(second=0, microsecond=0) + timedelta(minutes=1)
    end = cursor + timedelta(minutes=search_limit)

    runs: list[datetime] = []
    while cursor < end and len(runs) < count:
        if cursor.month not in schedule.months or not schedule.day_matches(cursor):
            cursor = (cursor + timedelta(days=1)).replace(hour=0, minute=0)
            continue
        if cursor.hour not in schedule.hours:
            cursor = cursor.replace(minute=0) + timedelta(hours=1)
            continue
        if cursor.minute in schedule.minutes:
            runs.append(cursor)
        cursor += timedelta(minutes=1)
    return runs


def format_occurrence(dt: datetime) -> str:
    """Render an instant as e.g. ``"Mon, Jan 1, 9:00 AM"``."""
    hour = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return (
        f"{_WEEKDAY_NAMES[dt.isoweekday() % 7]}, {_MONTH_NAMES[dt.month - 1]} {dt.day}, "
        f"{hour}:{dt.minute:02d} {meridiem}"
    )


def next_occurrences(
    expression: str,
    reference: datetime | None = None,
    count: int = DEFAULT_OCCURRENCE_COUNT,
    search_limit: int = DEFAULT_SEARCH_LIMIT,
) -> list[str]:
    """Like next_run_times(), formatted for display."""
    return [
        format_occurrence(dt)
        for dt in next_run_times(expression, reference, count, search_limit)
    ]


# ---------------------------------------------------------------------------
# Common schedules
# ---------------------------------------------------------------------------

TEMPLATES = [
    {"name": "Daily backup", "cron": "0 2 * * *", "desc": "Every day at 2 AM"},
    {"name": "Weekly report", "cron": "0 9 * * 1", "desc": "Every Monday at 9 AM"},
    {"name": "Hourly sync", "cron": "0 * * * *", "desc": "Every hour"},
    {"name": "Monthly cleanup", "cron": "0 0 1 * *", "desc": "First day of every month"},
]
