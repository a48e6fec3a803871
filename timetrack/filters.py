"""
Filter Engine
=============

Predicates over cases and time logs:

- PeriodFilter: all / date range / calendar month, keyed on a time log's start
- CaseFilter: status, free-text search and exact creation day

Filters never mutate their input; they return new lists in input order.
Day and month boundaries are evaluated in the report timezone, and naive
timestamps are taken to already be in that timezone.

Usage:
    from timetrack.filters import PeriodFilter, filter_time_logs
    january = PeriodFilter(mode="month", year=2024, month_index=0)
    logs = filter_time_logs(all_logs, january, tz)
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, List, Optional, Tuple, TypeVar, Union

from .errors import InvalidFilterError
from .schemas import Case, CaseStatus, PeriodMode, TimeLog

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

ALL_STATUSES = "All"

CaseT = TypeVar("CaseT", bound=Case)

DateLike = Union[str, date, None]


# =============================================================================
# Helpers
# =============================================================================

def to_local(ts: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Express a timestamp in the report timezone."""
    tz = tz or timezone.utc
    if ts.tzinfo is None:
        return ts.replace(tzinfo=tz)
    return ts.astimezone(tz)


def parse_date(value: DateLike) -> Optional[date]:
    """Parse a YYYY-MM-DD value; empty means no date."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError as e:
        raise InvalidFilterError(f"Invalid date: {value!r}") from e


def _parse_int(value: Union[int, str, None], name: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError as e:
        raise InvalidFilterError(f"Invalid {name}: {value!r}") from e


def _start_of_day(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def _format_day(day: date) -> str:
    return f"{MONTH_NAMES[day.month - 1][:3]} {day.day}, {day.year}"


# =============================================================================
# Period filter (time logs)
# =============================================================================

@dataclass(frozen=True)
class PeriodFilter:
    """
    Period selection for time logs.

    In range/month mode an empty date, year or month falls back to no
    filtering. month_index is zero-based (0 = January).
    """
    mode: PeriodMode = PeriodMode.ALL
    start_date: DateLike = None
    end_date: DateLike = None
    year: Union[int, str, None] = None
    month_index: Union[int, str, None] = None

    def __post_init__(self):
        if not isinstance(self.mode, PeriodMode):
            try:
                object.__setattr__(self, "mode", PeriodMode(str(self.mode).strip().lower()))
            except ValueError as e:
                raise InvalidFilterError(f"Unknown period mode: {self.mode!r}") from e

    def date_range(self) -> Optional[Tuple[date, date]]:
        """(start, end) days in range mode when both are given"""
        if self.mode != PeriodMode.RANGE:
            return None
        start = parse_date(self.start_date)
        end = parse_date(self.end_date)
        if start is None or end is None:
            return None
        if end >= date.max:
            raise InvalidFilterError(f"End date out of range: {end.isoformat()}")
        return start, end

    def month(self) -> Optional[Tuple[int, int]]:
        """(year, month 1-12) in month mode when both are given"""
        if self.mode != PeriodMode.MONTH:
            return None
        year = _parse_int(self.year, "year")
        month_index = _parse_int(self.month_index, "month index")
        if year is None or month_index is None:
            return None
        if not 0 <= month_index <= 11:
            raise InvalidFilterError(f"Month index out of range: {month_index}")
        if not 1 <= year <= 9998:
            raise InvalidFilterError(f"Year out of range: {year}")
        return year, month_index + 1

    def bounds(self, tz: Optional[tzinfo] = None) -> Optional[Tuple[datetime, datetime]]:
        """
        Half-open [start, end) interval, or None when nothing is filtered.

        A range's end bound is the first instant after its last day, which
        makes endDate 23:59:59.999999 inclusive.
        """
        tz = tz or timezone.utc

        days = self.date_range()
        if days:
            start, end = days
            return _start_of_day(start, tz), _start_of_day(end + timedelta(days=1), tz)

        month = self.month()
        if month:
            year, m = month
            first = date(year, m, 1)
            following = date(year + 1, 1, 1) if m == 12 else date(year, m + 1, 1)
            return _start_of_day(first, tz), _start_of_day(following, tz)

        return None

    def token(self) -> str:
        """Filename token: all-time, <start>-to-<end> or YYYY-MM"""
        days = self.date_range()
        if days:
            return f"{days[0].isoformat()}-to-{days[1].isoformat()}"
        month = self.month()
        if month:
            return f"{month[0]:04d}-{month[1]:02d}"
        return "all-time"

    def label(self) -> str:
        """Human-readable period for report headers"""
        days = self.date_range()
        if days:
            return f"{_format_day(days[0])} to {_format_day(days[1])}"
        month = self.month()
        if month:
            return f"{MONTH_NAMES[month[1] - 1]} {month[0]}"
        return "All Time"


def filter_time_logs(
    time_logs: Iterable[TimeLog],
    period: Optional[PeriodFilter] = None,
    tz: Optional[tzinfo] = None,
) -> List[TimeLog]:
    """Keep time logs whose start falls inside the period."""
    logs = list(time_logs)
    interval = period.bounds(tz) if period else None
    if interval is None:
        return logs

    start, end = interval
    local_tz = tz or timezone.utc
    return [log for log in logs if start <= to_local(log.start_time, local_tz) < end]


# =============================================================================
# Case filter
# =============================================================================

def _parse_status(value: Union[CaseStatus, str, None]) -> Optional[CaseStatus]:
    if value is None or isinstance(value, CaseStatus):
        return value
    text = str(value).strip()
    if not text or text.lower() == ALL_STATUSES.lower():
        return None
    for status in CaseStatus:
        if status.value.lower() == text.lower():
            return status
    raise InvalidFilterError(f"Unknown case status: {value!r}")


def matches_search(case: Case, query: str) -> bool:
    """Case-insensitive substring match on title, client and description"""
    needle = query.lower()
    if needle in case.title.lower() or needle in case.client_name.lower():
        return True
    return case.description is not None and needle in case.description.lower()


def same_day(ts: datetime, day: date, tz: Optional[tzinfo] = None) -> bool:
    local = to_local(ts, tz)
    return (local.year, local.month, local.day) == (day.year, day.month, day.day)


@dataclass(frozen=True)
class CaseFilter:
    """Dashboard filters; empty fields pass everything"""
    status: Union[CaseStatus, str, None] = None
    search: Optional[str] = None
    created_on: DateLike = None

    def __post_init__(self):
        object.__setattr__(self, "status", _parse_status(self.status))
        object.__setattr__(self, "created_on", parse_date(self.created_on))

    def matches(self, case: Case, tz: Optional[tzinfo] = None) -> bool:
        if self.status is not None and case.status != self.status:
            return False
        if self.search and not matches_search(case, self.search):
            return False
        if self.created_on is not None and not same_day(case.created_at, self.created_on, tz):
            return False
        return True


def filter_cases(
    cases: Iterable[CaseT],
    case_filter: Optional[CaseFilter] = None,
    tz: Optional[tzinfo] = None,
) -> List[CaseT]:
    """Keep cases matching every active predicate of the filter."""
    if case_filter is None:
        return list(cases)
    return [c for c in cases if case_filter.matches(c, tz)]
