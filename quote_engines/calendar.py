"""
Business Calendar - business-day arithmetic and time-zone-bound cutoffs.

Pure functions with no I/O. Holidays and "now" are always parameters;
nothing here reads the system clock.

Business-day counting is a forward scan rather than a closed-form
weekend-skipping formula because holiday sets are irregular. Turnaround
windows are short (weeks, not years), so the scan is cheap; it is still
bounded so a malformed holiday snapshot fails fast instead of looping.

Usage:
    from datetime import date, datetime, timezone
    from quote_engines.calendar import HolidaySet, add_business_days

    holidays = HolidaySet.of(date(2025, 1, 6))
    add_business_days(date(2025, 1, 3), 1, holidays)   # 2025-01-07

    resolve_effective_start_date(
        now=datetime(2025, 1, 8, 23, 45, tzinfo=timezone.utc),
        time_zone="America/Edmonton",
        cutoff_hour=16,
        cutoff_minute=30,
    )   # 2025-01-09 (16:45 local is past the cutoff)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import AbstractSet, Iterator
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from quote_kernel.domain.validation import normalize_region_code
from quote_kernel.exceptions import InvalidArgumentError
from quote_kernel.logging_config import get_logger

logger = get_logger("engines.calendar")

# Longest run of consecutive closed days tolerated before the holiday
# snapshot is treated as malformed.
MAX_CLOSED_RUN_DAYS = 366

_SATURDAY = 5


@dataclass(frozen=True)
class Holiday:
    """A single non-working date; ``region_code=None`` means it applies everywhere."""

    day: date
    name: str = ""
    region_code: str | None = None


@dataclass(frozen=True)
class HolidaySet:
    """
    Immutable holiday snapshot for one computation.

    Loaded fresh by the caller for every computation; the engine never
    caches it. ``same_day_blackouts`` are dates on which same-day
    turnaround is not offered even though the office is open.
    """

    holidays: tuple[Holiday, ...] = ()
    same_day_blackouts: frozenset[date] = frozenset()
    _dates: frozenset[date] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "holidays", tuple(self.holidays))
        object.__setattr__(self, "same_day_blackouts", frozenset(self.same_day_blackouts))
        object.__setattr__(self, "_dates", frozenset(h.day for h in self.holidays))

    @classmethod
    def of(cls, *days: date) -> HolidaySet:
        """Build a set of unnamed, global holidays."""
        return cls(holidays=tuple(Holiday(day=d) for d in days))

    @classmethod
    def empty(cls) -> HolidaySet:
        return cls()

    @property
    def dates(self) -> frozenset[date]:
        return self._dates

    def for_region(self, region_code: str) -> HolidaySet:
        """Narrow to global holidays plus those qualified for ``region_code``.

        Both sides go through ``normalize_region_code``, so a holiday tagged
        "CA-AB" matches billing region "AB" and vice versa.
        """
        wanted = normalize_region_code(region_code)
        return HolidaySet(
            holidays=tuple(
                h for h in self.holidays
                if h.region_code is None or normalize_region_code(h.region_code) == wanted
            ),
            same_day_blackouts=self.same_day_blackouts,
        )

    def blocks_same_day(self, day: date) -> bool:
        return day in self._dates or day in self.same_day_blackouts

    def __contains__(self, day: object) -> bool:
        return day in self._dates

    def __iter__(self) -> Iterator[date]:
        return iter(sorted(self._dates))

    def __len__(self) -> int:
        return len(self._dates)


HolidayDates = HolidaySet | AbstractSet[date]


def _require_date(value: object, argument: str) -> date:
    if isinstance(value, datetime) or not isinstance(value, date):
        raise InvalidArgumentError(argument, "must be a calendar date", value)
    return value


def is_business_day(day: date, holidays: HolidayDates = frozenset()) -> bool:
    """False for Saturday, Sunday, or any date in ``holidays``."""
    _require_date(day, "day")
    return day.weekday() < _SATURDAY and day not in holidays


def add_business_days(start: date, n: int, holidays: HolidayDates = frozenset()) -> date:
    """
    Advance ``start`` until ``n`` business days have been counted.

    ``start`` itself is never counted; ``n = 0`` returns ``start`` unchanged.

    Raises:
        InvalidArgumentError: if ``n`` is negative, or the holiday set closes
            more than MAX_CLOSED_RUN_DAYS consecutive days.
    """
    _require_date(start, "start")
    if isinstance(n, bool) or not isinstance(n, int):
        raise InvalidArgumentError("n", "business day count must be an integer", n)
    if n < 0:
        raise InvalidArgumentError("n", "business day count cannot be negative", n)

    current = start
    counted = 0
    closed_run = 0
    while counted < n:
        current += timedelta(days=1)
        if is_business_day(current, holidays):
            counted += 1
            closed_run = 0
        else:
            closed_run += 1
            if closed_run > MAX_CLOSED_RUN_DAYS:
                raise InvalidArgumentError(
                    "holidays",
                    f"no business day within {MAX_CLOSED_RUN_DAYS} days of {current.isoformat()}",
                )
    return current


def next_business_day(day: date, holidays: HolidayDates = frozenset()) -> date:
    """``day`` itself when it is a business day, else the first one after it."""
    _require_date(day, "day")
    current = day
    closed_run = 0
    while not is_business_day(current, holidays):
        current += timedelta(days=1)
        closed_run += 1
        if closed_run > MAX_CLOSED_RUN_DAYS:
            raise InvalidArgumentError(
                "holidays",
                f"no business day within {MAX_CLOSED_RUN_DAYS} days of {day.isoformat()}",
            )
    return current


def _resolve_zone(time_zone: str | tzinfo) -> tzinfo:
    if isinstance(time_zone, tzinfo):
        return time_zone
    try:
        return ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as e:
        raise InvalidArgumentError("time_zone", "unknown time zone", time_zone) from e


def local_time(now: datetime, time_zone: str | tzinfo) -> datetime:
    """Convert an aware ``now`` into ``time_zone``'s wall-clock time."""
    if not isinstance(now, datetime):
        raise InvalidArgumentError("now", "must be a datetime", now)
    if now.tzinfo is None or now.utcoffset() is None:
        raise InvalidArgumentError("now", "must be timezone-aware", now)
    return now.astimezone(_resolve_zone(time_zone))


def local_date(now: datetime, time_zone: str | tzinfo) -> date:
    return local_time(now, time_zone).date()


def _cutoff(cutoff_hour: int, cutoff_minute: int) -> time:
    if not 0 <= cutoff_hour <= 23:
        raise InvalidArgumentError("cutoff_hour", "must be between 0 and 23", cutoff_hour)
    if not 0 <= cutoff_minute <= 59:
        raise InvalidArgumentError("cutoff_minute", "must be between 0 and 59", cutoff_minute)
    return time(cutoff_hour, cutoff_minute)


def resolve_effective_start_date(
    now: datetime,
    time_zone: str | tzinfo,
    cutoff_hour: int,
    cutoff_minute: int,
) -> date:
    """
    Calendar date on which turnaround counting starts (day zero).

    At or after the local cutoff the order is treated as received the next
    calendar day.
    """
    cutoff = _cutoff(cutoff_hour, cutoff_minute)
    local = local_time(now, time_zone)
    past_cutoff = local.time() >= cutoff
    effective = local.date() + timedelta(days=1) if past_cutoff else local.date()

    logger.debug("effective_start_resolved", extra={
        "local_time": local.isoformat(),
        "cutoff": cutoff.isoformat(),
        "past_cutoff": past_cutoff,
        "effective_start_date": effective.isoformat(),
    })
    return effective


def is_before_cutoff(
    now: datetime,
    time_zone: str | tzinfo,
    cutoff_hour: int,
    cutoff_minute: int,
    weekdays_only: bool = False,
) -> bool:
    """
    True when local time is strictly before the cutoff.

    With ``weekdays_only`` it is additionally False on Saturday and Sunday.
    """
    cutoff = _cutoff(cutoff_hour, cutoff_minute)
    local = local_time(now, time_zone)
    if weekdays_only and local.weekday() >= _SATURDAY:
        return False
    return local.time() < cutoff
