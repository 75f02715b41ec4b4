from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from enum import Enum
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Union

import pandas as pd

from barometre.core.config import settings
from barometre.core.errors import InvalidPeriod
from barometre.models.dto import TimeRange

Instant = Union[datetime, date, str]

SECONDS_PER_DAY = 24 * 3600


class Granularity(str, Enum):
    HOUR = "hour"
    DAY = "day"
    DATE = "date"
    MONTH = "month"


def to_instant(value: Instant) -> datetime:
    # naive values are UTC
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        dt = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _calendar_shift(months: int = 0, years: int = 0) -> Callable[[datetime], datetime]:
    # DateOffset clamps to the last day of the target month (31/03 -> 28/02)
    offset = pd.DateOffset(months=months, years=years)

    def shift(end: datetime) -> datetime:
        return (pd.Timestamp(end) - offset).to_pydatetime()

    return shift


PERIOD_STEPS: Mapping[str, Callable[[datetime], datetime]] = MappingProxyType({
    "day": lambda end: end.replace(hour=0),
    "week": lambda end: end - timedelta(days=7),
    "month": _calendar_shift(months=1),
    "year": _calendar_shift(years=1),
})


def resolve_timespan(period: str, end: Optional[Instant] = None, *,
                     default_end: Optional[Instant] = None) -> TimeRange:
    """Range ending at ``end`` (or the default end instant) and spanning one period."""
    reference = to_instant(end or default_end or settings.DEFAULT_END_DATE)
    step = PERIOD_STEPS.get(period) if isinstance(period, str) else None
    if step is None:
        raise InvalidPeriod(
            f"Wrong timespan parameter {period!r} (supported: {', '.join(PERIOD_STEPS)})"
        )
    return TimeRange(start=step(reference), end=reference)


def resolve_bounds(start: Instant, end: Instant) -> TimeRange:
    """Range for an explicit pair of dates, as sent by the calendar inputs."""
    lo, hi = to_instant(start), to_instant(end)
    if lo > hi:
        raise InvalidPeriod(f"start date {lo.date()} is after end date {hi.date()}")
    return TimeRange(start=lo, end=hi)


def elapsed_days(start: Instant, end: Instant) -> float:
    return (to_instant(end) - to_instant(start)).total_seconds() / SECONDS_PER_DAY


def select_granularity(start: Instant, end: Instant) -> Granularity:
    days = elapsed_days(start, end)
    if days < 2:
        return Granularity.HOUR
    elif days < 30:
        return Granularity.DAY
    elif days < 365:
        # same bucket as the tier above, kept as observed in production data
        return Granularity.DAY
    return Granularity.MONTH


def select_date_granularity(start: Instant, end: Instant) -> Granularity:
    if elapsed_days(start, end) < 365:
        return Granularity.DATE
    return Granularity.MONTH


# Daily tables that also carry a precomputed `month` column
DAILY_MONTH_COLUMN: Mapping[Granularity, str] = MappingProxyType({
    Granularity.DATE: "date",
    Granularity.MONTH: "month",
})

# Daily tables without a month column
DAILY_DATE_TRUNC: Mapping[Granularity, str] = MappingProxyType({
    Granularity.DATE: "date",
    Granularity.MONTH: "date_trunc('month', date)::date",
})

# Period tag -> column, for tables stored per hour
HOURLY_PERIOD_COLUMN: Mapping[str, str] = MappingProxyType({
    "day": "datetime",
    "week": "date",
    "month": "date",
    "year": "month",
})

# Period tag -> column, for tables stored per day (no hourly resolution)
DAILY_PERIOD_COLUMN: Mapping[str, str] = MappingProxyType({
    "week": "date",
    "month": "date",
    "year": "month",
})


def bucket_expression(granularity: Granularity, expressions: Mapping[Granularity, str]) -> str:
    try:
        return expressions[granularity]
    except KeyError:
        raise ValueError(f"no bucket expression for granularity {granularity.value!r}") from None


def period_column(period: str, columns: Mapping[str, str]) -> str:
    try:
        return columns[period]
    except KeyError:
        raise InvalidPeriod(
            f"timespan should be one of: {', '.join(columns)} (got {period!r})"
        ) from None
