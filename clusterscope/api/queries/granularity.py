"""
Granularity planning for series queries.

Derives the bucket rule used to group samples over a date range:
- explicit mode: truncate to a named unit in the requested timezone
- auto mode: pick a width from the range length so that a window yields
  roughly 60 buckets, aligned to hour/day/month boundaries
"""

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone
from typing import Optional, Sequence

import pandas as pd

from ..errors import InvalidParameterError

logger = logging.getLogger("clusterscope.queries")

GRANULARITY_UNITS = ("minute", "hour", "day", "month", "year")

# RFC 3339 with offset ("Z" or "+09:00"), optionally with fractional seconds
_RFC3339_FORMATS = ("%Y-%m-%dT%H:%M:%S%z", "%Y-%m-%dT%H:%M:%S.%f%z")
# strptime takes at most 6 fractional digits; nanosecond input is truncated
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")
# Literal without offset, read as UTC
_LITERAL_FORMAT = "%Y-%m-%d %H:%M:%S"

_FLOOR_FREQ = {"minute": "min", "hour": "h"}
_PERIOD_FREQ = {"month": "M", "year": "Y"}


def parse_timestamp(value: str) -> datetime:
    """Parse one dateRange bound into an aware datetime."""
    rfc3339 = _EXCESS_FRACTION.sub(r"\1", value)
    for fmt in _RFC3339_FORMATS:
        try:
            return datetime.strptime(rfc3339, fmt)
        except ValueError:
            continue
    try:
        return datetime.strptime(value, _LITERAL_FORMAT).replace(tzinfo=dt_timezone.utc)
    except ValueError:
        raise InvalidParameterError(f"invalid dateRange value: {value!r}") from None


def _truncate(local: pd.Series, unit: str) -> pd.Series:
    """Truncate naive wall-clock datetimes to the start of `unit`."""
    if unit in _FLOOR_FREQ:
        return local.dt.floor(_FLOOR_FREQ[unit])
    if unit == "day":
        return local.dt.normalize()
    return local.dt.to_period(_PERIOD_FREQ[unit]).dt.to_timestamp()


@dataclass(frozen=True)
class BucketRule:
    """
    How timestamps collapse into buckets for one series query.

    `timezone` is only set in explicit mode; auto mode buckets in UTC.
    """
    start: datetime
    end: datetime
    unit: str
    width: int = 1
    timezone: Optional[str] = None

    @property
    def explicit(self) -> bool:
        return self.timezone is not None

    @property
    def start_ts(self) -> int:
        return math.ceil(self.start.timestamp())

    @property
    def end_ts(self) -> int:
        # ts < end_ts over integer seconds is ts < end
        return math.ceil(self.end.timestamp())

    def describe(self) -> str:
        if self.explicit:
            return f"{self.unit} ({self.timezone})"
        return f"{self.width} {self.unit}"

    def apply(self, ts: pd.Series) -> pd.Series:
        """Map Unix-second timestamps to naive bucket-start datetimes."""
        utc = pd.to_datetime(ts, unit="s", utc=True)

        if self.explicit:
            local = utc.dt.tz_convert(self.timezone).dt.tz_localize(None)
            return _truncate(local, self.unit)

        local = utc.dt.tz_localize(None)
        w = self.width
        if self.unit == "minute":
            return _truncate(local, "hour") + pd.to_timedelta(local.dt.minute // w * w, unit="min")
        if self.unit == "hour":
            return _truncate(local, "day") + pd.to_timedelta(local.dt.hour // w * w, unit="h")
        # day-of-month is 1-based; the offset is added to the month start as-is
        return _truncate(local, "month") + pd.to_timedelta(local.dt.day // w * w, unit="D")


def plan_granularity(
    date_range: Optional[Sequence[str]],
    timezone: str = "UTC",
    granularity: Optional[str] = None,
) -> BucketRule:
    """
    Build the bucket rule for a series request.

    Raises:
        InvalidParameterError: dateRange missing, not exactly two values,
            unparseable or reversed
    """
    if not date_range or len(date_range) != 2:
        raise InvalidParameterError("dateRange requires exactly two values")

    start = parse_timestamp(date_range[0])
    end = parse_timestamp(date_range[1])
    if end < start:
        raise InvalidParameterError("dateRange end precedes start")

    if granularity in GRANULARITY_UNITS:
        return BucketRule(start=start, end=end, unit=granularity, timezone=timezone or "UTC")

    diff_minutes = (end - start).total_seconds() / 60
    interval = int(diff_minutes / 60)
    if interval == 0:
        interval = 1

    if interval < 60:
        rule = BucketRule(start=start, end=end, unit="minute", width=interval)
    elif interval < 1440:
        rule = BucketRule(start=start, end=end, unit="hour", width=interval // 60)
    else:
        rule = BucketRule(start=start, end=end, unit="day", width=interval // 1440)

    logger.debug(f"auto granularity for {diff_minutes:.0f}min range: {rule.describe()}")
    return rule
