"""Unit tests for the granularity planner

Date range -> BucketRule, and BucketRule -> bucket start per timestamp.
"""
from datetime import datetime, timedelta, timezone

import pandas as pd
import pytest

from clusterscope.api.errors import InvalidParameterError
from clusterscope.api.queries import BucketRule, parse_timestamp, plan_granularity

from ..conftest import utc_ts

START = datetime(2024, 1, 15, 0, 0, tzinfo=timezone.utc)


def _range(minutes):
    end = START + timedelta(minutes=minutes)
    return [START.strftime("%Y-%m-%dT%H:%M:%SZ"), end.strftime("%Y-%m-%dT%H:%M:%SZ")]


def _buckets(rule, *texts):
    ts = pd.Series([utc_ts(t) for t in texts])
    return [b.strftime("%Y-%m-%d %H:%M:%S") for b in rule.apply(ts)]


class TestParseTimestamp:

    def test_rfc3339_utc(self):
        assert parse_timestamp("2024-01-15T10:00:00Z") == datetime(2024, 1, 15, 10, tzinfo=timezone.utc)

    def test_rfc3339_offset(self):
        parsed = parse_timestamp("2024-01-15T19:00:00+09:00")
        assert parsed.timestamp() == utc_ts("2024-01-15 10:00:00")

    def test_fractional_seconds(self):
        assert parse_timestamp("2024-01-15T10:00:00.250Z").microsecond == 250000

    def test_nanosecond_fraction_truncated(self):
        parsed = parse_timestamp("2024-01-15T10:00:00.123456789Z")
        assert parsed.microsecond == 123456
        assert parse_timestamp("2024-01-15T19:00:00.5+09:00").microsecond == 500000

    def test_naive_literal_is_utc(self):
        assert parse_timestamp("2024-01-15 10:00:00").timestamp() == utc_ts("2024-01-15 10:00:00")

    @pytest.mark.parametrize("value", ["yesterday", "2024-01-15", "15/01/2024 10:00"])
    def test_unparseable_rejected(self, value):
        with pytest.raises(InvalidParameterError):
            parse_timestamp(value)


class TestPlanGranularity:
    """Auto width is trunc(minutes / 60): about 60 buckets per range"""

    @pytest.mark.parametrize("minutes, unit, width", [
        (30, "minute", 1),       # interval 0 is forced to 1
        (59, "minute", 1),
        (60, "minute", 1),
        (125, "minute", 2),
        (1500, "minute", 25),
        (4000, "hour", 1),
        (7200, "hour", 2),
        (86400, "day", 1),
        (30 * 86400, "day", 30),
    ])
    def test_auto_width(self, minutes, unit, width):
        rule = plan_granularity(_range(minutes))
        assert (rule.unit, rule.width) == (unit, width)
        assert not rule.explicit

    def test_explicit_unit_keeps_timezone(self):
        rule = plan_granularity(_range(60), timezone="Asia/Seoul", granularity="day")
        assert rule.explicit
        assert rule.unit == "day"
        assert rule.timezone == "Asia/Seoul"

    def test_explicit_day_wins_over_long_range(self):
        """90 days would auto-select 90-day buckets; explicit day keeps calendar days"""
        rule = plan_granularity(_range(90 * 1440), timezone="UTC", granularity="day")
        assert (rule.unit, rule.width, rule.explicit) == ("day", 1, True)
        assert _buckets(rule, "2024-02-20 13:00:00") == ["2024-02-20 00:00:00"]

    def test_literal_hour_range_is_per_minute(self):
        rule = plan_granularity(["2024-01-01 00:00:00", "2024-01-01 01:00:00"])
        assert (rule.unit, rule.width) == ("minute", 1)
        assert rule.end_ts - rule.start_ts == 3600

    def test_unknown_granularity_falls_back_to_auto(self):
        rule = plan_granularity(_range(125), granularity="fortnight")
        assert (rule.unit, rule.width) == ("minute", 2)

    @pytest.mark.parametrize("date_range", [None, [], ["2024-01-15T10:00:00Z"],
                                            ["2024-01-15T10:00:00Z"] * 3])
    def test_needs_exactly_two_bounds(self, date_range):
        with pytest.raises(InvalidParameterError, match="exactly two"):
            plan_granularity(date_range)

    def test_reversed_range_rejected(self):
        with pytest.raises(InvalidParameterError, match="precedes"):
            plan_granularity(["2024-01-15T11:00:00Z", "2024-01-15T10:00:00Z"])

    def test_bounds_as_unix_seconds(self):
        rule = plan_granularity(["2024-01-15T09:00:00Z", "2024-01-15T11:00:00Z"])
        assert rule.start_ts == utc_ts("2024-01-15 09:00:00")
        assert rule.end_ts == utc_ts("2024-01-15 11:00:00")


class TestBucketRuleApply:

    def test_auto_minutes_aligned_to_hour(self):
        rule = BucketRule(start=START, end=START, unit="minute", width=2)
        assert _buckets(rule, "2024-01-15 10:01:30", "2024-01-15 10:02:00", "2024-01-15 10:03:59") == [
            "2024-01-15 10:00:00", "2024-01-15 10:02:00", "2024-01-15 10:02:00"]

    def test_auto_hours_aligned_to_day(self):
        rule = BucketRule(start=START, end=START, unit="hour", width=5)
        assert _buckets(rule, "2024-01-15 13:45:00", "2024-01-15 04:59:59") == [
            "2024-01-15 10:00:00", "2024-01-15 00:00:00"]

    def test_auto_days_offset_from_month_start(self):
        """Offset is day-of-month // width * width days after the 1st"""
        rule = BucketRule(start=START, end=START, unit="day", width=7)
        assert _buckets(rule, "2024-01-03 08:00:00", "2024-01-20 08:00:00") == [
            "2024-01-01 00:00:00", "2024-01-15 00:00:00"]

    def test_bucket_never_after_sample(self):
        """Every sample falls in [bucket, bucket + width) for minute buckets"""
        base = utc_ts("2024-01-15 10:00:00")
        ts = pd.Series([base + offset for offset in range(0, 3 * 3600, 97)])
        for width in (1, 2, 7, 25, 59):
            rule = BucketRule(start=START, end=START, unit="minute", width=width)
            buckets = rule.apply(ts)
            samples = pd.to_datetime(ts, unit="s")
            assert (buckets <= samples).all()
            assert ((samples - buckets) < pd.Timedelta(minutes=width)).all()

    def test_explicit_day_in_timezone(self):
        """16:30 UTC is already the next day in Seoul"""
        rule = BucketRule(start=START, end=START, unit="day", timezone="Asia/Seoul")
        assert _buckets(rule, "2024-01-15 16:30:00", "2024-01-15 14:59:59") == [
            "2024-01-16 00:00:00", "2024-01-15 00:00:00"]

    @pytest.mark.parametrize("unit, expected", [
        ("minute", "2024-03-10 07:45:00"),
        ("hour", "2024-03-10 07:00:00"),
        ("month", "2024-03-01 00:00:00"),
        ("year", "2024-01-01 00:00:00"),
    ])
    def test_explicit_units_in_utc(self, unit, expected):
        rule = BucketRule(start=START, end=START, unit=unit, timezone="UTC")
        assert _buckets(rule, "2024-03-10 07:45:31") == [expected]
