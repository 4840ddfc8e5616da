"""
Tests for calendar bucketing in the business timezone.

America/Chicago springs forward on 2025-03-09 at 08:00 UTC and falls back
on 2025-11-02 at 07:00 UTC; most cases sit around those instants.
"""
from datetime import date, datetime

import pandas as pd
import pytest

from kpi_analytics import timebuckets as tb
from kpi_analytics.errors import ConfigurationError, InvalidTimestamp


class TestParseInstant:

    def test_iso_z_string(self):
        ts = tb.parse_instant("2025-03-09T07:00:00Z")
        assert ts == pd.Timestamp("2025-03-09 07:00:00", tz="UTC")

    def test_naive_mysql_string_is_utc(self):
        ts = tb.parse_instant("2025-03-09 07:00:00")
        assert str(ts.tz) == "UTC"
        assert ts.hour == 7

    def test_offset_string_converted_to_utc(self):
        ts = tb.parse_instant("2025-06-02T10:00:00-05:00")
        assert ts == pd.Timestamp("2025-06-02 15:00:00", tz="UTC")

    def test_epoch_seconds(self):
        assert tb.parse_instant(0) == pd.Timestamp("1970-01-01", tz="UTC")

    def test_datetime_object(self):
        ts = tb.parse_instant(datetime(2025, 1, 2, 3, 4, 5))
        assert ts == pd.Timestamp("2025-01-02 03:04:05", tz="UTC")

    @pytest.mark.parametrize("bad", [None, "", "   ", "now", "today", "not a date",
                                     "2025-13-45", float("nan"), True])
    def test_unparsable_input_raises(self, bad):
        with pytest.raises(InvalidTimestamp):
            tb.parse_instant(bad)

    def test_invalid_timestamp_is_value_error(self):
        with pytest.raises(ValueError):
            tb.parse_instant("garbage")


class TestFiscalWeek:

    def test_monday_starts_new_week(self):
        # 2025-01-01 is a Wednesday; the first Monday opens FW2
        assert tb.fiscal_week(date(2025, 1, 1)) == (1, 2025)
        assert tb.fiscal_week(date(2025, 1, 5)) == (1, 2025)
        assert tb.fiscal_week(date(2025, 1, 6)) == (2, 2025)

    def test_stable_for_all_seven_days(self):
        week = {tb.week_key(date(2025, 6, d)) for d in range(2, 9)}
        assert week == {"FW23-2025"}
        assert tb.week_key(date(2025, 6, 9)) == "FW24-2025"

    def test_year_bounded(self):
        assert tb.week_key(date(2024, 12, 31)) == "FW53-2024"
        assert tb.week_key(date(2025, 1, 1)) == "FW1-2025"

    def test_accepts_string_dates(self):
        assert tb.week_key("2025-03-30") == "FW13-2025"


class TestNormalize:

    def test_day_before_midnight_local(self, tz):
        # 23:59 CST on the 8th
        assert tb.normalize("2025-03-09T05:59:00Z", "day", tz) == "2025-03-08"

    def test_day_spring_forward_morning(self, tz):
        # 01:00 CST, one hour before the jump
        assert tb.normalize("2025-03-09T07:00:00Z", "day", tz) == "2025-03-09"

    def test_day_stable_across_spring_forward(self, tz):
        # 00:00 CST .. 23:59 CDT of 2025-03-09 (a 23-hour day)
        instants = [
            "2025-03-09T06:00:00Z",
            "2025-03-09T07:59:59Z",
            "2025-03-09T08:00:00Z",
            "2025-03-09T12:00:00Z",
            "2025-03-09T20:00:00Z",
            "2025-03-10T01:30:00Z",
            "2025-03-10T04:59:59Z",
        ]
        assert {tb.normalize(t, "day", tz) for t in instants} == {"2025-03-09"}
        assert tb.normalize("2025-03-10T05:00:00Z", "day", tz) == "2025-03-10"

    def test_day_stable_across_fall_back(self, tz):
        # 00:00 CDT .. 23:59 CST of 2025-11-02 (a 25-hour day)
        instants = [
            "2025-11-02T05:00:00Z",
            "2025-11-02T06:30:00Z",
            "2025-11-02T07:30:00Z",
            "2025-11-03T05:59:59Z",
        ]
        assert {tb.normalize(t, "day", tz) for t in instants} == {"2025-11-02"}
        assert tb.normalize("2025-11-03T06:00:00Z", "day", tz) == "2025-11-03"

    def test_week_stable_across_dst(self, tz):
        # Monday 2025-03-03 00:00 CST .. Sunday 2025-03-09 23:59 CDT
        assert tb.normalize("2025-03-03T06:00:00Z", "week", tz) == "FW10-2025"
        assert tb.normalize("2025-03-10T04:59:00Z", "week", tz) == "FW10-2025"
        assert tb.normalize("2025-03-03T05:59:00Z", "week", tz) == "FW9-2025"

    def test_month(self, tz):
        # 2025-04-01 03:00 UTC is still March 31 in Chicago
        assert tb.normalize("2025-04-01T03:00:00Z", "month", tz) == "2025-03"

    def test_rolling(self, tz):
        kwargs = {"window_days": 7, "origin": "2025-03-01"}
        assert tb.normalize("2025-03-01T18:00:00Z", "rolling", tz, **kwargs) == "R0"
        assert tb.normalize("2025-03-15T18:00:00Z", "rolling", tz, **kwargs) == "R2"
        assert tb.normalize("2025-02-27T18:00:00Z", "rolling", tz, **kwargs) == "R-1"

    def test_rolling_without_window_raises(self, tz):
        with pytest.raises(ConfigurationError):
            tb.normalize("2025-03-01T18:00:00Z", "rolling", tz)

    def test_unknown_unit_raises(self, tz):
        with pytest.raises(ConfigurationError):
            tb.normalize("2025-03-01T18:00:00Z", "quarter", tz)

    def test_invalid_instant_raises(self, tz):
        with pytest.raises(InvalidTimestamp):
            tb.normalize("now", "day", tz)


class TestWallTimeToUtc:

    def test_us_format_summer(self, tz):
        utc = tb.wall_time_to_utc("05/04/2025 06:30 PM", tz)
        assert utc == pd.Timestamp("2025-05-04 23:30:00", tz="UTC")

    def test_midnight_am(self, tz):
        utc = tb.wall_time_to_utc("01/15/2025 12:00 AM", tz)
        assert utc == pd.Timestamp("2025-01-15 06:00:00", tz="UTC")

    def test_noon_pm(self, tz):
        utc = tb.wall_time_to_utc("01/15/2025 12:00 PM", tz)
        assert utc == pd.Timestamp("2025-01-15 18:00:00", tz="UTC")

    def test_refinement_after_spring_forward(self, tz):
        # First guess uses the CST offset; the refined one must use CDT
        utc = tb.wall_time_to_utc("2025-03-09 04:00", tz)
        assert utc == pd.Timestamp("2025-03-09 09:00:00", tz="UTC")

    def test_refinement_after_fall_back(self, tz):
        utc = tb.wall_time_to_utc("2025-11-02 03:00:00", tz)
        assert utc == pd.Timestamp("2025-11-02 09:00:00", tz="UTC")

    def test_naive_datetime(self, tz):
        utc = tb.wall_time_to_utc(datetime(2025, 6, 2, 8, 0), tz)
        assert utc == pd.Timestamp("2025-06-02 13:00:00", tz="UTC")

    def test_round_trip_through_normalize(self, tz):
        utc = tb.wall_time_to_utc("03/09/2025 11:59 PM", tz)
        assert tb.normalize(utc, "day", tz) == "2025-03-09"

    @pytest.mark.parametrize("bad", ["", "tomorrow", "13/45/2025 10:00 AM", "2025-02-30 10:00"])
    def test_invalid_wall_time_raises(self, tz, bad):
        with pytest.raises(InvalidTimestamp):
            tb.wall_time_to_utc(bad, tz)


class TestOrderingAndLabels:

    def test_fiscal_weeks_sort_chronologically(self):
        keys = ["FW10-2025", "FW9-2025", "FW53-2024"]
        assert tb.sort_keys(keys) == ["FW53-2024", "FW9-2025", "FW10-2025"]

    def test_rolling_keys_sort_by_index(self):
        assert tb.sort_keys(["R10", "R2", "R-1"]) == ["R-1", "R2", "R10"]

    def test_day_keys_sort_by_date(self):
        assert tb.sort_keys(["2025-06-10", "2025-06-09"]) == ["2025-06-09", "2025-06-10"]

    def test_day_label(self):
        assert tb.day_label("2025-06-02") == "Mo 6/2"
        assert tb.day_label("FW23-2025") == "FW23-2025"

    def test_local_today(self, tz):
        assert tb.local_today(tz, "2025-03-09T05:59:00Z") == date(2025, 3, 8)


class TestAxes:

    def test_last_n_days(self):
        assert tb.last_n_days("2025-03-02", 3) == ["2025-02-28", "2025-03-01", "2025-03-02"]

    def test_work_week_days(self):
        days = tb.work_week_days("2025-06-07")
        assert days[0] == "2025-06-02"
        assert days[-1] == "2025-06-06"
        assert len(days) == 5

    def test_last_n_fiscal_weeks_across_new_year(self):
        assert tb.last_n_fiscal_weeks("2025-01-08", 3) == ["FW53-2024", "FW1-2025", "FW2-2025"]

    def test_last_n_fiscal_weeks(self):
        weeks = tb.last_n_fiscal_weeks("2025-03-30", 6)
        assert weeks == [f"FW{w}-2025" for w in range(8, 14)]

    def test_fiscal_weeks_to_date(self):
        assert tb.fiscal_weeks_to_date("2025-01-08") == ["FW1-2025", "FW2-2025"]

    def test_last_n_months_across_year(self):
        assert tb.last_n_months("2025-02-10", 3) == ["2024-12", "2025-01", "2025-02"]

    def test_days_between_inclusive(self):
        assert len(tb.days_between("2025-06-01", "2025-06-30")) == 30
        assert tb.days_between("2025-06-02", "2025-06-01") == []

    def test_rolling_axis(self):
        assert tb.rolling_axis(3) == ["R0", "R1", "R2"]
