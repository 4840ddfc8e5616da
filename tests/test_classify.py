"""
Tests for threshold classification, trend arrows and preference lookup.
"""
import math

import pytest

from kpi_analytics.classify import (
    DOWN,
    FAIL,
    FLAT,
    PASS,
    UNCLASSIFIED,
    UP,
    ThresholdSpec,
    calc_variance,
    classify,
    classify_series,
    trend,
)
from kpi_analytics.errors import ConfigurationError
from kpi_analytics.series import Series


class TestClassify:

    @pytest.mark.parametrize("goal", ["maximize", "minimize"])
    def test_boundary_is_pass_for_both_goals(self, goal):
        assert classify(90.0, ThresholdSpec(90.0, goal)) == PASS

    def test_maximize(self):
        spec = ThresholdSpec(90.0, "maximize")
        assert classify(95, spec) == PASS
        assert classify(89.9, spec) == FAIL

    def test_minimize(self):
        spec = ThresholdSpec(2.0, "minimize")
        assert classify(1.5, spec) == PASS
        assert classify(2.1, spec) == FAIL

    def test_missing_value_is_unclassified(self):
        assert classify(None, ThresholdSpec(90.0)) == UNCLASSIFIED
        assert classify(float("nan"), ThresholdSpec(90.0)) == UNCLASSIFIED

    def test_nan_threshold_is_unclassified(self):
        spec = ThresholdSpec()
        assert not spec.configured
        assert classify(50, spec) == UNCLASSIFIED

    def test_non_numeric_threshold_is_nan(self):
        spec = ThresholdSpec("n/a", "maximize")
        assert math.isnan(spec.value)
        assert spec.to_dict() == {"value": None, "goal": "maximize"}

    def test_unknown_goal_raises(self):
        with pytest.raises(ConfigurationError):
            ThresholdSpec(1.0, "up")

    def test_classify_series_keeps_gaps(self):
        series = Series(("a", "b", "c"), (91.0, None, 80.0))
        assert classify_series(series, ThresholdSpec(90.0)) == [PASS, UNCLASSIFIED, FAIL]


class TestThresholdFromPreferences:

    def test_stored_preference_wins(self):
        prefs = {"thresholds": {"Yield (%)": "97"}, "goals": {}}
        spec = ThresholdSpec.from_preferences(prefs, "Yield (%)")
        assert spec.value == 97.0
        assert spec.goal == "maximize"

    def test_registry_fallback(self):
        spec = ThresholdSpec.from_preferences(None, "Unplanned Downtime (h)")
        assert spec.value == 2.0
        assert spec.goal == "minimize"

    def test_registry_without_threshold(self):
        spec = ThresholdSpec.from_preferences({}, "Cycle Time (h)")
        assert not spec.configured
        assert spec.goal == "minimize"

    def test_unknown_kpi(self):
        spec = ThresholdSpec.from_preferences({}, "Scrap Rate")
        assert not spec.configured
        assert spec.goal == "maximize"


class TestTrend:

    def test_skips_gaps_from_the_end(self):
        t = trend([None, 80.0, None, 82.0, None], goal="maximize")
        assert t.direction == UP
        assert t.delta == pytest.approx(2.0)
        assert (t.latest, t.previous) == (82.0, 80.0)
        assert t.favorable is True
        assert t.arrow == "↑"

    def test_down_is_favorable_when_minimizing(self):
        t = trend([3.0, 1.0], goal="minimize")
        assert t.direction == DOWN
        assert t.favorable is True

    def test_up_is_unfavorable_when_minimizing(self):
        assert trend([1.0, 3.0], goal="minimize").favorable is False

    def test_flat_band_inclusive(self):
        t = trend([80.0, 80.5], goal="maximize")
        assert t.direction == FLAT
        assert t.favorable is None
        assert trend([80.0, 79.6]).direction == FLAT

    def test_without_goal(self):
        t = trend(Series(("a", "b"), (10.0, 5.0)))
        assert t.direction == DOWN
        assert t.favorable is None

    @pytest.mark.parametrize("values", [[], [None, None], [None, 5.0]])
    def test_fewer_than_two_values(self, values):
        t = trend(values)
        assert t.direction == UNCLASSIFIED
        assert t.delta is None
        assert t.arrow is None


def test_calc_variance():
    assert calc_variance(95.0, 100.0) == (-5.0, -5.0)
    assert calc_variance(5.0, 0.0) == (5.0, None)
