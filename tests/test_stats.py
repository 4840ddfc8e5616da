"""
Tests for descriptive statistics (population convention).
"""
import math

import pytest

from kpi_analytics.errors import EmptyInput
from kpi_analytics.series import Series
from kpi_analytics.stats import clean_values, describe


class TestDescribe:

    def test_one_to_five(self):
        result = describe([1, 2, 3, 4, 5])
        assert result.count == 5
        assert result.mean == 3.0
        assert result.median == 3.0
        assert result.stddev == pytest.approx(math.sqrt(2), abs=1e-5)
        assert (result.min, result.max, result.range) == (1.0, 5.0, 4.0)
        assert result.cv == pytest.approx(0.4714, abs=1e-4)
        assert result.cv_pct == pytest.approx(47.14, abs=1e-2)

    def test_even_count_median(self):
        assert describe([4, 1, 3, 2]).median == 2.5

    def test_population_stddev(self):
        # Sample stddev of [2, 4] would be 1.414; population is 1
        assert describe([2, 4]).stddev == 1.0

    def test_zero_mean_gives_zero_cv(self):
        result = describe([-1, 1])
        assert result.mean == 0.0
        assert result.cv == 0.0

    def test_filters_gaps_and_non_numeric(self):
        result = describe(Series(("a", "b", "c"), (1.0, None, 3.0)))
        assert result.count == 2
        assert describe([1, None, float("nan"), "x", "3"]).count == 2

    @pytest.mark.parametrize("values", [[], [None], [float("nan"), "abc"]])
    def test_empty_input_raises(self, values):
        with pytest.raises(EmptyInput):
            describe(values)

    def test_pure(self):
        values = [5.0, 1.0, 3.0]
        first = describe(values)
        assert describe(values) == first
        assert values == [5.0, 1.0, 3.0]

    def test_to_dict(self):
        d = describe([1, 2, 3]).to_dict()
        assert set(d) == {"count", "mean", "median", "stddev", "min", "max", "range", "cv"}


def test_clean_values_drops_infinities():
    assert clean_values([1, float("inf"), -float("inf"), 2]) == [1.0, 2.0]
