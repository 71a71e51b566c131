"""
Tests for the trend filters and the phase-wise seasonal filter.
"""

import numpy as np
import pandas as pd
import pytest
from numpy.polynomial import Polynomial

from kernelseas import (
    InvalidArgument,
    InvalidConfiguration,
    InvalidKernelParameter,
    ShapeMismatch,
    hodrick_prescott,
    kernel_weights,
    seasonal_filter,
    trend_filter,
    weighted_smooth,
)


@pytest.fixture
def noisy_line() -> np.ndarray:
    rng = np.random.default_rng(11)
    t = np.arange(60, dtype=float)
    return 2 + 0.5 * t + rng.standard_normal(60)


class TestKernelTrends:
    def test_cma_reproduces_a_line_in_the_interior(self):
        x = np.arange(30, dtype=float)
        out = trend_filter(x, "cma", 5)
        np.testing.assert_allclose(out[2:-2], x[2:-2])

    def test_henderson_reproduces_a_cubic_in_the_interior(self):
        t = np.arange(40) / 10
        x = 1 + t - 0.5 * t**2 + 0.2 * t**3
        out = trend_filter(x, "henderson", 13)
        np.testing.assert_allclose(out[6:-6], x[6:-6], atol=1e-9)

    def test_kernel_parameters_are_forwarded(self):
        rng = np.random.default_rng(1)
        x = rng.standard_normal(50)
        expected = weighted_smooth(x, kernel_weights("gaussian", 2, 15))
        np.testing.assert_allclose(trend_filter(x, "normal", 2, 15), expected)

    def test_mirror_keeps_length_and_constants(self):
        out = trend_filter(np.full(20, 4.0), "cma", 6, mirror=6)
        assert len(out) == 20
        np.testing.assert_allclose(out, 4.0)

    def test_extend_keeps_length(self):
        out = trend_filter(np.full(20, 4.0), "ma", 3, extend=5)
        assert len(out) == 20
        np.testing.assert_allclose(out, 4.0)

    def test_mirror_longer_than_data_is_capped(self):
        out = trend_filter(np.arange(4, dtype=float), "mean", mirror=10)
        np.testing.assert_allclose(out, 1.5)

    def test_direction_is_forwarded(self):
        x = np.arange(5, dtype=float)
        np.testing.assert_allclose(
            trend_filter(x, "ma", 3, direction="backward"), [0.5, 1.5, 2.5, 3.5, 4.0]
        )

    def test_series_in_series_out(self):
        s = pd.Series(np.arange(12, dtype=float), name="x")
        out = trend_filter(s, "cma", 3)
        assert isinstance(out, pd.Series)
        assert out.name == "x"

    def test_columns(self):
        x = np.column_stack([np.arange(10.0), np.full(10, 2.0)])
        out = trend_filter(x, "cma", 3)
        assert out.shape == (10, 2)
        np.testing.assert_allclose(out[:, 1], 2.0)


class TestRegressionTrends:
    def test_mean_ignores_missing_values(self):
        out = trend_filter([1.0, 2.0, np.nan, 5.0], "mean")
        np.testing.assert_allclose(out, 8 / 3)

    def test_detrend_fits_a_line(self, noisy_line):
        t = np.arange(60, dtype=float)
        out = trend_filter(noisy_line, "detrend")
        np.testing.assert_allclose(out, Polynomial.fit(t, noisy_line, 1)(t))

    def test_detrend_with_breakpoint_follows_the_kink(self):
        t = np.arange(30, dtype=float)
        y = np.where(t <= 10, t, 10 + 3 * (t - 10))
        np.testing.assert_allclose(trend_filter(y, "detrend", [10]), y, atol=1e-9)
        assert not np.allclose(trend_filter(y, "detrend"), y)

    def test_detrend_keeps_missing_values_missing(self):
        y = np.arange(10, dtype=float)
        y[4] = np.nan
        out = trend_filter(y, "detrend")
        assert np.isnan(out[4])
        np.testing.assert_allclose(np.delete(out, 4), np.delete(y, 4), atol=1e-10)

    def test_detrend_rejects_fractional_breakpoint(self):
        with pytest.raises(InvalidKernelParameter):
            trend_filter(np.arange(10.0), "detrend", [4.5])

    def test_polynomial_reproduces_its_degree(self):
        t = np.arange(25, dtype=float)
        y = 3 - 0.2 * t + 0.05 * t**2
        np.testing.assert_allclose(trend_filter(y, "polynomial", 2), y, atol=1e-9)

    def test_polynomial_degree_must_be_integer(self):
        with pytest.raises(InvalidKernelParameter):
            trend_filter(np.arange(10.0), "polynomial", 1.5)

    def test_spline_one_interpolates(self, noisy_line):
        np.testing.assert_allclose(trend_filter(noisy_line, "spline", 1), noisy_line, atol=1e-10)

    def test_spline_zero_is_a_line(self, noisy_line):
        t = np.arange(60, dtype=float)
        np.testing.assert_allclose(
            trend_filter(noisy_line, "spline", 0), Polynomial.fit(t, noisy_line, 1)(t)
        )

    def test_spline_keeps_lines(self):
        y = 1 + 0.3 * np.arange(40, dtype=float)
        np.testing.assert_allclose(trend_filter(y, "spline", 0.5), y, atol=1e-6)

    def test_spline_is_smoother_than_data(self, noisy_line):
        out = trend_filter(noisy_line, "spline", 0.2)
        assert np.abs(np.diff(out, 2)).sum() < np.abs(np.diff(noisy_line, 2)).sum()

    @pytest.mark.parametrize("bad", [-0.1, 1.5])
    def test_spline_roughness_range(self, bad):
        with pytest.raises(InvalidKernelParameter):
            trend_filter(np.arange(10.0), "spline", bad)

    def test_hp_without_smoothing_is_identity(self, noisy_line):
        np.testing.assert_allclose(trend_filter(noisy_line, "hp", 0), noisy_line)

    def test_hp_keeps_lines(self):
        y = 1 + 0.3 * np.arange(40, dtype=float)
        np.testing.assert_allclose(trend_filter(y, "hp", 1600), y, atol=1e-8)

    def test_hp_bridges_interior_gaps(self):
        y = np.arange(12, dtype=float)
        y[5] = np.nan
        out = trend_filter(y, "hp", 100)
        assert out[5] == pytest.approx(5.0)

    def test_hodrick_prescott_short_series(self):
        np.testing.assert_allclose(hodrick_prescott([1.0, 3.0]), [1.0, 3.0])

    def test_missing_argument(self):
        with pytest.raises(InvalidKernelParameter):
            trend_filter(np.arange(10.0), "hp")

    def test_non_numeric_argument(self):
        with pytest.raises(InvalidKernelParameter):
            trend_filter(np.arange(10.0), "polynomial", "two")


class TestTrendFilterErrors:
    def test_unknown_method(self):
        with pytest.raises(InvalidConfiguration):
            trend_filter(np.arange(10.0), "loess", 3)

    def test_negative_mirror(self):
        with pytest.raises(InvalidArgument):
            trend_filter(np.arange(10.0), "cma", 3, mirror=-2)

    def test_three_dimensional_data(self):
        with pytest.raises(ShapeMismatch):
            trend_filter(np.ones((2, 2, 2)), "cma", 3)


class TestSeasonalFilter:
    def test_deviation(self):
        np.testing.assert_allclose(
            seasonal_filter([1.0, 2.0, 3.0, 6.0], 4, "deviation"), [-2, -1, 0, 3]
        )

    def test_reldeviation(self):
        np.testing.assert_allclose(
            seasonal_filter([1.0, 2.0, 3.0, 6.0], 4, "reldeviation"),
            [1 / 3, 2 / 3, 1, 2],
        )

    def test_incomplete_last_cycle(self):
        out = seasonal_filter([1.0, 10.0, 3.0, 12.0, 5.0], 2, "deviation")
        np.testing.assert_allclose(out, [-4, 4, -4, 4, -4])

    def test_missing_values_are_skipped(self):
        out = seasonal_filter([1.0, 10.0, np.nan, 12.0, 5.0], 2, "deviation")
        np.testing.assert_allclose(out, [-4, 4, -4, 4, -4])

    def test_trend_method_per_phase(self):
        out = seasonal_filter([1.0, 10.0, 3.0, 12.0, 5.0], 2, "mean")
        np.testing.assert_allclose(out, [3, 11, 3, 11, 3])

    def test_evolving_factors(self):
        # phase 0 rises over the cycles, phase 1 stays put
        si = np.ravel(np.column_stack([np.arange(10.0), np.zeros(10)]))
        out = seasonal_filter(si, 2, "detrend")
        np.testing.assert_allclose(out, si, atol=1e-9)

    def test_mirror_is_applied_across_cycles(self):
        si = np.arange(5.0)
        plain = seasonal_filter(si, 1, "ma", 3)
        mirrored = seasonal_filter(si, 1, "ma", 3, mirror=1)
        assert plain[0] == pytest.approx(0.5)
        assert mirrored[0] == pytest.approx(1 / 3)
        assert mirrored[-1] == pytest.approx(11 / 3)
        np.testing.assert_allclose(mirrored[1:-1], plain[1:-1])

    def test_series_in_series_out(self):
        s = pd.Series([1.0, 2.0, 3.0, 6.0], name="si")
        out = seasonal_filter(s, 4)
        assert isinstance(out, pd.Series)
        assert out.name == "si"

    def test_matrix_input(self):
        with pytest.raises(ShapeMismatch):
            seasonal_filter(np.ones((4, 2)), 2)
