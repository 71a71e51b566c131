"""
Tests for the phase reshaping and normalisation helpers.
"""

import numpy as np
import pytest

from kernelseas import (
    InvalidArgument,
    InvalidConfiguration,
    broadcast_to_length,
    fill_holes,
    joinperiods,
    normalize_seas,
    splitperiods,
)


class TestSplitJoin:
    def test_split_pads_last_cycle(self):
        m = splitperiods(np.arange(1, 8), 3)
        assert m.shape == (3, 3)
        np.testing.assert_array_equal(m[0], [1, 2, 3])
        np.testing.assert_array_equal(m[:, 0], [1, 4, 7])
        assert np.isnan(m[2, 1:]).all()

    def test_split_exact_multiple(self):
        m = splitperiods(np.arange(6.0), 3)
        assert m.shape == (2, 3)
        assert not np.isnan(m).any()

    def test_period_one_is_a_column(self):
        assert splitperiods([1.0, 2.0, 3.0], 1).shape == (3, 1)

    def test_join_inverts_split(self):
        x = np.arange(1.0, 8.0)
        np.testing.assert_array_equal(joinperiods(splitperiods(x, 3)), x)

    def test_join_to_given_length(self):
        m = splitperiods(np.arange(1.0, 8.0), 3)
        np.testing.assert_array_equal(joinperiods(m, 5), [1, 2, 3, 4, 5])
        longer = joinperiods(m, 11)
        assert len(longer) == 11
        assert np.isnan(longer[7:]).all()

    def test_join_keeps_interior_missing_values(self):
        x = np.array([1.0, np.nan, 3.0, 4.0])
        out = joinperiods(splitperiods(x, 3))
        assert len(out) == 4
        assert np.isnan(out[1])

    @pytest.mark.parametrize("bad", [0, -4, 2.5, float("nan"), "twelve"])
    def test_invalid_period(self, bad):
        with pytest.raises(InvalidArgument):
            splitperiods(np.arange(6.0), bad)


class TestNormalize:
    def test_additive(self):
        np.testing.assert_allclose(normalize_seas(np.array([5.0, 7.0]), 2.0), [3.0, 5.0])

    def test_multiplicative(self):
        out = normalize_seas(np.array([5.0, 8.0]), np.array([2.0, 4.0]), True)
        np.testing.assert_allclose(out, [2.5, 2.0])


class TestFillHoles:
    def test_interior_gaps_are_interpolated(self):
        out = fill_holes([np.nan, 1.0, np.nan, np.nan, 4.0, np.nan])
        assert np.isnan(out[0]) and np.isnan(out[-1])
        np.testing.assert_allclose(out[1:5], [1.0, 2.0, 3.0, 4.0])

    def test_columns_are_independent(self):
        x = np.array([[1.0, 10.0], [np.nan, 20.0], [3.0, np.nan], [5.0, 40.0]])
        out = fill_holes(x)
        np.testing.assert_allclose(out, [[1, 10], [2, 20], [3, 30], [5, 40]])

    def test_complete_data_is_copied(self):
        x = np.arange(4.0)
        out = fill_holes(x)
        np.testing.assert_array_equal(out, x)
        assert out is not x


class TestBroadcast:
    def test_pads_with_last_entry(self):
        assert broadcast_to_length(["add"], 3) == ["add", "add", "add"]
        assert broadcast_to_length([1, 2], 4) == [1, 2, 2, 2]

    def test_truncates(self):
        assert broadcast_to_length([1, 2, 3, 4], 2) == [1, 2]

    def test_empty(self):
        with pytest.raises(InvalidConfiguration):
            broadcast_to_length([], 2)
