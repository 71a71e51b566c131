"""
periods.py
==========
Reshaping and normalisation helpers used throughout the decomposition.
All functions are pure (no side effects).
"""

from __future__ import annotations

import math
from typing import Any, Sequence

import numpy as np
import pandas as pd

from kernelseas.exceptions import InvalidArgument, InvalidConfiguration


def splitperiods(data, period: int) -> np.ndarray:
    """
    Split a series into one column per phase of the cycle.

    The data are padded with NaN at the end until the length is a multiple
    of ``period`` and reshaped row by row: row r holds cycle r, column i
    holds every observation in phase i (e.g. all Januaries for period 12).

    Returns
    -------
    np.ndarray  shape (ceil(len(data) / period), period)
    """
    period = _phase_count(period)
    x = np.asarray(data, dtype=float).ravel()
    fill = (-len(x)) % period
    x = np.concatenate([x, np.full(fill, np.nan)])
    return x.reshape(-1, period)


def joinperiods(matrix, nobs: int | None = None) -> np.ndarray:
    """
    Inverse of ``splitperiods``.

    With ``nobs`` the result is cut (or NaN-padded) to that length;
    otherwise trailing missing values are dropped.
    """
    x = np.asarray(matrix, dtype=float).ravel()
    if nobs is not None:
        if nobs <= len(x):
            return x[:nobs].copy()
        return np.concatenate([x, np.full(nobs - len(x), np.nan)])
    valid = np.flatnonzero(~np.isnan(x))
    if len(valid) == 0:
        return x[:0].copy()
    return x[: valid[-1] + 1].copy()


def normalize_seas(data, trend, multiplicative: bool = False):
    """
    Additive or multiplicative deviation of ``data`` from ``trend``.

    Returns ``data - trend`` or, if ``multiplicative``, ``data / trend``.
    """
    if multiplicative:
        return data / trend
    return data - trend


def fill_holes(data):
    """
    Linear interpolation of interior gaps, column by column.

    Missing values at the edges are left untouched (no extrapolation).
    """
    values = np.asarray(data, dtype=float)
    if not np.isnan(values).any():
        return values.copy()
    frame = pd.DataFrame(values.reshape(len(values), -1))
    filled = frame.interpolate(method="linear", limit_area="inside").to_numpy()
    return filled.reshape(values.shape)


def broadcast_to_length(values: Sequence[Any], length: int) -> list[Any]:
    """
    Repeat the last element until ``values`` has ``length`` entries.

    Longer inputs are truncated. This is how per-period modes, methods and
    method arguments are matched to the list of periods.
    """
    values = list(values)
    if not values:
        raise InvalidConfiguration("Cannot broadcast an empty argument list.")
    if len(values) >= length:
        return values[:length]
    return values + [values[-1]] * (length - len(values))


def _phase_count(period) -> int:
    try:
        p = float(period)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"Period must be a number, got {period!r}.") from exc
    if not math.isfinite(p) or p <= 0 or p != int(p):
        raise InvalidArgument(f"Period must be a positive integer, got {period!r}.")
    return int(p)
