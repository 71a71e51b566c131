"""
smoothing.py
============
Weighted moving average with edge and missing-value handling.

Works like a convolution with three differences:
  - at the edges only the weights that overlap the sample are used
  - missing observations are skipped, together with their weights
  - every output is divided by the sum of the weights actually used,
    so it is a proper weighted mean

The output has the same length as the input.
"""

from __future__ import annotations

from enum import Enum

import numpy as np
import pandas as pd
from numpy.lib.stride_tricks import sliding_window_view

from kernelseas.exceptions import InvalidArgument, ShapeMismatch


class Direction(str, Enum):
    CENTERED = "centered"
    BACKWARD = "backward"
    FORWARD = "forward"

    @classmethod
    def from_name(cls, name: "str | Direction") -> "Direction":
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise InvalidArgument(
                f"Direction must be one of 'centered', 'backward' or 'forward', "
                f"got {name!r}."
            ) from None


def weighted_smooth(data, weights, direction: "str | Direction" = "centered"):
    """
    Weighted mean of every observation and its neighbours.

    Parameters
    ----------
    data      : array-like, pd.Series or pd.DataFrame
                1-D series, or 2-D array whose columns are smoothed separately.
    weights   : array-like of odd length 2L+1
    direction : 'centered', 'backward' (left half of the weights set to
                zero) or 'forward' (right half set to zero)

    Returns
    -------
    Same shape (and pandas type/index) as ``data``. An observation whose
    window holds no usable data is NaN.
    """
    w = np.array(weights, dtype=float)
    if w.ndim != 1:
        raise ShapeMismatch(f"Weights must be a vector, got shape {w.shape}.")
    if len(w) % 2 != 1:
        raise ShapeMismatch(
            f"Weights vector must contain an odd number of components, got {len(w)}."
        )
    laglead = (len(w) - 1) // 2

    direction = Direction.from_name(direction)
    if direction is Direction.BACKWARD:
        w[:laglead] = 0.0
    elif direction is Direction.FORWARD:
        w[laglead + 1 :] = 0.0

    values = np.asarray(data, dtype=float)
    if values.ndim not in (1, 2):
        raise ShapeMismatch(
            f"Data must be a vector or a 2-D array, got {values.ndim} dimensions."
        )
    column = values.ndim == 1
    if column:
        values = values[:, np.newaxis]

    nobs, nseries = values.shape
    # NaN padding drops the weights that fall outside the sample
    pad = np.full((laglead, nseries), np.nan)
    padded = np.vstack([pad, values, pad])
    windows = sliding_window_view(padded, len(w), axis=0)  # (nobs, nseries, 2L+1)

    valid = ~np.isnan(windows)
    used = np.where(valid, w, 0.0)
    numerator = np.where(valid, windows, 0.0) @ w
    denominator = used.sum(axis=-1)

    out = np.full((nobs, nseries), np.nan)
    usable = valid.any(axis=-1) & (denominator != 0)
    out[usable] = numerator[usable] / denominator[usable]

    if column:
        out = out[:, 0]
    if isinstance(data, pd.Series):
        return pd.Series(out, index=data.index, name=data.name)
    if isinstance(data, pd.DataFrame):
        return pd.DataFrame(out, index=data.index, columns=data.columns)
    return out
