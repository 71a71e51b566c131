"""
trend.py
========
Trend extraction and phase-wise seasonal filtering.

trend_filter supports
  - every kernel of ``kernelseas.kernels`` (weighted moving average)
  - 'mean'       : constant level
  - 'detrend'    : continuous piecewise linear trend (optional breakpoints)
  - 'spline'     : cubic smoothing spline, roughness in [0, 1]
  - 'polynomial' : least squares polynomial of given degree
  - 'hp'         : Hodrick-Prescott filter with smoothing parameter lambda

Edge-of-sample distortions can be reduced by mirroring (or repeating) the
first and last observations before filtering; the padded part is removed
again afterwards.
"""

from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd
from numpy.polynomial import Polynomial
from scipy.interpolate import CubicSpline, make_smoothing_spline

from kernelseas.exceptions import (
    InvalidArgument,
    InvalidConfiguration,
    InvalidKernelParameter,
    ShapeMismatch,
    UnsupportedKernel,
)
from kernelseas.kernels import Kernel, kernel_weights
from kernelseas.periods import fill_holes, joinperiods, splitperiods
from kernelseas.smoothing import weighted_smooth

logger = logging.getLogger(__name__)

REGRESSION_METHODS = ("mean", "detrend", "spline", "polynomial", "hp")
SEASONAL_METHODS = ("deviation", "reldeviation")

MIN_SPLINE_POINTS = 5  # make_smoothing_spline needs at least five sites


def resolve_method(method) -> str:
    """Canonical name of a trend method (kernel aliases are resolved)."""
    if isinstance(method, Kernel):
        return method.value
    if not isinstance(method, str):
        raise InvalidConfiguration(f"Trend method must be a name, got {method!r}.")
    key = method.strip().lower()
    if key in REGRESSION_METHODS:
        return key
    try:
        return Kernel.from_name(key).value
    except UnsupportedKernel:
        raise InvalidConfiguration(
            f"Trend method '{method}' is not supported. Use one of "
            f"{', '.join(REGRESSION_METHODS)} or a kernel name."
        ) from None


# ---------------------------------------------------------------------------
# Trend filter
# ---------------------------------------------------------------------------


def trend_filter(
    data,
    method="cma",
    *args,
    mirror: float | None = None,
    extend: float | None = None,
    direction: str = "centered",
):
    """
    Smoothed version of the data.

    Parameters
    ----------
    data      : 1-D series or 2-D array (columns are filtered separately)
    method    : kernel name or one of 'mean', 'detrend', 'spline',
                'polynomial', 'hp'
    *args     : method arguments: kernel parameters, breakpoint indices
                ('detrend'), roughness ('spline'), degree ('polynomial') or
                lambda ('hp')
    mirror    : number of observations mirrored at both ends before filtering
    extend    : like ``mirror`` but without reversing the order; only
                sensible for stationary data
    direction : passed on to ``weighted_smooth`` for kernel methods

    Returns
    -------
    Array (or pandas object) with the shape of ``data``.
    """
    name = resolve_method(method)
    args = [a for a in args if a is not None]

    values = np.asarray(data, dtype=float)
    if values.ndim not in (1, 2):
        raise ShapeMismatch(
            f"Data must be a vector or a 2-D array, got {values.ndim} dimensions."
        )
    column = values.ndim == 1
    if column:
        values = values[:, np.newaxis]
    nobs = len(values)

    edge = 0
    if mirror:
        edge = _edge_length(mirror, nobs)
        values = np.vstack([values[:edge][::-1], values, values[-edge:][::-1]])
    elif extend:
        edge = _edge_length(extend, nobs)
        values = np.vstack([values[:edge], values, values[-edge:]])

    if name == "mean":
        tr = np.repeat(_nanmean(values, axis=0)[np.newaxis, :], len(values), axis=0)
    elif name == "detrend":
        breakpoints = [b + edge for b in _breakpoints(args)]
        tr = _by_column(values, _piecewise_linear, breakpoints)
    elif name == "spline":
        roughness = _scalar_arg(args, name)
        if roughness < 0 or roughness > 1:
            raise InvalidKernelParameter(
                f"Spline roughness must lie in [0, 1], got {roughness:g}.",
                value=roughness,
            )
        tr = _by_column(values, _smoothing_spline, roughness)
    elif name == "polynomial":
        degree = _scalar_arg(args, name)
        if degree < 0 or degree != int(degree):
            raise InvalidKernelParameter(
                f"Polynomial degree must be a non-negative integer, got {degree:g}.",
                value=degree,
            )
        tr = _by_column(values, _polynomial, int(degree))
    elif name == "hp":
        lamb = _scalar_arg(args, name)
        if lamb < 0:
            raise InvalidKernelParameter(
                f"HP smoothing parameter must be non-negative, got {lamb:g}.",
                value=lamb,
            )
        tr = _by_column(values, _hp_column, lamb)
    else:
        w = kernel_weights(name, *args)
        tr = weighted_smooth(values, w, direction)

    tr = tr[edge : edge + nobs]
    if column:
        tr = tr[:, 0]
    if isinstance(data, pd.Series):
        return pd.Series(tr, index=data.index, name=data.name)
    if isinstance(data, pd.DataFrame):
        return pd.DataFrame(tr, index=data.index, columns=data.columns)
    return tr


def seasonal_filter(
    si,
    period: int,
    method="deviation",
    *args,
    mirror: float | None = None,
    extend: float | None = None,
):
    """
    Filter every phase of the cycle separately.

    The series is split into its phases (``splitperiods``), each phase is
    filtered across cycles and the result is joined back to the original
    length.

    'deviation'    : phase means minus their grand mean (fixed additive factors)
    'reldeviation' : phase means divided by their grand mean (fixed
                     multiplicative factors)
    any trend method of ``trend_filter`` smooths each phase over the cycles,
    giving seasonal factors that evolve slowly. ``mirror`` and ``extend``
    are passed on to ``trend_filter`` and count cycles, not observations.
    """
    values = np.asarray(si, dtype=float)
    if values.ndim != 1:
        raise ShapeMismatch(
            f"Seasonal filter expects a vector, got shape {values.shape}."
        )
    nobs = len(values)
    by_phase = splitperiods(values, period)

    key = method.strip().lower() if isinstance(method, str) else method
    if key in SEASONAL_METHODS:
        phase_means = _nanmean(by_phase, axis=0)
        grand_mean = _nanmean(phase_means)
        if key == "deviation":
            factors = phase_means - grand_mean
        else:
            factors = phase_means / grand_mean
        by_phase = np.repeat(factors[np.newaxis, :], len(by_phase), axis=0)
    else:
        by_phase = trend_filter(by_phase, method, *args, mirror=mirror, extend=extend)

    sf = joinperiods(by_phase, nobs)
    if isinstance(si, pd.Series):
        return pd.Series(sf, index=si.index, name=si.name)
    return sf


# ---------------------------------------------------------------------------
# Regression trends (one column at a time, NaN where data are missing)
# ---------------------------------------------------------------------------


def hodrick_prescott(y, lamb: float = 1600.0) -> np.ndarray:
    """
    Hodrick-Prescott trend of a series without missing values.

    Returns
    -------
    np.ndarray  trend
    """
    y = np.asarray(y, dtype=float)
    n = len(y)
    if n < 3:
        return y.copy()

    # Build second-difference matrix D
    # HP minimises: Σ(y-τ)² + λ Σ(Δ²τ)²
    # → (I + λ D'D) τ = y
    from scipy import sparse
    from scipy.sparse.linalg import spsolve

    e = np.ones(n)
    D = sparse.diags([e, -2 * e, e], [0, 1, 2], shape=(n - 2, n))
    DtD = D.T @ D
    A = sparse.eye(n, format="csc") + lamb * DtD.tocsc()
    return spsolve(A, y)


def _hp_column(y: np.ndarray, lamb: float) -> np.ndarray:
    filled = fill_holes(y)
    keep = ~np.isnan(filled)
    tr = np.full(len(y), np.nan)
    if keep.any():
        # interior gaps are interpolated, so the valid points are contiguous
        tr[keep] = hodrick_prescott(filled[keep], lamb)
    return tr


def _piecewise_linear(y: np.ndarray, breakpoints: list[int]) -> np.ndarray:
    n = len(y)
    t = np.arange(n, dtype=float)
    hinges = sorted({b for b in breakpoints if 0 < b < n - 1})
    X = np.column_stack([np.ones(n), t] + [np.maximum(t - b, 0.0) for b in hinges])
    keep = ~np.isnan(y)
    tr = np.full(n, np.nan)
    if keep.any():
        coef, *_ = np.linalg.lstsq(X[keep], y[keep], rcond=None)
        tr[keep] = X[keep] @ coef
    return tr


def _smoothing_spline(y: np.ndarray, roughness: float) -> np.ndarray:
    """Minimises p·Σ(y-f)² + (1-p)·∫f''² with p = roughness."""
    n = len(y)
    keep = np.flatnonzero(~np.isnan(y))
    tr = np.full(n, np.nan)
    if len(keep) == 0:
        return tr
    x = keep.astype(float)
    if roughness == 0 or len(keep) < MIN_SPLINE_POINTS:
        if roughness > 0:
            logger.warning(
                "Only %d valid observations; fitting a straight line instead "
                "of a smoothing spline.",
                len(keep),
            )
        tr[keep] = _polynomial(y[keep], min(1, len(keep) - 1), x)
    elif roughness == 1:
        tr[keep] = CubicSpline(x, y[keep], bc_type="natural")(x)
    else:
        spline = make_smoothing_spline(x, y[keep], lam=(1 - roughness) / roughness)
        tr[keep] = spline(x)
    return tr


def _polynomial(y: np.ndarray, degree: int, x: np.ndarray | None = None) -> np.ndarray:
    if x is None:
        x = np.arange(len(y), dtype=float)
    keep = ~np.isnan(y)
    tr = np.full(len(y), np.nan)
    if keep.any():
        fit = Polynomial.fit(x[keep], y[keep], degree)
        tr[keep] = fit(x[keep])
    return tr


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _by_column(values: np.ndarray, func, *args) -> np.ndarray:
    return np.column_stack([func(values[:, c], *args) for c in range(values.shape[1])])


def _nanmean(a, axis=None):
    """Mean of the non-missing values; NaN (without a warning) if there are none."""
    a = np.asarray(a, dtype=float)
    valid = ~np.isnan(a)
    counts = valid.sum(axis=axis)
    sums = np.where(valid, a, 0.0).sum(axis=axis)
    return np.where(counts > 0, sums / np.maximum(counts, 1), np.nan)


def _edge_length(e, nobs: int) -> int:
    try:
        e = float(e)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"Edge length must be a number, got {e!r}.") from exc
    if not math.isfinite(e) or e < 0:
        raise InvalidArgument(f"Edge length must be non-negative, got {e!r}.")
    return min(int(math.ceil(e)), nobs)


def _scalar_arg(args, method: str) -> float:
    values = []
    for a in args:
        try:
            values.extend(np.atleast_1d(np.asarray(a, dtype=float)).ravel())
        except (TypeError, ValueError) as exc:
            raise InvalidKernelParameter(
                f"Method '{method}' expects a numeric argument, got {a!r}.", value=a
            ) from exc
    if not values or np.isnan(values[0]):
        raise InvalidKernelParameter(
            f"Method '{method}' expects one argument, but got no valid one."
        )
    return float(values[0])


def _breakpoints(args) -> list[int]:
    out = []
    for a in args:
        for b in np.atleast_1d(np.asarray(a, dtype=float)).ravel():
            if np.isnan(b):
                continue
            if b != int(b):
                raise InvalidKernelParameter(
                    f"Detrend breakpoints must be integer positions, got {b:g}.",
                    value=b,
                )
            out.append(int(b))
    return out
