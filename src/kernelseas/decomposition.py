"""
decomposition.py
================
Fixed seasonal decomposition into Trend + Seasonal factor + Irregular.

For every requested period:
  - Trend: kernel moving average (centred MA by default) or a regression
    trend (detrend / spline / polynomial / Hodrick-Prescott), computed on
    mirrored data to soften edge effects
  - Seasonal factor: average deviation from the trend per phase, normalised
    to mean 0 (additive) or 1 (multiplicative)
  - Irregular: what is left after removing trend and seasonal factor

Several periods are removed one after the other, each working on the
seasonally adjusted output of the previous one, so ``[14, 20]`` and
``[20, 14]`` give different results.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from functools import reduce
from typing import Any, Iterator

import numpy as np
import pandas as pd

from kernelseas import config
from kernelseas.exceptions import (
    InvalidArgument,
    InvalidConfiguration,
    ShapeMismatch,
)
from kernelseas.periods import broadcast_to_length, normalize_seas
from kernelseas.trend import resolve_method, seasonal_filter, trend_filter

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    ADDITIVE = "additive"  # y = T + S + I
    MULTIPLICATIVE = "multiplicative"  # y = T × S × I
    LOG_ADDITIVE = "log-additive"  # log y = T + S + I, results exponentiated

    @classmethod
    def from_name(cls, name: "str | Mode") -> "Mode":
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        try:
            return cls(_MODE_ALIASES.get(key, key))
        except ValueError:
            raise InvalidConfiguration(
                f"Mode '{name}' is not supported. Use 'add', 'mult' or 'logadd'."
            ) from None

    @property
    def multiplicative(self) -> bool:
        return self is Mode.MULTIPLICATIVE


_MODE_ALIASES = {
    "add": "additive",
    "none": "additive",
    "mult": "multiplicative",
    "logadd": "log-additive",
    "logadditive": "log-additive",
    "log": "log-additive",
}


@dataclass(frozen=True)
class PeriodSpec:
    """Configuration of one stage of the decomposition."""

    period: int
    mode: Mode
    method: str
    method_arg: Any = None


@dataclass(frozen=True)
class ComponentResult:
    period: Any  # int, or tuple of all periods for the aggregate
    mode: Mode
    method: Any
    method_arg: Any
    original: pd.Series
    trend: pd.Series
    seasonally_adjusted: pd.Series
    seasonal: pd.Series
    seasonal_irregular: pd.Series
    irregular: pd.Series

    def _additive_scale(self, series: pd.Series) -> pd.Series:
        if self.mode is Mode.ADDITIVE:
            return series
        return np.log(series)

    # Summary statistics
    @property
    def trend_strength(self) -> float:
        """
        Wang et al. (2006) trend strength: how much variance is explained by trend.
        Range [0, 1], higher = stronger trend. Measured on the log scale for
        multiplicative and log-additive decompositions.
        """
        trend = self._additive_scale(self.trend)
        resid = self._additive_scale(self.irregular)
        var_resid = resid.var()
        var_trend_plus_resid = (trend + resid).dropna().var()
        if not var_trend_plus_resid > 1e-12:
            return 0.0
        return float(max(0, 1 - var_resid / var_trend_plus_resid))

    @property
    def seasonal_strength(self) -> float:
        """Seasonal strength: analogous to trend strength."""
        seasonal = self._additive_scale(self.seasonal)
        resid = self._additive_scale(self.irregular)
        var_resid = resid.var()
        var_seas_plus_resid = (seasonal + resid).dropna().var()
        if not var_seas_plus_resid > 1e-12:
            return 0.0
        return float(max(0, 1 - var_resid / var_seas_plus_resid))

    def summary(self) -> str:
        return (
            f"Component ({self.mode.value}, period={self.period}, "
            f"method={self.method})\n"
            f"  Trend strength   : {self.trend_strength:.3f}\n"
            f"  Seasonal strength: {self.seasonal_strength:.3f}\n"
            f"  Irregular std    : {self.irregular.std():.6f}\n"
        )


@dataclass(frozen=True)
class DecompositionResult:
    """
    One ``ComponentResult`` per period, in the order they were removed,
    followed by the aggregate component when ``aggregated`` is True.
    """

    components: tuple[ComponentResult, ...]
    aggregated: bool
    dates: pd.Index

    def __len__(self) -> int:
        return len(self.components)

    def __getitem__(self, item):
        return self.components[item]

    def __iter__(self) -> Iterator[ComponentResult]:
        return iter(self.components)

    @property
    def final(self) -> ComponentResult:
        """The aggregate if there is one, otherwise the last period."""
        return self.components[-1]

    @property
    def periods(self) -> tuple:
        stages = self.components[:-1] if self.aggregated else self.components
        return tuple(c.period for c in stages)

    def summary(self) -> str:
        first = self.components[0]
        head = (
            "Fixed seasonal adjustment\n"
            f"  {self.dates[0]} to {self.dates[-1]}, periods = {list(self.periods)}\n"
            f"  {len(first.original)} observations\n"
            f"  adjustment mode: {first.mode.value}\n"
        )
        return head + "".join(c.summary() for c in self.components)


# ---------------------------------------------------------------------------
# Decomposition
# ---------------------------------------------------------------------------


def decompose(
    data,
    periods,
    modes=None,
    methods=None,
    method_args=None,
    dates=None,
) -> DecompositionResult:
    """
    Decompose a series into trend, fixed seasonal factors and irregular.

    Parameters
    ----------
    data        : array-like or pd.Series, the series (NaN tolerant). A
                  two-column array is read as ``[dates, values]``; a Series
                  with a DatetimeIndex supplies its own dates.
    periods     : int or sequence of int, cycle lengths, removed left to right
    modes       : 'add' (y = T + S + I), 'mult' (y = T × S × I) or 'logadd'
                  (additive on log y), or one per period. Default 'logadd'.
    methods     : trend method (kernel name, 'detrend', 'spline',
                  'polynomial', 'hp' or 'mean'), or one per period.
                  Default 'cma'.
    method_args : argument of the trend method. A ``list`` holds one
                  argument per period; anything else (number, tuple of kernel
                  parameters, None for the default) applies to every period.
    dates       : optional strictly increasing dates aligned with the data.

    Shorter mode / method / argument lists are padded with their last entry.

    Returns
    -------
    DecompositionResult
    """
    values, index, day_numbers = _prepare_input(data, dates)
    specs = build_period_specs(
        periods, modes, methods, method_args, day_numbers, len(values)
    )

    n_missing = int(np.isnan(values).sum())
    if n_missing:
        logger.debug("Found %d missing values; the filters skip them.", n_missing)

    components: list[ComponentResult] = []
    stage_input = values
    for spec in specs:
        logger.debug(
            "Removing period %s (%s, %s %s)",
            spec.period,
            spec.mode.value,
            spec.method,
            spec.method_arg,
        )
        component = _decompose_period(stage_input, spec, day_numbers, index)
        components.append(component)
        stage_input = component.seasonally_adjusted.to_numpy()

    aggregated = len(specs) > 1 and len({s.mode for s in specs}) == 1
    if aggregated:
        components.append(_aggregate(components))

    return DecompositionResult(
        components=tuple(components), aggregated=aggregated, dates=index
    )


fixedseas = decompose


def method1(data, period, mode="logadd", dates=None) -> ComponentResult:
    """
    Approximate Census Bureau Method I (Shiskin, 1954).

    Two passes with fixed moving averages:
      1. trend = centred MA over ``period``; seasonal factors = 3x3 MA of
         each phase of the seasonal-irregular ratio (or difference)
      2. trend = 5-term MA of the first seasonally adjusted series;
         seasonal factors re-estimated the same way from the new trend

    Unlike ``decompose``, the seasonal factors are not re-centred and may
    drift slowly from cycle to cycle.

    Parameters
    ----------
    data   : array-like or pd.Series (a two-column array is ``[dates, values]``)
    period : int, cycle length
    mode   : 'add', 'mult' or 'logadd' (default)
    dates  : optional strictly increasing dates aligned with the data

    Returns
    -------
    ComponentResult
    """
    values, index, _ = _prepare_input(data, dates)
    period = _as_period(period)
    mode = Mode.from_name(mode)
    mult = mode.multiplicative
    x = _working_scale(values, mode)

    tr1 = trend_filter(x, "cma", period, mirror=math.ceil(period / 2))
    si1 = normalize_seas(x, tr1, mult)
    sf1 = seasonal_filter(si1, period, "ma", 3, 3, mirror=3)
    sa1 = normalize_seas(x, sf1, mult)
    logger.debug("Method I: first pass done for period %d", period)

    tr = trend_filter(sa1, "ma", 5, mirror=3)
    si = normalize_seas(x, tr, mult)
    sf = seasonal_filter(si, period, "ma", 3, 3, mirror=3)
    sa = normalize_seas(x, sf, mult)
    ir = normalize_seas(sa, tr, mult)

    return _component(values, index, period, mode, "method1", None, tr, si, sf, sa, ir)


def build_period_specs(
    periods,
    modes=None,
    methods=None,
    method_args=None,
    day_numbers: np.ndarray | None = None,
    nobs: int | None = None,
) -> list[PeriodSpec]:
    """
    Validate the configuration and match it to the list of periods.

    Missing method arguments are replaced by the defaults of each method.
    """
    period_list = [_as_period(p) for p in _as_list(periods)]
    if not period_list:
        raise InvalidConfiguration("At least one period is required.")
    count = len(period_list)

    mode_list = broadcast_to_length(
        _as_list(config.DEFAULT_MODE if modes is None else modes), count
    )
    method_list = broadcast_to_length(
        _as_list(config.DEFAULT_METHOD if methods is None else methods), count
    )
    if isinstance(method_args, list):
        arg_list = broadcast_to_length(method_args or [None], count)
    else:
        arg_list = [method_args] * count

    if nobs is None:
        nobs = len(day_numbers) if day_numbers is not None else 0
    if day_numbers is None:
        day_numbers = np.arange(1, nobs + 1, dtype=float)

    specs = []
    for period, mode, method, arg in zip(period_list, mode_list, method_list, arg_list):
        mode = Mode.from_name(mode)
        method = resolve_method(method)
        if arg is None:
            arg = default_method_arg(method, period, day_numbers)
        specs.append(PeriodSpec(period, mode, method, arg))
    return specs


def default_method_arg(method: str, period: float, day_numbers: np.ndarray):
    """Argument used for a trend method when the caller gives none."""
    nobs = len(day_numbers)
    if method == "spline":
        spacing = (day_numbers[-1] - day_numbers[0]) / (nobs - 1)
        h = spacing / period
        return 1 / (1 + h**3 / config.SPLINE_ROUGHNESS_SCALE)
    if method == "polynomial":
        return math.floor(nobs / period)
    if method == "hp":
        return math.exp(config.HP_LOG_INTERCEPT + config.HP_LOG_SLOPE * math.log(period))
    if method in ("rehomme-ladiray", "henderson", "bongard"):
        return 2 * period - 1
    if method in ("detrend", "mean"):
        return None
    return period


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _decompose_period(
    data: np.ndarray, spec: PeriodSpec, day_numbers: np.ndarray, index: pd.Index
) -> ComponentResult:
    mult = spec.mode.multiplicative
    x = _working_scale(data, spec.mode)

    args = _trend_args(spec, day_numbers)
    tr = trend_filter(x, spec.method, *args, mirror=spec.period)
    si = normalize_seas(x, tr, mult)
    sf = seasonal_filter(si, spec.period, "reldeviation" if mult else "deviation")
    sa = normalize_seas(x, sf, mult)
    ir = normalize_seas(sa, tr, mult)

    return _component(
        data, index, spec.period, spec.mode, spec.method, spec.method_arg,
        tr, si, sf, sa, ir,
    )


def _working_scale(data: np.ndarray, mode: Mode) -> np.ndarray:
    """The data on the scale the filters work on (logs for log-additive)."""
    if mode is not Mode.LOG_ADDITIVE:
        return data
    if (data[~np.isnan(data)] <= 0).any():
        raise InvalidArgument(
            "Log-additive decomposition requires strictly positive data."
        )
    return np.log(data)


def _component(data, index, period, mode, method, method_arg, tr, si, sf, sa, ir):
    # exponentiate if log was taken before
    if mode is Mode.LOG_ADDITIVE:
        tr, si, sf, sa, ir = (np.exp(c) for c in (tr, si, sf, sa, ir))

    def series(values, name):
        return pd.Series(values, index=index, name=name)

    return ComponentResult(
        period=period,
        mode=mode,
        method=method,
        method_arg=method_arg,
        original=series(data, "original"),
        trend=series(tr, "trend"),
        seasonally_adjusted=series(sa, "seasonally_adjusted"),
        seasonal=series(sf, "seasonal"),
        seasonal_irregular=series(si, "seasonal_irregular"),
        irregular=series(ir, "irregular"),
    )


def _trend_args(spec: PeriodSpec, day_numbers: np.ndarray) -> list:
    arg = spec.method_arg
    if arg is None:
        return []
    if spec.method == "detrend":
        # breakpoints are dates: break after the last observation not later
        if not isinstance(arg, (list, tuple, np.ndarray, pd.Index)):
            arg = [arg]
        points = _to_day_numbers(arg)
        positions = np.searchsorted(day_numbers, points, side="right") - 1
        return [[int(p) for p in positions if p >= 0]]
    if isinstance(arg, (tuple, list, np.ndarray)):
        return list(arg)
    return [arg]


def _aggregate(components: list[ComponentResult]) -> ComponentResult:
    """Cumulated seasonal adjustment over all periods."""
    last = components[-1]
    combine = np.multiply if last.mode.multiplicative else np.add

    def cumulate(attr, name):
        return reduce(combine, (getattr(c, attr) for c in components)).rename(name)

    return ComponentResult(
        period=tuple(c.period for c in components),
        mode=last.mode,
        method=tuple(c.method for c in components),
        method_arg=tuple(c.method_arg for c in components),
        original=components[0].original,
        trend=last.trend,
        seasonally_adjusted=last.seasonally_adjusted,
        seasonal=cumulate("seasonal", "seasonal"),
        seasonal_irregular=cumulate("seasonal_irregular", "seasonal_irregular"),
        irregular=cumulate("irregular", "irregular"),
    )


def _prepare_input(data, dates) -> tuple[np.ndarray, pd.Index, np.ndarray]:
    """Values, result index and dates as numbers (days for datetimes)."""
    index = None
    if isinstance(data, pd.Series):
        values = data.to_numpy(dtype=float)
        index = data.index
        if dates is None and isinstance(data.index, pd.DatetimeIndex):
            dates = data.index
    else:
        try:
            values = np.asarray(data, dtype=float)
        except (TypeError, ValueError) as exc:
            raise InvalidArgument("Data must be numeric.") from exc
        if values.ndim == 2 and values.shape[1] == 2 and dates is None:
            dates = values[:, 0]
            values = values[:, 1]
        elif values.ndim == 2 and 1 in values.shape:
            values = values.ravel()

    if values.ndim != 1:
        raise ShapeMismatch(
            f"Decomposition expects a vector, but got an array of shape {values.shape}."
        )
    nobs = len(values)
    if nobs < 2:
        raise ShapeMismatch(f"At least two observations are required, got {nobs}.")

    if dates is None:
        if index is None:
            index = pd.RangeIndex(nobs)
        return values, index, np.arange(1, nobs + 1, dtype=float)

    dates = pd.Index(dates)
    if len(dates) != nobs:
        raise ShapeMismatch(
            f"Dates ({len(dates)}) and data ({nobs}) must have the same length."
        )
    day_numbers = _to_day_numbers(dates)
    if not (np.diff(day_numbers) > 0).all():
        raise InvalidArgument("Dates must be strictly increasing.")
    return values, dates, day_numbers


def _to_day_numbers(dates) -> np.ndarray:
    dates = pd.Index(dates)
    if pd.api.types.is_numeric_dtype(dates):
        return dates.to_numpy(dtype=float)
    try:
        stamps = pd.DatetimeIndex(pd.to_datetime(dates))
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"Cannot interpret dates {list(dates)[:3]}...") from exc
    elapsed = (stamps - pd.Timestamp(0, tz=stamps.tz)) / pd.Timedelta(days=1)
    return np.asarray(elapsed, dtype=float)


def _as_list(value) -> list:
    if isinstance(value, (str, Enum)) or np.isscalar(value):
        return [value]
    return list(value)


def _as_period(p) -> int:
    try:
        value = float(p)
    except (TypeError, ValueError) as exc:
        raise InvalidConfiguration(f"Period must be a number, got {p!r}.") from exc
    if not math.isfinite(value) or value <= 0 or value != int(value):
        raise InvalidConfiguration(
            f"Periods must be positive integers, got {p!r}."
        )
    return int(value)
