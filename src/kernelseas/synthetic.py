"""
synthetic.py
============
Synthetic seasonal series with known components, for examples and tests.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
import pandas as pd

from kernelseas.exceptions import InvalidArgument

logger = logging.getLogger(__name__)


def generate_seasonal_series(
    n: int = 200,
    periods: Sequence[float] = (20,),
    amplitudes: Sequence[float] | None = None,
    slope: float = 0.02,
    level: float = 5.0,
    noise: float = 0.2,
    seed: int = 42,
    start: str | None = None,
    freq: str = "D",
) -> pd.DataFrame:
    """
    Linear trend plus sinusoidal cycles plus Gaussian noise.

    Parameters
    ----------
    n          : int    number of observations
    periods    : cycle lengths (in observations)
    amplitudes : amplitude of each cycle (default 1.0 each)
    slope      : trend increase per observation
    level      : trend value at the first observation
    noise      : standard deviation of the irregular
    seed       : random seed for reproducibility
    start      : if given, the result is indexed by dates from ``start``
                 with frequency ``freq``; otherwise by 0..n-1

    Returns
    -------
    pd.DataFrame  columns 'data', 'trend', 'seasonal', 'irregular', with
                  data = trend + seasonal + irregular
    """
    if n < 2:
        raise InvalidArgument(f"At least two observations are required, got {n}.")
    if amplitudes is None:
        amplitudes = [1.0] * len(periods)
    if len(amplitudes) != len(periods):
        raise InvalidArgument(
            f"Got {len(amplitudes)} amplitudes for {len(periods)} periods."
        )

    rng = np.random.default_rng(seed)
    t = np.arange(n)

    trend = level + slope * t
    seasonal = np.zeros(n)
    for period, amplitude in zip(periods, amplitudes):
        seasonal += amplitude * np.sin(2 * np.pi * (t + 1) / period)
    irregular = noise * rng.standard_normal(n)

    if start is None:
        index = pd.RangeIndex(n)
    else:
        index = pd.date_range(start=start, periods=n, freq=freq)

    df = pd.DataFrame(
        {
            "data": trend + seasonal + irregular,
            "trend": trend,
            "seasonal": seasonal,
            "irregular": irregular,
        },
        index=index,
    )
    logger.debug("Generated %d observations with periods %s", n, list(periods))
    return df
