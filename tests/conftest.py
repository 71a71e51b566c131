import numpy as np
import pandas as pd
import pytest

from kernelseas import generate_seasonal_series


@pytest.fixture
def two_cycle_frame() -> pd.DataFrame:
    """Trend + cycles of length 14 and 20 + noise, 200 observations."""
    return generate_seasonal_series(
        n=200, periods=(14, 20), amplitudes=(0.7, 1.0), noise=0.2, seed=7
    )


@pytest.fixture
def monthly_series() -> pd.Series:
    """Ten years of positive monthly data with a fixed seasonal pattern."""
    pattern = np.array([-0.2, 0, 0, 0.1, 0.4, 0.6, 0.2, -0.4, -0.3, -0.5, 0, 0.1])
    rng = np.random.default_rng(3)
    t = np.arange(120)
    values = 10 + 0.05 * t + np.tile(pattern, 10) + 0.1 * rng.standard_normal(120)
    index = pd.date_range("2010-01-01", periods=120, freq="MS")
    return pd.Series(values, index=index, name="sales")
