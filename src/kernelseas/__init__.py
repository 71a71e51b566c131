"""
kernelseas
==========
Seasonal decomposition with linear smoothing kernels, independent of the
Census X-13 programs.
"""

import logging

from kernelseas.decomposition import (
    ComponentResult,
    DecompositionResult,
    Mode,
    PeriodSpec,
    build_period_specs,
    decompose,
    fixedseas,
    method1,
)
from kernelseas.exceptions import (
    InvalidArgument,
    InvalidConfiguration,
    InvalidKernelParameter,
    KernelSeasError,
    ShapeMismatch,
    UnsupportedKernel,
)
from kernelseas.kernels import (
    Kernel,
    KernelSpec,
    generate_kernel_weights,
    kernel_weights,
    rehomme_ladiray_weights,
    spencer_weights,
)
from kernelseas.periods import (
    broadcast_to_length,
    fill_holes,
    joinperiods,
    normalize_seas,
    splitperiods,
)
from kernelseas.smoothing import Direction, weighted_smooth
from kernelseas.synthetic import generate_seasonal_series
from kernelseas.trend import hodrick_prescott, seasonal_filter, trend_filter

__version__ = "1.0.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ComponentResult",
    "DecompositionResult",
    "Direction",
    "InvalidArgument",
    "InvalidConfiguration",
    "InvalidKernelParameter",
    "Kernel",
    "KernelSeasError",
    "KernelSpec",
    "Mode",
    "PeriodSpec",
    "ShapeMismatch",
    "UnsupportedKernel",
    "broadcast_to_length",
    "build_period_specs",
    "decompose",
    "fill_holes",
    "fixedseas",
    "generate_kernel_weights",
    "generate_seasonal_series",
    "hodrick_prescott",
    "joinperiods",
    "kernel_weights",
    "method1",
    "normalize_seas",
    "rehomme_ladiray_weights",
    "seasonal_filter",
    "spencer_weights",
    "splitperiods",
    "trend_filter",
    "weighted_smooth",
]
