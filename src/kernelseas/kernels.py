"""
kernels.py
==========
Finite impulse response weights for a family of smoothing kernels.

The weights returned here sum to one and are meant to be fed to
``kernelseas.smoothing.weighted_smooth``:

  - Moving averages      : 'ma', 'cma' (fractional lengths supported)
  - Finite-support shapes: epanechnikov, triangle, biweight, triweight,
                           tricube, cosine, optcosine, cauchy
  - Infinite support     : gaussian, logistic, sigmoid, exponential, silverman
  - Optimal filters      : henderson, bongard, rehomme-ladiray
  - Spencer's 15-term moving average

Several numeric arguments produce a convolution of the individual kernels,
so ``kernel_weights('ma', 5, 4, 4)`` is a 5-term MA convolved with two 4-term
MAs.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np
from scipy import linalg

from kernelseas import config
from kernelseas.exceptions import InvalidKernelParameter, UnsupportedKernel

logger = logging.getLogger(__name__)


class Kernel(str, Enum):
    """Supported kernel families."""

    REHOMME_LADIRAY = "rehomme-ladiray"
    BONGARD = "bongard"
    HENDERSON = "henderson"
    SPENCER = "spencer15"
    CMA = "cma"
    MA = "ma"
    EPANECHNIKOV = "epanechnikov"
    TRIANGLE = "triangle"
    BIWEIGHT = "biweight"
    TRIWEIGHT = "triweight"
    TRICUBE = "tricube"
    COSINE = "cosine"
    OPTCOSINE = "optcosine"
    CAUCHY = "cauchy"
    LOGISTIC = "logistic"
    SIGMOID = "sigmoid"
    GAUSSIAN = "gaussian"
    EXPONENTIAL = "exponential"
    SILVERMAN = "silverman"

    @classmethod
    def from_name(cls, name: "str | Kernel") -> "Kernel":
        """Resolve a kernel name or alias (case-insensitive)."""
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            raise UnsupportedKernel(name)
        key = name.strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise UnsupportedKernel(name) from None


_ALIASES = {
    "spencer": "spencer15",
    "centered moving average": "cma",
    "uniform": "cma",
    "rectangular": "cma",
    "rectangle": "cma",
    "box": "cma",
    "moving average": "ma",
    "triangular": "triangle",
    "quartic": "biweight",
    "normal": "gaussian",
}

# Shapes evaluated on lags normalised to [-1, 1]
_FINITE_SHAPES = {
    Kernel.EPANECHNIKOV: lambda k: 1 - k**2,
    Kernel.TRIANGLE: lambda k: 1 - np.abs(k),
    Kernel.BIWEIGHT: lambda k: (1 - k**2) ** 2,
    Kernel.TRIWEIGHT: lambda k: (1 - k**2) ** 3,
    Kernel.TRICUBE: lambda k: (1 - np.abs(k) ** 3) ** 3,
    Kernel.COSINE: lambda k: 1 + np.cos(k * np.pi),
    Kernel.OPTCOSINE: lambda k: np.cos(k * np.pi / 2),
    Kernel.CAUCHY: lambda k: 1 / (1 + k * k),
}
# Cauchy is defined on the whole real line, the others vanish outside |k| <= 1
_COMPACT = frozenset(_FINITE_SHAPES) - {Kernel.CAUCHY}

_SILVERMAN_SCALE = math.sqrt(2) / 2

# Shapes evaluated on lags divided by the bandwidth
_INFINITE_SHAPES = {
    Kernel.LOGISTIC: lambda k: 1 / (np.exp(k) + np.exp(-k) + 2),
    Kernel.SIGMOID: lambda k: 2 / (np.exp(k) + np.exp(-k)),
    Kernel.GAUSSIAN: lambda k: np.exp(-(np.abs(k) ** 2) / 2),
    Kernel.EXPONENTIAL: lambda k: np.exp(-np.abs(k) / 2),
    Kernel.SILVERMAN: lambda k: (
        np.exp(-np.abs(k) * _SILVERMAN_SCALE) * np.cos(-np.abs(k) * _SILVERMAN_SCALE)
    ),
}


@dataclass(frozen=True)
class KernelSpec:
    """A kernel together with its numeric parameters."""

    kernel: Kernel
    params: tuple[float, ...] = ()

    @classmethod
    def of(cls, name: "str | Kernel", *params: float) -> "KernelSpec":
        return cls(Kernel.from_name(name), tuple(_parse_params(params)))

    def weights(self) -> np.ndarray:
        return kernel_weights(self)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def kernel_weights(kernel: "str | Kernel | KernelSpec", *params) -> np.ndarray:
    """
    Build the normalised weight vector of a kernel.

    Parameters
    ----------
    kernel : str, Kernel or KernelSpec
        Kernel name (aliases such as 'uniform' or 'normal' are accepted).
    *params : float or sequence of float
        Bandwidths / lengths. Each group of parameters defines one kernel and
        the kernels are convolved with each other. Infinite-support kernels
        take ``bandwidth[, length]``, 'rehomme-ladiray' takes ``n[, p[, h]]``
        and 'spencer15' takes an optional repeat count.

    Returns
    -------
    np.ndarray  weights summing to one

    Raises
    ------
    UnsupportedKernel       if the kernel name is unknown
    InvalidKernelParameter  if a parameter is missing or unusable
    """
    if isinstance(kernel, KernelSpec):
        params = kernel.params + tuple(params)
        kernel = kernel.kernel
    kernel = Kernel.from_name(kernel)
    args = _parse_params(params)

    if kernel is Kernel.SPENCER:
        if len(args) > 1:
            raise InvalidKernelParameter(
                "The 'spencer' kernel takes at most one numerical argument, the "
                "number of Spencer kernels to convolve.",
                value=tuple(args),
            )
        count = _as_integer(args[0], "repeat count") if args else 1
        if count < 1:
            raise InvalidKernelParameter(
                f"Spencer repeat count must be positive, got {count}.", value=count
            )
        args = [1.0] * count
    elif not args:
        raise InvalidKernelParameter(
            f"Kernel '{kernel.value}' requires at least a bandwidth argument."
        )

    w = np.ones(1)
    while args:
        new, consumed = _single_kernel(kernel, args)
        args = args[consumed:]
        w = np.convolve(w, new)
        w = w / w.sum()
    return w


generate_kernel_weights = kernel_weights


# ---------------------------------------------------------------------------
# Individual kernels
# ---------------------------------------------------------------------------


def _single_kernel(kernel: Kernel, args: list[float]) -> tuple[np.ndarray, int]:
    """Weights of one kernel and the number of arguments it consumed."""
    b = args[0]

    if kernel is Kernel.REHOMME_LADIRAY:
        n = args[0]
        p = args[1] if len(args) > 1 else math.nan
        h = args[2] if len(args) > 2 else math.nan
        return rehomme_ladiray_weights(n, p, h), min(3, len(args))

    if kernel is Kernel.HENDERSON:
        return rehomme_ladiray_weights(b, 3, 1.0), 1

    if kernel is Kernel.BONGARD:
        return rehomme_ladiray_weights(b, 3, 0.0), 1

    if kernel is Kernel.SPENCER:
        return spencer_weights(), 1

    if kernel is Kernel.CMA:
        _positive(b, "length")
        # next weakly larger odd number
        odd = int(math.ceil((b - 1) / 2)) * 2 + 1
        w = np.ones(odd)
        w[[0, -1]] = 1 - (odd - b) / 2
        return w, 1

    if kernel is Kernel.MA:
        _positive(b, "length")
        return np.ones(int(math.ceil(b))), 1

    if kernel in _FINITE_SHAPES:
        _positive(b, "bandwidth")
        if b <= 1:
            return np.ones(1), 1
        half = (b - 1) / 2
        laglead = int(math.ceil(half))
        k = np.arange(-laglead, laglead + 1) / half
        w = _FINITE_SHAPES[kernel](k)
        if kernel in _COMPACT:
            w[np.abs(k) > 1] = 0.0
        return w[w > 0], 1

    if kernel in _INFINITE_SHAPES:
        _positive(b, "bandwidth")
        if len(args) > 1:
            length = _positive(args[1], "length")
            consumed = 2
        else:
            length = math.ceil(b * config.INFINITE_SUPPORT_SPAN[kernel.value])
            consumed = 1
        laglead = int(math.ceil((length - 1) / 2))
        k = np.arange(-laglead, laglead + 1) / b
        return _INFINITE_SHAPES[kernel](k), consumed

    raise UnsupportedKernel(kernel.value)


def spencer_weights() -> np.ndarray:
    """Spencer's 15-term moving average (unnormalised, sums to 320)."""
    w = np.asarray(config.SPENCER_SHAPE)
    for width in config.SPENCER_WINDOWS:
        w = np.convolve(w, np.ones(width))
    return w


def rehomme_ladiray_weights(n: float, p: float = 3, h: float = 0.5) -> np.ndarray:
    """
    Rehomme-Ladiray moving average.

    The n-term symmetric filter that exactly reproduces polynomials of
    degree p and minimises ``h * Henderson criterion + (1-h) * Bongard
    criterion``. ``h = 1`` is the Henderson filter, ``h = 0`` the Bongard
    filter. NaN for p or h selects the defaults (3 and 0.5).

    Non-odd or too short lengths are raised to the next odd integer >= 3
    and a warning is logged. Values of h outside [0, 1] are accepted with a
    warning.
    """
    n = _finite(n, "length")
    if n <= 0:
        raise InvalidKernelParameter(
            f"Rehomme-Ladiray length must be positive, got {n:g}.", value=n
        )

    if h is None or math.isnan(h):
        h = config.RL_DEFAULT_CONVEXITY
    elif _finite(h, "convexity weight") > 1 or h < 0:
        logger.warning(
            "Rehomme-Ladiray convexity weight h = %f is outside [0, 1]; "
            "the computation continues but the result has little meaning.",
            h,
        )

    if n != int(n) or int(n) % 2 != 1 or n < 3:
        new_n = max(int(math.ceil(n)), 3)
        if new_n % 2 != 1:
            new_n += 1
        logger.warning(
            "Rehomme-Ladiray moving average is only defined for odd integers "
            ">= 3. You have chosen %g. The length is set to %i instead.",
            n,
            new_n,
        )
        n = new_n
    n = int(n)

    if p is None or math.isnan(p):
        p = config.RL_DEFAULT_ORDER
    else:
        p = _finite(p, "order")
        if p != int(p) or p < 1 or p > n:
            raise InvalidKernelParameter(
                "The Rehomme-Ladiray order must be a positive integer not "
                f"exceeding the length. Got order {p:g} and length {n:g}.",
                value=p,
            )
        p = int(p)
        p = p + (p + 1) % 2  # next odd number

    scale = 19 * h + 1
    if scale == 0:
        raise InvalidKernelParameter(
            "Convexity weight h = -1/19 makes the criterion degenerate.", value=h
        )

    # blended penalty matrix
    first = np.zeros(n)
    m = min(n, len(config.RL_ROUGHNESS_ROW))
    first[:m] = config.RL_ROUGHNESS_ROW[:m]
    A = (h * linalg.toeplitz(first) + (1 - h) * np.eye(n)) / scale

    # polynomial constraints on centred lags (even degrees only)
    half = (n - 1) // 2
    lags = np.arange(-half, half + 1, dtype=float)
    n_constraints = (p + 1) // 2
    C = np.column_stack([lags ** (2 * j) for j in range(n_constraints)])
    alpha = np.zeros(n_constraints)
    alpha[0] = 1.0

    A_inv_C = linalg.solve(A, C)
    multiplier = -2 * linalg.solve(C.T @ A_inv_C, alpha)
    return -0.5 * A_inv_C @ multiplier


# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------


def _parse_params(params) -> list[float]:
    """Flatten numbers and sequences of numbers into a list of floats."""
    out: list[float] = []
    for p in params:
        if p is None:
            continue
        if isinstance(p, (str, bytes)):
            raise InvalidKernelParameter(
                f"Kernel parameters must be numeric, got {p!r}.", value=p
            )
        try:
            values = np.atleast_1d(np.asarray(p, dtype=float)).ravel()
        except (TypeError, ValueError) as exc:
            raise InvalidKernelParameter(
                f"Kernel parameters must be numeric, got {p!r}.", value=p
            ) from exc
        out.extend(float(v) for v in values)
    return out


def _finite(value: float, what: str) -> float:
    if not math.isfinite(value):
        raise InvalidKernelParameter(
            f"Kernel {what} must be a finite number, got {value!r}.", value=value
        )
    return value


def _positive(value: float, what: str) -> float:
    _finite(value, what)
    if value <= 0:
        raise InvalidKernelParameter(
            f"Kernel {what} must be positive, got {value:g}.", value=value
        )
    return value


def _as_integer(value: float, what: str) -> int:
    _finite(value, what)
    if value != int(value):
        raise InvalidKernelParameter(
            f"Kernel {what} must be an integer, got {value:g}.", value=value
        )
    return int(value)
