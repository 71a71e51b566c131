"""
exceptions.py
=============
Error taxonomy of the decomposition engine.

Every error derives from ``KernelSeasError`` (itself a ``ValueError``), so
callers can catch the whole family at once or a single failure class.
"""

from __future__ import annotations


class KernelSeasError(ValueError):
    """Base class for all errors raised by kernelseas."""


class InvalidKernelParameter(KernelSeasError):
    """A kernel received a length, order or shape parameter it cannot use."""

    def __init__(self, message: str, value=None):
        super().__init__(message)
        self.value = value


class InvalidConfiguration(KernelSeasError):
    """Unknown mode or method name, or an unusable period."""


class UnsupportedKernel(InvalidConfiguration):
    """The requested kernel name is not one of the known kernels."""

    def __init__(self, name):
        super().__init__(f"Kernel of type '{name}' is not implemented.")
        self.name = name


class InvalidArgument(KernelSeasError):
    """A public operation received an argument it cannot work with."""


class ShapeMismatch(InvalidArgument):
    """Data, dates or weights do not have the expected shape or length."""
