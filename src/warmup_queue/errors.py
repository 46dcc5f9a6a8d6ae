"""Exception hierarchy for the setup-queue simulation."""

from __future__ import annotations


class QueueModelError(Exception):
    """Base exception for every failure raised by the package."""

    pass


class ConfigurationError(QueueModelError, ValueError):
    """Raised when a rate, shape or scale is outside the domain of its law."""

    pass


class UnstableConfiguration(ConfigurationError):
    """Raised when the utilization is not strictly below one."""

    pass


class DivisionUndefined(QueueModelError, ArithmeticError):
    """Raised when a ratio or average has no meaning (empty run, zero time)."""

    pass


class InsufficientSamples(DivisionUndefined):
    """Raised when a variance estimate is requested from fewer than two samples."""

    pass
