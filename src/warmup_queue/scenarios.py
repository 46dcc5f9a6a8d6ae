"""Experiment configurations swept over the utilization."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

import numpy as np

from .errors import ConfigurationError, UnstableConfiguration
from .variates import Erlang, Exponential, Parameter

FAMILIES = ("exp", "erlang")

DEFAULT_BATCH_SIZE = 100  # replications per configuration
DEFAULT_N_CLIENTS = 1_000  # arrivals per replication
DEFAULT_THETA = 0.4  # setup rate
DEFAULT_LAMBDA = 1.0  # arrival rate
DEFAULT_ERLANG_SHAPE = 10
DEFAULT_RHO_START = 0.05
DEFAULT_RHO_STOP = 0.95
DEFAULT_RHO_POINTS = 50
DEFAULT_SEED = 123


@dataclass(frozen=True)
class QueueConfig:
    """
    One point of a sweep.

    The service rate follows from the utilization: ``mu = lam / rho`` for
    exponential service, ``beta = rho / (lam * k)`` for Erlang service. The
    setup is exponential of rate ``theta`` when ``w_k == 1``, otherwise an
    Erlang with shape ``w_k`` and the same mean ``1 / theta``.
    """

    family: str
    rho: float
    lam: float = DEFAULT_LAMBDA
    theta: float = DEFAULT_THETA
    k: Optional[int] = None
    w_k: int = 1

    def __post_init__(self) -> None:
        if self.family not in FAMILIES:
            raise ConfigurationError(f"Unknown family '{self.family}'. Available: {FAMILIES}")
        if not self.rho > 0:
            raise ConfigurationError("Utilization rho must be strictly positive.")
        if self.rho >= 1.0:
            raise UnstableConfiguration(f"Unstable system: rho={self.rho:.6g} must be < 1.")
        if not self.lam > 0:
            raise ConfigurationError("Arrival rate lam must be strictly positive.")
        if not self.theta > 0:
            raise ConfigurationError("Setup rate theta must be strictly positive.")
        if self.family == "erlang" and (self.k is None or int(self.k) != self.k or self.k < 1):
            raise ConfigurationError("Erlang service requires an integer shape k >= 1.")
        if int(self.w_k) != self.w_k or self.w_k < 1:
            raise ConfigurationError("Setup shape w_k must be an integer >= 1.")

    @property
    def mu(self) -> Optional[float]:
        return self.lam / self.rho if self.family == "exp" else None

    @property
    def beta(self) -> Optional[float]:
        if self.family != "erlang":
            return None
        return self.rho / self.lam / self.k

    @property
    def w_beta(self) -> float:
        return 1.0 / (self.theta * self.w_k)

    def arrival_param(self) -> Parameter:
        return Exponential(self.lam)

    def service_param(self) -> Parameter:
        if self.family == "exp":
            return Exponential(self.mu)
        return Erlang(self.k, self.beta)

    def setup_param(self) -> Parameter:
        if self.w_k == 1:
            return Exponential(self.theta)
        return Erlang(self.w_k, self.w_beta)


def utilization_grid(
    start: float = DEFAULT_RHO_START,
    stop: float = DEFAULT_RHO_STOP,
    num: int = DEFAULT_RHO_POINTS,
) -> List[float]:
    """Evenly spaced utilization values, both ends included."""
    if num < 1:
        raise ConfigurationError("The utilization grid needs at least one point.")
    return [float(r) for r in np.linspace(start, stop, num)]


def exp_sweep(
    rhos: Iterable[float],
    lam: float = DEFAULT_LAMBDA,
    theta: float = DEFAULT_THETA,
) -> List[QueueConfig]:
    """Exponential-service configurations ordered by utilization."""
    return [QueueConfig(family="exp", rho=r, lam=lam, theta=theta) for r in sorted(rhos)]


def erlang_sweep(
    rhos: Iterable[float],
    lam: float = DEFAULT_LAMBDA,
    theta: float = DEFAULT_THETA,
    k: int = DEFAULT_ERLANG_SHAPE,
) -> List[QueueConfig]:
    """Erlang-service configurations ordered by utilization."""
    return [QueueConfig(family="erlang", rho=r, lam=lam, theta=theta, k=k) for r in sorted(rhos)]


def get_sweep(family: str, rhos: Iterable[float], **kwargs) -> List[QueueConfig]:
    """Return the sweep of a named family."""
    if family == "exp":
        kwargs.pop("k", None)
        return exp_sweep(rhos, **kwargs)
    if family == "erlang":
        return erlang_sweep(rhos, **kwargs)
    raise KeyError(f"Family '{family}' is not defined. Available: {list(FAMILIES)}")
