"""Parametric laws and the sample generator used by the simulation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from .errors import ConfigurationError


@dataclass(frozen=True)
class Poisson:
    """Poisson law; samples are counts with mean ``rate``."""

    rate: float

    def __post_init__(self) -> None:
        if not self.rate > 0:
            raise ConfigurationError("Poisson rate must be strictly positive.")


@dataclass(frozen=True)
class Exponential:
    """Exponential law with mean ``1 / rate``."""

    rate: float

    def __post_init__(self) -> None:
        if not self.rate > 0:
            raise ConfigurationError("Exponential rate must be strictly positive.")


@dataclass(frozen=True)
class Erlang:
    """Erlang law: sum of ``shape`` exponentials of mean ``scale``."""

    shape: int
    scale: float

    def __post_init__(self) -> None:
        if int(self.shape) != self.shape or self.shape < 1:
            raise ConfigurationError("Erlang shape must be an integer >= 1.")
        if not self.scale > 0:
            raise ConfigurationError("Erlang scale must be strictly positive.")

    @property
    def mean(self) -> float:
        return self.shape * self.scale

    @property
    def variance(self) -> float:
        return self.shape * self.scale * self.scale


Parameter = Union[Poisson, Exponential, Erlang]


def make_rng(seed: Optional[int], *index: int) -> np.random.Generator:
    """
    Return an explicit random generator.

    With ``index`` values the stream is derived from ``(seed, *index)`` so
    every replication owns an independent stream regardless of which worker
    runs it.
    """
    if not index:
        return np.random.default_rng(seed)
    key = tuple(int(i) for i in index)
    return np.random.default_rng(np.random.SeedSequence(entropy=seed, spawn_key=key))


def generate(parameter: Parameter, n: int, rng: np.random.Generator) -> np.ndarray:
    """Draw ``n`` independent samples from the law described by ``parameter``."""
    if n < 0:
        raise ConfigurationError("Sample count must be non-negative.")

    if isinstance(parameter, Poisson):
        return rng.poisson(parameter.rate, size=n).astype(float)
    if isinstance(parameter, Exponential):
        return rng.exponential(1.0 / parameter.rate, size=n)
    if isinstance(parameter, Erlang):
        return rng.gamma(parameter.shape, parameter.scale, size=n)
    raise ConfigurationError(f"Unsupported parameter type: {type(parameter).__name__}")


def mean_of(parameter: Parameter) -> float:
    """Expected value of one sample."""
    if isinstance(parameter, Poisson):
        return parameter.rate
    if isinstance(parameter, Exponential):
        return 1.0 / parameter.rate
    if isinstance(parameter, Erlang):
        return parameter.mean
    raise ConfigurationError(f"Unsupported parameter type: {type(parameter).__name__}")


def variance_of(parameter: Parameter) -> float:
    """Variance of one sample."""
    if isinstance(parameter, Poisson):
        return parameter.rate
    if isinstance(parameter, Exponential):
        return 1.0 / (parameter.rate * parameter.rate)
    if isinstance(parameter, Erlang):
        return parameter.variance
    raise ConfigurationError(f"Unsupported parameter type: {type(parameter).__name__}")
