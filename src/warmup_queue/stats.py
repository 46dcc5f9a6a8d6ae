"""Estimators and the hypothesis test used to compare simulation and theory."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from .errors import DivisionUndefined, InsufficientSamples

# Two-sided 95% threshold of the normal approximation.
HYPOTHESIS_INTERVAL = 1.96


def running_mean(values: Iterable[float]) -> float:
    """
    Mean of a finite sequence computed as an online fold.

    Each step updates ``m_i = (x_i + m_{i-1} * (i - 1)) / i`` so the partial
    result stays on the scale of the data instead of growing as a sum.

    Raises:
        DivisionUndefined: when ``values`` is empty.
    """
    mean = 0.0
    count = 0
    for count, value in enumerate(values, start=1):
        mean = (float(value) + mean * (count - 1)) / count
    if count == 0:
        raise DivisionUndefined("Mean of an empty sequence is undefined.")
    return mean


def corrected_standard_deviation(avg: float, values: Sequence[float]) -> float:
    """Bessel-corrected standard deviation of ``values`` around ``avg``."""
    m = len(values)
    if m < 2:
        raise InsufficientSamples("At least two samples are required for a corrected deviation.")
    return math.sqrt(sum((float(v) - avg) ** 2 for v in values) / (m - 1))


def test_statistic(avg: float, theoretical_avg: float, standard_deviation: float, n: int) -> float:
    """
    Studentized distance between a simulated mean and its theoretical value.

    The standard error uses ``sqrt(n - 1)``; keep it that way so published
    figures can be reproduced.
    """
    if n < 2:
        raise InsufficientSamples("At least two samples are required for the test statistic.")
    if standard_deviation == 0:
        raise DivisionUndefined("Standard deviation is zero; the test statistic is undefined.")
    return (avg - theoretical_avg) / (standard_deviation / math.sqrt(n - 1))


def is_inside_interval(value: float, threshold: float) -> bool:
    return -threshold <= value <= threshold


def accepts_null(statistic: float, threshold: float = HYPOTHESIS_INTERVAL) -> bool:
    """H0 (simulation agrees with theory) is kept iff ``|statistic| <= threshold``."""
    return is_inside_interval(statistic, threshold)


@dataclass
class RunningStats:
    """
    Online mean and sum of squared deviations (Welford).

    ``merge`` combines two partial accumulators (Chan et al.), so partial
    results from several workers can be reduced in any order.
    """

    count: int = 0
    mean: float = 0.0
    m2: float = 0.0

    def push(self, value: float) -> None:
        self.count += 1
        delta = float(value) - self.mean
        self.mean += delta / self.count
        self.m2 += delta * (float(value) - self.mean)

    def extend(self, values: Iterable[float]) -> "RunningStats":
        for value in values:
            self.push(value)
        return self

    def merge(self, other: "RunningStats") -> "RunningStats":
        """Return a new accumulator holding the samples of both operands."""
        if other.count == 0:
            return RunningStats(self.count, self.mean, self.m2)
        if self.count == 0:
            return RunningStats(other.count, other.mean, other.m2)
        count = self.count + other.count
        delta = other.mean - self.mean
        mean = self.mean + delta * other.count / count
        m2 = self.m2 + other.m2 + delta * delta * self.count * other.count / count
        return RunningStats(count, mean, m2)

    def sample_mean(self) -> float:
        if self.count == 0:
            raise DivisionUndefined("Mean of an empty accumulator is undefined.")
        return self.mean

    def corrected_std(self) -> float:
        if self.count < 2:
            raise InsufficientSamples("At least two samples are required for a corrected deviation.")
        return math.sqrt(max(self.m2, 0.0) / (self.count - 1))
