"""Simulation utilities for the single-server queue with setup times."""

from .batch import AggregatedRecord, TheoreticalValues, run_batch, sweep, theoretical_values
from .des import simulate_des
from .engine import build_run, check_stability, erlang_service_run, exponential_service_run, simulate
from .errors import (
    ConfigurationError,
    DivisionUndefined,
    InsufficientSamples,
    QueueModelError,
    UnstableConfiguration,
)
from .scenarios import QueueConfig, erlang_sweep, exp_sweep, get_sweep, utilization_grid
from .stats import (
    HYPOTHESIS_INTERVAL,
    RunningStats,
    accepts_null,
    corrected_standard_deviation,
    is_inside_interval,
    running_mean,
    test_statistic,
)
from .timeline import Run, RunMetrics
from .variates import Erlang, Exponential, Parameter, Poisson, generate, make_rng

__all__ = [
    "AggregatedRecord",
    "ConfigurationError",
    "DivisionUndefined",
    "Erlang",
    "Exponential",
    "HYPOTHESIS_INTERVAL",
    "InsufficientSamples",
    "Parameter",
    "Poisson",
    "QueueConfig",
    "QueueModelError",
    "Run",
    "RunMetrics",
    "RunningStats",
    "TheoreticalValues",
    "UnstableConfiguration",
    "accepts_null",
    "build_run",
    "check_stability",
    "corrected_standard_deviation",
    "erlang_service_run",
    "erlang_sweep",
    "exp_sweep",
    "exponential_service_run",
    "generate",
    "get_sweep",
    "is_inside_interval",
    "make_rng",
    "run_batch",
    "running_mean",
    "simulate",
    "simulate_des",
    "sweep",
    "test_statistic",
    "theoretical_values",
    "utilization_grid",
]
