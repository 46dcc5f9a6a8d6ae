"""Replicated simulation of one configuration and comparison with theory."""

from __future__ import annotations

import logging
import multiprocessing
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .engine import check_stability, simulate
from .errors import InsufficientSamples, QueueModelError
from .scenarios import QueueConfig
from .stats import RunningStats, accepts_null, test_statistic
from .theory import (
    theoretic_p_off_exp,
    theoretic_p_off_gen,
    theoretic_p_setup_exp,
    theoretic_p_setup_gen,
    theoretic_stay_avg_erlang,
    theoretic_stay_avg_exp,
    theoretic_stay_avg_gen,
)
from .variates import Parameter, make_rng, mean_of, variance_of

logger = logging.getLogger(__name__)

METRICS = ("sojourn", "p_off", "p_setup", "second_moment_delay")


@dataclass(frozen=True)
class TheoreticalValues:
    stay: float
    p_off: float
    p_setup: float


@dataclass(frozen=True)
class AggregatedRecord:
    """Statistics of one configuration after all of its replications."""

    family: str
    rho: float
    lam: float
    mu: Optional[float]
    k: Optional[int]
    beta: Optional[float]
    theta: float
    w_k: int
    w_beta: float
    avg_stay_time: float
    corrected_standard_deviation_avg_stay: float
    theoretical_avg_stay: float
    t_avg_stay: float
    h0_avg_stay: bool
    probability_p_off: float
    corrected_standard_deviation_p_off: float
    theoretical_p_off: float
    t_p_off: float
    h0_p_off: bool
    probability_p_setup: float
    corrected_standard_deviation_p_setup: float
    theoretical_p_setup: float
    t_p_setup: float
    h0_p_setup: bool
    avg_second_moment_delay: float
    n_simulations: int

    def as_dict(self) -> Dict[str, object]:
        return asdict(self)


def theoretical_values(config: QueueConfig) -> TheoreticalValues:
    """Ask the closed-form formulas for the expected metrics of ``config``."""
    setup = config.setup_param()
    if config.w_k == 1:
        p_off = theoretic_p_off_exp(config.rho, config.lam, config.theta)
        p_setup = theoretic_p_setup_exp(config.rho, config.lam, config.theta)
    else:
        p_off = theoretic_p_off_gen(config.rho, config.lam, mean_of(setup))
        p_setup = theoretic_p_setup_gen(config.rho, config.lam, mean_of(setup))

    if config.family == "erlang":
        stay = theoretic_stay_avg_erlang(
            config.lam, config.w_k, config.w_beta, config.rho, config.k, config.beta
        )
    elif config.w_k == 1:
        stay = theoretic_stay_avg_exp(config.rho, config.mu, config.theta)
    else:
        service = config.service_param()
        stay = theoretic_stay_avg_gen(
            lam=config.lam,
            rho=config.rho,
            e_b=mean_of(service),
            var_b=variance_of(service),
            e_t=mean_of(setup),
            var_t=variance_of(setup),
        )
    return TheoreticalValues(stay=stay, p_off=p_off, p_setup=p_setup)


ChunkTask = Tuple[Parameter, Parameter, Parameter, int, Optional[int], int, Sequence[int]]


def _run_chunk(task: ChunkTask) -> Dict[str, RunningStats]:
    """Run a slice of replications and fold their metrics."""
    arrival, service, setup, n_clients, seed, stream, indices = task
    folded = {name: RunningStats() for name in METRICS}
    for rep in indices:
        rng = make_rng(seed, stream, rep)
        run = simulate(n_clients, arrival, service, setup, rng)
        metrics = run.metrics()
        # The run is dropped here; only its metrics survive.
        folded["sojourn"].push(metrics.mean_sojourn)
        folded["p_off"].push(metrics.probability_off)
        folded["p_setup"].push(metrics.probability_setup)
        folded["second_moment_delay"].push(metrics.second_moment_delay)
    return folded


def _merge(partials: Iterable[Dict[str, RunningStats]]) -> Dict[str, RunningStats]:
    merged = {name: RunningStats() for name in METRICS}
    for partial in partials:
        for name in METRICS:
            merged[name] = merged[name].merge(partial[name])
    return merged


def _chunks(batch_size: int, n_chunks: int) -> List[List[int]]:
    return [list(c) for c in np.array_split(np.arange(batch_size), n_chunks) if len(c)]


def _compare(stats: RunningStats, theory: float) -> Tuple[float, float, float, bool]:
    mean = stats.sample_mean()
    std = stats.corrected_std()
    t = test_statistic(mean, theory, std, stats.count)
    return mean, std, t, accepts_null(t)


def run_batch(
    config: QueueConfig,
    batch_size: int,
    n_clients: int,
    seed: Optional[int] = None,
    processes: Optional[int] = None,
    stream: int = 0,
    pool=None,
) -> AggregatedRecord:
    """
    Run ``batch_size`` independent replications of ``config`` and aggregate them.

    Replication ``j`` draws from the stream derived from ``(seed, stream, j)``,
    so results do not depend on the number of worker processes. When ``pool``
    is given the chunks are mapped on it and it is left open for the caller.

    Raises:
        InsufficientSamples: if ``batch_size < 2``.
        ConfigurationError: if the configuration is unstable or malformed.
    """
    if batch_size < 2:
        raise InsufficientSamples("A batch needs at least two replications.")
    if n_clients < 1:
        raise InsufficientSamples("A replication needs at least one client.")
    check_stability(config.rho)
    # Laws are validated here so a malformed configuration fails before any chunk is scheduled.
    arrival = config.arrival_param()
    service = config.service_param()
    setup = config.setup_param()
    theory = theoretical_values(config)

    if processes is None:
        processes = multiprocessing.cpu_count()
    processes = max(1, min(processes, batch_size))

    logger.debug(
        "Scheduling %d replications of %s rho=%.4f on %d process(es)",
        batch_size,
        config.family,
        config.rho,
        processes,
    )
    tasks = [
        (arrival, service, setup, n_clients, seed, stream, idx)
        for idx in _chunks(batch_size, processes * 4)
    ]
    if pool is not None:
        partials = pool.map(_run_chunk, tasks)
    elif processes == 1:
        partials = [_run_chunk(task) for task in tasks]
    else:
        with multiprocessing.Pool(processes=processes) as pool:
            partials = pool.map(_run_chunk, tasks)
    folded = _merge(partials)

    stay, stay_std, t_stay, h0_stay = _compare(folded["sojourn"], theory.stay)
    p_off, p_off_std, t_off, h0_off = _compare(folded["p_off"], theory.p_off)
    p_setup, p_setup_std, t_setup, h0_setup = _compare(folded["p_setup"], theory.p_setup)

    return AggregatedRecord(
        family=config.family,
        rho=config.rho,
        lam=config.lam,
        mu=config.mu,
        k=config.k,
        beta=config.beta,
        theta=config.theta,
        w_k=config.w_k,
        w_beta=config.w_beta,
        avg_stay_time=stay,
        corrected_standard_deviation_avg_stay=stay_std,
        theoretical_avg_stay=theory.stay,
        t_avg_stay=t_stay,
        h0_avg_stay=h0_stay,
        probability_p_off=p_off,
        corrected_standard_deviation_p_off=p_off_std,
        theoretical_p_off=theory.p_off,
        t_p_off=t_off,
        h0_p_off=h0_off,
        probability_p_setup=p_setup,
        corrected_standard_deviation_p_setup=p_setup_std,
        theoretical_p_setup=theory.p_setup,
        t_p_setup=t_setup,
        h0_p_setup=h0_setup,
        avg_second_moment_delay=folded["second_moment_delay"].sample_mean(),
        n_simulations=folded["sojourn"].count,
    )


def sweep(
    configs: Iterable[QueueConfig],
    batch_size: int,
    n_clients: int,
    seed: Optional[int] = None,
    processes: Optional[int] = None,
    skip_failed: bool = False,
) -> List[AggregatedRecord]:
    """
    Aggregate every configuration in order, one after the other.

    With ``skip_failed`` a configuration whose batch fails is logged and left
    out; otherwise the error propagates and no further configuration runs.
    One worker pool serves the whole sweep.
    """
    if processes is None:
        processes = multiprocessing.cpu_count()
    processes = max(1, processes)
    pool = multiprocessing.Pool(processes=processes) if processes > 1 else None

    records: List[AggregatedRecord] = []
    try:
        for position, config in enumerate(configs):
            try:
                record = run_batch(
                    config,
                    batch_size,
                    n_clients,
                    seed=seed,
                    processes=processes,
                    stream=position,
                    pool=pool,
                )
            except QueueModelError as exc:
                if not skip_failed:
                    raise
                logger.warning("Skipping %s rho=%.4f: %s", config.family, config.rho, exc)
                continue
            logger.info(
                "%s rho=%.4f E[S]=%.4f (theory %.4f, t=%.3f, H0 %s)",
                record.family,
                record.rho,
                record.avg_stay_time,
                record.theoretical_avg_stay,
                record.t_avg_stay,
                "kept" if record.h0_avg_stay else "rejected",
            )
            records.append(record)
    finally:
        if pool is not None:
            pool.close()
            pool.join()
    return records
