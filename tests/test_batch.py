"""Integration-style checks for the replicated batches."""

import logging
import math

import pytest

from warmup_queue import batch
from warmup_queue.batch import run_batch, sweep, theoretical_values
from warmup_queue.errors import ConfigurationError, DivisionUndefined, InsufficientSamples
from warmup_queue.scenarios import QueueConfig, exp_sweep
from warmup_queue.stats import HYPOTHESIS_INTERVAL
from warmup_queue.theory import theoretic_stay_avg_exp, theoretic_stay_avg_gen


def test_batch_needs_two_replications():
    config = QueueConfig(family="exp", rho=0.5)
    with pytest.raises(InsufficientSamples):
        run_batch(config, batch_size=1, n_clients=100)


def test_record_is_self_consistent():
    config = QueueConfig(family="exp", rho=0.4, lam=1.0, theta=0.4)
    record = run_batch(config, batch_size=12, n_clients=300, seed=3, processes=1)

    assert record.n_simulations == 12
    assert record.family == "exp"
    assert math.isclose(record.mu, 2.5)
    assert record.theoretical_avg_stay == pytest.approx(theoretic_stay_avg_exp(0.4, 2.5, 0.4))
    expected_t = (record.avg_stay_time - record.theoretical_avg_stay) / (
        record.corrected_standard_deviation_avg_stay / math.sqrt(11)
    )
    assert math.isclose(record.t_avg_stay, expected_t)
    assert record.h0_avg_stay == (abs(record.t_avg_stay) <= HYPOTHESIS_INTERVAL)
    assert record.h0_p_off == (abs(record.t_p_off) <= HYPOTHESIS_INTERVAL)
    assert 0 < record.probability_p_off < 1
    assert 0 < record.probability_p_setup < 1
    assert record.avg_second_moment_delay >= 0


def test_results_do_not_depend_on_worker_count():
    config = QueueConfig(family="exp", rho=0.6)
    serial = run_batch(config, batch_size=8, n_clients=200, seed=5, processes=1)
    parallel = run_batch(config, batch_size=8, n_clients=200, seed=5, processes=2)
    assert parallel.n_simulations == serial.n_simulations
    assert parallel.avg_stay_time == pytest.approx(serial.avg_stay_time, rel=1e-12)
    assert parallel.corrected_standard_deviation_p_off == pytest.approx(
        serial.corrected_standard_deviation_p_off, rel=1e-9
    )


def test_simulated_sojourn_agrees_with_mm1_theory():
    # Setup rate so large that the queue behaves as a plain M/M/1.
    config = QueueConfig(family="exp", rho=0.5, lam=1.0, theta=1e6)
    assert theoretical_values(config).stay == pytest.approx(1.0, rel=1e-5)

    accepted = 0
    n_batches = 20
    for seed in range(n_batches):
        record = run_batch(config, batch_size=30, n_clients=1_500, seed=seed, processes=1)
        accepted += record.h0_avg_stay
    assert accepted >= 17


def test_erlang_batch_close_to_theory():
    config = QueueConfig(family="erlang", rho=0.5, lam=1.0, theta=0.4, k=10)
    record = run_batch(config, batch_size=40, n_clients=1_500, seed=17, processes=1)
    assert record.theoretical_avg_stay == pytest.approx(3.275)
    assert record.avg_stay_time == pytest.approx(record.theoretical_avg_stay, rel=0.05)
    assert record.probability_p_off == pytest.approx(record.theoretical_p_off, rel=0.1)


def test_theoretical_values_for_erlang_setup():
    config = QueueConfig(family="exp", rho=0.5, lam=1.0, theta=0.4, w_k=3)
    values = theoretical_values(config)
    expected = theoretic_stay_avg_gen(
        lam=1.0, rho=0.5, e_b=0.5, var_b=0.25, e_t=2.5, var_t=3 * (2.5 / 3) ** 2
    )
    assert values.stay == pytest.approx(expected)
    assert values.p_off + values.p_setup == pytest.approx(0.5)


def test_sweep_keeps_configuration_order(caplog):
    caplog.set_level(logging.INFO, logger="warmup_queue.batch")
    configs = exp_sweep([0.7, 0.3, 0.5])
    records = sweep(configs, batch_size=3, n_clients=100, seed=1, processes=1)
    assert [r.rho for r in records] == [0.3, 0.5, 0.7]
    assert "rho=0.5000" in caplog.text


def test_sweep_skips_failed_configuration_only_when_asked(monkeypatch, caplog):
    original = batch.run_batch

    def flaky(config, *args, **kwargs):
        if config.rho == 0.5:
            raise DivisionUndefined("boom")
        return original(config, *args, **kwargs)

    monkeypatch.setattr(batch, "run_batch", flaky)
    configs = exp_sweep([0.3, 0.5, 0.7])

    with pytest.raises(DivisionUndefined):
        sweep(configs, batch_size=3, n_clients=100, seed=1, processes=1)

    caplog.set_level(logging.WARNING, logger="warmup_queue.batch")
    records = sweep(configs, batch_size=3, n_clients=100, seed=1, processes=1, skip_failed=True)
    assert [r.rho for r in records] == [0.3, 0.7]
    assert "Skipping exp rho=0.5000" in caplog.text


def test_malformed_erlang_shape_fails_before_scheduling(monkeypatch):
    scheduled = []
    original = batch._run_chunk

    def spy(task):
        scheduled.append(task)
        return original(task)

    monkeypatch.setattr(batch, "_run_chunk", spy)
    config = QueueConfig(family="erlang", rho=0.5, k=2)
    # Frozen dataclass; bypass __post_init__ to reach the batch-level check.
    object.__setattr__(config, "k", 2.5)

    with pytest.raises(ConfigurationError):
        run_batch(config, batch_size=4, n_clients=50, seed=1, processes=1)
    assert scheduled == []


class _CountingPool:
    created = 0

    def __init__(self, processes=None):
        type(self).created += 1
        self.closed = False

    def map(self, fn, tasks):
        return [fn(task) for task in tasks]

    def close(self):
        self.closed = True

    def join(self):
        pass

    def terminate(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.terminate()


def test_sweep_reuses_one_worker_pool(monkeypatch):
    monkeypatch.setattr(_CountingPool, "created", 0)
    monkeypatch.setattr(batch.multiprocessing, "Pool", _CountingPool)
    configs = exp_sweep([0.3, 0.5, 0.7])

    records = sweep(configs, batch_size=4, n_clients=100, seed=1, processes=2)

    assert len(records) == 3
    assert _CountingPool.created == 1


def test_pooled_batch_matches_serial_batch():
    config = QueueConfig(family="exp", rho=0.6)
    serial = run_batch(config, batch_size=6, n_clients=150, seed=9, processes=1)
    pooled = run_batch(
        config, batch_size=6, n_clients=150, seed=9, processes=2, pool=_CountingPool()
    )
    assert pooled.avg_stay_time == pytest.approx(serial.avg_stay_time, rel=1e-12)
