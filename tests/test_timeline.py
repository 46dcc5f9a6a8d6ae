"""Unit tests for the metrics derived from one run."""

import math

import pytest

from warmup_queue.engine import build_run, erlang_service_run, exponential_service_run
from warmup_queue.errors import DivisionUndefined
from warmup_queue.timeline import Run
from warmup_queue.variates import make_rng


def _small_run():
    # server off for 1.0, setup 0.5, two services of 3.0 and 1.0
    return build_run([1.0, 2.0], [3.0, 1.0], lambda: 0.5)


def test_hand_computed_metrics():
    run = _small_run()
    assert run.total_time == 5.5
    assert math.isclose(run.mean_service(), 2.0)
    assert math.isclose(run.mean_sojourn(), 3.5)
    assert math.isclose(run.probability_on(), 4.0 / 5.5)
    assert math.isclose(run.probability_setup(), 0.5 / 5.5)
    assert math.isclose(run.probability_off(), 1.0 / 5.5)
    assert math.isclose(run.second_moment_delay(), 2.5 * 2.5 / 2)


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_probabilities_partition_the_timeline(seed):
    runs = [
        exponential_service_run(1_000, 1.0, 1.25, 0.4, make_rng(seed)),
        erlang_service_run(1_000, 1.0, 0.4, 10, 0.03, make_rng(seed)),
    ]
    for run in runs:
        total = run.probability_on() + run.probability_setup() + run.probability_off()
        assert abs(total - 1.0) < 1e-9


def test_metrics_snapshot_matches_methods():
    run = _small_run()
    snapshot = run.metrics()
    assert snapshot.n_clients == 2
    assert snapshot.mean_sojourn == run.mean_sojourn()
    assert snapshot.probability_off == run.probability_off()
    assert set(snapshot.as_dict()) == {
        "mean_service",
        "mean_sojourn",
        "probability_on",
        "probability_setup",
        "probability_off",
        "second_moment_delay",
        "n_clients",
    }


def test_zero_total_time_is_an_error():
    run = Run(arrivals=[0.0], delays=[0.0], warmups=[0.0], services=[0.0], nap_times=[0.0])
    with pytest.raises(DivisionUndefined):
        run.probability_on()


def test_empty_run_metrics_are_errors():
    run = Run(arrivals=[], delays=[], warmups=[], services=[], nap_times=[])
    for query in (run.mean_sojourn, run.mean_service, run.probability_off, run.second_moment_delay):
        with pytest.raises(DivisionUndefined):
            query()


def test_sequences_must_share_length():
    with pytest.raises(ValueError):
        Run(arrivals=[1.0, 2.0], delays=[0.0], warmups=[0.0, 0.0], services=[1.0, 1.0], nap_times=[0.0, 0.0])
