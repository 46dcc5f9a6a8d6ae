"""Sequential event engine of the single-server queue with setup times."""

from __future__ import annotations

from typing import Callable, Sequence

import numpy as np

from .errors import UnstableConfiguration
from .timeline import Run
from .variates import Erlang, Exponential, Parameter, generate


def check_stability(rho: float) -> None:
    """Reject configurations without a finite steady state."""
    if rho >= 1.0:
        raise UnstableConfiguration(f"Unstable system: rho={rho:.6g} must be < 1.")


def build_run(
    arrivals: Sequence[float],
    services: Sequence[float],
    draw_setup: Callable[[], float],
) -> Run:
    """
    Walk the clients in arrival order and derive delays, setups and naps.

    A client arriving strictly after the previous departure finds the server
    off: it pays a fresh setup drawn from ``draw_setup`` and the gap becomes
    nap time. Otherwise it queues until the previous departure.
    """
    n = len(arrivals)
    delays = np.zeros(n)
    warmups = np.zeros(n)
    nap_times = np.zeros(n)

    previous_departure = 0.0
    for i, (arrival, service) in enumerate(zip(arrivals, services)):
        if arrival > previous_departure:
            nap_times[i] = arrival - previous_departure
            warmups[i] = draw_setup()
        else:
            delays[i] = previous_departure - arrival
        previous_departure = arrival + delays[i] + warmups[i] + service

    return Run(
        arrivals=np.asarray(arrivals, dtype=float),
        delays=delays,
        warmups=warmups,
        services=np.asarray(services, dtype=float),
        nap_times=nap_times,
    )


def simulate(
    n: int,
    arrival: Parameter,
    service: Parameter,
    setup: Parameter,
    rng: np.random.Generator,
) -> Run:
    """
    Simulate ``n`` clients through the node.

    Inter-arrival gaps and service times do not depend on the state of the
    server, so both are drawn up front; setups are drawn one per idle period.
    The caller is responsible for checking stability beforehand.
    """
    arrivals = np.cumsum(generate(arrival, n, rng))
    services = generate(service, n, rng)
    return build_run(arrivals, services, lambda: float(generate(setup, 1, rng)[0]))


def exponential_service_run(
    n: int, lam: float, mu: float, theta: float, rng: np.random.Generator
) -> Run:
    """Poisson arrivals (rate lam), exponential service (mu), exponential setup (theta)."""
    arrival, service, setup = Exponential(lam), Exponential(mu), Exponential(theta)
    check_stability(lam / mu)
    return simulate(n, arrival, service, setup, rng)


def erlang_service_run(
    n: int, lam: float, theta: float, k: int, beta: float, rng: np.random.Generator
) -> Run:
    """Poisson arrivals (rate lam), Erlang(k, beta) service, exponential setup (theta)."""
    arrival, service, setup = Exponential(lam), Erlang(k, beta), Exponential(theta)
    check_stability(lam * k * beta)
    return simulate(n, arrival, service, setup, rng)
