"""Closed-form steady-state metrics for an M/G/1 queue with setup times."""

from __future__ import annotations

from .errors import ConfigurationError, UnstableConfiguration


def _check_rho(rho: float) -> None:
    if not 0.0 < rho:
        raise ConfigurationError("Utilization rho must be strictly positive.")
    if rho >= 1.0:
        raise UnstableConfiguration("Unstable system: rho must be < 1.")


def _check_positive(**values: float) -> None:
    for name, value in values.items():
        if not value > 0:
            raise ConfigurationError(f"Parameter {name} must be strictly positive.")


def theoretic_stay_avg_exp(rho: float, mu: float, theta: float) -> float:
    """Mean sojourn time with exponential service (rate mu) and setup (rate theta)."""
    _check_rho(rho)
    _check_positive(mu=mu, theta=theta)
    return (1.0 / mu) / (1.0 - rho) + 1.0 / theta


def theoretic_p_off_gen(rho: float, lam: float, expectation_setup: float) -> float:
    """Probability of finding the server off, for any setup law with mean E[T]."""
    _check_rho(rho)
    _check_positive(lam=lam, expectation_setup=expectation_setup)
    return (1.0 - rho) * (1.0 / lam) / (1.0 / lam + expectation_setup)


def theoretic_p_setup_gen(rho: float, lam: float, expectation_setup: float) -> float:
    """Probability of finding the server in setup, for any setup law with mean E[T]."""
    _check_rho(rho)
    _check_positive(lam=lam, expectation_setup=expectation_setup)
    return (1.0 - rho) * expectation_setup / (1.0 / lam + expectation_setup)


def theoretic_p_off_exp(rho: float, lam: float, theta: float) -> float:
    _check_positive(theta=theta)
    return theoretic_p_off_gen(rho, lam, 1.0 / theta)


def theoretic_p_setup_exp(rho: float, lam: float, theta: float) -> float:
    _check_positive(theta=theta)
    return theoretic_p_setup_gen(rho, lam, 1.0 / theta)


def theoretic_stay_avg_gen(
    lam: float,
    rho: float,
    e_b: float,
    var_b: float,
    e_t: float,
    var_t: float,
) -> float:
    """
    Mean sojourn time of an M/G/1 queue with a setup before each busy period.

    The waiting time decomposes into the M/G/1 term ``rho * E[R_B] / (1 - rho)``
    plus the setup contribution: an arriving client finds the server off with
    weight ``(1/lam) / (1/lam + E[T])`` and waits a whole setup, or finds it in
    setup with weight ``E[T] / (1/lam + E[T])`` and waits a residual setup.
    Second moments are taken from the variance: ``E[X²] = Var X + E[X]²``.
    """
    _check_rho(rho)
    _check_positive(lam=lam, e_b=e_b, e_t=e_t)
    if var_b < 0 or var_t < 0:
        raise ConfigurationError("Variances must be non-negative.")

    e_bb = var_b + e_b * e_b
    e_tt = var_t + e_t * e_t
    e_rb = e_bb / 2.0 / e_b
    e_rt = e_tt / 2.0 / e_t

    cycle = 1.0 / lam + e_t
    e_w = rho * e_rb / (1.0 - rho) + (1.0 / lam) / cycle * e_t + e_t / cycle * e_rt
    return e_w + e_b


def theoretic_stay_avg_erlang(
    lam: float,
    w_k: int,
    w_beta: float,
    rho: float,
    k: int,
    beta: float,
) -> float:
    """
    Mean sojourn time with Erlang(k, beta) service and Erlang(w_k, w_beta) setup.

    An exponential setup of rate theta is ``w_k=1, w_beta=1/theta``.
    """
    _check_positive(w_k=w_k, w_beta=w_beta, k=k, beta=beta)
    return theoretic_stay_avg_gen(
        lam=lam,
        rho=rho,
        e_b=k * beta,
        var_b=k * beta * beta,
        e_t=w_k * w_beta,
        var_t=w_k * w_beta * w_beta,
    )
