"""Timeline of one simulation run and the metrics derived from it."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, Optional

import numpy as np

from .errors import DivisionUndefined
from .stats import running_mean


@dataclass(frozen=True)
class RunMetrics:
    """Snapshot of the statistics of one run, detached from its sequences."""

    mean_service: float
    mean_sojourn: float
    probability_on: float
    probability_setup: float
    probability_off: float
    second_moment_delay: float
    n_clients: int

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(eq=False)
class Run:
    """
    Per-client sequences of one run of the node.

    Attributes:
        arrivals: absolute arrival instants.
        delays: time spent behind a busy server (0 when the server was off).
        warmups: time spent waiting for the server to finish its setup
            (0 when the client queued behind another one).
        services: service durations.
        nap_times: server idle time that ended with this client's arrival.
        departures: derived, ``arrival + delay + warmup + service``.
        total_time: last departure, ``None`` for an empty run.
    """

    arrivals: np.ndarray
    delays: np.ndarray
    warmups: np.ndarray
    services: np.ndarray
    nap_times: np.ndarray
    departures: np.ndarray = field(init=False)
    total_time: Optional[float] = field(init=False)

    def __post_init__(self) -> None:
        self.arrivals = np.asarray(self.arrivals, dtype=float)
        self.delays = np.asarray(self.delays, dtype=float)
        self.warmups = np.asarray(self.warmups, dtype=float)
        self.services = np.asarray(self.services, dtype=float)
        self.nap_times = np.asarray(self.nap_times, dtype=float)

        n = len(self.arrivals)
        for name in ("delays", "warmups", "services", "nap_times"):
            if len(getattr(self, name)) != n:
                raise ValueError(f"Sequence '{name}' must have the same length as arrivals.")

        self.departures = self.arrivals + self.delays + self.warmups + self.services
        self.total_time = float(self.departures[-1]) if n else None

    def __len__(self) -> int:
        return len(self.arrivals)

    def _require_total_time(self) -> float:
        if self.total_time is None:
            raise DivisionUndefined("Empty run: total time is undefined.")
        if self.total_time == 0:
            raise DivisionUndefined("Total time is zero.")
        return self.total_time

    def mean_service(self) -> float:
        return running_mean(self.services)

    def mean_sojourn(self) -> float:
        """Average time between arrival and departure (delay or setup, plus service)."""
        return running_mean(self.departures - self.arrivals)

    def probability_on(self) -> float:
        """Share of the timeline the server spends serving."""
        return float(self.services.sum()) / self._require_total_time()

    def probability_setup(self) -> float:
        """Share of the timeline the server spends warming up."""
        return float(self.warmups.sum()) / self._require_total_time()

    def probability_off(self) -> float:
        """Share of the timeline the server spends switched off."""
        return float(self.nap_times.sum()) / self._require_total_time()

    def second_moment_delay(self) -> float:
        """E[W²] over the queueing delays."""
        return running_mean(self.delays * self.delays)

    def metrics(self) -> RunMetrics:
        self._require_total_time()
        return RunMetrics(
            mean_service=self.mean_service(),
            mean_sojourn=self.mean_sojourn(),
            probability_on=self.probability_on(),
            probability_setup=self.probability_setup(),
            probability_off=self.probability_off(),
            second_moment_delay=self.second_moment_delay(),
            n_clients=len(self),
        )
