"""Event-driven (SimPy) rendition of the queue, used to cross-check the engine."""

from __future__ import annotations

from typing import Iterable, List, Sequence

import simpy

from .errors import ConfigurationError
from .timeline import Run


class SetupQueueSystem:
    """SimPy processes for the arrival stream and the switching server."""

    def __init__(
        self,
        env: simpy.Environment,
        arrivals: Sequence[float],
        services: Sequence[float],
        setups: Iterable[float],
    ):
        self.env = env
        self.arrivals = [float(a) for a in arrivals]
        self.services = [float(s) for s in services]
        self._setups = iter(setups)
        self.queue = simpy.Store(env)
        n = len(self.arrivals)
        self.delays: List[float] = [0.0] * n
        self.warmups: List[float] = [0.0] * n
        self.nap_times: List[float] = [0.0] * n

    def arrival_process(self):
        for index, arrival in enumerate(self.arrivals):
            yield self.env.timeout(max(arrival - self.env.now, 0.0))
            self.queue.put(index)

    def server_process(self):
        for _ in range(len(self.arrivals)):
            if self.queue.items:
                index = yield self.queue.get()
                self.delays[index] = max(self.env.now - self.arrivals[index], 0.0)
            else:
                off_since = self.env.now
                index = yield self.queue.get()
                nap = self.env.now - off_since
                # An arrival at the very instant of the last departure is queued, not a new episode.
                if nap > 0:
                    self.nap_times[index] = nap
                    warmup = next(self._setups, None)
                    if warmup is None:
                        raise ConfigurationError(
                            "Too few setup durations supplied for the idle periods."
                        )
                    self.warmups[index] = warmup
                    yield self.env.timeout(warmup)
            yield self.env.timeout(self.services[index])


def simulate_des(
    arrivals: Sequence[float],
    services: Sequence[float],
    setups: Iterable[float],
) -> Run:
    """
    Replay the given samples through SimPy and return the resulting Run.

    ``setups`` is consumed one value per idle-to-busy transition, in order.
    """
    if len(arrivals) != len(services):
        raise ValueError("arrivals and services must have the same length.")
    env = simpy.Environment()
    system = SetupQueueSystem(env, arrivals, services, setups)
    env.process(system.arrival_process())
    env.process(system.server_process())
    env.run()
    return Run(
        arrivals=system.arrivals,
        delays=system.delays,
        warmups=system.warmups,
        services=system.services,
        nap_times=system.nap_times,
    )
