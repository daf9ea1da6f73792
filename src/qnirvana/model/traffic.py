"""
Traffic mutator for the routing graph.

Perturbs every edge weight by a bounded random integer on each tick to
simulate live road conditions. The mutator is the only writer of edge
weights; each edge is committed through ``RoutingGraphStore.update_weight``
on its own, so stopping mid-tick still leaves every edge symmetric and in
bounds.

Two schedulers drive the same ``tick()``:
- ``TrafficMutator.start(env)``: a SimPy process in simulated time
  (deterministic, used by tests and experiments).
- ``BackgroundTrafficTask``: a wall-clock daemon thread with a stop handle.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Generator, List, Optional

import numpy as np
import simpy

from qnirvana.core.config import CoreConfig
from qnirvana.model.graph import RoutingGraphStore

if TYPE_CHECKING:
    from qnirvana.results.collector import TrafficResultsCollector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeightChange:
    """Record of one edge update within a tick."""
    u: str
    v: str
    old_weight: int
    delta: int
    new_weight: int


class TrafficMutator:
    """
    Applies bounded random perturbations to every edge of a graph store.

    Attributes:
        store: Graph store being mutated.
        perturbation_bound: Deltas are drawn uniformly from [-bound, +bound].
        interval: Time between ticks when scheduled.
        tick_count: Number of ticks applied so far.
    """

    def __init__(
        self,
        store: RoutingGraphStore,
        perturbation_bound: int = 2,
        interval: float = 10.0,
        rng: Optional[np.random.Generator] = None,
        collector: Optional["TrafficResultsCollector"] = None,
    ):
        if perturbation_bound < 0:
            raise ValueError(f"perturbation_bound must be >= 0, got {perturbation_bound}")
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        self.store = store
        self.perturbation_bound = perturbation_bound
        self.interval = interval
        self.rng = rng if rng is not None else np.random.default_rng()
        self.collector = collector
        self.tick_count = 0
        self._tick_lock = threading.Lock()
        self._process: Optional[simpy.Process] = None

    @classmethod
    def from_config(
        cls,
        store: RoutingGraphStore,
        config: CoreConfig,
        collector: Optional["TrafficResultsCollector"] = None,
    ) -> "TrafficMutator":
        """Mutator using the config's bound, interval and traffic RNG stream."""
        return cls(
            store,
            perturbation_bound=config.perturbation_bound,
            interval=config.tick_interval,
            rng=config.rng_traffic,
            collector=collector,
        )

    def tick(self, now: float = 0.0) -> List[WeightChange]:
        """
        Perturb every edge once.

        Args:
            now: Time stamp passed to the collector.

        Returns:
            One WeightChange per edge, in sorted edge order.
        """
        bound = self.perturbation_bound
        changes: List[WeightChange] = []
        # Manual triggers and the scheduled loop must not interleave
        with self._tick_lock:
            for edge in self.store.get_snapshot().edges():
                delta = int(self.rng.integers(-bound, bound + 1))
                stored = self.store.update_weight(edge.u, edge.v, edge.weight + delta)
                changes.append(WeightChange(edge.u, edge.v, edge.weight, delta, stored))
            self.tick_count += 1
            tick_index = self.tick_count

        if self.collector is not None:
            self.collector.record_tick(now, tick_index, changes)
        logger.debug(
            f"{self.store.name}: traffic tick {tick_index} changed "
            f"{sum(1 for c in changes if c.new_weight != c.old_weight)}/{len(changes)} edges"
        )
        return changes

    def process(self, env: simpy.Environment) -> Generator[simpy.Event, None, None]:
        """SimPy process: tick every ``interval`` until interrupted.

        Yields:
            SimPy timeout events between ticks.
        """
        try:
            while True:
                yield env.timeout(self.interval)
                self.tick(now=env.now)
        except simpy.Interrupt as interrupt:
            logger.info(
                f"{self.store.name}: traffic mutator stopped at t={env.now} "
                f"({interrupt.cause})"
            )

    def start(self, env: simpy.Environment) -> simpy.Process:
        """Schedule the mutator in ``env`` and return the process handle."""
        if self.is_running:
            raise RuntimeError("Traffic mutator is already scheduled")
        self._process = env.process(self.process(env))
        return self._process

    def stop(self, reason: str = "stopped") -> None:
        """Cancel the scheduled SimPy process, if any."""
        if self.is_running:
            self._process.interrupt(reason)
        self._process = None

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.is_alive


class BackgroundTrafficTask:
    """
    Runs ``TrafficMutator.tick`` on a wall-clock period in a daemon thread.

    ``stop()`` sets an event the thread waits on and joins the thread. If
    the join times out while a tick is still running, the task keeps the
    thread and refuses to start again until it has exited, so there is
    never more than one writer.

    Ticks are stamped by ``clock``, which defaults to seconds since
    ``start()``. Pass a shared clock to put manual and scheduled ticks on
    the same time base.
    """

    def __init__(
        self,
        mutator: TrafficMutator,
        interval: Optional[float] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.mutator = mutator
        self.interval = interval if interval is not None else mutator.interval
        self.clock = clock
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            if self._stop_event.is_set():
                raise RuntimeError(
                    "Background traffic task is still stopping; call stop() again"
                )
            raise RuntimeError("Background traffic task is already running")
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name=f"traffic-{self.mutator.store.name}",
            daemon=True,
        )
        self._thread.start()
        logger.info(
            f"{self.mutator.store.name}: background traffic started "
            f"(every {self.interval}s)"
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is None:
            return
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning(
                f"{self.mutator.store.name}: background traffic still finishing "
                f"a tick after {timeout}s"
            )
            return
        self._thread = None
        logger.info(f"{self.mutator.store.name}: background traffic stopped")

    def _run(self) -> None:
        started = time.monotonic()

        def elapsed() -> float:
            return time.monotonic() - started

        clock = self.clock or elapsed
        while not self._stop_event.wait(self.interval):
            try:
                self.mutator.tick(now=clock())
            except Exception:
                # Fire-and-forget: a failed tick must not end the loop
                logger.exception(f"{self.mutator.store.name}: traffic tick failed")
