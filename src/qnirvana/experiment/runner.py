"""Simulated-time route volatility runs."""

from typing import Any, Callable, Dict, Generator, List, Optional

import numpy as np
import simpy

from qnirvana.core.config import CoreConfig
from qnirvana.core.networks import NetworkConfig
from qnirvana.model.graph import RoutingGraphStore
from qnirvana.model.routing import shortest_path
from qnirvana.model.traffic import TrafficMutator
from qnirvana.results.collector import TrafficResultsCollector


DEFAULT_METRICS = [
    "mean_cost",
    "p95_cost",
    "min_cost",
    "max_cost",
    "route_changes",
    "unreachable_count",
]


def route_observer(
    env: simpy.Environment,
    store: RoutingGraphStore,
    start: str,
    end: str,
    interval: float,
    collector: TrafficResultsCollector,
) -> Generator[simpy.Event, None, None]:
    """Recompute the route every ``interval``, just after each traffic tick.

    Yields:
        SimPy timeout events.
    """
    # Baseline before any traffic
    collector.record_route(env.now, shortest_path(store.get_snapshot(), start, end))
    # Offset so each observation sees the tick scheduled at the same instant
    yield env.timeout(interval)
    while True:
        yield env.timeout(0)
        collector.record_route(env.now, shortest_path(store.get_snapshot(), start, end))
        yield env.timeout(interval)


def run_route_simulation(
    config: CoreConfig,
    network: NetworkConfig,
    start: str,
    end: str,
    n_ticks: int = 30,
) -> Dict[str, Any]:
    """Execute a single route volatility run.

    The traffic mutator ticks ``n_ticks`` times in simulated time and the
    route between ``start`` and ``end`` is recomputed after every tick.

    Args:
        config: Core configuration (bounds, perturbation, seed).
        network: Network preset to route over.
        start: Source node id.
        end: Destination node id.
        n_ticks: Number of traffic ticks to simulate.

    Returns:
        Dictionary containing:
        - mean_cost, p95_cost, min_cost, max_cost: route cost statistics
          over reachable observations (NaN if none)
        - route_changes: times the chosen path changed
        - unreachable_count: observations with no route
        - collector: the TrafficResultsCollector with raw records
    """
    if n_ticks < 0:
        raise ValueError(f"n_ticks must be >= 0, got {n_ticks}")

    env = simpy.Environment()
    store = RoutingGraphStore.from_network(network, config.weight_min, config.weight_max)
    collector = TrafficResultsCollector()
    mutator = TrafficMutator.from_config(store, config, collector=collector)

    mutator.start(env)
    env.process(route_observer(env, store, start, end, config.tick_interval, collector))

    # Run a little past the last tick so its observation lands
    env.run(until=n_ticks * config.tick_interval + config.tick_interval / 2)
    mutator.stop("run complete")

    costs = np.array(collector.route_costs, dtype=float)
    reachable = costs[~np.isnan(costs)]
    results: Dict[str, Any] = {
        "n_ticks": mutator.tick_count,
        "route_changes": collector.route_changes,
        "unreachable_count": int(np.isnan(costs).sum()),
        "collector": collector,
    }
    if reachable.size:
        results["mean_cost"] = float(np.mean(reachable))
        results["p95_cost"] = float(np.percentile(reachable, 95))
        results["min_cost"] = float(np.min(reachable))
        results["max_cost"] = float(np.max(reachable))
    else:
        for name in ("mean_cost", "p95_cost", "min_cost", "max_cost"):
            results[name] = float("nan")
    return results


def multiple_replications(
    config: CoreConfig,
    network: NetworkConfig,
    start: str,
    end: str,
    n_reps: int = 30,
    n_ticks: int = 30,
    metric_names: Optional[List[str]] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> Dict[str, List[float]]:
    """Run multiple replications and collect specified metrics.

    Each replication uses a different random seed (base_seed + rep_number)
    to ensure independent samples.

    Args:
        config: Base configuration.
        network: Network preset to route over.
        start: Source node id.
        end: Destination node id.
        n_reps: Number of replications to run.
        n_ticks: Traffic ticks per replication.
        metric_names: Metrics to collect. Defaults to DEFAULT_METRICS.
        progress_callback: Optional callback(current_rep, total_reps).

    Returns:
        Dictionary mapping metric names to lists of values across replications.
    """
    if metric_names is None:
        metric_names = DEFAULT_METRICS

    results: Dict[str, List[float]] = {name: [] for name in metric_names}

    for rep in range(n_reps):
        rep_config = config.clone_with_seed(config.random_seed + rep)
        run_results = run_route_simulation(rep_config, network, start, end, n_ticks)

        for name in metric_names:
            if name in run_results:
                results[name].append(run_results[name])

        if progress_callback is not None:
            progress_callback(rep + 1, n_reps)

    return results
