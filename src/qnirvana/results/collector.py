"""Event logging for traffic ticks and route observations."""

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd

from qnirvana.model.routing import PathResult
from qnirvana.model.traffic import WeightChange


@dataclass
class TrafficTickRecord:
    """
    Summary of one traffic tick.

    Attributes:
        time: Time of the tick (simulated or seconds since start).
        tick: 1-based tick index.
        edges_changed: Edges whose stored weight moved.
        mean_weight: Mean edge weight after the tick.
        total_weight: Sum of edge weights after the tick.
    """
    time: float
    tick: int
    edges_changed: int
    mean_weight: float
    total_weight: int


@dataclass
class RouteObservation:
    """A route computed at a point in time."""
    time: float
    start: str
    end: str
    path: Tuple[str, ...]
    total_cost: float  # NaN when unreachable


@dataclass
class TrafficResultsCollector:
    """Collect traffic ticks and route observations during a run.

    Attributes:
        ticks: One record per traffic tick.
        routes: One record per route query.
    """

    ticks: List[TrafficTickRecord] = field(default_factory=list)
    routes: List[RouteObservation] = field(default_factory=list)

    def record_tick(self, time: float, tick: int, changes: Sequence[WeightChange]) -> None:
        """Record the outcome of a traffic tick.

        Args:
            time: Time of the tick.
            tick: Tick index.
            changes: Per-edge changes applied in the tick.
        """
        weights = [c.new_weight for c in changes]
        self.ticks.append(TrafficTickRecord(
            time=time,
            tick=tick,
            edges_changed=sum(1 for c in changes if c.new_weight != c.old_weight),
            mean_weight=float(np.mean(weights)) if weights else 0.0,
            total_weight=int(sum(weights)),
        ))

    def record_route(self, time: float, result: PathResult) -> None:
        """Record a route computed at ``time``."""
        self.routes.append(RouteObservation(
            time=time,
            start=result.start,
            end=result.end,
            path=result.path,
            total_cost=float(result.total_cost) if result.reachable else float("nan"),
        ))

    @property
    def route_costs(self) -> List[float]:
        return [r.total_cost for r in self.routes]

    @property
    def route_changes(self) -> int:
        """Number of times the chosen path differed from the previous one."""
        return sum(
            1 for prev, cur in zip(self.routes, self.routes[1:])
            if prev.path != cur.path
        )

    def ticks_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [vars(t) for t in self.ticks],
            columns=["time", "tick", "edges_changed", "mean_weight", "total_weight"],
        )

    def routes_dataframe(self) -> pd.DataFrame:
        df = pd.DataFrame(
            [vars(r) for r in self.routes],
            columns=["time", "start", "end", "path", "total_cost"],
        )
        df["path"] = df["path"].map(lambda p: "-".join(p))
        return df
