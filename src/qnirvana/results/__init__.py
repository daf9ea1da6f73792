"""Results layer: traffic tick and route observation logging."""

from qnirvana.results.collector import (
    RouteObservation,
    TrafficResultsCollector,
    TrafficTickRecord,
)

__all__ = [
    "RouteObservation",
    "TrafficResultsCollector",
    "TrafficTickRecord",
]
