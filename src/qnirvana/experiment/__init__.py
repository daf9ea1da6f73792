"""Experimentation layer: route volatility runs, replications, CI analysis."""

from qnirvana.experiment.runner import multiple_replications, run_route_simulation
from qnirvana.experiment.analysis import (
    MetricInterval,
    compute_ci,
    summarise_replications,
)

__all__ = [
    "multiple_replications",
    "run_route_simulation",
    "MetricInterval",
    "compute_ci",
    "summarise_replications",
]
