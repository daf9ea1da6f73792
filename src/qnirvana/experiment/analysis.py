"""Confidence intervals and replication summaries.

Route metrics are NaN for replications in which the destination was never
reachable. Those runs carry no cost, so they are left out of the interval
and reported separately as ``n_unreachable``.
"""

from dataclasses import asdict, dataclass, fields
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd
from scipy import stats


@dataclass(frozen=True)
class MetricInterval:
    """Student-t interval for one metric across replications.

    Attributes:
        mean: Mean of the reachable replications (NaN if there are none).
        std: Sample standard deviation.
        se: Standard error of the mean.
        ci_lower: Lower bound of the interval.
        ci_upper: Upper bound of the interval.
        half_width: Half the interval width.
        n: Replications that contributed a value.
        n_unreachable: Replications dropped because their value was NaN.
        confidence: Confidence level of the interval.
    """
    mean: float
    std: float
    se: float
    ci_lower: float
    ci_upper: float
    half_width: float
    n: int
    n_unreachable: int
    confidence: float

    @property
    def all_unreachable(self) -> bool:
        return self.n == 0 and self.n_unreachable > 0


def compute_ci(values: Sequence[float], confidence: float = 0.95) -> MetricInterval:
    """Confidence interval over the reachable replications of a metric.

    With fewer than two values there is no spread to estimate: the single
    value (or NaN when there is none) is returned with zero width.
    """
    if not 0 < confidence < 1:
        raise ValueError(f"confidence must be in (0, 1), got {confidence}")

    arr = np.asarray(values, dtype=float)
    reachable = arr[~np.isnan(arr)]
    n = len(reachable)
    n_unreachable = len(arr) - n

    if n < 2:
        mean = float(reachable[0]) if n == 1 else float("nan")
        return MetricInterval(
            mean=mean, std=0.0, se=0.0, ci_lower=mean, ci_upper=mean,
            half_width=0.0, n=n, n_unreachable=n_unreachable, confidence=confidence,
        )

    mean = float(reachable.mean())
    se = float(stats.sem(reachable))
    half_width = float(stats.t.ppf((1 + confidence) / 2, df=n - 1) * se)
    return MetricInterval(
        mean=mean,
        std=float(reachable.std(ddof=1)),
        se=se,
        ci_lower=mean - half_width,
        ci_upper=mean + half_width,
        half_width=half_width,
        n=n,
        n_unreachable=n_unreachable,
        confidence=confidence,
    )


def summarise_replications(
    results: Dict[str, List[float]],
    confidence: float = 0.95,
) -> pd.DataFrame:
    """One row per metric with its mean and confidence interval."""
    rows = [
        {"metric": metric, **asdict(compute_ci(values, confidence))}
        for metric, values in results.items()
    ]
    columns = ["metric"] + [f.name for f in fields(MetricInterval)]
    return pd.DataFrame(rows, columns=columns)
