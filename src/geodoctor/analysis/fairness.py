"""Pluggable "promoted share" fairness metrics.

The gate reserves a rule for the share of links that point at promoted suburbs,
but no promotion data feeds the engine yet. Metrics are registered by name and
resolved by exact lookup; ``placeholder`` always reports 0.0.
"""

from __future__ import annotations

from typing import Callable, Mapping, Sequence

from geodoctor.exceptions import ConfigurationInconsistency

PromotedShareMetric = Callable[[Mapping[str, Sequence[str]], Mapping[str, str]], float]

DEFAULT_METRIC = "placeholder"


def placeholder_promoted_share(
    adj: Mapping[str, Sequence[str]],
    node_to_cluster: Mapping[str, str],
) -> float:
    return 0.0


PROMOTED_SHARE_METRICS: dict[str, PromotedShareMetric] = {
    DEFAULT_METRIC: placeholder_promoted_share,
}


def resolve_promoted_share_metric(
    name: str,
    registry: Mapping[str, PromotedShareMetric] | None = None,
) -> PromotedShareMetric:
    metrics = PROMOTED_SHARE_METRICS if registry is None else registry
    metric = metrics.get(name)
    if metric is None:
        known = ", ".join(sorted(metrics))
        raise ConfigurationInconsistency(
            f"unknown promoted share metric {name!r} (known: {known})"
        )
    return metric
