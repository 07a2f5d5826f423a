from __future__ import annotations

from typing import Mapping, Sequence


def neighbors_for(node: str, adj: Mapping[str, Sequence[str]], max_count: int) -> list[str]:
    """First ``max_count`` neighbors of ``node`` in normalized order.

    Pass the same normalized graph the metrics were computed from; the list is
    truncated, never re-sorted or sampled.
    """
    if max_count < 0:
        raise ValueError(f"max_count must be >= 0, got {max_count}")
    return list(adj.get(node.lower(), ())[:max_count])


def link_lists(adj: Mapping[str, Sequence[str]], max_count: int) -> dict[str, list[str]]:
    return {node: neighbors_for(node, adj, max_count) for node in sorted(adj)}
