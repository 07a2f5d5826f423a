from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from geodoctor.analysis import graph
from geodoctor.schema import DegreesDTO, DoctorReportDTO, ReportMetaDTO

TOOL_VERSION = "doctor/1"


@dataclass(frozen=True)
class CrossClusterCount:
    cross_edges: int
    total_edges: int

    @property
    def ratio(self) -> float:
        if self.total_edges == 0:
            return 0.0
        return self.cross_edges / self.total_edges


def cross_cluster_ratio(
    adj: Mapping[str, Sequence[str]],
    node_to_cluster: Mapping[str, str],
) -> CrossClusterCount:
    """Count undirected edges whose endpoints sit in different known clusters.

    The edge set is ``graph.undirected_edges``, the same one behind the report's
    ``edges``, so one-sided listings and dangling neighbors never count. An edge
    with an unclustered endpoint counts toward the total and never toward the
    cross count.
    """
    cross = 0
    total = 0
    for u, v in graph.undirected_edges(adj):
        total += 1
        left = node_to_cluster.get(u)
        right = node_to_cluster.get(v)
        if left and right and left != right:
            cross += 1
    return CrossClusterCount(cross_edges=cross, total_edges=total)


def degree_histogram(adj: Mapping[str, Sequence[str]]) -> dict[str, int]:
    """Stringified degree -> node count, in numeric order, always with ``"0"``."""
    counts: dict[int, int] = {0: 0}
    for neighbors in adj.values():
        degree = len(neighbors)
        counts[degree] = counts.get(degree, 0) + 1
    return {str(degree): counts[degree] for degree in sorted(counts)}


def mean_degree(adj: Mapping[str, Sequence[str]]) -> float:
    if not adj:
        return 0.0
    return sum(len(neighbors) for neighbors in adj.values()) / len(adj)


def largest_component_ratio(components: Sequence[Sequence[str]], node_count: int) -> float:
    if node_count == 0 or not components:
        return 0.0
    return max(len(component) for component in components) / node_count


def compute_metrics(
    adj: Mapping[str, Sequence[str]],
    node_to_cluster: Mapping[str, str] | None = None,
    *,
    self_loops: int = 0,
    cluster_count: int | None = None,
    promoted_share: float = 0.0,
    meta: ReportMetaDTO | None = None,
) -> DoctorReportDTO:
    """Build the doctor report for an already normalized graph.

    ``self_loops`` is the number of self references normalization removed;
    the normalized graph itself can no longer show them. ``cluster_count`` is
    the number of cluster definitions loaded; without it the distinct clusters
    named in ``node_to_cluster`` are counted.
    """
    cluster_map = node_to_cluster or {}
    node_count = len(adj)
    components = graph.connected_components(adj)
    stats = graph.degree_stats(adj)
    histogram = degree_histogram(adj)
    cross = cross_cluster_ratio(adj, cluster_map)
    return DoctorReportDTO(
        nodes=node_count,
        edges=graph.undirected_edge_count(adj),
        directed_edges=sum(len(neighbors) for neighbors in adj.values()),
        clusters=len(set(cluster_map.values())) if cluster_count is None else cluster_count,
        components=len(components),
        largest_component_ratio=largest_component_ratio(components, node_count),
        degrees=DegreesDTO(
            min=stats.min,
            median=stats.median,
            max=stats.max,
            mean=mean_degree(adj),
            p90=stats.p90,
            histogram=histogram,
        ),
        cross_cluster_ratio=cross.ratio,
        cross_cluster_edges=cross.cross_edges,
        asym_pairs=graph.asymmetric_pairs(adj),
        self_loops=self_loops,
        isolates=histogram["0"],
        unclustered=sum(1 for node in adj if node not in cluster_map),
        promoted_share=promoted_share,
        meta=meta,
    )
