"""Property-based checks for the normalizer, edge counting and cross-cluster ratio."""

from __future__ import annotations

from hypothesis import assume, given, settings
from hypothesis import strategies as st

from geodoctor.analysis import graph, metrics
from geodoctor.runtime.stable_encode import stable_graph_hash

slugs = st.text(alphabet="abcdeABCDE", min_size=1, max_size=3)
raw_graphs = st.dictionaries(slugs, st.lists(slugs, max_size=6), max_size=12)


def _parity_clusters(nodes: list[str]) -> dict[str, str]:
    return {node: "a" if sum(map(ord, node)) % 2 == 0 else "b" for node in nodes}


@given(raw=raw_graphs)
@settings(max_examples=200, deadline=None)
def test_normalize_never_keeps_self_loops(raw: dict[str, list[str]]) -> None:
    looped = {key: [*values, key] for key, values in raw.items()}
    adj = graph.normalize(looped)
    for node, neighbors in adj.items():
        assert node not in neighbors
        assert len(neighbors) == len(set(neighbors))


@given(raw=raw_graphs)
@settings(max_examples=200, deadline=None)
def test_edge_count_bounded_by_half_degree_sum(raw: dict[str, list[str]]) -> None:
    adj = graph.normalize(raw)
    total_degree = sum(len(neighbors) for neighbors in adj.values())
    assert graph.undirected_edge_count(adj) <= total_degree / 2 + 1e-6


@given(raw=raw_graphs)
@settings(max_examples=200, deadline=None)
def test_repaired_graph_reaches_half_degree_sum(raw: dict[str, list[str]]) -> None:
    adj = graph.normalize(raw)
    internal = {node: [v for v in neighbors if v in adj] for node, neighbors in adj.items()}
    repaired, _added = graph.repair_symmetry(internal)
    total_degree = sum(len(neighbors) for neighbors in repaired.values())
    assert graph.undirected_edge_count(repaired) == total_degree / 2


@given(raw=raw_graphs)
@settings(max_examples=200, deadline=None)
def test_cross_cluster_ratio_within_unit_interval(raw: dict[str, list[str]]) -> None:
    adj = graph.normalize(raw)
    count = metrics.cross_cluster_ratio(adj, _parity_clusters(list(adj)))
    assert 0.0 <= count.ratio <= 1.0
    assert count.cross_edges <= count.total_edges


@given(raw=raw_graphs, data=st.data())
@settings(max_examples=100, deadline=None)
def test_graph_hash_ignores_ordering(raw: dict[str, list[str]], data: st.DataObject) -> None:
    adj = graph.normalize(raw)
    keys = data.draw(st.permutations(list(adj)))
    shuffled = {key: data.draw(st.permutations(adj[key])) for key in keys}
    assert stable_graph_hash(shuffled) == stable_graph_hash(adj)


@given(raw=raw_graphs)
@settings(max_examples=100, deadline=None)
def test_graph_hash_changes_when_an_edge_is_added(raw: dict[str, list[str]]) -> None:
    adj = graph.normalize(raw)
    grown = {node: list(neighbors) for node, neighbors in adj.items()}
    grown.setdefault("zz-new", []).append("zz-other")
    assert stable_graph_hash(grown) != stable_graph_hash(adj)


@given(raw=raw_graphs)
@settings(max_examples=100, deadline=None)
def test_metrics_are_finite_and_bounded(raw: dict[str, list[str]]) -> None:
    adj = graph.normalize(raw)
    report = metrics.compute_metrics(adj, _parity_clusters(list(adj)))
    assert 0.0 <= report.largest_component_ratio <= 1.0
    assert 0.0 <= report.cross_cluster_ratio <= 1.0
    assert report.degrees.mean >= 0.0
    assert sum(report.degrees.histogram.values()) == report.nodes


@given(raw=raw_graphs, data=st.data())
@settings(max_examples=100, deadline=None)
def test_graph_hash_changes_when_existing_nodes_are_linked(
    raw: dict[str, list[str]], data: st.DataObject
) -> None:
    adj = graph.normalize(raw)
    candidates = [(u, v) for u in adj for v in adj if u != v and v not in adj[u]]
    assume(candidates)
    u, v = data.draw(st.sampled_from(candidates))
    grown = {node: list(neighbors) for node, neighbors in adj.items()}
    grown[u].append(v)
    assert stable_graph_hash(grown) != stable_graph_hash(adj)
