from __future__ import annotations

import pytest

from geodoctor.analysis import graph, metrics


def test_metrics_scenario_pair_plus_isolate() -> None:
    adj = graph.normalize({"a": ["b"], "b": ["a"], "c": []})
    report = metrics.compute_metrics(adj, {})
    assert report.degrees.histogram == {"0": 1, "1": 2}
    assert report.degrees.mean == pytest.approx(2 / 3)
    assert report.components == 2
    assert graph.connected_components(adj) == [["a", "b"], ["c"]]
    assert report.largest_component_ratio == pytest.approx(2 / 3)
    assert report.edges == 1
    assert report.isolates == 1
    assert report.unclustered == 3


def test_histogram_always_carries_zero_bucket() -> None:
    histogram = metrics.degree_histogram({"a": ["b"], "b": ["a"]})
    assert histogram == {"0": 0, "1": 2}


def test_histogram_orders_degrees_numerically() -> None:
    adj: dict[str, list[str]] = {"n0": [], "n1": []}
    adj["hub"] = [f"s{i}" for i in range(10)]
    adj["pair"] = ["a", "b"]
    assert list(metrics.degree_histogram(adj)) == ["0", "2", "10"]


def test_empty_graph_yields_zeroes_not_nan() -> None:
    report = metrics.compute_metrics({}, {})
    assert report.nodes == 0
    assert report.largest_component_ratio == 0.0
    assert report.cross_cluster_ratio == 0.0
    assert report.degrees.mean == 0.0
    assert report.degrees.histogram == {"0": 0}


def test_cross_cluster_ratio_counts_unknown_endpoints_in_total_only() -> None:
    adj = {"a": ["b", "c", "d"], "b": ["a"], "c": ["a"], "d": ["a"]}
    count = metrics.cross_cluster_ratio(adj, {"a": "x", "b": "y", "c": "x"})
    assert count.total_edges == 3
    assert count.cross_edges == 1
    assert count.ratio == pytest.approx(1 / 3)


def test_cross_cluster_ratio_zero_without_edges() -> None:
    assert metrics.cross_cluster_ratio({"a": [], "b": []}, {"a": "x", "b": "y"}).ratio == 0.0


def test_compute_metrics_reports_defects() -> None:
    raw = {"a": ["b", "a"], "b": [], "c": ["a"]}
    adj = graph.normalize(raw)
    report = metrics.compute_metrics(
        adj,
        {"a": "x", "b": "x"},
        self_loops=len(graph.self_loop_nodes(raw)),
    )
    assert report.asym_pairs == [("a", "b"), ("c", "a")]
    assert report.self_loops == 1
    assert report.edges == 0
    assert report.components == 1
    assert report.largest_component_ratio == 1.0
    assert report.unclustered == 1


def test_cross_cluster_ratio_ignores_which_endpoint_lists_the_pair() -> None:
    clusters = {"a": "x", "b": "y"}
    forward = metrics.compute_metrics(graph.normalize({"a": ["b"], "b": []}), clusters)
    backward = metrics.compute_metrics(graph.normalize({"a": [], "b": ["a"]}), clusters)
    assert forward.cross_cluster_ratio == backward.cross_cluster_ratio == 0.0
    assert forward.edges == backward.edges == 0


def test_cross_cluster_total_matches_edges() -> None:
    adj = graph.normalize({"a": ["b", "c"], "b": ["a"], "c": [], "d": ["a"]})
    count = metrics.cross_cluster_ratio(adj, {"a": "x", "b": "y", "c": "y"})
    assert count.total_edges == graph.undirected_edge_count(adj) == 1
    assert count.cross_edges == 1


def test_dangling_neighbors_are_not_cross_cluster_edges() -> None:
    count = metrics.cross_cluster_ratio(graph.normalize({"a": ["zz"]}), {"a": "x", "zz": "y"})
    assert count.total_edges == 0
    assert count.ratio == 0.0


def test_report_counts_directed_entries_and_clusters() -> None:
    adj = graph.normalize({"a": ["b", "c"], "b": ["a"], "c": []})
    report = metrics.compute_metrics(adj, {"a": "x", "b": "x", "c": "y"})
    assert report.directed_edges == 3
    assert report.edges == 1
    assert report.clusters == 2
    explicit = metrics.compute_metrics(adj, {"a": "x"}, cluster_count=5)
    assert explicit.clusters == 5
