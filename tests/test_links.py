from __future__ import annotations

import pytest

from geodoctor.analysis import graph
from geodoctor.analysis.links import link_lists, neighbors_for


def test_neighbors_for_truncates_in_normalized_order() -> None:
    adj = graph.normalize({"ascot": ["Hendra", "clayfield", "albion", "hendra"]})
    assert neighbors_for("ascot", adj, 2) == ["hendra", "clayfield"]
    assert neighbors_for("ascot", adj, 10) == ["hendra", "clayfield", "albion"]


def test_neighbors_for_unknown_node_and_zero_limit() -> None:
    adj = {"ascot": ["hendra"]}
    assert neighbors_for("nowhere", adj, 3) == []
    assert neighbors_for("ascot", adj, 0) == []


def test_neighbors_for_folds_requested_node_case() -> None:
    assert neighbors_for("Ascot", {"ascot": ["hendra"]}, 1) == ["hendra"]


def test_neighbors_for_rejects_negative_limit() -> None:
    with pytest.raises(ValueError):
        neighbors_for("ascot", {"ascot": []}, -1)


def test_link_lists_cover_every_node_without_copy_sharing() -> None:
    adj = {"b": ["a", "c"], "a": ["b"], "c": []}
    lists = link_lists(adj, 1)
    assert lists == {"a": ["b"], "b": ["a"], "c": []}
    lists["b"].append("zzz")
    assert adj["b"] == ["a", "c"]
