from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Mapping, Sequence

from geodoctor.exceptions import InputShapeError
from geodoctor.json_types import Adjacency


def _is_neighbor_sequence(value: object) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _slug_text(value: object, *, source: str) -> str:
    if not isinstance(value, str):
        raise InputShapeError(f"{source} must be a string slug, got {type(value).__name__}")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InputShapeError(f"{source} is not valid UTF-8 text: {value!r}") from exc
    return value.lower()


def _folded_entries(raw: object, *, source: str) -> Iterator[tuple[str, list[str]]]:
    if not isinstance(raw, Mapping):
        raise InputShapeError(
            f"{source} must be a mapping of node -> neighbor list, got {type(raw).__name__}"
        )
    for key, values in raw.items():
        if not isinstance(key, str):
            raise InputShapeError(f"{source} key {key!r} must be a string slug")
        node = _slug_text(key, source=f"{source} key")
        if not _is_neighbor_sequence(values):
            raise InputShapeError(
                f"{source}[{key!r}] must be a list of slugs, got {type(values).__name__}"
            )
        folded = [
            _slug_text(neighbor, source=f"{source}[{key!r}][{index}]")
            for index, neighbor in enumerate(values)
        ]
        yield node, folded


def normalize(raw: Mapping[str, Sequence[str]], *, source: str = "adjacency") -> Adjacency:
    """Canonicalize raw adjacency into lower-cased, deduplicated, loop-free lists.

    The key set is the input key set after case folding; nodes that only appear
    as neighbors are not added. Neighbor order is first-seen order. Symmetry is
    not enforced here (see ``asymmetric_pairs`` and ``repair_symmetry``).
    """
    adj: Adjacency = {}
    seen: dict[str, set[str]] = {}
    for node, neighbors in _folded_entries(raw, source=source):
        target = adj.setdefault(node, [])
        members = seen.setdefault(node, set())
        for neighbor in neighbors:
            if neighbor == node or neighbor in members:
                continue
            members.add(neighbor)
            target.append(neighbor)
    return adj


def self_loop_nodes(raw: Mapping[str, Sequence[str]], *, source: str = "adjacency") -> list[str]:
    """Nodes whose raw neighbor list references themselves."""
    loops = {
        node
        for node, neighbors in _folded_entries(raw, source=source)
        if node in neighbors
    }
    return sorted(loops)


def degrees(adj: Mapping[str, Sequence[str]]) -> dict[str, int]:
    return {node: len(neighbors) for node, neighbors in adj.items()}


def undirected_edges(adj: Mapping[str, Sequence[str]]) -> list[tuple[str, str]]:
    """Unordered edges, each reported once as ``(u, v)`` with ``u < v``.

    An edge needs both directed entries; a one-sided listing is an asymmetric
    pair, not an edge. This keeps ``len(edges) <= sum(degree) / 2`` for every
    graph.
    """
    edges: list[tuple[str, str]] = []
    for u in sorted(adj):
        for v in adj[u]:
            if u < v and u in adj.get(v, ()):
                edges.append((u, v))
    return edges


def undirected_edge_count(adj: Mapping[str, Sequence[str]]) -> int:
    return len(undirected_edges(adj))


def asymmetric_pairs(adj: Mapping[str, Sequence[str]]) -> list[tuple[str, str]]:
    """Directed entries ``u -> v`` with no ``v -> u`` counterpart, sorted."""
    pairs = [
        (u, v)
        for u, neighbors in adj.items()
        for v in neighbors
        if u != v and u not in adj.get(v, ())
    ]
    return sorted(pairs)


def dangling_neighbors(adj: Mapping[str, Sequence[str]]) -> list[str]:
    """Neighbor slugs that are not themselves nodes of the graph."""
    return sorted({v for neighbors in adj.values() for v in neighbors if v not in adj})


def isolates(adj: Mapping[str, Sequence[str]]) -> list[str]:
    return sorted(node for node, neighbors in adj.items() if not neighbors)


def _undirected_view(adj: Mapping[str, Sequence[str]]) -> dict[str, set[str]]:
    view: dict[str, set[str]] = {node: set() for node in adj}
    for u, neighbors in adj.items():
        for v in neighbors:
            if v == u or v not in view:
                continue
            view[u].add(v)
            view[v].add(u)
    return view


def connected_components(adj: Mapping[str, Sequence[str]]) -> list[list[str]]:
    """Components of the graph read as undirected, largest first.

    ``u - v`` is traversable when either side lists the other. Discovery runs
    over sorted node keys so component order is reproducible; ties in size keep
    discovery order.
    """
    view = _undirected_view(adj)
    seen: set[str] = set()
    components: list[list[str]] = []
    for start in sorted(view):
        if start in seen:
            continue
        seen.add(start)
        stack = [start]
        component: list[str] = []
        while stack:
            node = stack.pop()
            component.append(node)
            for neighbor in sorted(view[node]):
                if neighbor not in seen:
                    seen.add(neighbor)
                    stack.append(neighbor)
        components.append(sorted(component))
    return sorted(components, key=len, reverse=True)


@dataclass(frozen=True)
class DegreeStats:
    min: int
    median: int
    max: int
    mean: float
    p90: int


def degree_stats(adj: Mapping[str, Sequence[str]]) -> DegreeStats:
    values = sorted(len(neighbors) for neighbors in adj.values())
    if not values:
        return DegreeStats(min=0, median=0, max=0, mean=0.0, p90=0)
    count = len(values)

    def quantile(p: float) -> int:
        return values[min(count - 1, int(p * (count - 1)))]

    return DegreeStats(
        min=values[0],
        median=quantile(0.5),
        max=values[-1],
        mean=sum(values) / count,
        p90=quantile(0.9),
    )


def repair_symmetry(adj: Mapping[str, Sequence[str]]) -> tuple[Adjacency, list[tuple[str, str]]]:
    """Opt-in repair: add the missing back edge for every asymmetric pair.

    Returns a new adjacency and the ``(v, u)`` entries that were appended.
    Dangling neighbors are left alone, since adding them would synthesize nodes.
    """
    repaired: Adjacency = {node: list(neighbors) for node, neighbors in adj.items()}
    added: list[tuple[str, str]] = []
    for u, v in asymmetric_pairs(adj):
        if v not in repaired:
            continue
        if u not in repaired[v]:
            repaired[v].append(u)
            added.append((v, u))
    return repaired, added


def node_universe(
    adj: Mapping[str, Sequence[str]],
    node_to_cluster: Mapping[str, str],
) -> list[str]:
    """Every node known to either the adjacency keys or the cluster map."""
    return sorted(set(adj) | set(node_to_cluster))
