from __future__ import annotations

from collections import defaultdict
from typing import Iterator, Mapping, Sequence

from geodoctor.exceptions import InputShapeError
from geodoctor.json_types import NodeClusterMap


def _slug(value: object, *, source: str) -> str:
    if not isinstance(value, str):
        raise InputShapeError(f"{source} must be a string slug, got {type(value).__name__}")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InputShapeError(f"{source} is not valid UTF-8 text: {value!r}") from exc
    return value.lower()


def _iter_memberships(clusters: object) -> Iterator[tuple[str, str]]:
    if not isinstance(clusters, Sequence) or isinstance(clusters, (str, bytes)):
        raise InputShapeError(
            f"clusters must be a list of cluster objects, got {type(clusters).__name__}"
        )
    for index, cluster in enumerate(clusters):
        source = f"clusters[{index}]"
        if not isinstance(cluster, Mapping):
            raise InputShapeError(f"{source} must be an object, got {type(cluster).__name__}")
        if "slug" not in cluster:
            raise InputShapeError(f"{source} is missing 'slug'")
        cluster_slug = _slug(cluster["slug"], source=f"{source}.slug")
        suburbs = cluster.get("suburbs")
        if not isinstance(suburbs, Sequence) or isinstance(suburbs, (str, bytes)):
            raise InputShapeError(f"{source}.suburbs must be a list")
        for position, suburb in enumerate(suburbs):
            suburb_source = f"{source}.suburbs[{position}]"
            if not isinstance(suburb, Mapping) or "slug" not in suburb:
                raise InputShapeError(f"{suburb_source} must be an object with 'slug'")
            yield _slug(suburb["slug"], source=f"{suburb_source}.slug"), cluster_slug


def map_nodes_to_clusters(clusters: Sequence[Mapping[str, object]]) -> NodeClusterMap:
    """Node -> cluster slug. A suburb listed in several clusters keeps the last one."""
    mapping: NodeClusterMap = {}
    for suburb, cluster_slug in _iter_memberships(clusters):
        mapping[suburb] = cluster_slug
    return mapping


def duplicate_assignments(clusters: Sequence[Mapping[str, object]]) -> list[tuple[str, list[str]]]:
    """Suburbs claimed by more than one cluster, with the clusters in iteration order."""
    owners: dict[str, list[str]] = defaultdict(list)
    for suburb, cluster_slug in _iter_memberships(clusters):
        if cluster_slug not in owners[suburb]:
            owners[suburb].append(cluster_slug)
    return [
        (suburb, owners[suburb])
        for suburb in sorted(owners)
        if len(owners[suburb]) > 1
    ]
