from __future__ import annotations

from pathlib import Path
from typing import Mapping

from geodoctor.exceptions import InputShapeError
from geodoctor.runtime import json_io

_LEGACY_NEIGHBOR_KEY = "adjacent_suburbs"


def unwrap_adjacency(payload: object, *, path: Path | None = None) -> dict[str, object]:
    """Accept ``{slug: [...]}`` and the legacy ``{slug: {"adjacent_suburbs": [...]}}`` shape."""
    if not isinstance(payload, Mapping):
        raise InputShapeError(
            f"adjacency must be an object, got {type(payload).__name__}", path=path
        )
    unwrapped: dict[str, object] = {}
    for key, entry in payload.items():
        if isinstance(entry, Mapping):
            if _LEGACY_NEIGHBOR_KEY not in entry:
                raise InputShapeError(
                    f"adjacency[{key!r}] has no {_LEGACY_NEIGHBOR_KEY!r}", path=path
                )
            unwrapped[key] = entry[_LEGACY_NEIGHBOR_KEY]
        else:
            unwrapped[key] = entry
    return unwrapped


def unwrap_clusters(payload: object, *, path: Path | None = None) -> list[object]:
    """Accept a bare cluster list or ``{"clusters": [...]}``."""
    if isinstance(payload, Mapping):
        payload = payload.get("clusters")
    if not isinstance(payload, list):
        raise InputShapeError(
            f"clusters must be a list, got {type(payload).__name__}", path=path
        )
    return payload


def load_adjacency(path: Path) -> dict[str, object]:
    return unwrap_adjacency(json_io.load_json_path(path), path=path)


def load_clusters(path: Path) -> list[object]:
    return unwrap_clusters(json_io.load_json_path(path), path=path)
