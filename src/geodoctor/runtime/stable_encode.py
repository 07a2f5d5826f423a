from __future__ import annotations

import hashlib
import json
import math
from typing import Mapping, Sequence

DEFAULT_PRECISION = 6


def round_float(value: float, precision: int = DEFAULT_PRECISION) -> float:
    if not math.isfinite(value):
        return value
    rounded = round(value, precision)
    # round() keeps the sign of negative zero; reports should never show -0.0.
    return 0.0 if rounded == 0 else rounded


def stabilize(value: object, *, precision: int = DEFAULT_PRECISION) -> object:
    """Normalize a JSON-shaped value so equal reports serialize identically.

    Sort-contract note:
    - Mapping keys are re-emitted in lexical key text order.
    - List/tuple preserve sequence order and normalize recursively to lists.
    - Sets normalize to deterministically ordered lists.
    - Finite floats are rounded to ``precision`` digits; NaN and infinities are
      passed through untouched so upstream defects stay visible.
    """
    return _stabilize(value, precision=precision, source="stabilize")


def _stabilize(value: object, *, precision: int, source: str) -> object:
    if isinstance(value, bool) or value is None or isinstance(value, (str, int)):
        return value
    if isinstance(value, float):
        return round_float(value, precision)
    if isinstance(value, Mapping):
        return {
            key: _stabilize(value[key], precision=precision, source=f"{source}.{key}")
            for key in sorted(value, key=str)
        }
    if isinstance(value, (list, tuple)):
        return [
            _stabilize(item, precision=precision, source=f"{source}[]")
            for item in value
        ]
    if isinstance(value, (set, frozenset)):
        items = [
            _stabilize(item, precision=precision, source=f"{source}{{}}")
            for item in value
        ]
        return sorted(items, key=lambda item: (type(item).__name__, stable_compact_text(item)))
    raise TypeError(
        f"stabilize does not support value type {type(value).__name__} at {source}"
    )


def stable_compact_text(value: object, *, ensure_ascii: bool = False) -> str:
    """Deterministic compact JSON text for hash surfaces."""
    return json.dumps(
        stabilize(value),
        separators=(",", ":"),
        sort_keys=False,
        ensure_ascii=ensure_ascii,
        allow_nan=True,
    )


def stable_digest(value: object) -> str:
    """SHA-256 of the compact text; lone surrogates are hashed, not rejected."""
    encoded = stable_compact_text(value).encode("utf-8", "surrogatepass")
    return hashlib.sha256(encoded).hexdigest()


def canonical_graph_payload(adj: Mapping[str, Sequence[str]]) -> list[list[object]]:
    return [[node, sorted(adj[node] or ())] for node in sorted(adj)]


def stable_graph_hash(adj: Mapping[str, Sequence[str]]) -> str:
    """SHA-256 over the graph with sorted node keys and sorted neighbor lists.

    Neighbor-list order and key insertion order never affect the digest; adding
    or removing any directed entry does.
    """
    encoded = json.dumps(
        canonical_graph_payload(adj),
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()
