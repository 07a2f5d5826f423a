from __future__ import annotations

"""JSON-like value types used at input/report boundaries.

Adjacency, cluster and report payloads are JSON on disk; these aliases keep the
value space explicit where raw payloads cross into the engine.
"""

from typing import TypeAlias


JSONScalar: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]
JSONArray: TypeAlias = list[JSONValue]

Adjacency: TypeAlias = dict[str, list[str]]
NodeClusterMap: TypeAlias = dict[str, str]
