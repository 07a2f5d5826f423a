from __future__ import annotations

import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest


DEFAULT_POLICY = {
    "graph": {
        "minLargestComponentRatio": 0.9,
        "maxIsolates": 0,
        "minMeanDegree": 1,
    },
    "fairness": {
        "maxPromotedShareWarn": 1.0,
        "maxPromotedShareFail": 1.0,
        "maxPromotedCrossClusterRatio": 1.0,
    },
}


@pytest.fixture
def write_json():
    def _write(path: Path, payload: object) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def policy_payload() -> dict[str, object]:
    return json.loads(json.dumps(DEFAULT_POLICY))


@pytest.fixture
def geo_inputs(tmp_path: Path, write_json):
    clusters = write_json(
        tmp_path / "clusters.json",
        [
            {"slug": "North", "suburbs": [{"slug": "Ascot"}, {"slug": "Clayfield"}]},
            {"slug": "south", "suburbs": [{"slug": "annerley"}, {"slug": "moorooka"}]},
        ],
    )
    adjacency = write_json(
        tmp_path / "adjacency.json",
        {
            "ascot": ["clayfield", "ascot"],
            "clayfield": ["ascot", "annerley"],
            "annerley": ["clayfield", "moorooka"],
            "moorooka": ["annerley"],
        },
    )
    policy = tmp_path / "geo.linking.config.jsonc"
    policy.write_text(
        "// geo linking policy\n"
        "{\n"
        '  "graph": {"minLargestComponentRatio": 0.9, "maxIsolates": 0, "minMeanDegree": 1},\n'
        "  /* fairness thresholds */\n"
        '  "fairness": {"maxPromotedShareWarn": 1.0, "maxPromotedShareFail": 1.0,'
        ' "maxPromotedCrossClusterRatio": 1.0}\n'
        "}\n",
        encoding="utf-8",
    )
    return {
        "root": tmp_path,
        "clusters": clusters,
        "adjacency": adjacency,
        "policy": policy,
        "report": tmp_path / "__reports" / "geo-doctor.json",
        "markdown": tmp_path / "__reports" / "geo-report.md",
    }
