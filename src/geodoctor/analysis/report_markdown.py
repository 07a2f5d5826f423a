from __future__ import annotations

from typing import Iterable, Mapping

_BADGES = {
    "PASS": "![gate](https://img.shields.io/badge/gate-PASS-brightgreen)",
    "WARN": "![gate](https://img.shields.io/badge/gate-WARN-yellow)",
    "FAIL": "![gate](https://img.shields.io/badge/gate-FAIL-red)",
}
_UNGATED_BADGE = "![gate](https://img.shields.io/badge/gate-n%2Fa-lightgrey)"
_ASYM_SAMPLE_LIMIT = 20


def _fmt(value: object) -> str:
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value)


def _table(rows: Iterable[tuple[str, object]]) -> list[str]:
    lines = ["| Metric | Value |", "| --- | --- |"]
    lines.extend(f"| {label} | {_fmt(value)} |" for label, value in rows)
    return lines


def render_report_markdown(
    report: Mapping[str, object],
    *,
    verdict: str | None = None,
    findings: Iterable[Mapping[str, object]] = (),
) -> str:
    """Markdown view over a stabilized doctor report payload."""
    degrees = report.get("degrees", {})
    degrees = degrees if isinstance(degrees, Mapping) else {}
    histogram = degrees.get("histogram", {})
    histogram = histogram if isinstance(histogram, Mapping) else {}
    asym = report.get("asym_pairs", [])
    asym = asym if isinstance(asym, list) else []
    meta = report.get("meta") or {}
    hashes = meta.get("input_hashes", {}) if isinstance(meta, Mapping) else {}

    lines = [
        "# Geo Report",
        "",
        _BADGES.get(verdict or "", _UNGATED_BADGE),
        "",
        "## Metrics",
        "",
        *_table(
            [
                ("Nodes", report.get("nodes", 0)),
                ("Edges", report.get("edges", 0)),
                ("Directed entries", report.get("directed_edges", 0)),
                ("Clusters", report.get("clusters", 0)),
                ("Components", report.get("components", 0)),
                ("Largest component ratio", report.get("largest_component_ratio", 0.0)),
                ("Mean degree", degrees.get("mean", 0.0)),
                ("Isolates", report.get("isolates", histogram.get("0", 0))),
                ("Cross-cluster ratio", report.get("cross_cluster_ratio", 0.0)),
                ("Unclustered", report.get("unclustered", 0)),
            ]
        ),
        "",
        "## Degree histogram",
        "",
        "| Degree | Nodes |",
        "| --- | --- |",
        *[f"| {degree} | {count} |" for degree, count in histogram.items()],
        "",
        "## Symmetry",
        "",
        f"Asymmetric pairs: {len(asym)}; self loops removed: {report.get('self_loops', 0)}.",
    ]
    if asym:
        lines.append("")
        lines.extend(
            f"- `{pair[0]}` -> `{pair[1]}`"
            for pair in asym[:_ASYM_SAMPLE_LIMIT]
            if isinstance(pair, list | tuple) and len(pair) == 2
        )
        if len(asym) > _ASYM_SAMPLE_LIMIT:
            lines.append(f"- ... {len(asym) - _ASYM_SAMPLE_LIMIT} more")
    finding_lines = [
        f"- **{finding.get('severity', '')}** `{finding.get('rule', '')}`: "
        f"{finding.get('message', '')}"
        for finding in findings
    ]
    if finding_lines:
        lines.extend(["", "## Gate findings", "", *finding_lines])
    if isinstance(hashes, Mapping) and hashes:
        lines.extend(["", "## Input hashes", ""])
        lines.extend(f"- {name}: `{digest}`" for name, digest in sorted(hashes.items()))
    return "\n".join(lines) + "\n"
