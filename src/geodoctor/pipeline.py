"""Doctor pipeline: an explicit run context and an exact-key step registry.

Each invocation builds a fresh ``RunContext``; nothing is cached between runs.
Steps read and write only the context, and the normalized graph it holds is the
single instance both the metrics and the link lists are derived from.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping, Sequence

from geodoctor import ingest
from geodoctor.analysis import clusters as cluster_mapping
from geodoctor.analysis import fairness, graph, links, metrics
from geodoctor.analysis.report_markdown import render_report_markdown
from geodoctor.config import GeoDoctorConfig
from geodoctor.exceptions import StepOrderError, UnknownStepError
from geodoctor.json_types import Adjacency, NodeClusterMap
from geodoctor.runtime import json_io
from geodoctor.runtime.console import Console
from geodoctor.runtime.stable_encode import stabilize, stable_digest, stable_graph_hash
from geodoctor.schema import DoctorReportDTO, ReportMetaDTO
from geodoctor.tooling import gate as gate_eval
from geodoctor.tooling import policy as policy_io

LOAD_GEO_STEP = "load-geo"
NORMALIZE_STEP = "normalize"
REPAIR_SYMMETRY_STEP = "repair-symmetry"
DOCTOR_STEP = "doctor"
LINKS_STEP = "links"
WRITE_REPORT_STEP = "write-report"
WRITE_MARKDOWN_STEP = "write-markdown"

DOCTOR_STEPS: tuple[str, ...] = (
    LOAD_GEO_STEP,
    NORMALIZE_STEP,
    DOCTOR_STEP,
    LINKS_STEP,
)


@dataclass
class RunContext:
    config: GeoDoctorConfig
    console: Console
    profile: bool = False
    raw_adjacency: Mapping[str, object] | None = None
    raw_clusters: Sequence[object] | None = None
    node_to_cluster: NodeClusterMap = field(default_factory=dict)
    adjacency: Adjacency | None = None
    self_loops: int = 0
    repaired_pairs: list[tuple[str, str]] = field(default_factory=list)
    report: DoctorReportDTO | None = None
    report_payload: dict[str, object] | None = None
    link_lists: dict[str, list[str]] = field(default_factory=dict)
    timings: dict[str, float] = field(default_factory=dict)
    started_at: float = field(default_factory=time.perf_counter)

    def require_raw_adjacency(self) -> Mapping[str, object]:
        if self.raw_adjacency is None:
            raise StepOrderError(f"run {LOAD_GEO_STEP!r} first")
        return self.raw_adjacency

    def require_adjacency(self) -> Adjacency:
        if self.adjacency is None:
            raise StepOrderError(f"run {NORMALIZE_STEP!r} first")
        return self.adjacency

    def require_report(self) -> DoctorReportDTO:
        if self.report is None:
            raise StepOrderError(f"run {DOCTOR_STEP!r} first")
        return self.report


Step = Callable[[RunContext], None]


def _load_geo(ctx: RunContext) -> None:
    ctx.raw_adjacency = ingest.load_adjacency(ctx.config.adjacency)
    ctx.raw_clusters = ingest.load_clusters(ctx.config.clusters)
    ctx.node_to_cluster = cluster_mapping.map_nodes_to_clusters(ctx.raw_clusters)
    for suburb, owners in cluster_mapping.duplicate_assignments(ctx.raw_clusters):
        ctx.console.warn(
            f"suburb {suburb!r} listed in clusters {', '.join(owners)}; using {owners[-1]!r}"
        )
    ctx.console.debug(
        f"loaded {len(ctx.raw_adjacency)} adjacency entries, "
        f"{len(ctx.raw_clusters)} clusters"
    )


def _normalize(ctx: RunContext) -> None:
    raw = ctx.require_raw_adjacency()
    ctx.adjacency = graph.normalize(raw)
    ctx.self_loops = len(graph.self_loop_nodes(raw))
    dangling = graph.dangling_neighbors(ctx.adjacency)
    if dangling:
        ctx.console.warn(f"{len(dangling)} neighbor slug(s) are not graph nodes: {', '.join(dangling[:5])}")
    unlinked = [
        node
        for node in graph.node_universe(ctx.adjacency, ctx.node_to_cluster)
        if node not in ctx.adjacency
    ]
    if unlinked:
        ctx.console.debug(f"{len(unlinked)} clustered suburb(s) have no adjacency entry")


def _repair_symmetry(ctx: RunContext) -> None:
    repaired, added = graph.repair_symmetry(ctx.require_adjacency())
    ctx.adjacency = repaired
    ctx.repaired_pairs = added
    ctx.console.info(f"repair-symmetry added {len(added)} back edge(s)")


def _profile_timings(ctx: RunContext) -> dict[str, float]:
    if not ctx.profile:
        return {}
    return {**ctx.timings, "total": (time.perf_counter() - ctx.started_at) * 1000.0}


def _doctor(ctx: RunContext) -> None:
    adj = ctx.require_adjacency()
    metric = fairness.resolve_promoted_share_metric(ctx.config.promoted_share_metric)
    meta = ReportMetaDTO(
        tool_version=metrics.TOOL_VERSION,
        input_hashes={
            "graph": stable_graph_hash(adj),
            "clusters": stable_digest(list(ctx.raw_clusters or [])),
        },
        timings=_profile_timings(ctx),
    )
    ctx.report = metrics.compute_metrics(
        adj,
        ctx.node_to_cluster,
        self_loops=ctx.self_loops,
        cluster_count=len(ctx.raw_clusters or []),
        promoted_share=metric(adj, ctx.node_to_cluster),
        meta=meta,
    )
    ctx.report_payload = stabilize(
        ctx.report.model_dump(mode="json"),
        precision=ctx.config.precision,
    )
    ctx.console.info(
        f"components={ctx.report.components} "
        f"lcr={ctx.report.largest_component_ratio:.3f} "
        f"cross={ctx.report.cross_cluster_ratio:.3f}"
    )


def _links(ctx: RunContext) -> None:
    ctx.link_lists = links.link_lists(ctx.require_adjacency(), ctx.config.max_neighbors)


def _write_report(ctx: RunContext) -> None:
    ctx.require_report()
    json_io.write_json_atomic(ctx.config.report, ctx.report_payload)
    ctx.console.info(f"wrote {ctx.config.report}")


def _write_markdown(ctx: RunContext) -> None:
    ctx.require_report()
    verdict: str | None = None
    findings: list[dict[str, object]] = []
    if ctx.config.policy.exists():
        policy = policy_io.load_policy(ctx.config.policy)
        outcome = gate_eval.evaluate_gate(
            policy,
            policy_io.validate_gate_report(ctx.report_payload),
        )
        verdict = outcome.verdict.value
        findings = [finding.model_dump() for finding in outcome.findings]
    text = render_report_markdown(ctx.report_payload or {}, verdict=verdict, findings=findings)
    json_io.write_text_atomic(ctx.config.markdown, text)
    ctx.console.info(f"wrote {ctx.config.markdown}")


STEP_REGISTRY: dict[str, Step] = {
    LOAD_GEO_STEP: _load_geo,
    NORMALIZE_STEP: _normalize,
    REPAIR_SYMMETRY_STEP: _repair_symmetry,
    DOCTOR_STEP: _doctor,
    LINKS_STEP: _links,
    WRITE_REPORT_STEP: _write_report,
    WRITE_MARKDOWN_STEP: _write_markdown,
}


def resolve_step(step_id: str, registry: Mapping[str, Step] | None = None) -> Step:
    steps = STEP_REGISTRY if registry is None else registry
    handler = steps.get(step_id)
    if handler is None:
        raise UnknownStepError(f"unknown step {step_id!r}")
    return handler


def doctor_step_ids(
    *,
    repair: bool = False,
    write_report: bool = False,
    write_markdown: bool = False,
) -> list[str]:
    step_ids = list(DOCTOR_STEPS)
    if repair:
        step_ids.insert(step_ids.index(DOCTOR_STEP), REPAIR_SYMMETRY_STEP)
    if write_report:
        step_ids.append(WRITE_REPORT_STEP)
    if write_markdown:
        step_ids.append(WRITE_MARKDOWN_STEP)
    return step_ids


def run_steps(
    ctx: RunContext,
    step_ids: Iterable[str],
    registry: Mapping[str, Step] | None = None,
) -> RunContext:
    """Resolve every step before running any, then run them in order."""
    resolved = [(step_id, resolve_step(step_id, registry)) for step_id in step_ids]
    for step_id, handler in resolved:
        started = time.perf_counter()
        handler(ctx)
        ctx.timings[step_id] = (time.perf_counter() - started) * 1000.0
        ctx.console.debug(f"step {step_id} took {ctx.timings[step_id]:.2f}ms")
    return ctx
