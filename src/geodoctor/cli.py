from __future__ import annotations

import json
import time
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Iterator, Optional

import typer

from geodoctor import ingest
from geodoctor.analysis import graph, links
from geodoctor.analysis.report_markdown import render_report_markdown
from geodoctor.config import GeoDoctorConfig, resolve_config
from geodoctor.exceptions import GeoDoctorError, InputShapeError, ReportIOError
from geodoctor.pipeline import RunContext, doctor_step_ids, run_steps
from geodoctor.runtime import env_policy, json_io
from geodoctor.runtime.console import Console
from geodoctor.runtime.stable_encode import stable_graph_hash
from geodoctor.tooling import gate as gate_eval
from geodoctor.tooling import policy as policy_io
from geodoctor.tooling.gate_rules import load_gate_rules

app = typer.Typer(add_completion=False, help="Geo linking doctor and policy gate.")

EXIT_INPUT_ERROR = 3
EXIT_IO_ERROR = 4


def _exit_code_for_error(exc: GeoDoctorError) -> int:
    if isinstance(exc, ReportIOError):
        return EXIT_IO_ERROR
    return EXIT_INPUT_ERROR


@contextmanager
def _classified_errors(console: Console) -> Iterator[None]:
    """One prefixed line per failure; tracebacks only with GEODOCTOR_DEBUG=1."""
    try:
        yield
    except GeoDoctorError as exc:
        if env_policy.debug_enabled():
            raise
        console.error(f"{type(exc).__name__}: {exc}")
        raise typer.Exit(code=_exit_code_for_error(exc)) from exc


def _config(root: Path, config: Optional[Path]) -> GeoDoctorConfig:
    return resolve_config(root=root, config_path=config)


def _override(config: GeoDoctorConfig, **overrides: Optional[Path]) -> GeoDoctorConfig:
    updates = {key: value for key, value in overrides.items() if value is not None}
    if not updates:
        return config
    return replace(config, **updates)


@app.command("doctor")
def doctor(
    clusters: Optional[Path] = typer.Option(None, "--clusters", help="Cluster definition JSON."),
    adjacency: Optional[Path] = typer.Option(None, "--adjacency", help="Adjacency JSON."),
    out: Optional[Path] = typer.Option(None, "--out", help="Report destination."),
    markdown: Optional[Path] = typer.Option(
        None, "--markdown", help="Also write the Markdown view to this path."
    ),
    policy: Optional[Path] = typer.Option(None, "--policy", help="Policy JSONC for the Markdown badge."),
    emit_json: bool = typer.Option(False, "--json", help="Print the report JSON to stdout."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress info/debug output."),
    profile: bool = typer.Option(False, "--profile", help="Record step timings."),
    repair_symmetry: bool = typer.Option(
        False, "--repair-symmetry", help="Add missing back edges before measuring."
    ),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Normalize the geo graph, measure it, and write the doctor report."""
    console = Console(tag="doctor", quiet=quiet, stream_err=emit_json)
    with _classified_errors(console):
        settings = _override(
            _config(root, config),
            clusters=clusters,
            adjacency=adjacency,
            report=out,
            markdown=markdown,
            policy=policy,
        )
        ctx = RunContext(config=settings, console=console, profile=profile)
        run_steps(
            ctx,
            doctor_step_ids(
                repair=repair_symmetry,
                write_report=True,
                write_markdown=markdown is not None,
            ),
        )
    if profile:
        for step_id, elapsed in ctx.timings.items():
            console.result(f"profile: {step_id} {elapsed:.2f}ms", err=True)
    if emit_json:
        typer.echo(json_io.dump_json_pretty(ctx.report_payload), nl=False)


@app.command("gate")
def gate(
    policy: Optional[Path] = typer.Option(None, "--policy", help="Policy JSONC."),
    report: Optional[Path] = typer.Option(None, "--report", "--out", help="Doctor report JSON."),
    strict: bool = typer.Option(False, "--strict", help="Treat WARN as blocking."),
    emit_json: bool = typer.Option(False, "--json", help="Print the verdict as JSON."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress info/debug output."),
    profile: bool = typer.Option(False, "--profile", help="Print gate timing."),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Evaluate the doctor report against the policy: PASS, WARN or FAIL."""
    started = time.perf_counter()
    console = Console(tag="gate", quiet=quiet, stream_err=emit_json)
    try:
        rules = load_gate_rules()
    except GeoDoctorError as exc:
        console.error(f"{type(exc).__name__}: {exc}")
        raise typer.Exit(code=EXIT_INPUT_ERROR) from exc
    console = Console(tag=rules.tag, quiet=quiet, stream_err=emit_json)
    settings = _override(_config(root, config), policy=policy, report=report)
    result = gate_eval.run_gate(
        settings.policy,
        settings.report,
        strict=strict,
        rules=rules,
        console=console,
    )
    if profile:
        elapsed = (time.perf_counter() - started) * 1000.0
        console.result(f"profile: gate {elapsed:.2f}ms", err=True)
    if emit_json:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2, sort_keys=True))
    raise typer.Exit(code=result.exit_code)


@app.command("links")
def links_command(
    node: str = typer.Argument(..., help="Suburb slug."),
    max_count: Optional[int] = typer.Option(None, "--max", min=0, help="Maximum neighbors."),
    adjacency: Optional[Path] = typer.Option(None, "--adjacency"),
    emit_json: bool = typer.Option(False, "--json"),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Print the bounded nearby-links list for one suburb."""
    console = Console(tag="links")
    with _classified_errors(console):
        settings = _override(_config(root, config), adjacency=adjacency)
        adj = graph.normalize(ingest.load_adjacency(settings.adjacency))
        limit = settings.max_neighbors if max_count is None else max_count
        neighbors = links.neighbors_for(node, adj, limit)
    if emit_json:
        typer.echo(json.dumps({"node": node.lower(), "neighbors": neighbors}))
        return
    for neighbor in neighbors:
        typer.echo(neighbor)


@app.command("hash")
def hash_command(
    adjacency: Optional[Path] = typer.Option(None, "--adjacency"),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Print the stable content hash of the normalized graph."""
    console = Console(tag="hash")
    with _classified_errors(console):
        settings = _override(_config(root, config), adjacency=adjacency)
        adj = graph.normalize(ingest.load_adjacency(settings.adjacency))
    typer.echo(stable_graph_hash(adj))


@app.command("report-md")
def report_md(
    report: Optional[Path] = typer.Option(None, "--report"),
    policy: Optional[Path] = typer.Option(None, "--policy"),
    out: Optional[Path] = typer.Option(None, "--out"),
    quiet: bool = typer.Option(False, "--quiet", "-q"),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Render an existing doctor report as Markdown."""
    console = Console(tag="report-md", quiet=quiet)
    with _classified_errors(console):
        settings = _override(
            _config(root, config), report=report, policy=policy, markdown=out
        )
        payload = json_io.load_json_path(settings.report)
        if not isinstance(payload, dict):
            raise InputShapeError("report must be an object", path=settings.report)
        verdict: Optional[str] = None
        findings: list[dict[str, object]] = []
        if settings.policy.exists():
            outcome = gate_eval.evaluate_gate(
                policy_io.load_policy(settings.policy),
                policy_io.validate_gate_report(payload, path=settings.report),
            )
            verdict = outcome.verdict.value
            findings = [finding.model_dump() for finding in outcome.findings]
        json_io.write_text_atomic(
            settings.markdown,
            render_report_markdown(payload, verdict=verdict, findings=findings),
        )
    console.info(f"wrote {settings.markdown}")


def main() -> None:
    app()


__all__ = ["app", "main"]
