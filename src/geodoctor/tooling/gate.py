from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from geodoctor.exceptions import GeoDoctorError
from geodoctor.runtime.console import Console
from geodoctor.schema import GateFindingDTO, GateReportDTO, GateResultDTO, PolicyDTO
from geodoctor.tooling import policy as policy_io
from geodoctor.tooling.gate_rules import GateRules, load_gate_rules


class Verdict(StrEnum):
    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"


@dataclass(frozen=True)
class GateOutcome:
    verdict: Verdict
    findings: tuple[GateFindingDTO, ...]
    promoted_share: float


def _finding(
    rule: str,
    severity: str,
    observed: float,
    threshold: float,
    message: str,
) -> GateFindingDTO:
    return GateFindingDTO(
        rule=rule,
        severity=severity,
        observed=observed,
        threshold=threshold,
        message=message,
    )


def evaluate_gate(
    policy: PolicyDTO,
    report: GateReportDTO,
    *,
    promoted_share: float | None = None,
) -> GateOutcome:
    """Pure (policy, report) -> verdict.

    Every rule is checked; any fail finding makes the verdict FAIL, otherwise
    any warn finding makes it WARN. ``promoted_share`` overrides the value
    carried by the report.
    """
    share = report.promoted_share if promoted_share is None else promoted_share
    graph_policy = policy.graph
    fairness = policy.fairness
    findings: list[GateFindingDTO] = []

    if report.largest_component_ratio < graph_policy.min_largest_component_ratio:
        findings.append(
            _finding(
                "graph.minLargestComponentRatio",
                "fail",
                report.largest_component_ratio,
                graph_policy.min_largest_component_ratio,
                "largest component ratio below minimum",
            )
        )
    isolates = report.isolate_count
    if isolates > graph_policy.max_isolates:
        findings.append(
            _finding(
                "graph.maxIsolates",
                "fail",
                isolates,
                graph_policy.max_isolates,
                "too many isolated suburbs",
            )
        )
    if report.degrees.mean < graph_policy.min_mean_degree:
        findings.append(
            _finding(
                "graph.minMeanDegree",
                "warn",
                report.degrees.mean,
                graph_policy.min_mean_degree,
                "mean degree below minimum",
            )
        )
    if share > fairness.max_promoted_share_fail:
        findings.append(
            _finding(
                "fairness.maxPromotedShareFail",
                "fail",
                share,
                fairness.max_promoted_share_fail,
                "promoted share above fail threshold",
            )
        )
    elif share > fairness.max_promoted_share_warn:
        findings.append(
            _finding(
                "fairness.maxPromotedShareWarn",
                "warn",
                share,
                fairness.max_promoted_share_warn,
                "promoted share above warn threshold",
            )
        )
    if report.cross_cluster_ratio > fairness.max_promoted_cross_cluster_ratio:
        findings.append(
            _finding(
                "fairness.maxPromotedCrossClusterRatio",
                "fail",
                report.cross_cluster_ratio,
                fairness.max_promoted_cross_cluster_ratio,
                "cross-cluster ratio above maximum",
            )
        )

    severities = {finding.severity for finding in findings}
    if "fail" in severities:
        verdict = Verdict.FAIL
    elif "warn" in severities:
        verdict = Verdict.WARN
    else:
        verdict = Verdict.PASS
    return GateOutcome(verdict=verdict, findings=tuple(findings), promoted_share=share)


def exit_code_for(verdict: Verdict, *, strict: bool, rules: GateRules) -> int:
    """Map a verdict to the process exit code; ``strict`` only affects WARN."""
    codes = rules.exit_codes
    if verdict is Verdict.FAIL:
        return codes.fail
    if verdict is Verdict.WARN and strict:
        return codes.warn_strict
    return codes.passed


def verdict_message(verdict: Verdict, *, strict: bool, rules: GateRules) -> str:
    messages = rules.messages
    if verdict is Verdict.FAIL:
        return messages.fail
    if verdict is Verdict.WARN:
        return messages.warn_strict if strict else messages.warn
    return messages.passed


def run_gate(
    policy_path: Path,
    report_path: Path,
    *,
    strict: bool = False,
    rules: GateRules | None = None,
    console: Console | None = None,
) -> GateResultDTO:
    """Load inputs, evaluate, and print the tagged verdict line.

    Malformed or unreadable inputs are reported before any threshold check and
    map to the ``invalid`` exit code.
    """
    gate_rules = load_gate_rules() if rules is None else rules
    out = Console(tag=gate_rules.tag) if console is None else console
    try:
        policy = policy_io.load_policy(policy_path)
        report = policy_io.load_gate_report(report_path)
    except GeoDoctorError as exc:
        out.result(f"{gate_rules.messages.invalid}: {exc}", err=True)
        return GateResultDTO(
            verdict="INVALID",
            exit_code=gate_rules.exit_codes.invalid,
            strict=strict,
            errors=[f"{type(exc).__name__}: {exc}"],
        )

    outcome = evaluate_gate(policy, report)
    exit_code = exit_code_for(outcome.verdict, strict=strict, rules=gate_rules)
    for finding in outcome.findings:
        out.info(
            f"{finding.severity}: {finding.rule} {finding.message} "
            f"(observed={finding.observed:g} threshold={finding.threshold:g})"
        )
    message = verdict_message(outcome.verdict, strict=strict, rules=gate_rules)
    out.result(message, err=outcome.verdict is not Verdict.PASS)
    return GateResultDTO(
        verdict=outcome.verdict.value,
        exit_code=exit_code,
        strict=strict,
        promoted_share=outcome.promoted_share,
        findings=list(outcome.findings),
    )
