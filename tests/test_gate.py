from __future__ import annotations

from pathlib import Path

import pytest

from geodoctor.runtime.console import Console
from geodoctor.schema import GateReportDTO
from geodoctor.tooling import policy as policy_io
from geodoctor.tooling.gate import Verdict, evaluate_gate, exit_code_for, run_gate
from geodoctor.tooling.gate_rules import load_gate_rules


def _report(**overrides: object) -> dict[str, object]:
    report: dict[str, object] = {
        "largest_component_ratio": 0.95,
        "degrees": {"histogram": {"0": 0}, "mean": 2.1},
        "cross_cluster_ratio": 0.1,
    }
    report.update(overrides)
    return report


def _evaluate(policy_payload, report: dict[str, object], **kwargs: object):
    policy = policy_io.validate_policy(policy_payload)
    return evaluate_gate(policy, GateReportDTO.model_validate(report), **kwargs)


def test_scenario_a_compliant_report_passes(policy_payload) -> None:
    outcome = _evaluate(policy_payload, _report())
    assert outcome.verdict is Verdict.PASS
    assert outcome.findings == ()
    assert exit_code_for(outcome.verdict, strict=True, rules=load_gate_rules()) == 0


def test_scenario_b_small_component_fails(policy_payload) -> None:
    outcome = _evaluate(policy_payload, _report(largest_component_ratio=0.5))
    assert outcome.verdict is Verdict.FAIL
    assert [finding.rule for finding in outcome.findings] == ["graph.minLargestComponentRatio"]
    rules = load_gate_rules()
    assert exit_code_for(outcome.verdict, strict=False, rules=rules) == rules.exit_codes.fail


def test_scenario_c_low_mean_degree_warns(policy_payload) -> None:
    outcome = _evaluate(policy_payload, _report(degrees={"histogram": {"0": 0}, "mean": 0.5}))
    rules = load_gate_rules()
    assert outcome.verdict is Verdict.WARN
    assert exit_code_for(outcome.verdict, strict=False, rules=rules) == 0
    strict_code = exit_code_for(outcome.verdict, strict=True, rules=rules)
    assert strict_code == rules.exit_codes.warn_strict
    assert strict_code not in {0, rules.exit_codes.fail}


def test_isolates_above_maximum_fail(policy_payload) -> None:
    outcome = _evaluate(policy_payload, _report(degrees={"histogram": {"0": 2}, "mean": 2.1}))
    assert outcome.verdict is Verdict.FAIL
    assert outcome.findings[0].observed == 2


def test_cross_cluster_ratio_above_maximum_fails(policy_payload) -> None:
    policy_payload["fairness"]["maxPromotedCrossClusterRatio"] = 0.05
    outcome = _evaluate(policy_payload, _report())
    assert outcome.verdict is Verdict.FAIL


def test_fail_dominates_warn(policy_payload) -> None:
    outcome = _evaluate(
        policy_payload,
        _report(largest_component_ratio=0.2, degrees={"histogram": {"0": 0}, "mean": 0.1}),
    )
    assert outcome.verdict is Verdict.FAIL
    assert {finding.severity for finding in outcome.findings} == {"fail", "warn"}


@pytest.mark.parametrize(
    ("share", "verdict"),
    [(0.1, Verdict.PASS), (0.3, Verdict.WARN), (0.6, Verdict.FAIL)],
)
def test_promoted_share_bands(policy_payload, share: float, verdict: Verdict) -> None:
    policy_payload["fairness"]["maxPromotedShareWarn"] = 0.2
    policy_payload["fairness"]["maxPromotedShareFail"] = 0.5
    outcome = _evaluate(policy_payload, _report(), promoted_share=share)
    assert outcome.verdict is verdict
    assert outcome.promoted_share == share


def test_promoted_share_defaults_to_report_value(policy_payload) -> None:
    policy_payload["fairness"]["maxPromotedShareWarn"] = 0.2
    policy_payload["fairness"]["maxPromotedShareFail"] = 0.5
    outcome = _evaluate(policy_payload, _report(promoted_share=0.3))
    assert outcome.verdict is Verdict.WARN


def test_run_gate_prints_tagged_verdict(
    tmp_path: Path, write_json, geo_inputs, capsys: pytest.CaptureFixture[str]
) -> None:
    report_path = write_json(tmp_path / "report.json", _report(largest_component_ratio=0.5))
    result = run_gate(geo_inputs["policy"], report_path)
    captured = capsys.readouterr()
    assert result.verdict == "FAIL"
    assert result.exit_code == 1
    assert "[gate] FAIL" in captured.err
    assert "graph.minLargestComponentRatio" in captured.out


def test_run_gate_warn_strict_message(
    tmp_path: Path, write_json, geo_inputs, capsys: pytest.CaptureFixture[str]
) -> None:
    report_path = write_json(
        tmp_path / "report.json", _report(degrees={"histogram": {"0": 0}, "mean": 0.5})
    )
    result = run_gate(geo_inputs["policy"], report_path, strict=True)
    assert (result.verdict, result.exit_code) == ("WARN", 2)
    assert "[gate] WARN (strict)" in capsys.readouterr().err


def test_run_gate_quiet_keeps_verdict_line(
    tmp_path: Path, write_json, geo_inputs, capsys: pytest.CaptureFixture[str]
) -> None:
    report_path = write_json(tmp_path / "report.json", _report(largest_component_ratio=0.5))
    run_gate(geo_inputs["policy"], report_path, console=Console(tag="gate", quiet=True))
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[gate] FAIL" in captured.err


@pytest.mark.parametrize(
    "report",
    [
        {"degrees": {"mean": 1.0}, "cross_cluster_ratio": 0.1},
        {"largest_component_ratio": "big", "degrees": {"mean": 1.0}, "cross_cluster_ratio": 0.1},
        ["not", "an", "object"],
    ],
)
def test_run_gate_malformed_report_is_invalid(
    tmp_path: Path, write_json, geo_inputs, report: object, capsys: pytest.CaptureFixture[str]
) -> None:
    report_path = write_json(tmp_path / "report.json", report)
    result = run_gate(geo_inputs["policy"], report_path)
    assert result.verdict == "INVALID"
    assert result.exit_code == 3
    assert result.findings == []
    assert "[gate] FAIL (invalid policy/report)" in capsys.readouterr().err


def test_run_gate_missing_files_are_invalid(tmp_path: Path) -> None:
    result = run_gate(tmp_path / "policy.jsonc", tmp_path / "report.json")
    assert result.exit_code == 3
    assert "ReportIOError" in result.errors[0]


def test_run_gate_inconsistent_policy_is_invalid(
    tmp_path: Path, write_json, policy_payload
) -> None:
    policy_payload["fairness"]["maxPromotedShareWarn"] = 0.9
    policy_payload["fairness"]["maxPromotedShareFail"] = 0.1
    policy_path = write_json(tmp_path / "policy.jsonc", policy_payload)
    report_path = write_json(tmp_path / "report.json", _report())
    result = run_gate(policy_path, report_path)
    assert result.exit_code == 3
    assert result.errors[0].startswith("ConfigurationInconsistency")
