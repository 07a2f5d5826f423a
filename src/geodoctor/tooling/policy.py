from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from pydantic import ValidationError

from geodoctor.exceptions import ConfigurationInconsistency, InputShapeError
from geodoctor.runtime import json_io
from geodoctor.schema import GateReportDTO, PolicyDTO


def parse_jsonc(text: str) -> object:
    """Parse JSON that may carry ``//`` and ``/* */`` comments."""
    stripped = json_io.strip_json_comments(text)
    try:
        return json.loads(stripped)
    except json.JSONDecodeError as exc:
        raise InputShapeError(f"invalid JSONC: {exc}") from exc


def _error_path(error: Mapping[str, object]) -> str:
    location = error.get("loc", ())
    if not isinstance(location, tuple):
        return str(location)
    return ".".join(str(part) for part in location) or "<root>"


def _summarize(exc: ValidationError) -> str:
    return "; ".join(
        f"{_error_path(error)}: {error.get('msg', 'invalid')}" for error in exc.errors()
    )


def validate_policy(payload: object, *, path: Path | None = None) -> PolicyDTO:
    """Validate a parsed policy and check that Fail thresholds never open before Warn.

    Missing fields and threshold inconsistencies raise
    ``ConfigurationInconsistency``; wrong types or out-of-range values raise
    ``InputShapeError``.
    """
    if not isinstance(payload, Mapping):
        raise InputShapeError(
            f"policy must be an object, got {type(payload).__name__}", path=path
        )
    try:
        policy = PolicyDTO.model_validate(payload)
    except ValidationError as exc:
        missing = [error for error in exc.errors() if error.get("type") == "missing"]
        if missing:
            fields = ", ".join(_error_path(error) for error in missing)
            raise ConfigurationInconsistency(
                f"policy missing required field(s): {fields}", path=path
            ) from exc
        raise InputShapeError(f"policy invalid: {_summarize(exc)}", path=path) from exc
    fairness = policy.fairness
    if fairness.max_promoted_share_fail < fairness.max_promoted_share_warn:
        raise ConfigurationInconsistency(
            "fairness.maxPromotedShareFail "
            f"({fairness.max_promoted_share_fail}) is below "
            f"fairness.maxPromotedShareWarn ({fairness.max_promoted_share_warn}); "
            "the warn band would be unreachable",
            path=path,
        )
    return policy


def load_policy(path: Path) -> PolicyDTO:
    payload = parse_jsonc_path(path)
    return validate_policy(payload, path=path)


def parse_jsonc_path(path: Path) -> object:
    text = json_io.read_text_path(path)
    try:
        return parse_jsonc(text)
    except InputShapeError as exc:
        raise InputShapeError(exc.message, path=path) from exc


def validate_gate_report(payload: object, *, path: Path | None = None) -> GateReportDTO:
    if not isinstance(payload, Mapping):
        raise InputShapeError(
            f"report must be an object, got {type(payload).__name__}", path=path
        )
    try:
        return GateReportDTO.model_validate(payload)
    except ValidationError as exc:
        raise InputShapeError(f"report invalid: {_summarize(exc)}", path=path) from exc


def load_gate_report(path: Path) -> GateReportDTO:
    return validate_gate_report(json_io.load_json_path(path), path=path)
