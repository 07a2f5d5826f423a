from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import yaml

from geodoctor.exceptions import ConfigurationInconsistency, ReportIOError

DEFAULT_RULES_PATH = Path(__file__).with_name("gate_rules.yaml")

_EXIT_CODE_KEYS = ("pass", "fail", "warn_strict", "invalid")
_MESSAGE_KEYS = ("pass", "warn", "warn_strict", "fail", "invalid")


@dataclass(frozen=True)
class GateExitCodes:
    passed: int
    fail: int
    warn_strict: int
    invalid: int


@dataclass(frozen=True)
class GateMessages:
    passed: str
    warn: str
    warn_strict: str
    fail: str
    invalid: str


@dataclass(frozen=True)
class GateRules:
    tag: str
    exit_codes: GateExitCodes
    messages: GateMessages


def _yaml_loader():
    class Loader(yaml.SafeLoader):
        pass

    for key, values in list(Loader.yaml_implicit_resolvers.items()):
        Loader.yaml_implicit_resolvers[key] = [
            (tag, regexp) for tag, regexp in values if tag != "tag:yaml.org,2002:bool"
        ]
    return Loader


def _as_int(raw: object, *, field_name: str) -> int:
    if isinstance(raw, bool):
        raise ConfigurationInconsistency(f"gate_rules invalid {field_name}: expected int")
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationInconsistency(
            f"gate_rules invalid {field_name}: expected int"
        ) from exc


def _section(raw: Mapping[str, object], name: str, keys: tuple[str, ...]) -> Mapping[str, object]:
    section = raw.get(name)
    if not isinstance(section, Mapping):
        raise ConfigurationInconsistency(f"gate_rules must define {name}")
    missing = [key for key in keys if key not in section]
    if missing:
        raise ConfigurationInconsistency(f"gate_rules {name} missing: {', '.join(missing)}")
    return section


def gate_rules_from_mapping(raw: Mapping[str, object]) -> GateRules:
    codes_raw = _section(raw, "exit_codes", _EXIT_CODE_KEYS)
    messages_raw = _section(raw, "messages", _MESSAGE_KEYS)
    codes = GateExitCodes(
        passed=_as_int(codes_raw["pass"], field_name="exit_codes.pass"),
        fail=_as_int(codes_raw["fail"], field_name="exit_codes.fail"),
        warn_strict=_as_int(codes_raw["warn_strict"], field_name="exit_codes.warn_strict"),
        invalid=_as_int(codes_raw["invalid"], field_name="exit_codes.invalid"),
    )
    if codes.passed != 0:
        raise ConfigurationInconsistency("gate_rules exit_codes.pass must be 0")
    values = [codes.passed, codes.fail, codes.warn_strict, codes.invalid]
    if len(set(values)) != len(values):
        raise ConfigurationInconsistency("gate_rules exit codes must be distinct")
    return GateRules(
        tag=str(raw.get("tag", "gate")),
        exit_codes=codes,
        messages=GateMessages(
            passed=str(messages_raw["pass"]),
            warn=str(messages_raw["warn"]),
            warn_strict=str(messages_raw["warn_strict"]),
            fail=str(messages_raw["fail"]),
            invalid=str(messages_raw["invalid"]),
        ),
    )


def load_gate_rules(path: Path | None = None) -> GateRules:
    """Load gate exit codes and messages; the caller owns the returned value."""
    rule_path = DEFAULT_RULES_PATH if path is None else path
    try:
        with rule_path.open("r", encoding="utf-8") as handle:
            raw = yaml.load(handle, Loader=_yaml_loader()) or {}
    except OSError as exc:
        raise ReportIOError(f"gate rules unreadable: {exc}", path=rule_path) from exc
    except yaml.YAMLError as exc:
        raise ConfigurationInconsistency(f"gate rules invalid YAML: {exc}", path=rule_path) from exc
    if not isinstance(raw, Mapping):
        raise ConfigurationInconsistency("gate_rules root must be a mapping", path=rule_path)
    return gate_rules_from_mapping(raw)
