from __future__ import annotations

import argparse
from pathlib import Path

from geodoctor.config import resolve_config
from geodoctor.runtime.console import Console
from geodoctor.tooling.gate import run_gate
from geodoctor.tooling.gate_rules import load_gate_rules


def check_gate(
    policy_path: Path,
    report_path: Path,
    *,
    strict: bool = False,
    quiet: bool = False,
) -> int:
    rules = load_gate_rules()
    console = Console(tag=rules.tag, quiet=quiet)
    result = run_gate(policy_path, report_path, strict=strict, rules=rules, console=console)
    return result.exit_code


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Geo linking gate for CI.")
    parser.add_argument("--policy", type=Path, default=None)
    parser.add_argument("--report", type=Path, default=None)
    parser.add_argument("--strict", action="store_true")
    parser.add_argument("--quiet", "-q", action="store_true")
    args = parser.parse_args(argv)
    config = resolve_config()
    return check_gate(
        args.policy or config.policy,
        args.report or config.report,
        strict=args.strict,
        quiet=args.quiet,
    )


if __name__ == "__main__":
    raise SystemExit(main())
