from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import tomllib

from geodoctor.runtime import env_policy

DEFAULT_CONFIG_NAME = "geodoctor.toml"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]


@dataclass(frozen=True)
class GeoDoctorConfig:
    clusters: Path = Path("src/data/clusters.json")
    adjacency: Path = Path("src/data/adjacency.json")
    policy: Path = Path("geo.linking.config.jsonc")
    report: Path = Path("__reports/geo-doctor.json")
    markdown: Path = Path("__reports/geo-report.md")
    max_neighbors: int = 6
    precision: int = 6
    promoted_share_metric: str = "placeholder"

    def resolved(self, root: Path) -> "GeoDoctorConfig":
        def _under(path: Path) -> Path:
            return path if path.is_absolute() else root / path

        return replace(
            self,
            clusters=_under(self.clusters),
            adjacency=_under(self.adjacency),
            policy=_under(self.policy),
            report=_under(self.report),
            markdown=_under(self.markdown),
        )


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        override = env_policy.env_text(env_policy.CONFIG_ENV_FLAG)
        if override:
            config_path = Path(override)
        else:
            base = root if root is not None else Path.cwd()
            config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def geodoctor_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get("geodoctor", {})
    return section if isinstance(section, dict) else {}


def _as_path(value: TomlValue, default: Path) -> Path:
    if isinstance(value, str) and value.strip():
        return Path(value.strip())
    return default


def _as_non_negative_int(value: TomlValue, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value if value >= 0 else default


def config_from_section(section: TomlTable | None) -> GeoDoctorConfig:
    base = GeoDoctorConfig()
    if not section:
        return base
    metric = section.get("promoted_share_metric")
    return GeoDoctorConfig(
        clusters=_as_path(section.get("clusters"), base.clusters),
        adjacency=_as_path(section.get("adjacency"), base.adjacency),
        policy=_as_path(section.get("policy"), base.policy),
        report=_as_path(section.get("report"), base.report),
        markdown=_as_path(section.get("markdown"), base.markdown),
        max_neighbors=_as_non_negative_int(section.get("max_neighbors"), base.max_neighbors),
        precision=_as_non_negative_int(section.get("precision"), base.precision),
        promoted_share_metric=(
            metric.strip() if isinstance(metric, str) and metric.strip()
            else base.promoted_share_metric
        ),
    )


def resolve_config(
    root: Path | None = None, config_path: Path | None = None
) -> GeoDoctorConfig:
    base = root if root is not None else Path.cwd()
    section = geodoctor_defaults(root=base, config_path=config_path)
    return config_from_section(section).resolved(base)
