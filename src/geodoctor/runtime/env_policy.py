from __future__ import annotations

import os

DEBUG_ENV_FLAG = "GEODOCTOR_DEBUG"
CONFIG_ENV_FLAG = "GEODOCTOR_CONFIG"

_TRUTHY_VALUES = {"1", "true", "yes", "on"}


def env_text(name: str, *, default: str = "") -> str:
    return os.getenv(name, default).strip()


def env_enabled_truthy_only(name: str) -> bool:
    return env_text(name).lower() in _TRUTHY_VALUES


def debug_enabled() -> bool:
    return env_enabled_truthy_only(DEBUG_ENV_FLAG)
