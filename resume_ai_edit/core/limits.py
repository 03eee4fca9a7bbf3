from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

_LIMITS_CACHE: dict[str, Any] | None = None
_DEFAULT_LIMITS_PATH = Path(__file__).resolve().parents[1] / "resources" / "ai_edit.yaml"


def _limits_path() -> Path:
    override = (os.getenv("AI_EDIT_CONFIG_PATH") or "").strip()
    return Path(override) if override else _DEFAULT_LIMITS_PATH


def get_limits_config() -> dict[str, Any]:
    """Load the AI edit limits from resources/ai_edit.yaml and cache them."""
    global _LIMITS_CACHE

    if _LIMITS_CACHE is not None:
        return _LIMITS_CACHE

    path = _limits_path()
    if not path.exists():
        raise RuntimeError(
            f"AI edit config not found at '{path}'. "
            "Expected file: resume_ai_edit/resources/ai_edit.yaml"
        )

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuntimeError(f"Failed to read AI edit config '{path}': {exc}") from exc

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise RuntimeError(f"Invalid YAML in AI edit config '{path}': {exc}") from exc

    if not isinstance(parsed, dict):
        raise RuntimeError(
            f"Invalid AI edit config '{path}': expected a top-level mapping."
        )

    _LIMITS_CACHE = parsed
    return _LIMITS_CACHE


def clear_limits_cache() -> None:
    global _LIMITS_CACHE
    _LIMITS_CACHE = None


def get_limit_value(path: str, default: Any = None) -> Any:
    """Get nested config value using dot path notation, e.g. 'decision.max_attempts'."""
    if not path:
        return default

    current: Any = get_limits_config()
    for key in path.split("."):
        if not isinstance(current, dict):
            return default
        if key not in current:
            return default
        current = current[key]
    return current


def get_limit_int(path: str, default: int) -> int:
    value = get_limit_value(path, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
