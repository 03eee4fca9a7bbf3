import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    enabled: bool
    api_key: str
    base_url: str | None
    timeout_s: float
    max_retries: int


def load_ai_config() -> AIConfig:
    provider = os.getenv("AI_PROVIDER", "openai").strip().lower()
    model = (os.getenv("AI_MODEL") or os.getenv("OPENAI_MODEL") or "gpt-4o-mini").strip()
    api_key = (os.getenv("OPENAI_API_KEY") or "").strip()
    enabled = (
        _env_bool("AI_EDIT_LLM_ENABLED", True)
        and bool(api_key)
        and not _looks_like_placeholder(api_key)
    )
    return AIConfig(
        provider=provider,
        model=model,
        enabled=enabled,
        api_key=api_key,
        base_url=(os.getenv("OPENAI_BASE_URL") or "").strip() or None,
        timeout_s=float(os.getenv("AI_EDIT_TIMEOUT_S", "30")),
        max_retries=int(os.getenv("OPENAI_MAX_RETRIES", "2")),
    )
