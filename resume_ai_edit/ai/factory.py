from resume_ai_edit.ai.config import load_ai_config
from resume_ai_edit.ai.types import StructuredGenerator

from resume_ai_edit.ai.providers.openai_provider import OpenAIProvider


def get_structured_generator() -> StructuredGenerator | None:
    """Return the configured generator, or None when AI decisions are disabled."""
    cfg = load_ai_config()

    if cfg.provider != "openai":
        raise ValueError(f"Unsupported AI_PROVIDER='{cfg.provider}'")

    if not cfg.enabled:
        return None

    return OpenAIProvider(
        model=cfg.model,
        api_key=cfg.api_key,
        base_url=cfg.base_url,
        timeout_s=cfg.timeout_s,
        max_retries=cfg.max_retries,
    )
