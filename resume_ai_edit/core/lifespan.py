from contextlib import asynccontextmanager
import logging

from resume_ai_edit.ai.config import load_ai_config
from resume_ai_edit.core.limits import get_limits_config
from resume_ai_edit.services.decision_loop import load_system_prompt

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    limits = get_limits_config()
    prompt = load_system_prompt()
    ai_config = load_ai_config()
    logger.info(
        "ai_edit_startup provider=%s model=%s llm_enabled=%s prompt_chars=%s limits=%s",
        ai_config.provider,
        ai_config.model,
        ai_config.enabled,
        len(prompt),
        sorted(limits.keys()),
    )
    yield
