from __future__ import annotations

import openai

TEMPORARY_AI_SERVICE_ERROR = "AI provider is temporarily unavailable. Please try AI Edit again."
GENERIC_AI_EDIT_ERROR = "Failed to generate AI edits."

_TRANSIENT_MESSAGE_MARKERS = (
    "bad gateway",
    "gateway timeout",
    "service unavailable",
    "temporarily unavailable",
    "timed out",
)
_RETRYABLE_STATUS_CODES = {408, 409, 429}


class AIEditLLMError(RuntimeError):
    def __init__(self, message: str, *, code: str = "llm_unavailable", transient: bool = False):
        super().__init__(message)
        self.code = code
        self.transient = transient


class SchemaValidationError(AIEditLLMError):
    """Model output did not match the requested schema. Always repairable."""

    def __init__(self, message: str):
        super().__init__(message, code="invalid_schema", transient=False)


def has_transient_message(value: str) -> bool:
    normalized = (value or "").lower()
    return any(marker in normalized for marker in _TRANSIENT_MESSAGE_MARKERS)


def is_transient_ai_error(error: BaseException | None) -> bool:
    if error is None:
        return False

    if isinstance(error, SchemaValidationError):
        return False

    if isinstance(error, AIEditLLMError):
        if error.transient:
            return True
        return is_transient_ai_error(error.__cause__) or has_transient_message(str(error))

    if isinstance(error, openai.APIConnectionError):
        return True
    if isinstance(error, openai.RateLimitError):
        return True
    if isinstance(error, openai.APIStatusError):
        status_code = error.status_code
        if status_code in _RETRYABLE_STATUS_CODES or status_code >= 500:
            return True
        return has_transient_message(str(error))

    if isinstance(error, TimeoutError):
        return True

    if has_transient_message(str(error)):
        return True
    return is_transient_ai_error(error.__cause__)


def client_facing_error(error: BaseException) -> tuple[int, str]:
    if is_transient_ai_error(error):
        return 503, TEMPORARY_AI_SERVICE_ERROR
    return 500, GENERIC_AI_EDIT_ERROR
