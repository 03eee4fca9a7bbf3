from __future__ import annotations

import json
import logging
import os
import time
from typing import Optional

import openai
from openai import OpenAI
from pydantic import ValidationError

from resume_ai_edit.ai.errors import AIEditLLMError, SchemaValidationError, is_transient_ai_error
from resume_ai_edit.ai.types import ModelT
from resume_ai_edit.core.limits import get_limit_value

logger = logging.getLogger(__name__)


def _schema_instructions(response_model: type[ModelT]) -> str:
    schema = json.dumps(response_model.model_json_schema(), ensure_ascii=False)
    return (
        "Respond with a single JSON object only. "
        f"It must validate against this JSON schema:\n{schema}"
    )


class OpenAIProvider:
    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 30.0,
        max_retries: int = 2,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ):
        self._model = model
        self._temperature = (
            float(get_limit_value("llm.temperature", 0.2)) if temperature is None else temperature
        )
        self._max_output_tokens = (
            int(get_limit_value("llm.max_output_tokens", 700))
            if max_output_tokens is None
            else max_output_tokens
        )
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key:
            raise RuntimeError("OPENAI_API_KEY is missing")

        self._client = OpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=timeout_s,
            max_retries=max_retries,
        )

    @property
    def model(self) -> str:
        return self._model

    def generate(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        response_model: type[ModelT],
    ) -> ModelT:
        started = time.perf_counter()
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {
                        "role": "system",
                        "content": f"{system_prompt.strip()}\n\n{_schema_instructions(response_model)}",
                    },
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self._temperature,
                response_format={"type": "json_object"},
                max_tokens=self._max_output_tokens,
            )
        except openai.OpenAIError as exc:
            transient = is_transient_ai_error(exc)
            logger.warning(
                "ai_edit_llm_call_failed model=%s transient=%s prompt_len=%s: %s",
                self._model,
                transient,
                len(user_prompt),
                exc,
            )
            raise AIEditLLMError(str(exc), code="llm_exception", transient=transient) from exc

        latency_ms = int((time.perf_counter() - started) * 1000)
        content = response.choices[0].message.content if response.choices else ""
        if not content:
            raise SchemaValidationError("The model returned an empty response.")

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as exc:
            raise SchemaValidationError(f"The model response was not valid JSON: {exc.msg}.") from exc

        try:
            result = response_model.model_validate(parsed)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or 'root'}: {error['msg']}"
                for error in exc.errors()
            )
            raise SchemaValidationError(f"The model response did not match the schema: {problems}.") from exc

        logger.debug("ai_edit_llm_call_ok model=%s latency_ms=%s", self._model, latency_ms)
        return result
