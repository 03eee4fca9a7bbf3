"""Schema-constrained generation with a bounded validate/repair loop."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from resume_ai_edit.ai.errors import SchemaValidationError, is_transient_ai_error
from resume_ai_edit.ai.types import ModelT, StructuredGenerator

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT")


@dataclass(frozen=True)
class RepairRequest:
    """Why an attempt was rejected, plus the rejected text to show the model next time."""

    guidance: str
    rejected_output: str = ""


@dataclass(frozen=True)
class RepairContext:
    guidance: str
    rejected_output: str


def default_repair_prompt(context: RepairContext) -> str:
    sections = []
    if context.rejected_output:
        sections.append(f"Previous suggested edit:\n{context.rejected_output}")
    if context.guidance:
        sections.append(context.guidance)
    return "\n\n".join(sections)


@dataclass
class RepairLoop(Generic[ModelT, ResultT]):
    generator: StructuredGenerator
    response_model: type[ModelT]
    validate: Callable[[ModelT], "ResultT | RepairRequest"]
    on_exhausted: Callable[[], ResultT]
    on_transient_exhausted: Callable[[], ResultT]
    max_attempts: int = 3
    build_repair_prompt: Callable[[RepairContext], str] = default_repair_prompt
    label: str = "structured_generation"

    def run(self, *, system_prompt: str, base_prompt: str) -> ResultT:
        guidance = ""
        rejected_output = ""

        for attempt in range(1, self.max_attempts + 1):
            repair_section = self.build_repair_prompt(
                RepairContext(guidance=guidance, rejected_output=rejected_output)
            )
            user_prompt = "\n\n".join(part for part in (base_prompt, repair_section) if part)

            try:
                response = self.generator.generate(
                    system_prompt=system_prompt,
                    user_prompt=user_prompt,
                    response_model=self.response_model,
                )
            except SchemaValidationError as exc:
                logger.info("%s_schema_repair attempt=%s: %s", self.label, attempt, exc)
                guidance = (
                    f"{exc} Return one JSON object with exactly the required fields and types."
                )
                continue
            except Exception as exc:
                if not is_transient_ai_error(exc):
                    raise
                logger.warning("%s_transient_failure attempt=%s/%s: %s", self.label, attempt, self.max_attempts, exc)
                if attempt < self.max_attempts:
                    continue
                return self.on_transient_exhausted()

            outcome = self.validate(response)
            if isinstance(outcome, RepairRequest):
                logger.info("%s_repair attempt=%s guidance=%r", self.label, attempt, outcome.guidance)
                guidance = outcome.guidance
                if outcome.rejected_output:
                    rejected_output = outcome.rejected_output
                continue
            return outcome

        logger.info("%s_exhausted attempts=%s", self.label, self.max_attempts)
        return self.on_exhausted()
