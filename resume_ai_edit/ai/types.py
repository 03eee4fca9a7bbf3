from typing import Protocol, TypeVar

from pydantic import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)


class StructuredGenerator(Protocol):
    """One schema-constrained model call.

    Implementations return an instance of ``response_model`` or raise
    ``SchemaValidationError`` when the model output does not conform, and
    ``AIEditLLMError`` (with ``transient`` set) for provider failures.
    """

    def generate(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        response_model: type[ModelT],
    ) -> ModelT: ...
