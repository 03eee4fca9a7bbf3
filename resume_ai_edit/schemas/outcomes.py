from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from resume_ai_edit.schemas.ai_edit import Mention


@dataclass(frozen=True)
class Already:
    path: str
    reason: str
    mentioned: Literal["yes"] = "yes"


@dataclass(frozen=True)
class Edit:
    path: str
    mentioned: Mention
    replacement: str
    reason: str


@dataclass(frozen=True)
class Unresolved:
    mentioned: Mention
    reason: str
    path: str | None = None
    temporary: bool = False


DecisionOutcome = Union[Already, Edit, Unresolved]
