from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from resume_ai_edit.matching.line_constraints import FieldLengthConstraint, build_element_length_profile
from resume_ai_edit.schemas.ai_edit import AiEditRequest, ElementProfile, Requirement, ResumeDocument


class ScriptedGenerator:
    """Structured generator that replays queued responses or raises queued exceptions."""

    def __init__(self, *responses: Any):
        self._responses = list(responses)
        self.prompts: list[str] = []
        self.system_prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    @property
    def remaining(self) -> int:
        return len(self._responses)

    def generate(self, *, system_prompt: str, user_prompt: str, response_model: type[BaseModel]):
        self.system_prompts.append(system_prompt)
        self.prompts.append(user_prompt)
        if not self._responses:
            raise AssertionError("unexpected generation call")
        item = self._responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return response_model.model_validate(item)


def decision(
    *,
    path: str | None = None,
    mentioned: str = "none",
    feasible_edit: bool = False,
    edited: bool = False,
    suggested_edit: str = "",
    reason: str = "",
) -> dict[str, Any]:
    return {
        "path": path,
        "mentioned": mentioned,
        "feasible_edit": feasible_edit,
        "edited": edited,
        "suggested_edit": suggested_edit,
        "reason": reason,
    }


def edit_decision(path: str, suggested_edit: str, *, mentioned: str = "implied", reason: str = "") -> dict[str, Any]:
    return decision(
        path=path,
        mentioned=mentioned,
        feasible_edit=True,
        edited=True,
        suggested_edit=suggested_edit,
        reason=reason,
    )


def requirement(
    canonical: str,
    *,
    req_id: str = "r1",
    type: str = "tool",
    weight: float = 80,
    must_have: bool = True,
    aliases: list[str] | None = None,
    jd_evidence: list[str] | None = None,
) -> Requirement:
    return Requirement(
        id=req_id,
        canonical=canonical,
        type=type,
        weight=weight,
        must_have=must_have,
        aliases=aliases or [],
        jd_evidence=jd_evidence or [],
    )


def constraint(max_chars_per_line: int = 90, max_lines: int = 2) -> FieldLengthConstraint:
    return FieldLengthConstraint(
        max_lines=max_lines,
        max_chars_per_line=max_chars_per_line,
        max_chars_total=max_chars_per_line * max_lines,
        available_width_px=float(max_chars_per_line * 6),
        font_size_px=10.0,
        font_family="Georgia",
        safety_buffer=0.97,
    )


def profile(path: str, text: str = "", *, max_chars_per_line: int = 90, max_lines: int = 2) -> ElementProfile:
    return build_element_length_profile(path, text, constraint(max_chars_per_line, max_lines))


def document(
    *,
    experience: list[list[str]] | None = None,
    projects: list[list[str]] | None = None,
    education: list[dict[str, str]] | None = None,
    subtitle: str = "",
    skills: list[str] | None = None,
    visibility: dict[str, bool] | None = None,
) -> ResumeDocument:
    return ResumeDocument.model_validate(
        {
            "sectionVisibility": visibility or {},
            "metadata": {"fullName": "Jane Doe", "subtitle": subtitle},
            "experience": [{"company": "Acme", "bullets": bullets} for bullets in (experience or [])],
            "projects": [{"name": "Side project", "bullets": bullets} for bullets in (projects or [])],
            "education": education or [],
            "skills": [{"name": name} for name in (skills or [])],
        }
    )


def document_texts(doc: ResumeDocument) -> dict[str, str]:
    texts: dict[str, str] = {}
    for entry_index, entry in enumerate(doc.experience):
        for bullet_index, bullet in enumerate(entry.bullets):
            texts[f"experience[{entry_index}].bullets[{bullet_index}]"] = bullet
    for project_index, project in enumerate(doc.projects):
        for bullet_index, bullet in enumerate(project.bullets):
            texts[f"projects[{project_index}].bullets[{bullet_index}]"] = bullet
    for entry_index, entry in enumerate(doc.education):
        texts[f"education[{entry_index}].degree"] = entry.degree
        texts[f"education[{entry_index}].field"] = entry.field
        texts[f"education[{entry_index}].other"] = entry.other
    texts["metadata.subtitle"] = doc.metadata.subtitle
    for skill_index, skill in enumerate(doc.skills):
        texts[f"skills[{skill_index}].name"] = skill.name
    return texts


def profiles_for(doc: ResumeDocument, **kwargs: Any) -> list[ElementProfile]:
    return [profile(path, text, **kwargs) for path, text in document_texts(doc).items()]


def make_request(requirements: list[Requirement], doc: ResumeDocument, **profile_kwargs: Any) -> AiEditRequest:
    return AiEditRequest(
        requirements=requirements,
        document=doc,
        element_profiles=profiles_for(doc, **profile_kwargs),
    )


def request_json(requirements: list[Requirement], doc: ResumeDocument, *, stream: bool = False) -> dict[str, Any]:
    return {
        "requirements": [item.model_dump(mode="json", by_alias=True) for item in requirements],
        "document": doc.model_dump(mode="json", by_alias=True),
        "elementProfiles": [item.model_dump(mode="json", by_alias=True) for item in profiles_for(doc)],
        "stream": stream,
    }
