from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from resume_ai_edit.core.limits import get_limit_int

RequirementType = Literal[
    "tool",
    "platform",
    "method",
    "responsibility",
    "domain",
    "governance",
    "leadership",
    "commercial",
    "education",
    "constraint",
]
Mention = Literal["yes", "implied", "none"]
ReportStatus = Literal["already_mentioned", "edited", "unresolved", "locked_no_edit"]
ItemType = Literal["text", "bullet"]

MAX_REQUIREMENT_PHRASES = 12


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Requirement(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(min_length=1, max_length=200)
    canonical: str = Field(min_length=1, max_length=300)
    type: RequirementType
    weight: float = Field(ge=0, le=100)
    must_have: bool
    aliases: list[str] = Field(default_factory=list, max_length=MAX_REQUIREMENT_PHRASES)
    jd_evidence: list[str] = Field(default_factory=list, max_length=MAX_REQUIREMENT_PHRASES)


class ElementWord(CamelModel):
    index: int = Field(default=0, ge=0)
    word: str
    char_count: int = Field(ge=0)
    start: int = Field(default=0, ge=0)
    end: int = Field(default=0, ge=0)


class ElementProfile(CamelModel):
    path: str = Field(min_length=1)
    text: str = ""
    max_lines: int = Field(gt=0)
    max_chars_per_line: int = Field(gt=0)
    max_chars_total: int = Field(gt=0)
    used_line_count: int = Field(default=0, ge=0)
    remaining_line_count: int = Field(default=0, ge=0)
    overflow_line_count: int = Field(default=0, ge=0)
    total_char_count: int = Field(ge=0)
    remaining_char_count: int = 0
    overflow_char_count: int = 0
    words: list[ElementWord] = Field(default_factory=list)


class SectionVisibility(CamelModel):
    summary: bool | None = None
    experience: bool | None = None
    projects: bool | None = None
    education: bool | None = None
    skills: bool | None = None


class ResumeMetadata(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    subtitle: str = ""


class ExperienceEntry(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    bullets: list[str] = Field(default_factory=list)


class ProjectEntry(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    bullets: list[str] = Field(default_factory=list)


class EducationEntry(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    degree: str = ""
    field: str = ""
    other: str = ""


class SkillEntry(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str = ""


class ResumeDocument(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    section_visibility: SectionVisibility = Field(default_factory=SectionVisibility)
    metadata: ResumeMetadata
    experience: list[ExperienceEntry] = Field(default_factory=list)
    projects: list[ProjectEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    skills: list[SkillEntry] = Field(default_factory=list)


class AiEditRequest(CamelModel):
    requirements: list[Requirement] = Field(min_length=1)
    document: ResumeDocument = Field(validation_alias=AliasChoices("document", "resumeData"))
    element_profiles: list[ElementProfile] = Field(default_factory=list)
    stream: bool = False

    @field_validator("requirements")
    @classmethod
    def _validate_requirement_count(cls, value: list[Requirement]) -> list[Requirement]:
        limit = get_limit_int("limits.max_requirements", 24)
        if len(value) > limit:
            raise ValueError(f"at most {limit} requirements can be resolved per request")
        return value


class AiEditOperation(CamelModel):
    op: Literal["replace"] = "replace"
    path: str
    value: str
    item_type: ItemType
    requirement_id: str
    mentioned: Mention
    feasible_edit: bool = True
    edited: bool = True


class AiEditReportEntry(CamelModel):
    requirement_id: str
    canonical: str
    status: ReportStatus
    mentioned: Mention
    matched_path: str | None = None
    edited_path: str | None = None
    reason: str | None = None


class AiEditProgress(CamelModel):
    completed: int = Field(ge=0)
    total: int = Field(ge=0)
    requirement_id: str
    canonical: str
    status: ReportStatus


class AiEditResponse(CamelModel):
    operations: list[AiEditOperation] = Field(default_factory=list)
    report: list[AiEditReportEntry] = Field(default_factory=list)
    error: str | None = None


class AiDecision(BaseModel):
    """Shape the model must return for one requirement."""

    path: str | None
    mentioned: Mention
    feasible_edit: bool
    edited: bool
    suggested_edit: str
    reason: str
