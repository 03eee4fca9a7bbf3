from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping

from resume_ai_edit.schemas.ai_edit import ElementProfile, Requirement, ResumeDocument

from .lexical import sanitize_text

SUBTITLE_PATH = "metadata.subtitle"

_EXPERIENCE_BULLET_RE = re.compile(r"^experience\[\d+\]\.bullets\[\d+\]$")
_PROJECT_BULLET_RE = re.compile(r"^projects\[\d+\]\.bullets\[\d+\]$")
_SKILL_RE = re.compile(r"^skills\[\d+\]\.name$")
_EDUCATION_RE = re.compile(r"^education\[\d+\]\.(degree|field|other)$")


class CandidateCategory(str, Enum):
    EXPERIENCE_BULLET = "experience_bullet"
    PROJECT_BULLET = "project_bullet"
    SUBTITLE = "subtitle"
    SKILL_NAME = "skill_name"
    EDUCATION_FIELD = "education_field"


@dataclass(frozen=True)
class CandidateWord:
    word: str
    char_count: int


@dataclass(frozen=True)
class CandidateElement:
    path: str
    text: str
    max_lines: int
    max_chars_per_line: int
    max_chars_total: int
    total_char_count: int
    words: tuple[CandidateWord, ...] = ()

    @property
    def category(self) -> CandidateCategory | None:
        return path_category(self.path)


def path_category(path: str) -> CandidateCategory | None:
    if _EXPERIENCE_BULLET_RE.match(path):
        return CandidateCategory.EXPERIENCE_BULLET
    if _PROJECT_BULLET_RE.match(path):
        return CandidateCategory.PROJECT_BULLET
    if path == SUBTITLE_PATH:
        return CandidateCategory.SUBTITLE
    if _SKILL_RE.match(path):
        return CandidateCategory.SKILL_NAME
    if _EDUCATION_RE.match(path):
        return CandidateCategory.EDUCATION_FIELD
    return None


def is_education_path(path: str) -> bool:
    return path_category(path) is CandidateCategory.EDUCATION_FIELD


def is_subtitle_path(path: str) -> bool:
    return path == SUBTITLE_PATH


def item_type_for_path(path: str) -> str:
    return "bullet" if ".bullets[" in path else "text"


def is_eligible_for(candidate: CandidateElement, requirement: Requirement) -> bool:
    category = candidate.category
    if category is None:
        return False
    if category is CandidateCategory.EDUCATION_FIELD:
        return requirement.type == "education"
    return True


def build_candidates(
    document: ResumeDocument, profiles_by_path: Mapping[str, ElementProfile]
) -> list[CandidateElement]:
    """Addressable text elements in traversal order.

    Experience bullets, project bullets, education fields, the subtitle, then
    skill names. Hidden sections and paths without a length profile are skipped.
    """
    visibility = document.section_visibility
    candidates: list[CandidateElement] = []

    def push(path: str, raw_text: str | None) -> None:
        profile = profiles_by_path.get(path)
        if profile is None:
            return
        candidates.append(
            CandidateElement(
                path=path,
                text=sanitize_text(raw_text or ""),
                max_lines=profile.max_lines,
                max_chars_per_line=profile.max_chars_per_line,
                max_chars_total=profile.max_chars_total,
                total_char_count=profile.total_char_count,
                words=tuple(
                    CandidateWord(word=word.word, char_count=word.char_count) for word in profile.words
                ),
            )
        )

    if visibility.experience is not False:
        for entry_index, entry in enumerate(document.experience):
            for bullet_index, bullet in enumerate(entry.bullets):
                push(f"experience[{entry_index}].bullets[{bullet_index}]", bullet)

    if visibility.projects is not False:
        for project_index, project in enumerate(document.projects):
            for bullet_index, bullet in enumerate(project.bullets):
                push(f"projects[{project_index}].bullets[{bullet_index}]", bullet)

    if visibility.education is not False:
        for entry_index, entry in enumerate(document.education):
            push(f"education[{entry_index}].degree", entry.degree)
            push(f"education[{entry_index}].field", entry.field)
            push(f"education[{entry_index}].other", entry.other)

    push(SUBTITLE_PATH, document.metadata.subtitle)

    if visibility.skills is not False:
        for skill_index, skill in enumerate(document.skills):
            push(f"skills[{skill_index}].name", skill.name)

    return candidates


def index_profiles(profiles: Iterable[ElementProfile]) -> dict[str, ElementProfile]:
    """Last profile wins when a path repeats."""
    return {profile.path: profile for profile in profiles}
