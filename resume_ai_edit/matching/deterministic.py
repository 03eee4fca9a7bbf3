from __future__ import annotations

from typing import Sequence

from resume_ai_edit.schemas.ai_edit import Requirement

from .candidates import CandidateElement, is_education_path, is_subtitle_path
from .lexical import (
    extract_mentioned_years,
    extract_minimum_years,
    get_degree_level,
    is_phrase_explicitly_mentioned,
    mentions_years_of_experience,
    sanitize_text,
)


def is_years_of_experience_requirement(requirement: Requirement) -> bool:
    samples = [requirement.canonical, *requirement.aliases, *requirement.jd_evidence]
    return any(mentions_years_of_experience(sample) for sample in samples)


def is_locked_requirement(requirement: Requirement) -> bool:
    return requirement.type == "education" or is_years_of_experience_requirement(requirement)


def _requirement_texts(requirement: Requirement) -> list[str]:
    texts = (sanitize_text(text) for text in [requirement.canonical, *requirement.aliases, *requirement.jd_evidence])
    return [text for text in texts if text]


def _requirement_phrases(requirement: Requirement) -> list[str]:
    phrases: list[str] = []
    for phrase in (sanitize_text(text) for text in [requirement.canonical, *requirement.aliases]):
        if phrase and phrase not in phrases:
            phrases.append(phrase)
    return phrases


def _max_level(values: list[int | None]) -> int | None:
    present = [value for value in values if value is not None]
    return max(present) if present else None


def find_explicit_mention(
    requirement: Requirement, candidates: Sequence[CandidateElement]
) -> str | None:
    """Path of the first candidate that already evidences ``requirement``, if any.

    Checks years of experience, then degree level for education requirements,
    then canonical/alias phrase matching. Candidate order breaks ties.
    """
    texts = _requirement_texts(requirement)

    if is_years_of_experience_requirement(requirement):
        required_years = _max_level([extract_minimum_years(text) for text in texts])
        if required_years is not None:
            for candidate in candidates:
                mentioned_years = extract_mentioned_years(candidate.text)
                if mentioned_years is not None and mentioned_years >= required_years:
                    return candidate.path

    if requirement.type == "education":
        required_level = _max_level([get_degree_level(text) for text in texts])
        for candidate in candidates:
            if not is_education_path(candidate.path) and not is_subtitle_path(candidate.path):
                continue
            candidate_level = get_degree_level(candidate.text)
            if candidate_level is None:
                continue
            if not required_level or candidate_level >= required_level:
                return candidate.path

    phrases = _requirement_phrases(requirement)
    for candidate in candidates:
        for phrase in phrases:
            if is_phrase_explicitly_mentioned(phrase, candidate.text):
                return candidate.path

    return None
