from .candidates import (
    CandidateCategory,
    CandidateElement,
    CandidateWord,
    build_candidates,
    index_profiles,
    is_eligible_for,
    item_type_for_path,
    path_category,
)
from .deterministic import find_explicit_mention, is_locked_requirement, is_years_of_experience_requirement
from .lexical import (
    extract_mentioned_years,
    extract_minimum_years,
    get_degree_level,
    is_phrase_explicitly_mentioned,
    normalize_comparable,
    sanitize_text,
)
from .line_constraints import estimate_wrapped_line_count, get_length_violation

__all__ = [
    "CandidateCategory",
    "CandidateElement",
    "CandidateWord",
    "build_candidates",
    "estimate_wrapped_line_count",
    "extract_mentioned_years",
    "extract_minimum_years",
    "find_explicit_mention",
    "get_degree_level",
    "get_length_violation",
    "index_profiles",
    "is_eligible_for",
    "is_locked_requirement",
    "is_phrase_explicitly_mentioned",
    "is_years_of_experience_requirement",
    "item_type_for_path",
    "normalize_comparable",
    "path_category",
    "sanitize_text",
]
