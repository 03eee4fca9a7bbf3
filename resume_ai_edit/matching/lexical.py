"""Deterministic text heuristics for matching requirements to resume text.

Everything here is pure: no I/O, no configuration, no model calls.
"""

from __future__ import annotations

import re
from typing import Iterable

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

YEARS_OF_EXPERIENCE_RE = re.compile(
    r"\b(\d+\+?\s*(years?|yrs?)|years?\s+of\s+experience|minimum\s+\d+\s*(years?|yrs?)|at\s+least\s+\d+\s*(years?|yrs?))\b",
    re.IGNORECASE,
)
_EXPERIENCE_TOKEN_RE = re.compile(r"(\d{1,2})\+?\s*(?:years?|yrs?)\b", re.IGNORECASE)
_EXPERIENCE_REQUIREMENT_RES = (
    re.compile(r"at\s+least\s+(\d{1,2})\+?\s*(?:years?|yrs?)\b"),
    re.compile(r"minimum\s+(\d{1,2})\+?\s*(?:years?|yrs?)\b"),
    re.compile(r"(\d{1,2})\+?\s*(?:years?|yrs?)\b"),
)

NUMBER_WORDS = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
    "thirteen": 13,
    "fourteen": 14,
    "fifteen": 15,
    "sixteen": 16,
    "seventeen": 17,
    "eighteen": 18,
    "nineteen": 19,
    "twenty": 20,
}
_NUMBER_WORD_RE = re.compile(r"\b(" + "|".join(NUMBER_WORDS) + r")\b", re.IGNORECASE)

STOP_WORDS = {
    "a",
    "an",
    "and",
    "as",
    "at",
    "be",
    "by",
    "for",
    "in",
    "of",
    "on",
    "or",
    "the",
    "to",
    "with",
    "within",
}

DEGREE_LEVELS = {
    "associate": 1,
    "bachelor": 2,
    "master": 3,
    "doctorate": 4,
}

# Applied in order, after lowercasing.
_ABBREVIATIONS = (
    (re.compile(r"\bmgmt\b"), "management"),
    (re.compile(r"\bmgr\b"), "manager"),
    (re.compile(r"\byrs?\b"), "years"),
    (re.compile(r"\bbachelors?\b"), "bachelor"),
    (re.compile(r"\bmasters?\b"), "master"),
    (re.compile(r"\bph\.?d\.?\b"), "doctorate"),
    (re.compile(r"\bdoctoral\b"), "doctorate"),
    (re.compile(r"\bgenai\b"), "generative ai"),
)


def sanitize_text(value: str) -> str:
    """Strip control characters, fold CRLF to LF and trim."""
    text = (value or "").replace("\r\n", "\n")
    return _CONTROL_CHARS_RE.sub("", text).strip()


def normalize_comparable(value: str) -> str:
    return re.sub(r"\s+", " ", value or "").strip().lower()


def normalize_match_text(value: str) -> str:
    normalized = (value or "").lower()
    normalized = re.sub(r"[’']", "", normalized)
    normalized = normalized.replace("&", " and ")
    normalized = re.sub(r"[/|]", " ", normalized)
    for pattern, replacement in _ABBREVIATIONS:
        normalized = pattern.sub(replacement, normalized)
    normalized = re.sub(r"\s+", " ", normalized).strip()
    normalized = re.sub(r"[^a-z0-9+\s]", " ", normalized)
    return re.sub(r"\s+", " ", normalized).strip()


def normalize_token(token: str) -> str:
    if len(token) > 4 and token.endswith("ies"):
        return f"{token[:-3]}y"
    if len(token) > 3 and token.endswith("s"):
        return token[:-1]
    return token


def tokenize_for_match(value: str) -> list[str]:
    tokens = (normalize_token(token) for token in normalize_match_text(value).split(" "))
    return [token for token in tokens if token and token not in STOP_WORDS]


def to_numeric_words(text: str) -> str:
    return _NUMBER_WORD_RE.sub(lambda match: str(NUMBER_WORDS[match.group(0).lower()]), text)


def _max_or_none(values: Iterable[int | None]) -> int | None:
    best: int | None = None
    for value in values:
        if value is None:
            continue
        best = value if best is None else max(best, value)
    return best


def extract_minimum_years(text: str) -> int | None:
    normalized = to_numeric_words((text or "").lower())
    return _max_or_none(
        int(match.group(1))
        for pattern in _EXPERIENCE_REQUIREMENT_RES
        for match in pattern.finditer(normalized)
    )


def extract_mentioned_years(text: str) -> int | None:
    return _max_or_none(int(match.group(1)) for match in _EXPERIENCE_TOKEN_RE.finditer(text or ""))


def get_degree_level(text: str) -> int | None:
    """Ordinal degree level, 0 for a bare "degree" mention, None when no degree vocabulary."""
    normalized = normalize_match_text(text)
    if not normalized:
        return None
    if re.search(r"\b(phd|doctorate)\b", normalized):
        return DEGREE_LEVELS["doctorate"]
    if re.search(r"\bmaster\b", normalized):
        return DEGREE_LEVELS["master"]
    if re.search(r"\bbachelor\b", normalized):
        return DEGREE_LEVELS["bachelor"]
    if re.search(r"\bassociate\b", normalized):
        return DEGREE_LEVELS["associate"]
    if re.search(r"\bdegree\b", normalized):
        return 0
    return None


def is_phrase_explicitly_mentioned(phrase: str, text: str) -> bool:
    """Literal normalized substring, or every stemmed phrase token present in the text.

    The token check is a bag-of-words superset test; word order is ignored.
    """
    normalized_phrase = normalize_match_text(phrase)
    normalized_text = normalize_match_text(text)
    if not normalized_phrase or not normalized_text:
        return False
    if normalized_phrase in normalized_text:
        return True

    phrase_tokens = tokenize_for_match(normalized_phrase)
    if not phrase_tokens:
        return False
    text_tokens = set(tokenize_for_match(normalized_text))
    return all(token in text_tokens for token in phrase_tokens)


def mentions_years_of_experience(text: str) -> bool:
    return bool(YEARS_OF_EXPERIENCE_RE.search(text or ""))
