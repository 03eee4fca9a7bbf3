from __future__ import annotations

import math
import re
from dataclasses import dataclass

from resume_ai_edit.schemas.ai_edit import ElementProfile, ElementWord

DEFAULT_LINE_SAFETY_BUFFER = 0.97
MIN_CHARS_PER_LINE = 8

_WORD_RE = re.compile(r"\S+")


@dataclass(frozen=True)
class FieldLengthConstraint:
    max_lines: int
    max_chars_per_line: int
    max_chars_total: int
    available_width_px: float
    font_size_px: float
    font_family: str
    safety_buffer: float


@dataclass(frozen=True)
class LengthViolation:
    wrapped_lines: int | float
    char_count: int


def get_font_safety_buffer(font_family: str) -> float:
    normalized = font_family.lower()
    if "mono" in normalized:
        return 0.995
    if "georgia" in normalized or "times" in normalized or "serif" in normalized:
        return 0.97
    if "geist" in normalized or "sans" in normalized:
        return 0.98
    return DEFAULT_LINE_SAFETY_BUFFER


def _normalize_newlines(value: str) -> str:
    return (value or "").replace("\r\n", "\n")


def estimate_wrapped_line_count(value: str, max_chars_per_line: int) -> int | float:
    """Lines ``value`` occupies when hard-wrapped at ``max_chars_per_line``.

    Every input line counts as at least one line; blank content counts as one.
    """
    if max_chars_per_line <= 0:
        return math.inf
    normalized = _normalize_newlines(value)
    if not normalized.strip():
        return 1
    return sum(
        max(1, math.ceil(len(line) / max_chars_per_line)) for line in normalized.split("\n")
    )


def calculate_max_chars_per_line(
    available_width_px: float,
    char_width_px: float,
    safety_buffer: float,
    min_chars_per_line: int = MIN_CHARS_PER_LINE,
) -> int:
    safe_char_width = char_width_px if math.isfinite(char_width_px) and char_width_px > 0 else 1
    estimated = math.floor((available_width_px * safety_buffer) / safe_char_width)
    return max(min_chars_per_line, estimated)


def build_field_length_constraint(
    *,
    available_width_px: float,
    font_size_px: float,
    font_family: str,
    char_width_px: float,
    max_lines: int,
    safety_buffer: float | None = None,
) -> FieldLengthConstraint | None:
    if max_lines < 1:
        return None
    buffer = get_font_safety_buffer(font_family) if safety_buffer is None else safety_buffer
    max_chars_per_line = calculate_max_chars_per_line(available_width_px, char_width_px, buffer)
    return FieldLengthConstraint(
        max_lines=max_lines,
        max_chars_per_line=max_chars_per_line,
        max_chars_total=max_chars_per_line * max_lines,
        available_width_px=available_width_px,
        font_size_px=font_size_px,
        font_family=font_family,
        safety_buffer=buffer,
    )


def extract_element_word_lengths(value: str) -> list[ElementWord]:
    normalized = _normalize_newlines(value)
    return [
        ElementWord(
            index=index,
            word=match.group(0),
            char_count=len(match.group(0)),
            start=match.start(),
            end=match.end(),
        )
        for index, match in enumerate(_WORD_RE.finditer(normalized))
    ]


def build_element_length_profile(
    path: str, text: str, constraint: FieldLengthConstraint
) -> ElementProfile:
    normalized_text = _normalize_newlines(text)
    total_char_count = len(normalized_text)
    used_line_count = int(estimate_wrapped_line_count(normalized_text, constraint.max_chars_per_line))
    return ElementProfile(
        path=path,
        text=normalized_text,
        max_lines=constraint.max_lines,
        max_chars_per_line=constraint.max_chars_per_line,
        max_chars_total=constraint.max_chars_total,
        used_line_count=used_line_count,
        remaining_line_count=max(0, constraint.max_lines - used_line_count),
        overflow_line_count=max(0, used_line_count - constraint.max_lines),
        total_char_count=total_char_count,
        remaining_char_count=max(0, constraint.max_chars_total - total_char_count),
        overflow_char_count=max(0, total_char_count - constraint.max_chars_total),
        words=extract_element_word_lengths(normalized_text),
    )


def get_length_violation(
    replacement: str, *, max_chars_per_line: int, max_chars_total: int, max_lines: int
) -> LengthViolation | None:
    wrapped_lines = estimate_wrapped_line_count(replacement, max_chars_per_line)
    char_count = len(replacement)
    if wrapped_lines <= max_lines and char_count <= max_chars_total:
        return None
    return LengthViolation(wrapped_lines=wrapped_lines, char_count=char_count)
