from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Iterator

from resume_ai_edit.ai.errors import TEMPORARY_AI_SERVICE_ERROR
from resume_ai_edit.ai.factory import get_structured_generator
from resume_ai_edit.ai.types import StructuredGenerator
from resume_ai_edit.core.limits import get_limit_int
from resume_ai_edit.matching import (
    CandidateElement,
    build_candidates,
    find_explicit_mention,
    index_profiles,
    is_eligible_for,
    is_locked_requirement,
    item_type_for_path,
    normalize_comparable,
)
from resume_ai_edit.schemas.ai_edit import (
    AiEditOperation,
    AiEditProgress,
    AiEditReportEntry,
    AiEditRequest,
    AiEditResponse,
    Mention,
    Requirement,
)
from resume_ai_edit.schemas.outcomes import Already, DecisionOutcome, Edit, Unresolved

from .decision_loop import decide_requirement, load_system_prompt

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[dict[str, Any]], None]

EXPLICIT_EVIDENCE_REASON = "Explicit resume evidence found."
NO_ELIGIBLE_ELEMENTS_REASON = "No eligible elements available for this requirement."
NO_FEASIBLE_EDIT_REASON = "No feasible inline edit found."
LLM_DISABLED_REASON = "AI decisions are disabled; only explicit resume evidence was checked."


class AiEditRun:
    """One pass over the requirement list.

    Iterating ``steps()`` resolves requirements in input order and yields each
    report entry as soon as it is produced. ``operations`` and ``report`` only
    ever hold completed requirements, so a run abandoned midway still returns a
    consistent partial result.
    """

    def __init__(
        self,
        payload: AiEditRequest,
        *,
        generator: StructuredGenerator | None,
        system_prompt: str | None = None,
        max_resolutions_per_element: int | None = None,
        max_attempts: int | None = None,
    ):
        self._requirements = list(payload.requirements)
        self._generator = generator
        self._system_prompt = system_prompt
        self._max_attempts = max_attempts
        self._max_resolutions = max_resolutions_per_element or get_limit_int(
            "resolution.max_per_element", 2
        )
        self.candidates: list[CandidateElement] = build_candidates(
            payload.document, index_profiles(payload.element_profiles)
        )
        self.resolution_counts: dict[str, int] = {}
        self.operations: list[AiEditOperation] = []
        self.report: list[AiEditReportEntry] = []
        self.transient_failures = 0
        self._started = False

    @property
    def total(self) -> int:
        return len(self._requirements)

    def steps(self) -> Iterator[AiEditReportEntry]:
        if self._started:
            raise RuntimeError("AiEditRun can only be iterated once.")
        self._started = True
        if self._generator is not None and self._system_prompt is None:
            self._system_prompt = load_system_prompt()

        for requirement in self._requirements:
            entry = self._resolve(requirement)
            self.report.append(entry)
            yield entry

    def progress_for(self, entry: AiEditReportEntry) -> AiEditProgress:
        return AiEditProgress(
            completed=len(self.report),
            total=self.total,
            requirement_id=entry.requirement_id,
            canonical=entry.canonical,
            status=entry.status,
        )

    def result(self) -> AiEditResponse:
        error = None
        if not self.operations and self.transient_failures > 0:
            error = TEMPORARY_AI_SERVICE_ERROR
        return AiEditResponse(operations=list(self.operations), report=list(self.report), error=error)

    def _available_candidates(self, requirement: Requirement) -> list[CandidateElement]:
        return [
            candidate
            for candidate in self.candidates
            if self.resolution_counts.get(candidate.path, 0) < self._max_resolutions
            and is_eligible_for(candidate, requirement)
        ]

    def _count_resolution(self, path: str) -> None:
        self.resolution_counts[path] = self.resolution_counts.get(path, 0) + 1

    def _resolve(self, requirement: Requirement) -> AiEditReportEntry:
        locked = is_locked_requirement(requirement)
        unresolved_status = "locked_no_edit" if locked else "unresolved"
        available = self._available_candidates(requirement)

        if not available:
            return _entry(requirement, unresolved_status, "none", reason=NO_ELIGIBLE_ELEMENTS_REASON)

        matched_path = find_explicit_mention(requirement, available)
        if matched_path:
            self._count_resolution(matched_path)
            return _entry(
                requirement,
                "locked_no_edit" if locked else "already_mentioned",
                "yes",
                matched_path=matched_path,
                reason=EXPLICIT_EVIDENCE_REASON,
            )

        if self._generator is None:
            return _entry(requirement, unresolved_status, "none", reason=LLM_DISABLED_REASON)

        outcome = decide_requirement(
            self._generator,
            requirement=requirement,
            candidates=available,
            locked_no_edit=locked,
            system_prompt=self._system_prompt,
            max_attempts=self._max_attempts,
        )
        return self._apply_outcome(requirement, outcome, available, locked=locked)

    def _apply_outcome(
        self,
        requirement: Requirement,
        outcome: DecisionOutcome,
        available: list[CandidateElement],
        *,
        locked: bool,
    ) -> AiEditReportEntry:
        unresolved_status = "locked_no_edit" if locked else "unresolved"

        if isinstance(outcome, Already):
            self._count_resolution(outcome.path)
            return _entry(
                requirement,
                "locked_no_edit" if locked else "already_mentioned",
                "yes",
                matched_path=outcome.path,
                reason=outcome.reason,
            )

        if isinstance(outcome, Edit):
            if not locked:
                candidate = next((item for item in available if item.path == outcome.path), None)
                if candidate is not None and normalize_comparable(candidate.text) != normalize_comparable(
                    outcome.replacement
                ):
                    self.operations.append(
                        AiEditOperation(
                            path=outcome.path,
                            value=outcome.replacement,
                            item_type=item_type_for_path(outcome.path),
                            requirement_id=requirement.id,
                            mentioned=outcome.mentioned,
                        )
                    )
                    self._count_resolution(outcome.path)
                    return _entry(
                        requirement,
                        "edited",
                        outcome.mentioned,
                        edited_path=outcome.path,
                        reason=outcome.reason,
                    )
            # Locked or no-op edits are reported as unresolved.
            return _entry(
                requirement,
                unresolved_status,
                "none" if locked else outcome.mentioned,
                reason=outcome.reason or NO_FEASIBLE_EDIT_REASON,
            )

        if isinstance(outcome, Unresolved):
            if outcome.temporary:
                self.transient_failures += 1
            return _entry(
                requirement,
                unresolved_status,
                "none" if locked else outcome.mentioned,
                matched_path=outcome.path,
                reason=outcome.reason or NO_FEASIBLE_EDIT_REASON,
            )

        raise TypeError(f"Unhandled decision outcome: {outcome!r}")


def _entry(
    requirement: Requirement,
    status: str,
    mentioned: Mention,
    *,
    matched_path: str | None = None,
    edited_path: str | None = None,
    reason: str | None = None,
) -> AiEditReportEntry:
    return AiEditReportEntry(
        requirement_id=requirement.id,
        canonical=requirement.canonical,
        status=status,
        mentioned=mentioned,
        matched_path=matched_path,
        edited_path=edited_path,
        reason=reason,
    )


def _emit_progress(progress_callback: ProgressCallback | None, progress: AiEditProgress) -> None:
    if not progress_callback:
        return
    progress_callback(progress.model_dump(mode="json", by_alias=True))


def run_ai_edit(
    payload: AiEditRequest,
    *,
    generator: StructuredGenerator | None = None,
    progress_callback: ProgressCallback | None = None,
) -> AiEditResponse:
    """Resolve every requirement and return the proposed operations and report.

    ``generator`` defaults to the configured provider; when AI decisions are
    disabled only deterministic evidence is used. Permanent provider failures
    propagate and abort the run.
    """
    started_at = time.perf_counter()
    if generator is None:
        generator = get_structured_generator()

    run = AiEditRun(payload, generator=generator)
    logger.info(
        json.dumps(
            {
                "event": "ai_edit_request",
                "requirements": run.total,
                "candidates": len(run.candidates),
                "profiles": len(payload.element_profiles),
                "llm_enabled": generator is not None,
            }
        )
    )

    try:
        for entry in run.steps():
            _emit_progress(progress_callback, run.progress_for(entry))
    except Exception as exc:
        logger.exception(
            json.dumps(
                {
                    "event": "ai_edit_error",
                    "completed": len(run.report),
                    "total": run.total,
                    "error": str(exc),
                    "duration_ms": int((time.perf_counter() - started_at) * 1000),
                }
            )
        )
        raise

    result = run.result()
    logger.info(
        json.dumps(
            {
                "event": "ai_edit_complete",
                "operations": len(result.operations),
                "statuses": _status_counts(result.report),
                "transient_failures": run.transient_failures,
                "duration_ms": int((time.perf_counter() - started_at) * 1000),
            }
        )
    )
    return result


def _status_counts(report: list[AiEditReportEntry]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for entry in report:
        counts[entry.status] = counts.get(entry.status, 0) + 1
    return counts
