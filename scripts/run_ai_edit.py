from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from resume_ai_edit.ai.errors import client_facing_error
from resume_ai_edit.schemas.ai_edit import AiEditRequest
from resume_ai_edit.services.ai_edit_service import run_ai_edit


def _print_progress(event: dict) -> None:
    print(
        f"[{event['completed']}/{event['total']}] {event['status']:<17} {event['canonical']}",
        file=sys.stderr,
    )


def main() -> int:
    parser = argparse.ArgumentParser(description="Run AI Edit on a request JSON file and print the result.")
    parser.add_argument("request", type=Path, help="Path to a JSON file with requirements, document and elementProfiles.")
    parser.add_argument("--out", type=Path, default=None, help="Write the result JSON here instead of stdout.")
    parser.add_argument("--quiet", action="store_true", help="Do not print per-requirement progress.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING, format="%(message)s")

    try:
        payload = AiEditRequest.model_validate_json(args.request.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        print(f"Invalid request: {exc}", file=sys.stderr)
        return 2

    try:
        result = run_ai_edit(payload, progress_callback=None if args.quiet else _print_progress)
    except Exception as exc:
        status_code, message = client_facing_error(exc)
        print(f"{message} ({status_code}): {exc}", file=sys.stderr)
        return 1

    output = json.dumps(result.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2, ensure_ascii=False)
    if args.out:
        args.out.write_text(output + "\n", encoding="utf-8")
    else:
        print(output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
