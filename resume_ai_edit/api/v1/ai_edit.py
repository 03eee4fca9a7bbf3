import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, Header, HTTPException, Request
from fastapi.responses import StreamingResponse

from resume_ai_edit.ai.errors import client_facing_error
from resume_ai_edit.core.rate_limit import rate_limit
from resume_ai_edit.core.security import check_api_key
from resume_ai_edit.schemas.ai_edit import AiEditRequest, AiEditResponse
from resume_ai_edit.services.ai_edit_service import run_ai_edit

logger = logging.getLogger(__name__)

router = APIRouter()


def _sse_event(event: str, payload: dict[str, Any]) -> str:
    data = json.dumps(payload, ensure_ascii=False)
    return f"event: {event}\ndata: {data}\n\n"


def _dump(result: AiEditResponse) -> dict[str, Any]:
    return result.model_dump(mode="json", by_alias=True, exclude_none=True)


@router.post(
    "/ai-edit",
    response_model=AiEditResponse,
    response_model_exclude_none=True,
    summary="Resolve job requirements against a resume",
)
@rate_limit()
async def ai_edit(
    request: Request,
    payload: AiEditRequest,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    check_api_key(x_api_key)

    if payload.stream:
        return StreamingResponse(
            _ai_edit_event_stream(request, payload),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache, no-transform",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )

    try:
        return await asyncio.to_thread(run_ai_edit, payload)
    except Exception as exc:
        status_code, message = client_facing_error(exc)
        logger.warning("ai_edit_failed status=%s: %s", status_code, exc)
        raise HTTPException(status_code=status_code, detail=message) from exc


async def _ai_edit_event_stream(request: Request, payload: AiEditRequest):
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    def push(kind: str, data: dict[str, Any]) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, {"kind": kind, "payload": data})

    def worker() -> None:
        try:
            result = run_ai_edit(payload, progress_callback=lambda event: push("progress", event))
            push("done", _dump(result))
        except Exception as exc:
            _, message = client_facing_error(exc)
            logger.warning("ai_edit_stream_failed: %s", exc)
            push("error", {"error": message})

    task = asyncio.create_task(asyncio.to_thread(worker))

    try:
        while True:
            if await request.is_disconnected():
                break
            event = await queue.get()
            kind = event["kind"]
            yield _sse_event(kind, event["payload"])
            if kind in {"done", "error"}:
                break
    finally:
        if not task.done():
            task.cancel()
