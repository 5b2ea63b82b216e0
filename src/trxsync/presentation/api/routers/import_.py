"""Import router: runs one profile import and streams its events over SSE."""

import json
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from trxsync.application.dtos import ImportEvent
from trxsync.domain.shared.exceptions import DomainException, ErrorCode
from trxsync.presentation.api.dependencies import Importer

logger = logging.getLogger(__name__)

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _format_sse_event(event_type: str, data: dict) -> str:
    """Format data as a Server-Sent Event."""
    json_data = json.dumps(data, default=str)
    return f"event: {event_type}\ndata: {json_data}\n\n"


@router.get(
    "/import",
    summary="Import transactions for a profile (streaming)",
    responses={
        200: {
            "description": "SSE stream of import events",
            "content": {"text/event-stream": {}},
        },
        400: {"description": "Missing profile parameter"},
    },
)
async def run_import_streaming(
    importer: Importer,
    profile: str = Query("", description="Profile name from profiles.json"),
    dry_run: Optional[bool] = Query(
        None,
        description="Skip the ledger write (defaults to the DRY_RUN setting)",
    ),
) -> StreamingResponse:
    """
    Run one import and stream its progress as Server-Sent Events.

    ## Event Types

    - **connected**: Stream is open
    - **progress**: A step started or finished (`message`)
    - **qr-code**: A fresh BankID QR token to render (`data`)
    - **auth-status**: Login state changed (`status`, `message`,
      optionally `autoStartToken` for app-to-app login)
    - **success**: Import finished (`count`, `skipped`, `message`)
    - **error**: Import failed (`message`, `code`)
    - **close**: Always last (`success`, optionally `error`)

    Exactly one of `success` or `error` is sent per run, followed by
    `close`. Closing the connection early does not stop the import.
    """
    profile = profile.strip()
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing profile parameter",
        )

    async def event_generator():
        try:
            async for item in importer.execute_streaming(profile, dry_run=dry_run):
                if isinstance(item, ImportEvent):
                    yield _format_sse_event(item.event_type.value, item.to_dict())
                else:
                    logger.info(
                        "Streaming import for %s finished: success=%s added=%d",
                        profile,
                        item.success,
                        item.added,
                    )
        except DomainException as e:
            logger.warning("Streaming import failed (domain): %s", e)
            yield _format_sse_event("error", {"message": e.message, "code": e.code.value})
            yield _format_sse_event("close", {"success": False, "error": e.message})
        except Exception as e:
            logger.exception("Streaming import failed (unexpected): %s", e)
            message = "Import failed unexpectedly"
            yield _format_sse_event(
                "error",
                {"message": message, "code": ErrorCode.INTERNAL_ERROR.value},
            )
            yield _format_sse_event("close", {"success": False, "error": message})

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
