"""
Site Content API - JSON API Routes

Provides:
- Health check (store connectivity + timestamp)
- Fetch the latest content snapshot
- Replace the content with a new snapshot (multipart form + images, or JSON)
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import ValidationError

from src.config import UPLOAD_FIELD_NAME
from src.database import ContentStore
from src.services.content_assembler import (
    PendingUpload,
    SnapshotPersistError,
    UploadRejected,
    create_snapshot,
    parse_content_form,
    read_uploads,
    select_file_parts,
)

router = APIRouter(prefix="/api", tags=["Content"])
health_router = APIRouter(tags=["Health"])


def get_store(request: Request) -> ContentStore:
    return request.app.state.store


def get_uploads_dir(request: Request) -> Path:
    return request.app.state.uploads_dir


def error_response(status_code: int, error: str, details: str = "") -> JSONResponse:
    """JSON error body shared by every failing endpoint."""
    content: Dict[str, Any] = {"error": error}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@health_router.get("/health")
async def health_check(request: Request):
    """Liveness probe: reports store connectivity, not data integrity."""
    db_ok = await get_store(request).ping()
    return {
        "status": "ok" if db_ok else "degraded",
        "database": "connected" if db_ok else "disconnected",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------
@router.get("/content")
async def api_get_content(request: Request):
    """Return the most recent snapshot, or ``{}`` before the first submission."""
    try:
        return await get_store(request).get_latest()
    except Exception as e:
        logger.exception(f"❌ Failed to load content: {e}")
        return error_response(500, "Failed to load content", str(e))


async def _store_submission(
    request: Request, fields: Mapping[str, Any], uploads: List[PendingUpload]
) -> JSONResponse:
    try:
        form = parse_content_form(fields)
        stored = await create_snapshot(
            get_store(request), form, uploads, get_uploads_dir(request)
        )
    except ValidationError as e:
        logger.warning("🚫 Invalid content submission: {}", e)
        return error_response(422, "Invalid content", str(e))
    except SnapshotPersistError as e:
        return error_response(500, "Failed to save content", str(e))

    return JSONResponse(status_code=201, content=stored)


@router.post("/content", status_code=201)
async def api_replace_content(request: Request):
    """
    Replace the site content with a new snapshot.

    Accepts ``multipart/form-data`` (text fields plus up to 10 images in the
    ``images`` field) or an ``application/json`` object with the same keys.
    The stored snapshot is echoed back with status 201.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            fields = await request.json()
        except ValueError as e:
            return error_response(400, "Invalid JSON body", str(e))
        if not isinstance(fields, dict):
            return error_response(400, "Invalid JSON body", "Expected a JSON object")
        return await _store_submission(request, fields, [])

    # Closing the form releases the spooled temp files behind the uploads.
    async with request.form() as fields:
        try:
            uploads = await read_uploads(
                select_file_parts(fields.getlist(UPLOAD_FIELD_NAME))
            )
        except UploadRejected as e:
            logger.warning("🚫 Upload rejected: {}", e.message)
            return error_response(e.status_code, "Upload rejected", e.message)
        return await _store_submission(request, fields, uploads)
