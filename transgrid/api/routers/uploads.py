"""
Project file uploads and stored segment listing.
"""
import logging

from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from starlette.concurrency import run_in_threadpool

from transgrid.api.dependencies import to_http_exception
from transgrid.api.schemas.uploads import (
    SegmentListResponse,
    StoredSegment,
    UploadedFileInfo,
    UploadFileResponse,
)
from transgrid.core.config import settings
from transgrid.db.projects import get_project
from transgrid.db.segments import count_segments, list_segments
from transgrid.domain.ingestion.errors import NotFoundError
from transgrid.domain.uploads.blob_store import store_upload

router = APIRouter(tags=["uploads"])
logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = settings.upload_max_file_size_mb * 1024 * 1024


def _ensure_within_size_limit(file_size: int, file_name: str) -> None:
    """Raise an HTTPException if a file exceeds the configured upload limit."""
    if file_size > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail=(
                f"{file_name} is too large. "
                f"Maximum allowed upload size is {settings.upload_max_file_size_mb}MB."
            ),
        )


def _require_project(project_id: str) -> None:
    if not get_project(project_id):
        raise NotFoundError("Project not found")


def _store(project_id: str, file_name: str, content: bytes, content_type: str):
    _require_project(project_id)
    return store_upload(project_id, file_name, content, content_type)


@router.post("/projects/{project_id}/files", response_model=UploadFileResponse)
async def upload_project_file(project_id: str, file: UploadFile = File(...)):
    """
    Upload a source document to a project.

    The bytes go to blob storage; the returned id is what the column
    detection and parsing endpoints take as ``fileId``.
    """
    try:
        content = await file.read()
        file_name = file.filename or "upload"
        _ensure_within_size_limit(len(content), file_name)
        record = await run_in_threadpool(_store, project_id, file_name, content, file.content_type)
    except Exception as e:
        raise to_http_exception(e, "upload file") from e

    logger.info("Uploaded %s to project %s as %s", record["file_name"], project_id, record["id"])
    return UploadFileResponse(
        success=True,
        message="File uploaded successfully",
        file=UploadedFileInfo(**record),
    )


def _segment_page(project_id: str, limit: int, offset: int) -> SegmentListResponse:
    _require_project(project_id)
    return SegmentListResponse(
        segments=[StoredSegment(**row) for row in list_segments(project_id, limit=limit, offset=offset)],
        total=count_segments(project_id),
        limit=limit,
        offset=offset,
    )


@router.get("/projects/{project_id}/segments", response_model=SegmentListResponse)
async def list_project_segments(
    project_id: str,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    """List the segments stored for a project, oldest first."""
    try:
        return await run_in_threadpool(_segment_page, project_id, limit, offset)
    except Exception as e:
        raise to_http_exception(e, "list segments") from e
