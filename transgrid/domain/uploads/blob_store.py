"""
Byte-addressable view over uploaded files.

The ingestion pipeline only needs ``open_file(file_id)`` and
``file_metadata(file_id)``; both resolve the id through the uploaded_files
table and read the bytes from blob storage.
"""
import hashlib
import logging
import re
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

from transgrid.domain.ingestion.errors import NotFoundError
from transgrid.domain.uploads.uploaded_files import get_uploaded_file_by_id, insert_uploaded_file
from transgrid.integrations.storage import StorageObjectNotFound, download_file, upload_file

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileMetadata:
    file_id: str
    project_id: str
    mime_type: Optional[str]
    original_name: str
    size: int


def _safe_file_name(file_name: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9._-]", "_", file_name.strip()) or "upload"
    return cleaned.lstrip(".") or "upload"


def file_metadata(file_id: str) -> FileMetadata:
    """Raises NotFoundError when no upload is registered under ``file_id``."""
    record = get_uploaded_file_by_id(file_id)
    if not record:
        raise NotFoundError("File not found")
    return FileMetadata(
        file_id=record["id"],
        project_id=record["project_id"],
        mime_type=record.get("content_type"),
        original_name=record["file_name"],
        size=record["file_size"],
    )


def open_file(file_id: str) -> bytes:
    """Return the raw bytes of an uploaded file."""
    record = get_uploaded_file_by_id(file_id)
    if not record:
        raise NotFoundError("File not found")
    try:
        return download_file(record["storage_path"])
    except StorageObjectNotFound as exc:
        logger.error("Upload %s is registered but its blob is missing: %s", file_id, exc)
        raise NotFoundError("File content not found") from exc


def store_upload(
    project_id: str,
    file_name: str,
    content: bytes,
    content_type: Optional[str] = None,
) -> Dict[str, Any]:
    """Write an upload to blob storage and register it for the project."""
    file_id = str(uuid.uuid4())
    storage_path = f"projects/{_safe_file_name(project_id)}/{file_id}/{_safe_file_name(file_name)}"
    stored = upload_file(content, storage_path)
    record = insert_uploaded_file(
        project_id=project_id,
        file_name=file_name,
        storage_path=stored["file_path"],
        file_size=stored["size"],
        content_type=content_type,
        file_hash=hashlib.sha256(content).hexdigest(),
        file_id=file_id,
    )
    logger.info("Stored upload '%s' (%d bytes) as %s for project %s", file_name, len(content), file_id, project_id)
    return record
