"""
Database operations for tracking uploaded source documents.

Each record points at the blob holding the raw bytes and keeps the metadata
(MIME type, original name) the decoders need to pick a format family.
"""
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError
from typing import Any, Callable, Dict, Optional, TypeVar
import threading
import uuid

from transgrid.db.session import get_engine
from transgrid.utils.date import coerce_timestamp, utcnow_iso


_table_initialized = False
_table_init_lock = threading.Lock()
_T = TypeVar("_T")

_FILE_COLUMNS = """
    id, project_id, file_name, storage_path, file_size, file_hash,
    content_type, uploaded_at
"""


def ensure_uploaded_files_table():
    """Create the uploaded_files table on-demand if it is missing."""
    global _table_initialized
    if _table_initialized:
        return

    with _table_init_lock:
        if _table_initialized:
            return
        create_uploaded_files_table()
        _table_initialized = True


def _reset_table_flag():
    """Mark the uploaded_files table as unavailable so it can be recreated."""
    global _table_initialized
    with _table_init_lock:
        _table_initialized = False


def _is_missing_table_error(error: Exception) -> bool:
    """Return True if the error indicates the uploaded_files table is missing."""
    origin = getattr(error, "orig", None)
    if getattr(origin, "pgcode", None) == "42P01":
        return True
    return "no such table" in str(origin or error).lower()


def _run_with_table_retry(operation: Callable[[], _T]) -> _T:
    """Execute a database operation and recreate uploaded_files if it vanished."""
    try:
        return operation()
    except (ProgrammingError, OperationalError) as error:
        if not _is_missing_table_error(error):
            raise
        _reset_table_flag()
        ensure_uploaded_files_table()
        return operation()


def create_uploaded_files_table():
    """Create the uploaded_files table if it doesn't exist."""
    engine = get_engine()

    table_ddl_statements = [
        """
        CREATE TABLE IF NOT EXISTS uploaded_files (
            id VARCHAR(36) PRIMARY KEY,
            project_id VARCHAR(64) NOT NULL,
            file_name VARCHAR(255) NOT NULL,
            storage_path VARCHAR(500) NOT NULL,
            file_size BIGINT NOT NULL,
            file_hash VARCHAR(64),
            content_type VARCHAR(255),
            uploaded_at TIMESTAMP WITH TIME ZONE NOT NULL
        )
        """,
        """CREATE INDEX IF NOT EXISTS idx_uploaded_files_project ON uploaded_files(project_id)""",
        """CREATE INDEX IF NOT EXISTS idx_uploaded_files_file_hash ON uploaded_files(file_hash)""",
    ]

    with engine.begin() as conn:
        for ddl in table_ddl_statements:
            conn.execute(text(ddl))

    global _table_initialized
    _table_initialized = True


def _row_to_record(row: Any) -> Dict[str, Any]:
    record = dict(row)
    record["id"] = str(record["id"])
    record["uploaded_at"] = coerce_timestamp(record.get("uploaded_at"))
    return record


def insert_uploaded_file(
    project_id: str,
    file_name: str,
    storage_path: str,
    file_size: int,
    content_type: str = None,
    file_hash: str = None,
    file_id: str = None,
) -> Dict[str, Any]:
    """Insert a new uploaded file record."""
    ensure_uploaded_files_table()
    engine = get_engine()
    params = {
        "id": file_id or str(uuid.uuid4()),
        "project_id": project_id,
        "file_name": file_name,
        "storage_path": storage_path,
        "file_size": file_size,
        "file_hash": file_hash,
        "content_type": content_type,
        "uploaded_at": utcnow_iso(),
    }

    def _insert() -> Dict[str, Any]:
        with engine.begin() as conn:
            conn.execute(text(f"""
                INSERT INTO uploaded_files ({_FILE_COLUMNS})
                VALUES (
                    :id, :project_id, :file_name, :storage_path, :file_size, :file_hash,
                    :content_type, :uploaded_at
                )
            """), params)
        return _row_to_record(params)

    return _run_with_table_retry(_insert)


def get_uploaded_file_by_id(file_id: str) -> Optional[Dict[str, Any]]:
    """Get uploaded file metadata by ID."""
    ensure_uploaded_files_table()
    engine = get_engine()

    def _fetch() -> Optional[Dict[str, Any]]:
        with engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {_FILE_COLUMNS} FROM uploaded_files WHERE id = :file_id"),
                {"file_id": file_id},
            ).mappings().first()
        return _row_to_record(row) if row else None

    return _run_with_table_retry(_fetch)
