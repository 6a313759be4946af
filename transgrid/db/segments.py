"""
Segment store.

Segments are unique per (project_id, segment_key). Inserts use
``ON CONFLICT DO NOTHING`` so a key written by a concurrent ingestion is
skipped instead of duplicated or overwritten.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Set
from uuid import uuid4

from sqlalchemy import text

from transgrid.domain.ingestion.models import ParsedSegment
from transgrid.utils.date import coerce_timestamp, utcnow_iso

from .session import get_engine

logger = logging.getLogger(__name__)


def create_segments_table() -> None:
    """Create the segments table if it doesn't exist."""
    engine = get_engine()
    statements = [
        """
        CREATE TABLE IF NOT EXISTS segments (
            id VARCHAR(36) PRIMARY KEY,
            project_id VARCHAR(64) NOT NULL,
            segment_key VARCHAR(512) NOT NULL,
            source_text TEXT NOT NULL,
            target_text TEXT,
            context TEXT,
            notes TEXT,
            status VARCHAR(20) NOT NULL,
            file_id VARCHAR(36),
            created_at TIMESTAMP WITH TIME ZONE NOT NULL,
            CONSTRAINT uq_segments_project_key UNIQUE (project_id, segment_key)
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_segments_project ON segments(project_id)",
    ]
    with engine.begin() as conn:
        for statement in statements:
            conn.execute(text(statement))
    logger.info("segments table ready")


def get_existing_segment_keys(project_id: str) -> Set[str]:
    """Return every segment key already stored for the project."""
    engine = get_engine()
    with engine.connect() as conn:
        result = conn.execute(
            text("SELECT segment_key FROM segments WHERE project_id = :project_id"),
            {"project_id": project_id},
        )
        return {row[0] for row in result}


def insert_segments(
    project_id: str,
    segments: Iterable[ParsedSegment],
    file_id: Optional[str] = None,
) -> List[str]:
    """
    Insert segments in a single transaction.

    Returns the keys that were actually written; keys that already existed
    (e.g. inserted by a concurrent parse) are left untouched and omitted.
    """
    insert_sql = text("""
        INSERT INTO segments (
            id, project_id, segment_key, source_text, target_text,
            context, notes, status, file_id, created_at
        )
        VALUES (
            :id, :project_id, :segment_key, :source_text, :target_text,
            :context, :notes, :status, :file_id, :created_at
        )
        ON CONFLICT (project_id, segment_key) DO NOTHING
    """)

    created_at = utcnow_iso()
    inserted: List[str] = []
    engine = get_engine()
    with engine.begin() as conn:
        for segment in segments:
            result = conn.execute(insert_sql, {
                "id": str(uuid4()),
                "project_id": project_id,
                "segment_key": segment.segment_key,
                "source_text": segment.source_text,
                "target_text": segment.target_text,
                "context": segment.context,
                "notes": segment.notes,
                "status": segment.status.value,
                "file_id": file_id,
                "created_at": created_at,
            })
            if result.rowcount == 1:
                inserted.append(segment.segment_key)
            else:
                logger.info("Segment key '%s' already exists for project %s; skipped", segment.segment_key, project_id)

    return inserted


def list_segments(project_id: str, limit: int = 100, offset: int = 0) -> List[Dict[str, Any]]:
    """Return stored segments for a project, oldest first."""
    engine = get_engine()
    with engine.connect() as conn:
        rows = conn.execute(
            text("""
                SELECT segment_key, source_text, target_text, context, notes,
                       status, file_id, created_at
                FROM segments
                WHERE project_id = :project_id
                ORDER BY created_at, segment_key
                LIMIT :limit OFFSET :offset
            """),
            {"project_id": project_id, "limit": limit, "offset": offset},
        ).mappings().all()

    segments = []
    for row in rows:
        record = dict(row)
        record["created_at"] = coerce_timestamp(record["created_at"])
        segments.append(record)
    return segments


def count_segments(project_id: str) -> int:
    engine = get_engine()
    with engine.connect() as conn:
        return conn.execute(
            text("SELECT COUNT(*) FROM segments WHERE project_id = :project_id"),
            {"project_id": project_id},
        ).scalar() or 0
