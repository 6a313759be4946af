"""
Minimal project registry.

Project CRUD belongs to the surrounding platform; this table only lets the
ingestion pipeline verify that a project reference exists.
"""
import logging
from typing import Dict, Optional
from uuid import uuid4

from sqlalchemy import text

from transgrid.utils.date import utcnow_iso

from .session import get_engine

logger = logging.getLogger(__name__)


def create_projects_table() -> None:
    """Create the projects table if it doesn't exist."""
    engine = get_engine()
    with engine.begin() as conn:
        conn.execute(text("""
            CREATE TABLE IF NOT EXISTS projects (
                id VARCHAR(64) PRIMARY KEY,
                name VARCHAR(255) NOT NULL,
                created_at TIMESTAMP WITH TIME ZONE NOT NULL
            )
        """))
    logger.info("projects table ready")


def insert_project(name: str, project_id: Optional[str] = None) -> Dict[str, str]:
    """Register a project and return its record."""
    record = {
        "id": project_id or str(uuid4()),
        "name": name,
        "created_at": utcnow_iso(),
    }
    engine = get_engine()
    with engine.begin() as conn:
        conn.execute(
            text("INSERT INTO projects (id, name, created_at) VALUES (:id, :name, :created_at)"),
            record,
        )
    return record


def get_project(project_id: str) -> Optional[Dict[str, str]]:
    engine = get_engine()
    with engine.connect() as conn:
        row = conn.execute(
            text("SELECT id, name, created_at FROM projects WHERE id = :id"),
            {"id": project_id},
        ).mappings().first()
    return dict(row) if row else None
