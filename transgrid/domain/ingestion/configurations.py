"""
Column configuration store.

One current configuration per (project, file). Saving again overwrites the
configuration's fields and replaces its mapping list wholesale; there is no
history.
"""
import json
import logging
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import text
from sqlalchemy.engine import Connection

from transgrid.db.projects import get_project
from transgrid.db.session import get_engine
from transgrid.domain.ingestion.errors import MappingValidationError, NotFoundError
from transgrid.domain.ingestion.models import ColumnMapping, ColumnRole, Configuration
from transgrid.domain.uploads.uploaded_files import get_uploaded_file_by_id
from transgrid.utils.date import coerce_timestamp, utcnow_iso

logger = logging.getLogger(__name__)

_CONFIGURATION_COLUMNS = """
    id, project_id, file_id, name, description, sheet_name, is_default,
    created_at, updated_at
"""


def create_column_configuration_tables() -> None:
    """Create the column_configurations and column_mappings tables if they don't exist."""
    engine = get_engine()
    statements = [
        """
        CREATE TABLE IF NOT EXISTS column_configurations (
            id VARCHAR(36) PRIMARY KEY,
            project_id VARCHAR(64) NOT NULL,
            file_id VARCHAR(36) NOT NULL,
            name VARCHAR(255),
            description TEXT,
            sheet_name VARCHAR(255),
            is_default BOOLEAN NOT NULL DEFAULT FALSE,
            created_at TIMESTAMP WITH TIME ZONE NOT NULL,
            updated_at TIMESTAMP WITH TIME ZONE NOT NULL,
            CONSTRAINT uq_column_configurations_project_file UNIQUE (project_id, file_id)
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS column_mappings (
            id VARCHAR(36) PRIMARY KEY,
            configuration_id VARCHAR(36) NOT NULL
                REFERENCES column_configurations(id) ON DELETE CASCADE,
            position INTEGER NOT NULL,
            column_index INTEGER NOT NULL,
            column_name VARCHAR(255) NOT NULL,
            role VARCHAR(20) NOT NULL,
            language_code VARCHAR(16),
            is_required BOOLEAN NOT NULL DEFAULT FALSE,
            custom_settings TEXT
        )
        """,
        """CREATE INDEX IF NOT EXISTS idx_column_mappings_configuration ON column_mappings(configuration_id)""",
    ]
    with engine.begin() as conn:
        for statement in statements:
            conn.execute(text(statement))
    logger.info("column configuration tables ready")


def validate_configuration(configuration: Configuration) -> None:
    """
    Reject configurations the extractor cannot use.

    Raises:
        MappingValidationError: no mappings, no source column, a negative or
            repeated column index.
    """
    mappings = configuration.mappings or []
    if not mappings:
        raise MappingValidationError("Configuration must contain at least one column mapping")

    seen_indices = set()
    for mapping in mappings:
        if mapping.column_index < 0:
            raise MappingValidationError(f"Column index must be non-negative, got {mapping.column_index}")
        if mapping.column_index in seen_indices:
            raise MappingValidationError(f"Column {mapping.column_index} is mapped more than once")
        seen_indices.add(mapping.column_index)

    if not any(ColumnRole(mapping.role) == ColumnRole.SOURCE for mapping in mappings):
        raise MappingValidationError("Configuration must map at least one source column")


def _require_project_file(project_id: str, file_id: str) -> None:
    if not get_project(project_id):
        raise NotFoundError("Project not found")
    uploaded = get_uploaded_file_by_id(file_id)
    if not uploaded or uploaded["project_id"] != project_id:
        raise NotFoundError("File not found")


def _load_mappings(conn: Connection, configuration_id: str) -> List[ColumnMapping]:
    rows = conn.execute(
        text("""
            SELECT column_index, column_name, role, language_code, is_required, custom_settings
            FROM column_mappings
            WHERE configuration_id = :configuration_id
            ORDER BY position
        """),
        {"configuration_id": configuration_id},
    ).mappings().all()

    return [
        ColumnMapping(
            column_index=row["column_index"],
            column_name=row["column_name"],
            role=ColumnRole(row["role"]),
            language_code=row["language_code"],
            is_required=bool(row["is_required"]),
            custom_settings=json.loads(row["custom_settings"]) if row["custom_settings"] else None,
        )
        for row in rows
    ]


def _row_to_configuration(conn: Connection, row: Any) -> Configuration:
    record: Dict[str, Any] = dict(row)
    return Configuration(
        id=str(record["id"]),
        project_id=record["project_id"],
        file_id=record["file_id"],
        name=record["name"],
        description=record["description"],
        sheet_name=record["sheet_name"],
        is_default=bool(record["is_default"]),
        created_at=coerce_timestamp(record["created_at"]),
        updated_at=coerce_timestamp(record["updated_at"]),
        mappings=_load_mappings(conn, str(record["id"])),
    )


def save_configuration(project_id: str, file_id: str, configuration: Configuration) -> Configuration:
    """
    Create or overwrite the configuration for (project_id, file_id).

    Raises:
        NotFoundError: if the project or file is unknown, or the file belongs to another project
        MappingValidationError: if the configuration is malformed
    """
    validate_configuration(configuration)
    _require_project_file(project_id, file_id)

    now = utcnow_iso()
    upsert_sql = f"""
    INSERT INTO column_configurations ({_CONFIGURATION_COLUMNS})
    VALUES (:id, :project_id, :file_id, :name, :description, :sheet_name, :is_default, :now, :now)
    ON CONFLICT (project_id, file_id) DO UPDATE
    SET name = EXCLUDED.name,
        description = EXCLUDED.description,
        sheet_name = EXCLUDED.sheet_name,
        is_default = EXCLUDED.is_default,
        updated_at = EXCLUDED.updated_at
    """

    engine = get_engine()
    with engine.begin() as conn:
        conn.execute(text(upsert_sql), {
            "id": str(uuid4()),
            "project_id": project_id,
            "file_id": file_id,
            "name": configuration.name,
            "description": configuration.description,
            "sheet_name": configuration.sheet_name,
            "is_default": bool(configuration.is_default),
            "now": now,
        })
        configuration_id = conn.execute(
            text("SELECT id FROM column_configurations WHERE project_id = :project_id AND file_id = :file_id"),
            {"project_id": project_id, "file_id": file_id},
        ).scalar_one()

        conn.execute(
            text("DELETE FROM column_mappings WHERE configuration_id = :configuration_id"),
            {"configuration_id": configuration_id},
        )
        conn.execute(
            text("""
                INSERT INTO column_mappings (
                    id, configuration_id, position, column_index, column_name,
                    role, language_code, is_required, custom_settings
                )
                VALUES (
                    :id, :configuration_id, :position, :column_index, :column_name,
                    :role, :language_code, :is_required, :custom_settings
                )
            """),
            [
                {
                    "id": str(uuid4()),
                    "configuration_id": configuration_id,
                    "position": position,
                    "column_index": mapping.column_index,
                    "column_name": mapping.column_name,
                    "role": ColumnRole(mapping.role).value,
                    "language_code": mapping.language_code,
                    "is_required": bool(mapping.is_required),
                    "custom_settings": json.dumps(mapping.custom_settings) if mapping.custom_settings is not None else None,
                }
                for position, mapping in enumerate(configuration.mappings)
            ],
        )

        row = conn.execute(
            text(f"SELECT {_CONFIGURATION_COLUMNS} FROM column_configurations WHERE id = :id"),
            {"id": configuration_id},
        ).mappings().one()
        saved = _row_to_configuration(conn, row)

    logger.info(
        "Saved column configuration %s for project %s file %s (%d mappings)",
        saved.id, project_id, file_id, len(saved.mappings),
    )
    return saved


def get_configuration(project_id: str, file_id: str) -> Optional[Configuration]:
    """Return the current configuration for (project_id, file_id), if any."""
    engine = get_engine()
    with engine.connect() as conn:
        row = conn.execute(
            text(f"""
                SELECT {_CONFIGURATION_COLUMNS} FROM column_configurations
                WHERE project_id = :project_id AND file_id = :file_id
            """),
            {"project_id": project_id, "file_id": file_id},
        ).mappings().first()
        if not row:
            return None
        return _row_to_configuration(conn, row)


def get_configuration_by_id(project_id: str, configuration_id: str) -> Configuration:
    """
    Fetch a configuration owned by ``project_id``.

    Raises:
        NotFoundError: if it does not exist or belongs to another project
    """
    engine = get_engine()
    with engine.connect() as conn:
        row = conn.execute(
            text(f"SELECT {_CONFIGURATION_COLUMNS} FROM column_configurations WHERE id = :id"),
            {"id": configuration_id},
        ).mappings().first()
        if not row:
            raise NotFoundError("Configuration not found")
        if row["project_id"] != project_id:
            raise NotFoundError("Configuration does not belong to this project")
        return _row_to_configuration(conn, row)


def delete_configuration(project_id: str, configuration_id: str) -> None:
    """
    Delete a configuration and its mappings.

    Raises:
        NotFoundError: if it does not exist (including a repeated delete) or
            belongs to another project
    """
    engine = get_engine()
    with engine.begin() as conn:
        owner = conn.execute(
            text("SELECT project_id FROM column_configurations WHERE id = :id"),
            {"id": configuration_id},
        ).scalar()
        if owner is None:
            raise NotFoundError("Configuration not found")
        if owner != project_id:
            raise NotFoundError("Configuration does not belong to this project")

        conn.execute(
            text("DELETE FROM column_mappings WHERE configuration_id = :id"),
            {"id": configuration_id},
        )
        conn.execute(
            text("DELETE FROM column_configurations WHERE id = :id"),
            {"id": configuration_id},
        )
    logger.info("Deleted column configuration %s from project %s", configuration_id, project_id)
