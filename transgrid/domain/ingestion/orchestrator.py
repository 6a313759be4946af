"""
Ingestion entry points.

Composes blob lookup, format resolution, decoding, profiling, classification
and extraction. Every call either succeeds or raises an ``IngestionError``
subclass; nothing is cached between calls.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from transgrid.core.config import settings
from transgrid.domain.ingestion.classifier import detect_grid_columns
from transgrid.domain.ingestion.configurations import get_configuration_by_id
from transgrid.domain.ingestion.decoders import DecodedGrid, decode
from transgrid.domain.ingestion.errors import NotFoundError
from transgrid.domain.ingestion.extractor import ingest_segments
from transgrid.domain.ingestion.formats import FormatFamily, delimiter_for, resolve_format_family
from transgrid.domain.ingestion.models import Configuration, DetectedColumn, ExtractionResult, Grid
from transgrid.domain.ingestion.presets import apply_preset, get_preset
from transgrid.domain.uploads.blob_store import file_metadata, open_file

logger = logging.getLogger(__name__)


@dataclass
class DetectionResult:
    columns: List[DetectedColumn]
    analysis: List[Dict[str, Any]]
    preview_rows: Grid
    total_rows: int
    sheet_name: Optional[str] = None
    sheet_names: List[str] = field(default_factory=list)


def load_grid(file_id: str, sheet_name: Optional[str] = None) -> DecodedGrid:
    """
    Fetch an uploaded file and decode it in full.

    Raises:
        NotFoundError: unknown file, missing blob or unknown sheet
        UnsupportedFormatError: no format family matches the upload
        CorruptInputError: the bytes could not be parsed
    """
    metadata = file_metadata(file_id)
    family = resolve_format_family(metadata.mime_type, metadata.original_name)
    content = open_file(file_id)

    delimiter = ","
    if family == FormatFamily.DELIMITED:
        delimiter = delimiter_for(metadata.mime_type, metadata.original_name)

    decoded = decode(content, family, sheet_name=sheet_name, delimiter=delimiter)
    logger.info(
        "Decoded file %s (%s) as %s: %d rows",
        file_id, metadata.original_name, family.value, len(decoded.rows),
    )
    return decoded


def detect_columns(
    file_id: str,
    sheet_name: Optional[str] = None,
    max_sample_rows: Optional[int] = None,
) -> DetectionResult:
    """Profile and classify every column of an uploaded file."""
    if max_sample_rows is None:
        max_sample_rows = settings.detect_default_sample_rows

    decoded = load_grid(file_id, sheet_name)
    grid = decoded.rows
    columns, analysis = detect_grid_columns(grid, max_sample_rows)

    return DetectionResult(
        columns=columns,
        analysis=analysis,
        preview_rows=grid[: settings.detect_preview_rows],
        total_rows=len(grid),
        sheet_name=decoded.sheet_name,
        sheet_names=decoded.sheet_names,
    )


def parse_with_configuration(project_id: str, file_id: str, configuration_id: str) -> ExtractionResult:
    """
    Re-decode a file in full and ingest its segments with a saved configuration.

    Raises:
        NotFoundError: if the configuration is unknown or bound to another project or file
    """
    configuration = get_configuration_by_id(project_id, configuration_id)
    if configuration.file_id != file_id:
        raise NotFoundError("Configuration does not belong to this file")

    decoded = load_grid(file_id, configuration.sheet_name)
    return ingest_segments(decoded.rows, configuration.mappings, project_id, file_id=file_id)


def apply_preset_to_file(file_id: str, preset_id: str, sheet_name: Optional[str] = None) -> Configuration:
    """Bind a built-in preset to a file's columns; the draft is not saved."""
    preset = get_preset(preset_id)
    decoded = load_grid(file_id, sheet_name)
    draft = apply_preset(preset, decoded.rows, sheet_name=decoded.sheet_name)
    draft.file_id = file_id
    return draft
