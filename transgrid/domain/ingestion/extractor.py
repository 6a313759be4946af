"""
Turn a decoded Grid plus a column mapping into translation segments.

``extract_segments`` is pure; ``ingest_segments`` filters candidates against
the project's persisted keys and writes the survivors.
"""
import logging
from typing import Dict, List, Optional, Sequence

from transgrid.db.segments import get_existing_segment_keys, insert_segments
from transgrid.domain.ingestion.models import (
    ColumnMapping,
    ColumnRole,
    ExtractionResult,
    Grid,
    ParsedSegment,
)

logger = logging.getLogger(__name__)

JOIN_SEPARATOR = " | "


def _cell(row: Sequence[str], column_index: int) -> str:
    if column_index >= len(row):
        return ""
    value = row[column_index]
    return str(value).strip() if value is not None else ""


def _joined(row: Sequence[str], mappings: List[ColumnMapping]) -> Optional[str]:
    parts = [_cell(row, mapping.column_index) for mapping in mappings]
    parts = [part for part in parts if part]
    return JOIN_SEPARATOR.join(parts) if parts else None


def _partition(mappings: Sequence[ColumnMapping]) -> Dict[ColumnRole, List[ColumnMapping]]:
    by_role: Dict[ColumnRole, List[ColumnMapping]] = {role: [] for role in ColumnRole}
    for mapping in mappings:
        by_role[ColumnRole(mapping.role)].append(mapping)
    return by_role


def extract_segments(grid: Grid, mappings: Sequence[ColumnMapping]) -> List[ParsedSegment]:
    """
    Build candidate segments from every data row of ``grid``.

    Row 0 is the header and never produces segments. Each non-empty source
    cell yields one candidate; the k-th source column pairs with the k-th
    target column. Status and skip mappings are ignored here.
    """
    by_role = _partition(mappings)
    sources = by_role[ColumnRole.SOURCE]
    targets = by_role[ColumnRole.TARGET]

    candidates: List[ParsedSegment] = []
    for row_index, row in enumerate(grid):
        if row_index == 0:
            continue

        key_cells = [_cell(row, mapping.column_index) for mapping in by_role[ColumnRole.KEY]]
        explicit_key = next((value for value in key_cells if value), None)
        context = _joined(row, by_role[ColumnRole.CONTEXT])
        notes = _joined(row, by_role[ColumnRole.NOTES])

        for ordinal, source_mapping in enumerate(sources):
            source_text = _cell(row, source_mapping.column_index)
            if not source_text:
                continue

            target_text = None
            if ordinal < len(targets):
                target_text = _cell(row, targets[ordinal].column_index) or None

            candidates.append(ParsedSegment(
                segment_key=explicit_key or f"row_{row_index}_source_{ordinal}",
                source_text=source_text,
                target_text=target_text,
                context=context,
                notes=notes,
                row_index=row_index,
            ))

    return candidates


def ingest_segments(
    grid: Grid,
    mappings: Sequence[ColumnMapping],
    project_id: str,
    file_id: Optional[str] = None,
) -> ExtractionResult:
    """
    Extract candidates and persist the ones whose key is new to the project.

    Candidates whose key is already stored, or repeats an earlier candidate in
    the same grid, are counted as skipped. A key taken by a concurrent writer
    between the lookup and the insert is skipped too.
    """
    candidates = extract_segments(grid, mappings)
    existing_keys = get_existing_segment_keys(project_id)

    fresh: List[ParsedSegment] = []
    skipped = 0
    seen = set(existing_keys)
    for candidate in candidates:
        if candidate.segment_key in seen:
            skipped += 1
            continue
        seen.add(candidate.segment_key)
        fresh.append(candidate)

    inserted_keys = set(insert_segments(project_id, fresh, file_id=file_id)) if fresh else set()
    created = [segment for segment in fresh if segment.segment_key in inserted_keys]
    skipped += len(fresh) - len(created)

    logger.info(
        "Ingested project %s: %d candidates, %d created, %d skipped",
        project_id, len(candidates), len(created), skipped,
    )
    return ExtractionResult(created=len(created), skipped=skipped, segments=created)
