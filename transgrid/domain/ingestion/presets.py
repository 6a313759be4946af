"""
Built-in column mapping presets.

Presets are immutable templates without column indices; applying one to a
Grid binds its mappings to columns 0..n-1 in preset order.
"""
import logging
from typing import List, Optional

from transgrid.domain.ingestion.errors import NotFoundError
from transgrid.domain.ingestion.models import (
    ColumnMapping,
    ColumnRole,
    Configuration,
    Grid,
    Preset,
    PresetMapping,
)

logger = logging.getLogger(__name__)


BUILT_IN_PRESETS = (
    Preset(
        id="common",
        name="Common Translation",
        description="Source and target columns with context",
        category="common",
        mappings=(
            PresetMapping("Source", ColumnRole.SOURCE, "en", True),
            PresetMapping("Target", ColumnRole.TARGET, "es", True),
            PresetMapping("Context", ColumnRole.CONTEXT, None, False),
        ),
    ),
    Preset(
        id="translation_memory",
        name="Translation Memory",
        description="TMX-like format with keys",
        category="translation_memory",
        mappings=(
            PresetMapping("Key", ColumnRole.KEY, None, True),
            PresetMapping("Source", ColumnRole.SOURCE, "en", True),
            PresetMapping("Target", ColumnRole.TARGET, "es", True),
            PresetMapping("Context", ColumnRole.CONTEXT, None, False),
        ),
    ),
    Preset(
        id="glossary",
        name="Glossary",
        description="Term and definition format",
        category="glossary",
        mappings=(
            PresetMapping("Term", ColumnRole.SOURCE, "en", True),
            PresetMapping("Definition", ColumnRole.CONTEXT, None, True),
            PresetMapping("Translation", ColumnRole.TARGET, "es", False),
        ),
    ),
)


def list_presets() -> List[Preset]:
    """Return the built-in presets in their fixed order."""
    return list(BUILT_IN_PRESETS)


def get_preset(preset_id: str) -> Preset:
    for preset in BUILT_IN_PRESETS:
        if preset.id == preset_id:
            return preset
    raise NotFoundError(f"Preset '{preset_id}' not found")


def apply_preset(preset: Preset, grid: Grid, sheet_name: Optional[str] = None) -> Configuration:
    """
    Bind a preset to a concrete Grid.

    Mapping ``i`` of the preset is assigned column index ``i``; header text is
    ignored. Mappings beyond the Grid's widest row are dropped.
    """
    column_count = max((len(row) for row in grid), default=0)
    bound = [
        ColumnMapping(
            column_index=index,
            column_name=template.column_name,
            role=template.role,
            language_code=template.language_code,
            is_required=template.is_required,
        )
        for index, template in enumerate(preset.mappings[:column_count])
    ]

    if len(bound) < len(preset.mappings):
        logger.info(
            "Preset '%s' has %d mappings but the grid only has %d columns; extra mappings dropped",
            preset.id, len(preset.mappings), column_count,
        )

    return Configuration(
        mappings=bound,
        name=preset.name,
        description=preset.description,
        sheet_name=sheet_name,
    )
