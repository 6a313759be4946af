"""
Tests for the built-in column presets.
"""

import pytest

from transgrid.domain.ingestion.errors import NotFoundError
from transgrid.domain.ingestion.models import ColumnRole
from transgrid.domain.ingestion.presets import apply_preset, get_preset, list_presets


def test_presets_are_fixed_and_ordered():
    presets = list_presets()
    assert [p.id for p in presets] == ["common", "translation_memory", "glossary"]
    assert presets[0].name == "Common Translation"
    assert all(p.is_built_in for p in presets)
    assert list_presets() == presets


def test_get_unknown_preset():
    with pytest.raises(NotFoundError):
        get_preset("does-not-exist")


def test_apply_common_preset_to_three_columns():
    grid = [["whatever", "headers", "here"], ["Hello", "Hola", "Greeting"]]
    configuration = apply_preset(get_preset("common"), grid)

    assert [m.column_index for m in configuration.mappings] == [0, 1, 2]
    assert [m.role for m in configuration.mappings] == [ColumnRole.SOURCE, ColumnRole.TARGET, ColumnRole.CONTEXT]
    assert [m.language_code for m in configuration.mappings] == ["en", "es", None]
    assert configuration.name == "Common Translation"
    assert configuration.id is None


def test_apply_preset_truncates_to_grid_width():
    grid = [["Key", "Source"], ["k1", "Hello", "ignored"]]
    configuration = apply_preset(get_preset("translation_memory"), grid)
    assert [(m.column_index, m.role) for m in configuration.mappings] == [
        (0, ColumnRole.KEY),
        (1, ColumnRole.SOURCE),
        (2, ColumnRole.TARGET),
    ]


def test_glossary_preset_order():
    configuration = apply_preset(get_preset("glossary"), [["a", "b", "c"]])
    assert [m.column_name for m in configuration.mappings] == ["Term", "Definition", "Translation"]
    assert configuration.mappings[1].is_required is True
