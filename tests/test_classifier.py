"""
Tests for heuristic column role classification.
"""

import pytest

from transgrid.domain.ingestion.classifier import (
    alternative_suggestions,
    analyze_column,
    classify_column,
    detect_grid_columns,
)
from transgrid.domain.ingestion.models import ColumnProfile, ColumnRole, DataType


def _profile(index=0, name="Column 1", data_type=DataType.TEXT, samples=("Hello", "Goodbye"), patterns=()):
    return ColumnProfile(
        index=index,
        inferred_name=name,
        data_type=data_type,
        is_empty=data_type == DataType.EMPTY,
        distinct_value_count=len(set(samples)),
        total_value_count=len(samples),
        sample_values=list(samples),
        patterns=list(patterns),
    )


class TestHeaderMatching:
    @pytest.mark.parametrize("header,role", [
        ("Source", ColumnRole.SOURCE),
        ("Original text", ColumnRole.SOURCE),
        ("Translation", ColumnRole.TARGET),
        ("German", ColumnRole.TARGET),
        ("Comment", ColumnRole.CONTEXT),
        ("Status", ColumnRole.STATUS),
        ("ID", ColumnRole.KEY),
        ("Reference", ColumnRole.KEY),
    ])
    def test_header_patterns(self, header, role):
        suggestions = classify_column(_profile(), 3, header)
        assert suggestions[0].role == role
        assert suggestions[0].confidence == 0.8
        assert suggestions[0].reason == f"Column name matches {role.value} pattern"

    def test_first_matching_role_wins(self):
        """'Source translation' matches both source and target; source comes first."""
        suggestions = classify_column(_profile(), 1, "Source translation")
        assert suggestions[0].role == ColumnRole.SOURCE

    def test_language_codes_for_source_and_target(self):
        assert classify_column(_profile(), 0, "English")[0].language_code == "en"
        assert classify_column(_profile(), 1, "Spanish")[0].language_code == "es"
        assert classify_column(_profile(), 1, "Target (French)")[0].language_code == "fr"

    def test_no_language_code_for_other_roles(self):
        assert classify_column(_profile(), 2, "Status in russian")[0].language_code is None

    def test_blank_header_uses_profile_name(self):
        profile = _profile(name="Source")
        assert classify_column(profile, 4, "  ")[0].role == ColumnRole.SOURCE


class TestPositionalFallback:
    def test_first_text_column_is_source(self):
        top = classify_column(_profile(), 0, "Column A")[0]
        assert (top.role, top.confidence) == (ColumnRole.SOURCE, 0.6)

    def test_second_text_column_is_target(self):
        top = classify_column(_profile(index=1), 1, "Column B")[0]
        assert (top.role, top.confidence) == (ColumnRole.TARGET, 0.6)

    def test_other_text_columns_are_context(self):
        top = classify_column(_profile(index=5), 5, "Column F")[0]
        assert (top.role, top.confidence) == (ColumnRole.CONTEXT, 0.4)

    def test_non_text_columns_are_skipped(self):
        suggestions = classify_column(_profile(data_type=DataType.NUMBER, samples=("1", "2")), 0, "Column A")
        assert len(suggestions) == 1
        assert (suggestions[0].role, suggestions[0].confidence) == (ColumnRole.SKIP, 0.3)

    def test_empty_columns_are_skipped(self):
        suggestions = classify_column(_profile(data_type=DataType.EMPTY, samples=()), 0, "Column A")
        assert [s.role for s in suggestions] == [ColumnRole.SKIP]


class TestSuggestionList:
    def test_skip_always_present_with_single_top_entry(self):
        for header in ("Source", "Column A", "Status", ""):
            suggestions = classify_column(_profile(), 0, header)
            assert suggestions
            assert sum(1 for s in suggestions if s.role == ColumnRole.SKIP) == 1
            assert suggestions[0].confidence == max(s.confidence for s in suggestions)

    def test_deterministic(self):
        profile = _profile()
        first = classify_column(profile, 0, "English source")
        for _ in range(5):
            assert classify_column(profile, 0, "English source") == first


class TestAlternativeSuggestions:
    def test_one_entry_per_role_ranked(self):
        profile = _profile(samples=("OK", "No"), patterns=("short_text",))
        primary = classify_column(profile, 0, "Column A")[0]
        alternatives = alternative_suggestions(profile, primary)

        assert [s.role for s in alternatives] == [
            ColumnRole.KEY,
            ColumnRole.SOURCE,
            ColumnRole.TARGET,
            ColumnRole.CONTEXT,
            ColumnRole.SKIP,
        ]
        assert [s.confidence for s in alternatives] == [0.7, 0.6, 0.6, 0.5, 0.3]

    def test_header_match_keeps_its_confidence(self):
        profile = _profile()
        primary = classify_column(profile, 1, "Spanish")[0]
        alternatives = alternative_suggestions(profile, primary)

        assert alternatives[0] == primary
        assert len({s.role for s in alternatives}) == len(alternatives)

    def test_analyze_column_payload(self):
        profile = _profile(index=2, name="Notes")
        entry = analyze_column(profile, classify_column(profile, 2, "Notes")[0])

        assert entry["column_index"] == 2
        assert entry["column_name"] == "Notes"
        assert entry["analysis"]["data_type"] == "text"
        assert entry["analysis"]["sample_values"] == ["Hello", "Goodbye"]
        assert entry["suggestions"][0].role == ColumnRole.CONTEXT


class TestDetectGridColumns:
    def test_profiles_and_classifies_each_column(self):
        grid = [
            ["English", "Spanish", "Count"],
            ["Hello", "Hola", "1"],
            ["Goodbye", "Adios", "2"],
        ]
        columns, analysis = detect_grid_columns(grid, max_sample_rows=10)

        assert [column.suggestion.role for column in columns] == [
            ColumnRole.SOURCE, ColumnRole.TARGET, ColumnRole.CONTEXT,
        ]
        assert [column.suggestion.language_code for column in columns] == ["en", "es", None]
        assert all(column.suggestion == column.suggestions[0] for column in columns)
        assert [entry["column_index"] for entry in analysis] == [0, 1, 2]

    def test_empty_grid(self):
        assert detect_grid_columns([], max_sample_rows=10) == ([], [])
