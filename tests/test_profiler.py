"""
Tests for column profiling and type inference.
"""

import pytest

from transgrid.domain.ingestion.models import DataType
from transgrid.domain.ingestion.profiler import (
    extract_patterns,
    infer_data_type,
    is_number,
    profile_grid,
)


class TestInferDataType:
    def test_zero_one_values_are_numbers_not_booleans(self):
        assert infer_data_type(["1", "0", "1"]) == DataType.NUMBER

    @pytest.mark.parametrize("values,expected", [
        (["1.5", "-2", "3e2"], DataType.NUMBER),
        (["true", "No", "YES"], DataType.BOOLEAN),
        (["2024-01-15", "2023-12-31"], DataType.DATE),
        (["Hello", "2024-01-15"], DataType.TEXT),
        (["today"], DataType.TEXT),
        ([], DataType.EMPTY),
        (["", "  "], DataType.EMPTY),
    ])
    def test_fixed_order(self, values, expected):
        assert infer_data_type(values) == expected

    def test_non_finite_numbers_are_text(self):
        assert infer_data_type(["inf", "nan"]) == DataType.TEXT

    def test_underscore_digit_groups_are_text(self):
        assert infer_data_type(["1_000", "2_5"]) == DataType.TEXT

    @pytest.mark.parametrize("value", ["42", " -3.5 ", ".5", "7.", "1E-3", "+10"])
    def test_plain_numeric_literals(self, value):
        assert is_number(value)

    @pytest.mark.parametrize("value", ["1_000", "0x1F", "Infinity", "1e", "", "1,5"])
    def test_other_literals_are_not_numbers(self, value):
        assert not is_number(value)


class TestPatterns:
    def test_uppercase_keys(self):
        assert extract_patterns(["BTN_OK", "MENU"]) == ["uppercase"]

    def test_short_numeric(self):
        assert extract_patterns(["12", "7"]) == ["numeric", "short_text"]

    def test_long_lowercase(self):
        assert extract_patterns(["some_long_identifier"]) == ["lowercase", "long_text"]

    def test_empty_sample_has_no_tags(self):
        assert extract_patterns([]) == []


class TestProfileGrid:
    def test_ragged_rows_use_widest_sampled_row(self):
        grid = [["a", "b", "c"], ["d", "e"], ["f", "g", "h", "i"]]
        profiles = profile_grid(grid)

        assert len(profiles) == 4
        assert profiles[3].total_value_count == 1
        assert profiles[3].sample_values == ["i"]
        assert profiles[3].inferred_name == "Column 4"

    def test_only_header_plus_sample_rows_are_read(self):
        grid = [["Source"]] + [[f"row {n}"] for n in range(1, 30)] + [["", "late column"]]
        profiles = profile_grid(grid, max_sample_rows=10)

        assert len(profiles) == 1
        assert profiles[0].total_value_count == 11

    def test_statistics(self):
        grid = [["Source", "Empty"], ["Hello", ""], ["Hello", ""], ["Bye", ""]]
        source, empty = profile_grid(grid)

        assert source.inferred_name == "Source"
        assert source.data_type == DataType.TEXT
        assert source.distinct_value_count == 3
        assert source.total_value_count == 4
        assert source.sample_values == ["Source", "Hello", "Hello", "Bye"]

        assert empty.data_type == DataType.TEXT
        assert empty.sample_values == ["Empty"]

    def test_blank_header_gets_positional_name(self):
        profiles = profile_grid([["", "Target"], ["Hello", "Hola"]])
        assert profiles[0].inferred_name == "Column 1"
        assert profiles[1].inferred_name == "Target"

    def test_empty_grid(self):
        assert profile_grid([]) == []
