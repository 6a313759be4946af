"""
Domain types shared by the decoder, profiler, classifier, mapping store and
segment extractor.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


# Row 0 is the candidate header row; rows may be ragged.
Grid = List[List[str]]


class ColumnRole(str, Enum):
    """Semantic purpose of a column."""
    SOURCE = "source"
    TARGET = "target"
    CONTEXT = "context"
    NOTES = "notes"
    STATUS = "status"
    KEY = "key"
    SKIP = "skip"


class DataType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    EMPTY = "empty"


class SegmentStatus(str, Enum):
    NEW = "new"
    TRANSLATED = "translated"


@dataclass
class ColumnProfile:
    """Statistics for one column of a sampled Grid."""
    index: int
    inferred_name: str
    data_type: DataType
    is_empty: bool
    distinct_value_count: int
    total_value_count: int
    sample_values: List[str] = field(default_factory=list)
    patterns: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RoleSuggestion:
    role: ColumnRole
    confidence: float
    reason: str
    language_code: Optional[str] = None


@dataclass
class DetectedColumn:
    """A profiled column with its ranked role suggestions; ``suggestion`` is the top one."""
    profile: ColumnProfile
    suggestion: RoleSuggestion
    suggestions: List[RoleSuggestion]


@dataclass
class ColumnMapping:
    column_index: int
    column_name: str
    role: ColumnRole
    language_code: Optional[str] = None
    is_required: bool = False
    custom_settings: Optional[Dict[str, Any]] = None


@dataclass
class Configuration:
    """A column-to-role mapping bound to one (project, file) pair."""
    mappings: List[ColumnMapping]
    id: Optional[str] = None
    project_id: Optional[str] = None
    file_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    sheet_name: Optional[str] = None
    is_default: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class PresetMapping:
    """Preset column template; bound to a column index only when applied."""
    column_name: str
    role: ColumnRole
    language_code: Optional[str] = None
    is_required: bool = False


@dataclass(frozen=True)
class Preset:
    id: str
    name: str
    description: str
    category: str
    mappings: tuple
    is_built_in: bool = True


@dataclass
class ParsedSegment:
    segment_key: str
    source_text: str
    target_text: Optional[str] = None
    context: Optional[str] = None
    notes: Optional[str] = None
    row_index: Optional[int] = None

    @property
    def status(self) -> SegmentStatus:
        return SegmentStatus.TRANSLATED if self.target_text else SegmentStatus.NEW


@dataclass
class ExtractionResult:
    created: int
    skipped: int
    segments: List[ParsedSegment] = field(default_factory=list)
