"""
Request/response models for column detection, configuration and parsing.

Field names are snake_case in Python and camelCase on the wire.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from transgrid.domain.ingestion.models import (
    ColumnMapping,
    ColumnRole,
    Configuration,
    DataType,
    ParsedSegment,
    Preset,
    RoleSuggestion,
    SegmentStatus,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RoleSuggestionOut(CamelModel):
    type: ColumnRole
    confidence: float
    reason: str
    language_code: Optional[str] = None

    @classmethod
    def from_domain(cls, suggestion: RoleSuggestion) -> "RoleSuggestionOut":
        return cls(
            type=suggestion.role,
            confidence=suggestion.confidence,
            reason=suggestion.reason,
            language_code=suggestion.language_code,
        )


class ColumnInfo(CamelModel):
    index: int
    name: str
    sample_values: List[str]
    data_type: DataType
    is_empty: bool
    unique_values: int
    total_values: int
    suggested_type: ColumnRole
    confidence: float
    language_code: Optional[str] = None
    suggestions: List[RoleSuggestionOut] = Field(default_factory=list)


class ColumnAnalysisDetail(CamelModel):
    data_type: DataType
    is_empty: bool
    unique_values: int
    total_values: int
    sample_values: List[str]
    patterns: List[str]


class ColumnAnalysis(CamelModel):
    column_index: int
    column_name: str
    analysis: ColumnAnalysisDetail
    suggestions: List[RoleSuggestionOut]


class DetectColumnsResponse(CamelModel):
    columns: List[ColumnInfo]
    analysis: List[ColumnAnalysis]
    preview_data: List[List[str]]
    total_rows: int
    sheet_name: Optional[str] = None
    sheet_names: List[str] = Field(default_factory=list)


class ColumnMappingIn(CamelModel):
    column_index: int = Field(ge=0)
    column_name: str
    column_type: ColumnRole
    language_code: Optional[str] = None
    is_required: bool = False
    custom_settings: Optional[Dict[str, Any]] = None

    def to_domain(self) -> ColumnMapping:
        return ColumnMapping(
            column_index=self.column_index,
            column_name=self.column_name,
            role=self.column_type,
            language_code=self.language_code,
            is_required=self.is_required,
            custom_settings=self.custom_settings,
        )


class ColumnMappingOut(ColumnMappingIn):
    @classmethod
    def from_domain(cls, mapping: ColumnMapping) -> "ColumnMappingOut":
        return cls(
            column_index=mapping.column_index,
            column_name=mapping.column_name,
            column_type=mapping.role,
            language_code=mapping.language_code,
            is_required=mapping.is_required,
            custom_settings=mapping.custom_settings,
        )


class ConfigurationIn(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    sheet_name: Optional[str] = None
    is_default: bool = False
    mappings: List[ColumnMappingIn]

    def to_domain(self) -> Configuration:
        return Configuration(
            mappings=[mapping.to_domain() for mapping in self.mappings],
            name=self.name,
            description=self.description,
            sheet_name=self.sheet_name,
            is_default=self.is_default,
        )


class ConfigurationOut(CamelModel):
    id: Optional[str] = None
    project_id: Optional[str] = None
    file_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    sheet_name: Optional[str] = None
    is_default: bool = False
    mappings: List[ColumnMappingOut]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, configuration: Configuration) -> "ConfigurationOut":
        return cls(
            id=configuration.id,
            project_id=configuration.project_id,
            file_id=configuration.file_id,
            name=configuration.name,
            description=configuration.description,
            sheet_name=configuration.sheet_name,
            is_default=configuration.is_default,
            mappings=[ColumnMappingOut.from_domain(mapping) for mapping in configuration.mappings],
            created_at=configuration.created_at,
            updated_at=configuration.updated_at,
        )


class ParseWithConfigRequest(CamelModel):
    configuration_id: str


class SegmentOut(CamelModel):
    segment_key: str
    source_text: str
    target_text: Optional[str] = None
    context: Optional[str] = None
    notes: Optional[str] = None
    status: SegmentStatus
    row_index: Optional[int] = None

    @classmethod
    def from_domain(cls, segment: ParsedSegment) -> "SegmentOut":
        return cls(
            segment_key=segment.segment_key,
            source_text=segment.source_text,
            target_text=segment.target_text,
            context=segment.context,
            notes=segment.notes,
            status=segment.status,
            row_index=segment.row_index,
        )


class ParseWithConfigResponse(CamelModel):
    parsed: int
    skipped: int
    segments: List[SegmentOut]


class PresetMappingOut(CamelModel):
    column_name: str
    column_type: ColumnRole
    language_code: Optional[str] = None
    is_required: bool = False


class PresetOut(CamelModel):
    id: str
    name: str
    description: str
    category: str
    is_built_in: bool
    mappings: List[PresetMappingOut]

    @classmethod
    def from_domain(cls, preset: Preset) -> "PresetOut":
        return cls(
            id=preset.id,
            name=preset.name,
            description=preset.description,
            category=preset.category,
            is_built_in=preset.is_built_in,
            mappings=[
                PresetMappingOut(
                    column_name=mapping.column_name,
                    column_type=mapping.role,
                    language_code=mapping.language_code,
                    is_required=mapping.is_required,
                )
                for mapping in preset.mappings
            ],
        )


class ApplyPresetRequest(CamelModel):
    preset_id: str
    sheet_name: Optional[str] = None


class DeleteConfigurationResponse(CamelModel):
    success: bool
    message: str
