"""
Column identification endpoints: detect, configure, preset and parse.
"""
from typing import List, Optional

from fastapi import APIRouter, Query
from starlette.concurrency import run_in_threadpool

from transgrid.api.dependencies import to_http_exception
from transgrid.api.schemas.columns import (
    ApplyPresetRequest,
    ColumnAnalysis,
    ColumnInfo,
    ConfigurationIn,
    ConfigurationOut,
    DeleteConfigurationResponse,
    DetectColumnsResponse,
    ParseWithConfigRequest,
    ParseWithConfigResponse,
    PresetOut,
    RoleSuggestionOut,
    SegmentOut,
)
from transgrid.domain.ingestion.configurations import (
    delete_configuration,
    get_configuration,
    save_configuration,
)
from transgrid.domain.ingestion.orchestrator import (
    DetectionResult,
    apply_preset_to_file,
    detect_columns,
    parse_with_configuration,
)
from transgrid.domain.ingestion.presets import list_presets

router = APIRouter(tags=["columns"])


def _detection_response(result: DetectionResult) -> DetectColumnsResponse:
    columns = [
        ColumnInfo(
            index=column.profile.index,
            name=column.profile.inferred_name,
            sample_values=column.profile.sample_values,
            data_type=column.profile.data_type,
            is_empty=column.profile.is_empty,
            unique_values=column.profile.distinct_value_count,
            total_values=column.profile.total_value_count,
            suggested_type=column.suggestion.role,
            confidence=column.suggestion.confidence,
            language_code=column.suggestion.language_code,
            suggestions=[RoleSuggestionOut.from_domain(s) for s in column.suggestions],
        )
        for column in result.columns
    ]
    analysis = [
        ColumnAnalysis(
            column_index=entry["column_index"],
            column_name=entry["column_name"],
            analysis=entry["analysis"],
            suggestions=[RoleSuggestionOut.from_domain(s) for s in entry["suggestions"]],
        )
        for entry in result.analysis
    ]
    return DetectColumnsResponse(
        columns=columns,
        analysis=analysis,
        preview_data=result.preview_rows,
        total_rows=result.total_rows,
        sheet_name=result.sheet_name,
        sheet_names=result.sheet_names,
    )


@router.get("/files/{file_id}/columns", response_model=DetectColumnsResponse)
async def detect_columns_endpoint(
    file_id: str,
    sheet_name: Optional[str] = Query(None, alias="sheetName"),
    max_sample_rows: Optional[int] = Query(None, alias="maxSampleRows", ge=1, le=1000),
):
    """
    Profile the columns of an uploaded file and suggest a role for each.

    Returns the column profiles with their top suggestion, a per-column
    analysis with alternative roles, the first rows for preview and the total
    row count.
    """
    try:
        result = await run_in_threadpool(detect_columns, file_id, sheet_name, max_sample_rows)
    except Exception as e:
        raise to_http_exception(e, "detect columns") from e
    return _detection_response(result)


@router.post(
    "/projects/{project_id}/files/{file_id}/column-config",
    response_model=ConfigurationOut,
)
async def save_column_configuration(project_id: str, file_id: str, request: ConfigurationIn):
    """Create or replace the column configuration of a file."""
    try:
        saved = await run_in_threadpool(save_configuration, project_id, file_id, request.to_domain())
    except Exception as e:
        raise to_http_exception(e, "save configuration") from e
    return ConfigurationOut.from_domain(saved)


@router.get(
    "/projects/{project_id}/files/{file_id}/column-config",
    response_model=Optional[ConfigurationOut],
)
async def get_column_configuration(project_id: str, file_id: str):
    """Return the saved configuration of a file, or null when none exists."""
    try:
        configuration = await run_in_threadpool(get_configuration, project_id, file_id)
    except Exception as e:
        raise to_http_exception(e, "get configuration") from e
    if configuration is None:
        return None
    return ConfigurationOut.from_domain(configuration)


@router.post(
    "/projects/{project_id}/files/{file_id}/parse-with-config",
    response_model=ParseWithConfigResponse,
)
async def parse_with_column_configuration(project_id: str, file_id: str, request: ParseWithConfigRequest):
    """
    Extract segments from a file using a saved configuration.

    Segments whose key already exists in the project are skipped, so parsing
    the same file twice creates nothing the second time.
    """
    try:
        result = await run_in_threadpool(
            parse_with_configuration, project_id, file_id, request.configuration_id
        )
    except Exception as e:
        raise to_http_exception(e, "parse file") from e
    return ParseWithConfigResponse(
        parsed=result.created,
        skipped=result.skipped,
        segments=[SegmentOut.from_domain(segment) for segment in result.segments],
    )


@router.get("/presets", response_model=List[PresetOut])
async def list_column_presets():
    """List the built-in column presets."""
    return [PresetOut.from_domain(preset) for preset in list_presets()]


@router.post("/files/{file_id}/apply-preset", response_model=ConfigurationOut)
async def apply_column_preset(file_id: str, request: ApplyPresetRequest):
    """Bind a preset to a file's columns and return the unsaved draft."""
    try:
        draft = await run_in_threadpool(apply_preset_to_file, file_id, request.preset_id, request.sheet_name)
    except Exception as e:
        raise to_http_exception(e, "apply preset") from e
    return ConfigurationOut.from_domain(draft)


@router.delete(
    "/projects/{project_id}/column-configs/{configuration_id}",
    response_model=DeleteConfigurationResponse,
)
async def delete_column_configuration(project_id: str, configuration_id: str):
    try:
        await run_in_threadpool(delete_configuration, project_id, configuration_id)
    except Exception as e:
        raise to_http_exception(e, "delete configuration") from e
    return DeleteConfigurationResponse(success=True, message="Configuration deleted successfully")
