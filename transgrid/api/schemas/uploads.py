from datetime import datetime
from typing import List, Optional

from transgrid.api.schemas.columns import CamelModel
from transgrid.domain.ingestion.models import SegmentStatus


class UploadedFileInfo(CamelModel):
    id: str
    project_id: str
    file_name: str
    file_size: int
    content_type: Optional[str] = None
    file_hash: Optional[str] = None
    uploaded_at: Optional[datetime] = None


class UploadFileResponse(CamelModel):
    success: bool
    message: str
    file: UploadedFileInfo


class StoredSegment(CamelModel):
    segment_key: str
    source_text: str
    target_text: Optional[str] = None
    context: Optional[str] = None
    notes: Optional[str] = None
    status: SegmentStatus
    file_id: Optional[str] = None
    created_at: Optional[datetime] = None


class SegmentListResponse(CamelModel):
    segments: List[StoredSegment]
    total: int
    limit: int
    offset: int
