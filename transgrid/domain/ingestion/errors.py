"""
Error taxonomy for the detection and ingestion pipeline.

Every detect/parse call either succeeds or raises one of these; the routers
translate them into HTTP responses.
"""


class IngestionError(Exception):
    """Base exception for ingestion pipeline failures."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UnsupportedFormatError(IngestionError):
    """Raised when a declared MIME type / extension matches no decoder family."""

    status_code = 415

    def __init__(self, mime_type: str = None, file_name: str = None, message: str = None):
        self.mime_type = mime_type
        self.file_name = file_name
        super().__init__(
            message or f"Unsupported file type: {mime_type or 'unknown'} ({file_name or 'unnamed file'})"
        )


class CorruptInputError(IngestionError):
    """Raised when bytes matched a format family but could not be parsed."""

    status_code = 422

    def __init__(self, format_family: str = None, message: str = None):
        self.format_family = format_family
        super().__init__(message or "Failed to parse file")


class NotFoundError(IngestionError):
    """Raised when a project, file, configuration, sheet or preset is missing."""

    status_code = 404


class MappingValidationError(IngestionError):
    """Raised when a column configuration is malformed."""

    status_code = 400
