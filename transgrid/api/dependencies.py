"""
Helpers shared by the API routers.
"""
import logging

from fastapi import HTTPException

from transgrid.domain.ingestion.errors import IngestionError

logger = logging.getLogger(__name__)


def to_http_exception(error: Exception, action: str) -> HTTPException:
    """
    Translate a pipeline error into an HTTPException.

    Taxonomy errors keep their status code and message; anything else is
    logged with its traceback and reported as a generic 500.
    """
    if isinstance(error, HTTPException):
        return error
    if isinstance(error, IngestionError):
        logger.info("%s failed: %s", action, error.message)
        return HTTPException(status_code=error.status_code, detail=error.message)
    logger.exception("Unexpected error while trying to %s", action)
    return HTTPException(status_code=500, detail=f"Failed to {action}")
