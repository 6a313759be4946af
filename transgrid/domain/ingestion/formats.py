"""
Format family resolution for uploaded documents.

A declared MIME type and the original file name are mapped onto a closed set
of format families. Each family has exactly one decoder (see ``decoders``).
"""
import logging
import os
from enum import Enum
from typing import Optional

from transgrid.domain.ingestion.errors import UnsupportedFormatError

logger = logging.getLogger(__name__)


class FormatFamily(str, Enum):
    DELIMITED = "delimited"
    WORKBOOK = "workbook"
    ZIP_BUNDLE = "zip_bundle"
    PLAIN_TEXT = "plain_text"
    JSON = "json"
    XML = "xml"


MIME_TYPE_FAMILIES = {
    "text/csv": FormatFamily.DELIMITED,
    "application/csv": FormatFamily.DELIMITED,
    "text/tab-separated-values": FormatFamily.DELIMITED,
    "application/vnd.ms-excel": FormatFamily.WORKBOOK,
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": FormatFamily.WORKBOOK,
    "application/vnd.apple.numbers": FormatFamily.ZIP_BUNDLE,
    "application/x-iwork-numbers": FormatFamily.ZIP_BUNDLE,
    "application/x-iwork-numbers-sffnumbers": FormatFamily.ZIP_BUNDLE,
    "text/plain": FormatFamily.PLAIN_TEXT,
    "application/json": FormatFamily.JSON,
    "application/xml": FormatFamily.XML,
    "text/xml": FormatFamily.XML,
}

EXTENSION_FAMILIES = {
    ".csv": FormatFamily.DELIMITED,
    ".tsv": FormatFamily.DELIMITED,
    ".xlsx": FormatFamily.WORKBOOK,
    ".xlsm": FormatFamily.WORKBOOK,
    ".xls": FormatFamily.WORKBOOK,
    ".numbers": FormatFamily.ZIP_BUNDLE,
    ".txt": FormatFamily.PLAIN_TEXT,
    ".json": FormatFamily.JSON,
    ".xml": FormatFamily.XML,
}

# Generic container types only identify a family through the file extension.
GENERIC_MIME_TYPES = {"application/zip", "application/octet-stream", "application/x-zip-compressed", ""}


def _normalize_mime_type(mime_type: Optional[str]) -> str:
    if not mime_type:
        return ""
    return mime_type.split(";", 1)[0].strip().lower()


def file_extension(file_name: Optional[str]) -> str:
    if not file_name:
        return ""
    return os.path.splitext(file_name.strip().lower())[1]


def resolve_format_family(mime_type: Optional[str], file_name: Optional[str] = None) -> FormatFamily:
    """
    Map a declared MIME type and/or file name onto a format family.

    A specific MIME type wins over the extension (``text/plain`` excepted). Generic container types
    (zip, octet-stream) are only accepted when the extension identifies the
    family, e.g. ``budget.numbers`` uploaded as ``application/zip``.

    Raises:
        UnsupportedFormatError: if neither the MIME type nor the extension match.
    """
    normalized = _normalize_mime_type(mime_type)
    extension = file_extension(file_name)

    # text/plain is what many clients send for any text file, so a known extension refines it.
    if normalized == "text/plain" and extension in EXTENSION_FAMILIES:
        return EXTENSION_FAMILIES[extension]

    family = MIME_TYPE_FAMILIES.get(normalized)
    if family is not None:
        return family

    if normalized in GENERIC_MIME_TYPES or normalized.startswith("text/"):
        family = EXTENSION_FAMILIES.get(extension)
        if family is not None:
            logger.debug("Resolved '%s' (%s) to %s via extension", file_name, normalized or "no MIME type", family.value)
            return family

    raise UnsupportedFormatError(mime_type=mime_type, file_name=file_name)


def delimiter_for(mime_type: Optional[str], file_name: Optional[str] = None) -> str:
    """Return the single fixed delimiter for a delimited-text upload."""
    if _normalize_mime_type(mime_type) == "text/tab-separated-values" or file_extension(file_name) == ".tsv":
        return "\t"
    return ","
