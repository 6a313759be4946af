"""
Tabular decoders: raw upload bytes -> Grid of string cells.

One decoder per format family. Decoders never drop row 0; families without a
physical header row (plain text, JSON, XML, zip bundles) get a synthesized
header so every Grid follows the same "row 0 is the header" convention.
"""
import html
import io
import json
import logging
import math
import re
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

import pandas as pd
from lxml import etree

from transgrid.domain.ingestion.errors import CorruptInputError, IngestionError, NotFoundError
from transgrid.domain.ingestion.formats import FormatFamily
from transgrid.domain.ingestion.models import Grid

logger = logging.getLogger(__name__)

SOURCE_TEXT_HEADER = "Source Text"
KEY_HEADER = "Key"

# Zip-bundle extraction layers, tried in order; a layer only runs when every
# earlier layer produced nothing across the whole archive.
BUNDLE_ENTRY_SUFFIXES = (".xml", ".iwa")
TAGGED_TEXT_PATTERN = re.compile(r"<(?:sf:)?t\b[^>]*>([^<]+)</(?:sf:)?t>")
QUOTED_TEXT_PATTERN = re.compile(r'"([^"\x00-\x1f\x7f]{3,})"')
PRINTABLE_RUN_PATTERN = re.compile(r"[^\x00-\x1f\x7f-\x9f<>{}\[\]\"\\]{4,}")
NUMERIC_ONLY_PATTERN = re.compile(r"^[\d\s.,+\-]+$")
CONSTANT_TOKEN_PATTERN = re.compile(r"^[A-Z0-9_]+$")

XML_KEY_ATTRIBUTES = ("name", "key", "id")

# CR, LF and CRLF only; form feeds and U+2028 stay inside cells.
LINE_BREAK_PATTERN = re.compile(r"\r\n|\r|\n")


@dataclass
class DecodedGrid:
    """Decoder output: the Grid plus workbook sheet information when relevant."""
    rows: Grid
    sheet_name: Optional[str] = None
    sheet_names: List[str] = field(default_factory=list)


def _decode_text(content: bytes) -> str:
    # utf-8-sig strips the BOM Excel writes in front of exported CSV files.
    return content.decode("utf-8-sig")


def _split_lines(text: str) -> List[str]:
    return LINE_BREAK_PATTERN.split(text)


def _strip_enclosing_quotes(cell: str) -> str:
    cell = cell.strip()
    if len(cell) >= 2 and cell[0] == cell[-1] and cell[0] in ('"', "'"):
        return cell[1:-1].strip()
    return cell


def decode_delimited(content: bytes, delimiter: str = ",") -> Grid:
    """
    Split delimited text into rows of cells.

    Blank lines are dropped and one layer of enclosing quotes is removed from
    each cell. Delimiters inside quoted cells are NOT supported: such a cell is
    split like any other.
    """
    text = _decode_text(content)
    rows: Grid = []
    for line in _split_lines(text):
        if not line.strip():
            continue
        rows.append([_strip_enclosing_quotes(cell) for cell in line.split(delimiter)])

    logger.info("Decoded delimited text: %d rows", len(rows))
    return rows


def _cell_to_text(value: Any) -> str:
    """Coerce a workbook cell to its text form."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            return ""
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        if value.hour == value.minute == value.second == value.microsecond == 0:
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value).strip()


def _open_workbook(content: bytes) -> pd.ExcelFile:
    try:
        return pd.ExcelFile(io.BytesIO(content), engine="openpyxl")
    except Exception:
        # Legacy .xls workbooks need pandas' default engine selection
        return pd.ExcelFile(io.BytesIO(content))


def decode_workbook(content: bytes, sheet_name: Optional[str] = None) -> DecodedGrid:
    """
    Convert one workbook sheet to a Grid.

    Uses the requested sheet or the first one. Trailing empty cells are
    trimmed and fully blank rows dropped, leading ones included, so row 0 is
    the first non-blank row.

    Raises:
        NotFoundError: if ``sheet_name`` is not present in the workbook.
    """
    with _open_workbook(content) as workbook:
        sheet_names = [str(name) for name in workbook.sheet_names]
        if not sheet_names:
            raise CorruptInputError(FormatFamily.WORKBOOK.value, "Workbook contains no sheets")

        target_sheet = sheet_name or sheet_names[0]
        if target_sheet not in sheet_names:
            raise NotFoundError(f"Sheet '{target_sheet}' not found")

        df = workbook.parse(target_sheet, header=None, dtype=object)

    rows: Grid = []
    for values in df.itertuples(index=False, name=None):
        row = [_cell_to_text(value) for value in values]
        while row and row[-1] == "":
            row.pop()
        if row:
            rows.append(row)

    logger.info("Decoded workbook sheet '%s': %d rows", target_sheet, len(rows))
    return DecodedGrid(rows=rows, sheet_name=target_sheet, sheet_names=sheet_names)


def _is_meaningful_run(text: str) -> bool:
    return bool(text) and not NUMERIC_ONLY_PATTERN.match(text)


def _collect_runs(entries: List[str], pattern: re.Pattern, *, unescape: bool) -> List[str]:
    runs: List[str] = []
    for entry_text in entries:
        for match in pattern.finditer(entry_text):
            text = match.group(1) if pattern.groups else match.group(0)
            if unescape:
                text = html.unescape(text)
            text = text.strip()
            if _is_meaningful_run(text):
                runs.append(text)
    return runs


def extract_bundle_text_runs(content: bytes) -> List[str]:
    """
    Best-effort text extraction from a zip-based spreadsheet bundle.

    Layers: tagged ``<t>`` elements, then quoted strings, then generic
    printable runs. The first layer that yields anything wins. Unreadable
    archives yield an empty list instead of raising.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(content)) as archive:
            entries = []
            for info in archive.infolist():
                if info.is_dir() or not info.filename.lower().endswith(BUNDLE_ENTRY_SUFFIXES):
                    continue
                entries.append(archive.read(info).decode("utf-8", errors="ignore"))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, RuntimeError) as exc:
        logger.warning("Could not open zip bundle, returning no text: %s", exc)
        return []

    if not entries:
        logger.warning("Zip bundle contains no .xml/.iwa entries")
        return []

    runs = _collect_runs(entries, TAGGED_TEXT_PATTERN, unescape=True)
    strategy = "tagged"
    if not runs:
        runs = _collect_runs(entries, QUOTED_TEXT_PATTERN, unescape=True)
        strategy = "quoted"
    if not runs:
        runs = [
            run for run in _collect_runs(entries, PRINTABLE_RUN_PATTERN, unescape=False)
            if not CONSTANT_TOKEN_PATTERN.match(run)
        ]
        strategy = "printable"

    unique_runs = list(dict.fromkeys(runs))
    logger.info(
        "Extracted %d text runs from zip bundle (%d entries, strategy=%s)",
        len(unique_runs), len(entries), strategy,
    )
    return unique_runs


def decode_zip_bundle(content: bytes) -> Grid:
    rows: Grid = [[SOURCE_TEXT_HEADER]]
    rows.extend([run] for run in extract_bundle_text_runs(content))
    return rows


def decode_plain_text(content: bytes) -> Grid:
    rows: Grid = [[SOURCE_TEXT_HEADER]]
    rows.extend([line.strip()] for line in _split_lines(_decode_text(content)) if line.strip())
    return rows


def _flatten_json(value: Any, prefix: str, rows: Grid) -> None:
    if isinstance(value, dict):
        items = value.items()
    elif isinstance(value, list):
        items = enumerate(value)
    else:
        if isinstance(value, str) and value.strip():
            rows.append([prefix or "value", value.strip()])
        return

    for key, child in items:
        child_key = f"{prefix}.{key}" if prefix else str(key)
        _flatten_json(child, child_key, rows)


def decode_json(content: bytes) -> Grid:
    """Flatten nested JSON into ``(dotted.key, text)`` rows; only string leaves are kept."""
    data = json.loads(_decode_text(content))
    rows: Grid = [[KEY_HEADER, SOURCE_TEXT_HEADER]]
    _flatten_json(data, "", rows)
    return rows


def decode_xml(content: bytes) -> Grid:
    """
    One row per element with non-blank direct text, in document order.

    The key is the element's ``name``/``key``/``id`` attribute when present
    (resource-bundle style files), otherwise ``xml_element_{n}``.
    """
    parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)
    root = etree.fromstring(content, parser=parser)

    rows: Grid = [[KEY_HEADER, SOURCE_TEXT_HEADER]]
    counter = 0
    for element in root.iter():
        if not isinstance(element.tag, str):
            continue
        text = (element.text or "").strip()
        if not text:
            continue
        counter += 1
        key = next(
            (element.get(attribute) for attribute in XML_KEY_ATTRIBUTES if element.get(attribute)),
            f"xml_element_{counter}",
        )
        rows.append([key, text])
    return rows


_Decoder = Callable[[bytes, Optional[str], str], DecodedGrid]

_DECODERS: Dict[FormatFamily, _Decoder] = {
    FormatFamily.DELIMITED: lambda content, sheet, delimiter: DecodedGrid(decode_delimited(content, delimiter)),
    FormatFamily.WORKBOOK: lambda content, sheet, delimiter: decode_workbook(content, sheet),
    FormatFamily.ZIP_BUNDLE: lambda content, sheet, delimiter: DecodedGrid(decode_zip_bundle(content)),
    FormatFamily.PLAIN_TEXT: lambda content, sheet, delimiter: DecodedGrid(decode_plain_text(content)),
    FormatFamily.JSON: lambda content, sheet, delimiter: DecodedGrid(decode_json(content)),
    FormatFamily.XML: lambda content, sheet, delimiter: DecodedGrid(decode_xml(content)),
}

_missing_decoders = set(FormatFamily) - set(_DECODERS)
if _missing_decoders:  # pragma: no cover
    raise RuntimeError(f"No decoder registered for format families: {sorted(f.value for f in _missing_decoders)}")


def decode(
    content: bytes,
    family: FormatFamily,
    *,
    sheet_name: Optional[str] = None,
    delimiter: str = ",",
) -> DecodedGrid:
    """
    Decode raw bytes of a known format family into a Grid.

    Raises:
        CorruptInputError: if the bytes could not be parsed as ``family``.
        NotFoundError: if a requested workbook sheet does not exist.
    """
    decoder = _DECODERS[FormatFamily(family)]
    try:
        return decoder(content, sheet_name, delimiter)
    except IngestionError:
        raise
    except Exception as exc:
        logger.warning("Failed to decode %s content: %s", FormatFamily(family).value, exc, exc_info=True)
        raise CorruptInputError(FormatFamily(family).value) from exc
