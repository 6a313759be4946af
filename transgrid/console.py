#!/usr/bin/env python3
"""
Developer console for trying column detection and segment extraction on local files.

Nothing here touches the database or blob storage.
"""

import argparse
import mimetypes
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .domain.ingestion.classifier import detect_grid_columns
from .domain.ingestion.decoders import DecodedGrid, decode
from .domain.ingestion.errors import IngestionError
from .domain.ingestion.extractor import extract_segments
from .domain.ingestion.formats import FormatFamily, delimiter_for, resolve_format_family
from .domain.ingestion.models import ColumnMapping, ColumnRole


def parse_mapping(value: str) -> ColumnMapping:
    """Parse ``INDEX:ROLE[:LANG]``, e.g. ``0:source:en``."""
    parts = value.split(":")
    if len(parts) not in (2, 3):
        raise argparse.ArgumentTypeError(f"Invalid mapping '{value}', expected INDEX:ROLE[:LANG]")
    try:
        index = int(parts[0])
        role = ColumnRole(parts[1].strip().lower())
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid mapping '{value}': {e}") from e
    if index < 0:
        raise argparse.ArgumentTypeError(f"Invalid mapping '{value}': column index must be non-negative")
    return ColumnMapping(
        column_index=index,
        column_name=f"Column {index + 1}",
        role=role,
        language_code=parts[2] if len(parts) == 3 else None,
    )


class IngestionConsole:
    """Render detection and extraction results for a local file."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def load(self, path: Path, sheet_name: Optional[str] = None) -> DecodedGrid:
        mime_type, _ = mimetypes.guess_type(path.name)
        family = resolve_format_family(mime_type, path.name)
        delimiter = delimiter_for(mime_type, path.name) if family == FormatFamily.DELIMITED else ","
        decoded = decode(path.read_bytes(), family, sheet_name=sheet_name, delimiter=delimiter)
        self.console.print(
            f"[dim]{path.name}: {family.value}, {len(decoded.rows)} rows"
            + (f", sheet '{decoded.sheet_name}'" if decoded.sheet_name else "")
            + "[/dim]"
        )
        return decoded

    def show_detection(self, decoded: DecodedGrid, max_sample_rows: int) -> None:
        columns, _ = detect_grid_columns(decoded.rows, max_sample_rows)

        table = Table(title="Detected Columns")
        table.add_column("#", style="dim", justify="right")
        table.add_column("Name", style="cyan")
        table.add_column("Type", style="white")
        table.add_column("Samples", style="white")
        table.add_column("Suggested role", style="green")
        table.add_column("Confidence", justify="right")
        table.add_column("Lang", style="magenta")

        for column in columns:
            profile, top = column.profile, column.suggestion
            table.add_row(
                str(profile.index),
                profile.inferred_name,
                profile.data_type.value,
                ", ".join(profile.sample_values[:3]),
                top.role.value,
                f"{top.confidence:.1f}",
                top.language_code or "",
            )

        self.console.print(table)

    def show_segments(self, decoded: DecodedGrid, mappings: List[ColumnMapping]) -> None:
        segments = extract_segments(decoded.rows, mappings)
        if not segments:
            self.console.print(Panel("[yellow]No segments found for this mapping.[/yellow]", border_style="yellow"))
            return

        table = Table(title=f"Candidate Segments ({len(segments)})")
        table.add_column("Key", style="cyan", no_wrap=True)
        table.add_column("Source", style="white")
        table.add_column("Target", style="white")
        table.add_column("Context", style="dim")
        table.add_column("Status", style="green")

        for segment in segments:
            table.add_row(
                segment.segment_key,
                segment.source_text,
                segment.target_text or "",
                segment.context or "",
                segment.status.value,
            )

        self.console.print(table)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Transgrid console - inspect column detection and segment extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s detect strings.csv
  %(prog)s detect book.xlsx --sheet "UI strings"
  %(prog)s extract strings.csv --map 0:source:en --map 1:target:es
        """
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    detect_parser = subparsers.add_parser("detect", help="Profile columns and suggest roles")
    detect_parser.add_argument("path", type=Path)
    detect_parser.add_argument("--sheet", default=None, help="Workbook sheet name")
    detect_parser.add_argument("--sample-rows", type=int, default=10, help="Data rows to sample (default: 10)")

    extract_parser = subparsers.add_parser("extract", help="Show the segments a mapping would produce")
    extract_parser.add_argument("path", type=Path)
    extract_parser.add_argument("--sheet", default=None, help="Workbook sheet name")
    extract_parser.add_argument(
        "--map",
        dest="mappings",
        action="append",
        type=parse_mapping,
        required=True,
        help="Column mapping INDEX:ROLE[:LANG]; repeat for each column",
    )

    args = parser.parse_args(argv)
    ingestion_console = IngestionConsole()

    if not args.path.is_file():
        ingestion_console.console.print(f"[red]❌ File not found: {args.path}[/red]")
        return 1

    try:
        decoded = ingestion_console.load(args.path, args.sheet)
        if args.command == "detect":
            ingestion_console.show_detection(decoded, args.sample_rows)
        else:
            ingestion_console.show_segments(decoded, args.mappings)
    except IngestionError as e:
        ingestion_console.console.print(Panel(f"[red]❌ {e.message}[/red]", title="Error", border_style="red"))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
