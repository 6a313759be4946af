"""
Heuristic column role classification.

Pure functions: given a column profile and its header cell, return ranked role
suggestions. ``detect_grid_columns`` runs profiling and classification over a
whole Grid. Nothing here performs I/O or raises on odd input; unclear
columns degrade to ``skip``.
"""
import re
from typing import Any, Dict, List, Optional, Tuple

from transgrid.domain.ingestion.models import (
    ColumnProfile,
    ColumnRole,
    DataType,
    DetectedColumn,
    Grid,
    RoleSuggestion,
)
from transgrid.domain.ingestion.profiler import profile_grid

HEADER_MATCH_CONFIDENCE = 0.8
POSITIONAL_CONFIDENCE = 0.6
EXTRA_TEXT_CONFIDENCE = 0.4
SKIP_CONFIDENCE = 0.3

# Ordered: the first role with a matching alternative wins.
ROLE_PATTERNS = (
    (ColumnRole.SOURCE, (r"english", r"source", r"original", r"text", r"content")),
    (ColumnRole.TARGET, (r"spanish", r"french", r"german", r"target", r"translation", r"translated")),
    (ColumnRole.CONTEXT, (r"context", r"note", r"comment", r"description", r"info")),
    (ColumnRole.STATUS, (r"status", r"state", r"progress", r"done", r"new", r"complete")),
    (ColumnRole.KEY, (r"id", r"key", r"identifier", r"ref", r"number")),
)

_COMPILED_ROLE_PATTERNS = tuple(
    (role, tuple(re.compile(pattern) for pattern in patterns))
    for role, patterns in ROLE_PATTERNS
)

LANGUAGE_CODES = {
    "english": "en",
    "spanish": "es",
    "french": "fr",
    "german": "de",
    "italian": "it",
    "portuguese": "pt",
    "chinese": "zh",
    "japanese": "ja",
    "korean": "ko",
    "russian": "ru",
    "arabic": "ar",
}

# Tie-break order for equal confidences.
ROLE_ORDER: Dict[ColumnRole, int] = {
    role: position
    for position, role in enumerate(
        [role for role, _ in ROLE_PATTERNS] + [ColumnRole.NOTES, ColumnRole.SKIP]
    )
}

LANGUAGE_ROLES = {ColumnRole.SOURCE, ColumnRole.TARGET}


def extract_language_code(header: str, role: ColumnRole) -> Optional[str]:
    """Guess a 2-letter language code from a lowercased header; source/target only."""
    if role not in LANGUAGE_ROLES:
        return None
    for language, code in LANGUAGE_CODES.items():
        if language in header:
            return code
    return None


def _match_header(header: str) -> Optional[ColumnRole]:
    for role, patterns in _COMPILED_ROLE_PATTERNS:
        if any(pattern.search(header) for pattern in patterns):
            return role
    return None


def _rank(suggestions: List[RoleSuggestion]) -> List[RoleSuggestion]:
    return sorted(suggestions, key=lambda s: (-s.confidence, ROLE_ORDER[s.role]))


def classify_column(
    profile: ColumnProfile,
    column_index: int,
    header_value: Optional[str] = None,
) -> List[RoleSuggestion]:
    """
    Suggest a role for one column.

    The header (or synthesized column name) is matched against
    ``ROLE_PATTERNS``; without a match, text columns fall back to their
    position (first source, second target, others context) and everything
    else is skipped. A ``skip`` entry is always present so callers have a
    safe default.
    """
    raw_header = header_value if header_value and str(header_value).strip() else profile.inferred_name
    header = str(raw_header or "").strip().lower()

    matched_role = _match_header(header)
    if matched_role is not None:
        primary = RoleSuggestion(
            role=matched_role,
            confidence=HEADER_MATCH_CONFIDENCE,
            reason=f"Column name matches {matched_role.value} pattern",
            language_code=extract_language_code(header, matched_role),
        )
    elif profile.data_type == DataType.TEXT and not profile.is_empty:
        if column_index == 0:
            primary = RoleSuggestion(ColumnRole.SOURCE, POSITIONAL_CONFIDENCE, "First text column, likely source")
        elif column_index == 1:
            primary = RoleSuggestion(ColumnRole.TARGET, POSITIONAL_CONFIDENCE, "Second text column, likely target")
        else:
            primary = RoleSuggestion(ColumnRole.CONTEXT, EXTRA_TEXT_CONFIDENCE, "Additional text column, likely context")
    else:
        primary = RoleSuggestion(ColumnRole.SKIP, SKIP_CONFIDENCE, "Unclear column purpose")

    suggestions = [primary]
    if primary.role != ColumnRole.SKIP:
        suggestions.append(RoleSuggestion(ColumnRole.SKIP, SKIP_CONFIDENCE, "Skip this column"))
    return suggestions


def alternative_suggestions(profile: ColumnProfile, primary: RoleSuggestion) -> List[RoleSuggestion]:
    """
    Build the wider menu of roles offered for a column in the detect response.

    Contains the primary suggestion, generic text-column options, a key
    option for short text values and the skip floor; one entry per role at its
    highest confidence, ranked by confidence then role order.
    """
    candidates = [primary]

    if profile.data_type == DataType.TEXT and not profile.is_empty:
        candidates.extend([
            RoleSuggestion(ColumnRole.SOURCE, 0.6, "Text column suitable for source content"),
            RoleSuggestion(ColumnRole.TARGET, 0.6, "Text column suitable for target content"),
            RoleSuggestion(ColumnRole.CONTEXT, 0.5, "Text column suitable for context information"),
        ])
        if "short_text" in profile.patterns:
            candidates.append(RoleSuggestion(ColumnRole.KEY, 0.7, "Short text likely to be identifier"))

    candidates.append(RoleSuggestion(ColumnRole.SKIP, SKIP_CONFIDENCE, "Skip this column"))

    best: Dict[ColumnRole, RoleSuggestion] = {}
    for suggestion in candidates:
        current = best.get(suggestion.role)
        if current is None or suggestion.confidence > current.confidence:
            best[suggestion.role] = suggestion

    return _rank(list(best.values()))


def analyze_column(profile: ColumnProfile, primary: RoleSuggestion) -> Dict[str, Any]:
    """Summarize a column and its alternative roles for the detect response."""
    return {
        "column_index": profile.index,
        "column_name": profile.inferred_name,
        "analysis": {
            "data_type": profile.data_type.value,
            "is_empty": profile.is_empty,
            "unique_values": profile.distinct_value_count,
            "total_values": profile.total_value_count,
            "sample_values": list(profile.sample_values),
            "patterns": list(profile.patterns),
        },
        "suggestions": alternative_suggestions(profile, primary),
    }


def detect_grid_columns(grid: Grid, max_sample_rows: int) -> Tuple[List[DetectedColumn], List[Dict[str, Any]]]:
    """Profile every column of a Grid and classify it against its header cell."""
    header = grid[0] if grid else []

    columns: List[DetectedColumn] = []
    analysis: List[Dict[str, Any]] = []
    for profile in profile_grid(grid, max_sample_rows=max_sample_rows):
        header_value = header[profile.index] if profile.index < len(header) else None
        suggestions = classify_column(profile, profile.index, header_value)
        columns.append(DetectedColumn(profile=profile, suggestion=suggestions[0], suggestions=suggestions))
        analysis.append(analyze_column(profile, suggestions[0]))
    return columns, analysis
