"""
Pipeline step: first CSV row → column index mapping

Responsibilities:
- Decide whether row 0 is a header (per ColumnSpec.header_mode)
- Resolve each logical column to a source index by alias priority
- Fall back to positional mapping for headerless files

DOES NOT:
- Trim or default cell values (see row_mapping)
"""

from typing import Dict, List

from aeo_csv.canonical.column import ColumnSpec, HeaderMode
from aeo_csv.pipeline.naming import normalize_header

UNRESOLVED = -1


def looks_like_header_row(first_row: List[str], spec: ColumnSpec) -> bool:
    """
    True if at least one cell of the row is a known alias of any column.
    """
    known = spec.known_aliases
    return any(normalize_header(cell) in known for cell in first_row)


def detect_header(first_row: List[str], spec: ColumnSpec) -> bool:
    if spec.header_mode == HeaderMode.PRESENT:
        return True
    if spec.header_mode == HeaderMode.ABSENT:
        return False
    return looks_like_header_row(first_row, spec)


def resolve_column_indexes(header_row: List[str], spec: ColumnSpec) -> Dict[str, int]:
    """
    Map every column to the index of its first matching alias.
    Aliases are tried in priority order; within the header the leftmost
    occurrence wins. Unmatched columns map to UNRESOLVED.
    """
    header = [normalize_header(cell) for cell in header_row]
    indexes: Dict[str, int] = {}
    for col in spec.columns:
        indexes[col.name] = UNRESOLVED
        for alias in col.aliases:
            if alias in header:
                indexes[col.name] = header.index(alias)
                break
    return indexes


def positional_indexes(spec: ColumnSpec) -> Dict[str, int]:
    return {col.name: idx for idx, col in enumerate(spec.columns)}


def missing_required_columns(indexes: Dict[str, int], spec: ColumnSpec) -> List[str]:
    return [c.name for c in spec.required_columns if indexes.get(c.name, UNRESOLVED) == UNRESOLVED]
