from typing import Dict, List, Optional

from aeo_csv.canonical.column import ColumnSpec
from aeo_csv.canonical.row import TableRow


def extract_cell(cells: List[str], index: int) -> str:
    if index < 0 or index >= len(cells):
        return ""
    return cells[index] or ""


def is_source_blank(cells: List[str], indexes: Dict[str, int]) -> bool:
    """
    True if every mapped cell is empty after trimming.
    """
    return all(not extract_cell(cells, idx).strip() for idx in indexes.values())


def build_row(
    cells: List[str],
    indexes: Dict[str, int],
    spec: ColumnSpec,
    line_number: Optional[int] = None,
) -> TableRow:
    values: Dict[str, str] = {}
    for col in spec.columns:
        value = extract_cell(cells, indexes.get(col.name, -1)).strip()
        if col.uppercase:
            value = value.upper()
        if not value and col.default is not None:
            value = col.default
        values[col.name] = value
    return TableRow(values=values, line_number=line_number)


def is_row_accepted(row: TableRow, spec: ColumnSpec, source_blank: bool = False) -> bool:
    """
    A row is dropped when all required columns are empty, or, for specs
    with require_complete_rows, when any of them is.
    Specs without required columns drop only rows blank in the source.
    """
    if source_blank:
        return False
    required = [row[c.name] for c in spec.required_columns]
    if not required:
        return True
    if spec.require_complete_rows:
        return all(required)
    return any(required)
