from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Tuple, Union

from aeo_csv.canonical.column import ColumnSpec
from aeo_csv.canonical.row import TableRow
from aeo_csv.pipeline.header_mapping import (
    detect_header,
    missing_required_columns,
    positional_indexes,
    resolve_column_indexes,
)
from aeo_csv.pipeline.row_mapping import build_row, is_row_accepted, is_source_blank
from aeo_csv.utils.exceptions import (
    EmptyDocumentError,
    MissingRequiredColumnError,
    NoValidRowsError,
)

# Characters that force a cell to be quoted on output
_SPECIAL_CHARS = (",", '"', "\n", "\r")

RowLike = Union[TableRow, Mapping[str, object]]


# ------------------------------------------------------------------
# Tokenizer
# ------------------------------------------------------------------
def scan_records(text: str) -> List[Tuple[int, List[str]]]:
    """
    Split CSV text into records, keeping the 1-based line each record
    starts on.

    - ',' separates fields, '\\n' separates records, '\\r' is dropped
    - '"' toggles quoted mode; inside quotes '""' is a literal quote and
      ',' / '\\n' are kept as data
    - trailing records whose cells are all blank are dropped
    """
    records: List[Tuple[int, List[str]]] = []
    row: List[str] = []
    chars: List[str] = []
    in_quotes = False
    line = 1
    row_start = 1

    i = 0
    length = len(text or "")
    while i < length:
        char = text[i]

        if in_quotes:
            if char == '"':
                if i + 1 < length and text[i + 1] == '"':
                    chars.append('"')
                    i += 2
                    continue
                in_quotes = False
            else:
                if char == "\n":
                    line += 1
                chars.append(char)
            i += 1
            continue

        if char == '"':
            in_quotes = True
        elif char == ",":
            row.append("".join(chars))
            chars = []
        elif char == "\n":
            row.append("".join(chars))
            chars = []
            records.append((row_start, row))
            row = []
            line += 1
            row_start = line
        elif char != "\r":
            chars.append(char)
        i += 1

    row.append("".join(chars))
    records.append((row_start, row))

    while records and all(not cell.strip() for cell in records[-1][1]):
        records.pop()

    return records


def tokenize(text: str) -> List[List[str]]:
    return [cells for _, cells in scan_records(text)]


# ------------------------------------------------------------------
# Escaping
# ------------------------------------------------------------------
def escape_cell(value) -> str:
    text = "" if value is None else str(value)
    if any(ch in text for ch in _SPECIAL_CHARS):
        return '"' + text.replace('"', '""') + '"'
    return text


def _row_values(row: RowLike, spec: ColumnSpec) -> List[str]:
    if isinstance(row, TableRow):
        row = row.values
    return [escape_cell(row.get(name)) for name in spec.column_names]


@dataclass
class ParseResult:
    rows: List[TableRow]
    header_detected: bool
    column_indexes: Dict[str, int]
    source_rows: int
    dropped_rows: int
    dropped_lines: List[int] = field(default_factory=list)

    def summary(self) -> Dict:
        return {
            "header_detected": self.header_detected,
            "source_rows": self.source_rows,
            "accepted_rows": len(self.rows),
            "dropped_rows": self.dropped_rows,
            "dropped_lines": self.dropped_lines,
            "column_indexes": self.column_indexes,
        }


# ------------------------------------------------------------------
# Codec
# ------------------------------------------------------------------
class CsvTableCodec:
    """
    Topic/prompt CSV codec.
    Responsibilities:
    - Tokenize uploaded CSV text (quoted fields may hold ',' and newlines)
    - Detect the header row and resolve columns by alias
    - Trim, upper-case and default cell values per column
    - Drop rows without required values
    - Serialize rows back to CSV with canonical column names
    DOES NOT:
    - Read files or decode bytes
    - Talk to the backend API
    """

    def __init__(self, spec: ColumnSpec):
        self.spec = spec

    def parse(self, text: str) -> List[TableRow]:
        return self.parse_with_summary(text).rows

    def parse_with_summary(self, text: str) -> ParseResult:
        records = scan_records(text)
        if not records:
            raise EmptyDocumentError()

        _, first_row = records[0]
        header_detected = detect_header(first_row, self.spec)

        if header_detected:
            indexes = resolve_column_indexes(first_row, self.spec)
            data_records = records[1:]
        else:
            indexes = positional_indexes(self.spec)
            data_records = records

        if not data_records:
            raise EmptyDocumentError()

        if header_detected:
            missing = missing_required_columns(indexes, self.spec)
            if missing:
                raise MissingRequiredColumnError(missing)

        rows: List[TableRow] = []
        dropped_lines: List[int] = []
        for line_number, cells in data_records:
            row = build_row(cells, indexes, self.spec, line_number=line_number)
            source_blank = is_source_blank(cells, indexes)
            if is_row_accepted(row, self.spec, source_blank=source_blank):
                rows.append(row)
            else:
                dropped_lines.append(line_number)

        if not rows:
            raise NoValidRowsError()

        return ParseResult(
            rows=rows,
            header_detected=header_detected,
            column_indexes=indexes,
            source_rows=len(data_records),
            dropped_rows=len(dropped_lines),
            dropped_lines=dropped_lines,
        )

    def serialize(self, rows: Iterable[RowLike]) -> str:
        lines = [",".join(escape_cell(name) for name in self.spec.column_names)]
        for row in rows:
            lines.append(",".join(_row_values(row, self.spec)))
        return "\n".join(lines)


def parse(text: str, spec: ColumnSpec) -> List[TableRow]:
    return CsvTableCodec(spec).parse(text)


def serialize(rows: Iterable[RowLike], spec: ColumnSpec) -> str:
    return CsvTableCodec(spec).serialize(rows)
