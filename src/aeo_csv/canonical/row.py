from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional


@dataclass
class TableRow:
    """
    One logical record read from, or written to, a CSV file.

    `values` keeps the column spec order. `line_number` is the 1-based
    source line the record started on; it is diagnostic only and is not
    part of equality.
    """
    values: Dict[str, str]
    line_number: Optional[int] = field(default=None, compare=False)

    def __getitem__(self, column: str) -> str:
        return self.values[column]

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def get(self, column: str, default: Optional[str] = None) -> Optional[str]:
        return self.values.get(column, default)

    def keys(self):
        return self.values.keys()

    def to_dict(self) -> Dict[str, str]:
        return dict(self.values)
