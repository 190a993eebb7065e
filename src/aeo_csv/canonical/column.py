from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from aeo_csv.pipeline.naming import normalize_header


class HeaderMode:
    AUTO = "AUTO"
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"

    @classmethod
    def is_valid(cls, mode: str) -> bool:
        return mode in {cls.AUTO, cls.PRESENT, cls.ABSENT}


@dataclass
class ColumnDef:
    """
    Logical CSV column.
    The canonical name is always the first alias tried.
    """
    name: str
    aliases: List[str] = field(default_factory=list)
    default: Optional[str] = None
    uppercase: bool = False

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Column name must not be empty")
        candidates = [self.name] + list(self.aliases)
        normalized: List[str] = []
        for alias in candidates:
            key = normalize_header(alias)
            if key and key not in normalized:
                normalized.append(key)
        self.aliases = normalized

        # Defaults go through the same cleanup as parsed cells
        if self.default is not None:
            default = str(self.default).strip()
            if self.uppercase:
                default = default.upper()
            self.default = default or None

    @property
    def required(self) -> bool:
        return self.default is None


@dataclass
class ColumnSpec:
    """
    Ordered set of columns a particular CSV operation expects.

    header_mode:
    - AUTO: row 0 is a header only if it contains a known alias
    - PRESENT: row 0 is always a header
    - ABSENT: every row is data, mapped positionally
    require_complete_rows:
    - drop rows where ANY required column is empty, instead of only
      rows where ALL of them are
    """
    name: str
    columns: List[ColumnDef]
    header_mode: str = HeaderMode.AUTO
    require_complete_rows: bool = False
    description: Optional[str] = None

    def __post_init__(self):
        self.header_mode = str(self.header_mode).upper()
        if not HeaderMode.is_valid(self.header_mode):
            raise ValueError("header_mode must be one of: AUTO, PRESENT, ABSENT")
        if not self.columns:
            raise ValueError(f"Column spec '{self.name}' defines no columns")

        seen = set()
        for col in self.columns:
            if col.name in seen:
                raise ValueError(f"Duplicate column '{col.name}' in spec '{self.name}'")
            seen.add(col.name)

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def required_columns(self) -> List[ColumnDef]:
        return [c for c in self.columns if c.required]

    @property
    def known_aliases(self) -> set:
        return {alias for c in self.columns for alias in c.aliases}

    def with_defaults(self, **defaults: str) -> "ColumnSpec":
        """
        Derive a spec where the given columns fall back to a default.
        A column that gains a default stops being required.
        """
        unknown = set(defaults) - set(self.column_names)
        if unknown:
            raise ValueError(
                f"Defaults given for unknown columns: {sorted(unknown)}. "
                f"Spec '{self.name}' has: {self.column_names}"
            )
        columns = []
        for col in self.columns:
            value = defaults.get(col.name)
            if value is not None and str(value).strip():
                col = replace(col, default=str(value).strip())
            columns.append(col)
        return replace(self, columns=columns)

    def with_header_mode(self, header_mode: str) -> "ColumnSpec":
        return replace(self, header_mode=header_mode)

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "header_mode": self.header_mode,
            "require_complete_rows": self.require_complete_rows,
            "description": self.description,
            "columns": [
                {
                    "name": c.name,
                    "aliases": c.aliases,
                    "default": c.default,
                    "required": c.required,
                    "uppercase": c.uppercase,
                }
                for c in self.columns
            ],
        }
