import os
from typing import Dict, List, Optional

import yaml

from aeo_csv.canonical.column import ColumnDef, ColumnSpec, HeaderMode
from aeo_csv.standards.topic_prompt_columns import get_topic_prompt_columns
from aeo_csv.utils.exceptions import UnknownColumnSpecError

ONBOARDING = "ONBOARDING"
SETTINGS = "SETTINGS"


def _topic_prompt_column_defs(uppercase_country: bool = False) -> List[ColumnDef]:
    defs = []
    for col in get_topic_prompt_columns():
        defs.append(
            ColumnDef(
                name=col["name"],
                aliases=col["aliases"],
                default=col["default"],
                uppercase=uppercase_country and col["name"] == "country",
            )
        )
    return defs


def build_onboarding_spec() -> ColumnSpec:
    # Setup wizard upload: header required, topic AND prompt required
    return ColumnSpec(
        name=ONBOARDING,
        columns=_topic_prompt_column_defs(),
        header_mode=HeaderMode.PRESENT,
        require_complete_rows=True,
        description="Bulk topic/prompt upload during onboarding",
    )


def build_settings_spec() -> ColumnSpec:
    # Settings page import/export: header auto-detected, country upper-cased
    return ColumnSpec(
        name=SETTINGS,
        columns=_topic_prompt_column_defs(uppercase_country=True),
        header_mode=HeaderMode.AUTO,
        require_complete_rows=False,
        description="Topics & prompts configuration import/export",
    )


def column_spec_from_dict(data: Dict, name: Optional[str] = None) -> ColumnSpec:
    """
    Build a ColumnSpec from a plain mapping, e.g.:

        name: BRAND_PROMPTS
        header_mode: AUTO
        require_complete_rows: false
        columns:
          - name: prompt
            aliases: [query, query_text]
          - name: country
            aliases: [country_code]
            default: US
            uppercase: true
    """
    if not isinstance(data, dict):
        raise ValueError("Column spec must be a mapping")

    raw_columns = data.get("columns") or []
    if not isinstance(raw_columns, list):
        raise ValueError("Column spec 'columns' must be a list")

    columns = []
    for raw in raw_columns:
        if isinstance(raw, str):
            raw = {"name": raw}
        if not isinstance(raw, dict) or not raw.get("name"):
            raise ValueError(f"Invalid column definition: {raw!r}")
        default = raw.get("default")
        columns.append(
            ColumnDef(
                name=str(raw["name"]).strip(),
                aliases=[str(a) for a in raw.get("aliases", [])],
                default=None if default is None else str(default),
                uppercase=bool(raw.get("uppercase", False)),
            )
        )

    spec_name = name or data.get("name")
    if not spec_name:
        raise ValueError("Column spec must have a name")

    return ColumnSpec(
        name=str(spec_name).upper(),
        columns=columns,
        header_mode=data.get("header_mode", HeaderMode.AUTO),
        require_complete_rows=bool(data.get("require_complete_rows", False)),
        description=data.get("description"),
    )


def load_column_spec(path: str) -> ColumnSpec:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Column spec file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    fallback_name = os.path.splitext(os.path.basename(path))[0]
    return column_spec_from_dict(data or {}, name=(data or {}).get("name") or fallback_name)


class ColumnSpecRegistry:
    """
    Maps call-site names to column specs.
    """

    _REGISTRY: Dict[str, ColumnSpec] = {
        ONBOARDING: build_onboarding_spec(),
        SETTINGS: build_settings_spec(),
    }

    @classmethod
    def get_spec(cls, name: str) -> ColumnSpec:
        if not name:
            raise ValueError("Column spec name must not be empty")

        key = str(name).upper()

        if key not in cls._REGISTRY:
            raise UnknownColumnSpecError(
                f"No column spec registered for: {name}. "
                f"Registered: {sorted(cls._REGISTRY)}"
            )

        return cls._REGISTRY[key]

    @classmethod
    def register(cls, spec: ColumnSpec, replace: bool = False) -> ColumnSpec:
        key = spec.name.upper()
        if key in cls._REGISTRY and not replace:
            raise ValueError(f"Column spec already registered: {key}")
        cls._REGISTRY[key] = spec
        return spec

    @classmethod
    def unregister(cls, name: str) -> None:
        key = str(name).upper()
        if key in {ONBOARDING, SETTINGS}:
            raise ValueError(f"Built-in column spec cannot be removed: {key}")
        cls._REGISTRY.pop(key, None)

    @classmethod
    def names(cls) -> List[str]:
        return sorted(cls._REGISTRY)

    @classmethod
    def resolve(cls, ref: str) -> ColumnSpec:
        """
        Resolve a registered name or a path to a YAML column spec.
        """
        if ref and ref.lower().endswith((".yaml", ".yml")):
            return load_column_spec(ref)
        return cls.get_spec(ref or SETTINGS)
