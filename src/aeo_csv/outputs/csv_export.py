from datetime import date, datetime, timezone
from typing import Iterable, Optional, Union

from aeo_csv.adapters.csv_codec import CsvTableCodec, RowLike
from aeo_csv.canonical.column import ColumnSpec
from aeo_csv.canonical.document import RawCsvDocument
from aeo_csv.pipeline.naming import safe_file_part
from aeo_csv.standards.topic_prompt_columns import (
    TEMPLATE_FILENAME,
    get_template_sample_rows,
)

DEFAULT_PURPOSE = "topics-prompts"
ALL_TOPICS_SCOPE = "all-topics"


def _date_suffix(value: Optional[Union[str, date]]) -> str:
    if value is None:
        return datetime.now(timezone.utc).date().isoformat()
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    # Validate strings so a bad date never ends up in a filename
    return date.fromisoformat(str(value).strip()).isoformat()


def build_export_filename(
    purpose: Optional[str] = None,
    scope: Optional[str] = None,
    export_date: Optional[Union[str, date]] = None,
) -> str:
    """
    Build a download filename using:
    {purpose}-{scope}-{date}.csv
    """
    purpose_part = safe_file_part(purpose or "") or DEFAULT_PURPOSE
    scope_part = safe_file_part(scope or "") or ALL_TOPICS_SCOPE
    return f"{purpose_part}-{scope_part}-{_date_suffix(export_date)}.csv"


class CsvExporter:
    """
    Wrap serialized rows into a downloadable document.
    """

    def __init__(self, spec: ColumnSpec):
        self.spec = spec
        self.codec = CsvTableCodec(spec)

    def export(
        self,
        rows: Iterable[RowLike],
        purpose: Optional[str] = None,
        scope: Optional[str] = None,
        export_date: Optional[Union[str, date]] = None,
    ) -> RawCsvDocument:
        rows = list(rows)
        return RawCsvDocument(
            text=self.codec.serialize(rows),
            filename=build_export_filename(purpose, scope, export_date),
            metadata={
                "spec": self.spec.name,
                "row_count": len(rows),
            },
        )

    def template(self) -> RawCsvDocument:
        rows = get_template_sample_rows()
        return RawCsvDocument(
            text=self.codec.serialize(rows),
            filename=TEMPLATE_FILENAME,
            metadata={
                "spec": self.spec.name,
                "row_count": len(rows),
                "template": True,
            },
        )
