from dataclasses import dataclass, field
from typing import Dict, Optional

CSV_MEDIA_TYPE = "text/csv;charset=utf-8"


@dataclass
class RawCsvDocument:
    """
    CSV text produced for download.
    """
    text: str
    filename: Optional[str] = None
    media_type: str = CSV_MEDIA_TYPE

    # e.g. spec name, row_count
    metadata: Dict = field(default_factory=dict)

    def content_disposition(self) -> str:
        filename = self.filename or "export.csv"
        return f'attachment; filename="{filename}"'

    def encode(self) -> bytes:
        return self.text.encode("utf-8")
