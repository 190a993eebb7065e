import uuid
from datetime import datetime, timezone
from typing import Dict, Optional

from aeo_csv.observability.logger import logger

AUDIT_EVENT = "AUDIT_EVENT"


class AuditLogger:
    """
    Responsible for building and persisting audit records
    for CSV imports, exports and template downloads.
    """
    def build_record(
        self,
        request_id: str,
        user_id: str,
        action: str,
        spec: str,
        decision: str,
        row_count: int = 0,
        dropped_rows: int = 0,
        filename: Optional[str] = None,
    ) -> Dict:
        return {
            "audit_id": str(uuid.uuid4()),
            "request_id": request_id,
            "user_id": user_id,
            "action": action,
            "spec": spec,
            "decision": decision,
            "row_count": row_count,
            "dropped_rows": dropped_rows,
            "filename": filename,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def persist(self, record: Dict):
        """
        Structured log output; picked up by the platform log sink.
        """
        logger.info(AUDIT_EVENT, extra={"event": {AUDIT_EVENT: record}})
