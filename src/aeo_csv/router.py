from typing import Dict

from fastapi import Request

# ---------------- Codec ----------------
from aeo_csv.adapters.csv_codec import CsvTableCodec
from aeo_csv.canonical.column import ColumnSpec
from aeo_csv.canonical.document import RawCsvDocument
from aeo_csv.governance.spec_registry import (
    SETTINGS,
    ColumnSpecRegistry,
    column_spec_from_dict,
)

# ---------------- Outputs ----------------
from aeo_csv.outputs.csv_export import CsvExporter

# ---------------- Observability ----------------
from aeo_csv.observability.logger import log_event, generate_request_id, RequestTimer
from aeo_csv.observability.audit_logger import AuditLogger
from aeo_csv.observability.identity import extract_user_identity

from aeo_csv.utils.exceptions import ValidationError


def resolve_spec(payload: Dict) -> ColumnSpec:
    """
    Column spec for a request:
    - inline "column_spec" mapping, or registered "spec" name (default SETTINGS)
    - optional "header_mode" override
    - optional "defaults" (e.g. the topic currently filtered in the UI)
    """
    if payload.get("column_spec"):
        spec = column_spec_from_dict(payload["column_spec"])
    else:
        spec = ColumnSpecRegistry.get_spec(payload.get("spec") or SETTINGS)

    if payload.get("header_mode"):
        spec = spec.with_header_mode(payload["header_mode"])

    defaults = payload.get("defaults")
    if defaults:
        if not isinstance(defaults, dict):
            raise ValueError("defaults must be a mapping of column name to value")
        spec = spec.with_defaults(**defaults)

    return spec


def _fail(audit_logger, request_id, user_id, action, spec_name, error):
    # Validation errors are the user's file, not ours
    decision = "REJECTED" if isinstance(error, ValidationError) else "FAILED"
    audit_logger.persist(
        audit_logger.build_record(
            request_id=request_id,
            user_id=user_id,
            action=action,
            spec=spec_name or "unknown",
            decision=decision,
        )
    )
    log_event(f"{action}_{decision}", {
        "request_id": request_id,
        "spec": spec_name,
        "error_type": type(error).__name__,
        "error": str(error),
    })


# ==========================================================
# IMPORT
# ==========================================================
def route_parse(payload: Dict, request: Request) -> Dict:
    """
    Uploaded CSV text → validated topic/prompt rows.

    All-or-nothing: either every accepted row is returned or a
    ValidationError is raised and nothing is applied.
    """
    request_id = generate_request_id()
    audit_logger = AuditLogger()
    user_id = extract_user_identity(request, payload)
    timer = RequestTimer()
    spec_name = payload.get("spec") or SETTINGS

    log_event("CSV_IMPORT_STARTED", {
        "request_id": request_id,
        "spec": spec_name,
        "user_id": user_id,
    })

    try:
        text = payload.get("text")
        if text is None:
            raise ValueError("Request payload must contain 'text'")
        if not isinstance(text, str):
            raise ValueError("'text' must be a string")
        # Spreadsheet exports often start with a UTF-8 BOM
        if text.startswith("\ufeff"):
            text = text[1:]

        spec = resolve_spec(payload)
        spec_name = spec.name

        result = CsvTableCodec(spec).parse_with_summary(text)
        summary = result.summary()

        audit_logger.persist(
            audit_logger.build_record(
                request_id=request_id,
                user_id=user_id,
                action="CSV_IMPORT",
                spec=spec_name,
                decision="ACCEPTED",
                row_count=len(result.rows),
                dropped_rows=result.dropped_rows,
            )
        )

        log_event("CSV_IMPORT_COMPLETED", {
            "request_id": request_id,
            "spec": spec_name,
            "duration_seconds": timer.duration(),
            "accepted_rows": summary["accepted_rows"],
            "dropped_rows": summary["dropped_rows"],
            "header_detected": summary["header_detected"],
        })

        return {
            "status": "SUCCESS",
            "spec": spec_name,
            "header_detected": result.header_detected,
            "summary": summary,
            "rows": [row.to_dict() for row in result.rows],
        }

    except Exception as e:
        _fail(audit_logger, request_id, user_id, "CSV_IMPORT", spec_name, e)
        raise


# ==========================================================
# EXPORT
# ==========================================================
def route_export(payload: Dict, request: Request) -> RawCsvDocument:
    """
    Configuration rows → downloadable CSV document.
    """
    request_id = generate_request_id()
    audit_logger = AuditLogger()
    user_id = extract_user_identity(request, payload)
    timer = RequestTimer()
    spec_name = payload.get("spec") or SETTINGS

    try:
        rows = payload.get("rows")
        if not isinstance(rows, list):
            raise ValueError("Request payload must contain a 'rows' list")
        if not rows:
            raise ValueError("Nothing to export: 'rows' is empty")
        for idx, row in enumerate(rows):
            if not isinstance(row, dict):
                raise ValueError(f"Row {idx} must be an object, got {type(row).__name__}")

        spec = resolve_spec(payload)
        spec_name = spec.name

        document = CsvExporter(spec).export(
            rows,
            purpose=payload.get("purpose"),
            scope=payload.get("scope"),
            export_date=payload.get("date"),
        )

        audit_logger.persist(
            audit_logger.build_record(
                request_id=request_id,
                user_id=user_id,
                action="CSV_EXPORT",
                spec=spec_name,
                decision="EXPORTED",
                row_count=len(rows),
                filename=document.filename,
            )
        )

        log_event("CSV_EXPORT_COMPLETED", {
            "request_id": request_id,
            "spec": spec_name,
            "filename": document.filename,
            "row_count": len(rows),
            "duration_seconds": timer.duration(),
        })

        return document

    except Exception as e:
        _fail(audit_logger, request_id, user_id, "CSV_EXPORT", spec_name, e)
        raise


def route_template(payload: Dict, request: Request) -> RawCsvDocument:
    """
    Spec name → upload template with sample rows.
    """
    request_id = generate_request_id()
    audit_logger = AuditLogger()
    user_id = extract_user_identity(request, payload)
    spec_name = payload.get("spec") or SETTINGS

    try:
        spec = resolve_spec(payload)
        spec_name = spec.name
        document = CsvExporter(spec).template()
    except Exception as e:
        _fail(audit_logger, request_id, user_id, "CSV_TEMPLATE", spec_name, e)
        raise

    log_event("CSV_TEMPLATE_GENERATED", {
        "request_id": request_id,
        "spec": spec_name,
        "user_id": user_id,
        "filename": document.filename,
    })
    return document
