import argparse
import json
import os
from typing import Any, Dict, List, Optional

from fastapi import Request

from aeo_csv.canonical.document import RawCsvDocument
from aeo_csv.governance.spec_registry import SETTINGS, ColumnSpecRegistry
from aeo_csv.router import route_export, route_parse, route_template
from aeo_csv.utils.exceptions import ValidationError


class CLIRequest(Request):
    """
    Minimal Request wrapper for CLI execution.
    Provides headers for identity extraction.
    """

    def __init__(self, user_id: str = "cli_user"):
        scope = {
            "type": "http",
            "headers": [],
        }
        super().__init__(scope)
        self._user_id = user_id

    @property
    def headers(self):
        return {"x-user-id": self._user_id}


class C:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"


def cprint(text: str, color: str = C.RESET, bold: bool = False):
    prefix = (C.BOLD if bold else "") + color
    print(f"{prefix}{text}{C.RESET}")


def read_text(path: str) -> str:
    if not os.path.exists(path):
        raise FileNotFoundError(f"CSV file not found: {path}")
    # utf-8-sig strips the BOM spreadsheet exports add
    with open(path, encoding="utf-8-sig", errors="replace", newline="") as f:
        return f.read()


def _write_json(path: str, payload: Any) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def write_document(document: RawCsvDocument, output_dir: str) -> str:
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, document.filename)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(document.text)
    return path


def parse_defaults(items: Optional[List[str]]) -> Dict[str, str]:
    """
    ["topic=Pricing", "country=CA"] -> {"topic": "Pricing", "country": "CA"}
    """
    defaults: Dict[str, str] = {}
    for item in items or []:
        if "=" not in item:
            raise ValueError(f"Invalid --default '{item}'. Expected column=value")
        key, value = item.split("=", 1)
        defaults[key.strip()] = value
    return defaults


def spec_payload(ref: Optional[str]) -> Dict[str, Any]:
    """
    A registered spec name travels by name; a YAML spec file is
    loaded here and sent inline.
    """
    ref = ref or SETTINGS
    if ref.lower().endswith((".yaml", ".yml")):
        return {"column_spec": ColumnSpecRegistry.resolve(ref).to_dict()}
    return {"spec": ref}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Topic/prompt CSV import & export CLI")
    parser.add_argument("--user-id", default="cli_user")

    sub = parser.add_subparsers(dest="command", required=True)

    def add_spec_args(p):
        p.add_argument("--spec", default=SETTINGS, help="Spec name (ONBOARDING, SETTINGS) or YAML spec path")
        p.add_argument(
            "--header-mode",
            choices=["AUTO", "PRESENT", "ABSENT"],
            help="Override header detection",
        )
        p.add_argument("--default", action="append", help="Column default, e.g. topic=Pricing")
        p.add_argument("--output-dir", default="artifacts")

    p_parse = sub.add_parser("parse", help="Validate a CSV file and write its rows as JSON")
    p_parse.add_argument("--file", required=True)
    add_spec_args(p_parse)

    p_norm = sub.add_parser("normalize", help="Re-export a CSV file with canonical columns")
    p_norm.add_argument("--file", required=True)
    p_norm.add_argument("--purpose", default=None)
    p_norm.add_argument("--scope", default=None)
    add_spec_args(p_norm)

    p_tpl = sub.add_parser("template", help="Write the upload template CSV")
    p_tpl.add_argument("--spec", default=SETTINGS)
    p_tpl.add_argument("--output-dir", default="artifacts")

    return parser


def _import_payload(args: argparse.Namespace) -> Dict[str, Any]:
    payload = {
        "text": read_text(args.file),
        "user_id": args.user_id,
        **spec_payload(args.spec),
    }
    if args.header_mode:
        payload["header_mode"] = args.header_mode
    defaults = parse_defaults(args.default)
    if defaults:
        payload["defaults"] = defaults
    return payload


def run(args: argparse.Namespace) -> Dict[str, Any]:
    request = CLIRequest(user_id=args.user_id)

    if args.command == "template":
        document = route_template(spec_payload(args.spec), request)
        path = write_document(document, args.output_dir)
        return {"status": "SUCCESS", "files": [path]}

    payload = _import_payload(args)
    result = route_parse(payload, request)

    os.makedirs(args.output_dir, exist_ok=True)
    rows_path = os.path.join(args.output_dir, "rows.json")
    summary_path = os.path.join(args.output_dir, "run_summary.json")
    _write_json(rows_path, result["rows"])
    _write_json(summary_path, {
        "status": result["status"],
        "spec": result["spec"],
        "source_file": args.file,
        **result["summary"],
    })
    files = [rows_path, summary_path]

    if args.command == "normalize":
        export_payload = {
            "rows": result["rows"],
            "purpose": args.purpose,
            "scope": args.scope,
            "user_id": args.user_id,
            **spec_payload(args.spec),
        }
        document = route_export(export_payload, request)
        files.append(write_document(document, args.output_dir))

    return {**result, "files": files}


def run_cli(argv: Optional[List[str]] = None) -> Dict[str, Any]:
    args = build_parser().parse_args(argv)

    try:
        cprint(f"\n[START] {args.command}", C.BLUE, bold=True)
        result = run(args)

        summary = result.get("summary")
        if summary:
            cprint(
                f"[INFO] accepted={summary['accepted_rows']} "
                f"dropped={summary['dropped_rows']} "
                f"header_detected={summary['header_detected']}",
                C.DIM,
            )
        for path in result.get("files", []):
            cprint(f"[DONE] Wrote {path}", C.GREEN)
        cprint("[COMPLETE] CSV processing completed", C.GREEN, bold=True)
        return result

    except ValidationError as e:
        cprint("\n[REJECTED] CSV file was not accepted.", C.YELLOW, bold=True)
        cprint(e.message, C.YELLOW)
        raise SystemExit(1)
    except Exception as e:
        cprint("\n[FAILED] CSV processing failed.", C.RED, bold=True)
        cprint(str(e), C.RED)
        raise SystemExit(1)


def main(argv: Optional[List[str]] = None):
    run_cli(argv)


if __name__ == "__main__":
    main()
