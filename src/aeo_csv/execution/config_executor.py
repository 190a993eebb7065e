import json
import os
from typing import Dict

import yaml
from fastapi import Request

from aeo_csv.cli import read_text, spec_payload, write_document
from aeo_csv.router import route_export, route_parse


class ConfigRequest(Request):
    """
    Minimal Request wrapper for config-driven execution.
    Provides headers for identity extraction in router.
    """

    def __init__(self, user_id: str = "config_executor"):
        scope = {"type": "http", "headers": []}
        super().__init__(scope)
        self._user_id = user_id

    @property
    def headers(self):
        return {"x-user-id": self._user_id}


class ConfigExecutor:
    """
    Imports a topic/prompt CSV and writes its normalized export
    using a YAML configuration.
    """

    def __init__(self, config_path: str):
        self.config_path = config_path
        self.config = self._load_config()

    # ------------------------------------------
    # Load YAML
    # ------------------------------------------
    def _load_config(self) -> Dict:
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise ValueError(f"Config must be a mapping: {self.config_path}")
        return config

    def _resolve_path(self, path: str) -> str:
        # Relative paths are relative to the config file
        if not path or os.path.isabs(path):
            return path
        return os.path.join(os.path.dirname(os.path.abspath(self.config_path)), path)

    def _spec_ref(self) -> str:
        ref = self.config.get("spec", "SETTINGS")
        if str(ref).lower().endswith((".yaml", ".yml")):
            return self._resolve_path(ref)
        return ref

    # ------------------------------------------
    # Build Router Payloads
    # ------------------------------------------
    def _build_import_payload(self) -> Dict:
        source_cfg = self.config.get("source", {})
        file_path = source_cfg.get("file_path")
        if not file_path:
            raise ValueError("Config is missing source.file_path")

        payload = {
            "text": read_text(self._resolve_path(file_path)),
            "user_id": self.config.get("user_id", "config_executor"),
            **spec_payload(self._spec_ref()),
        }
        if source_cfg.get("header_mode"):
            payload["header_mode"] = source_cfg["header_mode"]
        if self.config.get("defaults"):
            payload["defaults"] = self.config["defaults"]
        return payload

    def _output_dir(self) -> str:
        output_cfg = self.config.get("output", {})
        return self._resolve_path(output_cfg.get("dir", "outputs"))

    # ------------------------------------------
    # Execute
    # ------------------------------------------
    def execute(self) -> Dict:
        payload = self._build_import_payload()
        request = ConfigRequest(user_id=payload["user_id"])

        result = route_parse(payload, request)

        output_cfg = self.config.get("output", {})
        document = route_export(
            {
                "rows": result["rows"],
                "purpose": output_cfg.get("purpose"),
                "scope": output_cfg.get("scope"),
                "date": output_cfg.get("date"),
                "user_id": payload["user_id"],
                **spec_payload(self._spec_ref()),
            },
            request,
        )

        result["files"] = self._save_outputs(result, document)
        return result

    def _save_outputs(self, result: Dict, document) -> list:
        output_dir = self._output_dir()
        os.makedirs(output_dir, exist_ok=True)

        rows_path = os.path.join(output_dir, "rows.json")
        with open(rows_path, "w", encoding="utf-8") as f:
            json.dump(result["rows"], f, indent=2)

        return [rows_path, write_document(document, output_dir)]
