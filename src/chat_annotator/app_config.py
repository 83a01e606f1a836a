from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from chat_annotator.constants import DEFAULT_PANEL_ID, SESSION_POLL_INTERVAL_SECONDS

_DB_ENV_VAR = "CHAT_ANNOTATOR_DB"


@dataclass
class AppConfig:
    store_db_path: str
    poll_interval_seconds: float
    panel_element_id: str
    export_directory: str
    fetch_timeout_seconds: float
    log_level: str
    log_consumers: list | None


def load_json_config(directory: Path | None = None) -> dict:
    config_path = (directory or Path.cwd()) / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def parse_app_config(config: dict) -> AppConfig:
    db_path = os.environ.get(_DB_ENV_VAR, "").strip() or str(
        config.get("StoreDbPath", ".chat_annotator/annotations.db")
    )
    return AppConfig(
        store_db_path=db_path,
        poll_interval_seconds=float(config.get("PollIntervalSeconds", SESSION_POLL_INTERVAL_SECONDS)),
        panel_element_id=str(config.get("PanelElementId", DEFAULT_PANEL_ID)),
        export_directory=str(config.get("ExportDirectory", ".")),
        fetch_timeout_seconds=float(config.get("FetchTimeoutSeconds", 30)),
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
    )
