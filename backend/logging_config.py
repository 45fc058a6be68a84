"""Logging setup shared by the API process and scripts."""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    level = level or (os.getenv("FOOTPRINTS_LOG_LEVEL") or "INFO")
    if json_output is None:
        json_output = (os.getenv("FOOTPRINTS_LOG_JSON") or "0").strip().lower() in {"1", "true", "yes", "on"}

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.strip().upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s")
        )
    root.handlers = [handler]

    for name in ["httpx", "httpcore"]:
        logging.getLogger(name).setLevel(logging.WARNING)
