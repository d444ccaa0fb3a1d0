"""
voxrouter - unified logging
===========================
Single logging configuration shared by the API server, the console client
and uvicorn. Text output for local work, JSON output (python-json-logger)
for log shippers. Set VOXROUTER_LOG_DIR to also write a rotating file.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from pythonjsonlogger.json import JsonFormatter as _JsonFormatterBase


LOG_FILE_NAME = "voxrouter.log"
SERVICE_NAME = os.getenv("SERVICE_NAME", "voxrouter")
LOG_PREFIX = "[voxrouter]"
DEFAULT_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", str(10 * 1024 * 1024)))
DEFAULT_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))
CONTEXT_KEYS = ("request_id", "model", "turn_id", "error_id", "log_context")


class UnifiedFormatter(logging.Formatter):
    """Human readable formatter for local environments."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname.upper()
        message = record.msg if isinstance(record.msg, dict) else record.getMessage()
        if isinstance(message, dict):
            message = json.dumps(message, ensure_ascii=False, default=str)

        context_parts: list[str] = []
        for key in CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                context_parts.append(f"{key}={value}")

        context_segment = (" | " + " ".join(context_parts)) if context_parts else ""
        line = f"[{timestamp}] {LOG_PREFIX} [{level}] [{record.name}] {message}{context_segment}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JsonFormatter(_JsonFormatterBase):
    """JSON formatter compatible with Elastic and Loki."""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:  # type: ignore[override]
        super().add_fields(log_record, record, message_dict)

        if "timestamp" not in log_record:
            log_record["timestamp"] = datetime.fromtimestamp(record.created).isoformat(timespec="milliseconds")
        log_record.setdefault("service", SERVICE_NAME)
        log_record.setdefault("logger", record.name)
        log_record.setdefault("level", record.levelname.upper())

        message = log_record.get("message")
        if isinstance(message, (dict, list)):
            log_record["message"] = json.dumps(message, ensure_ascii=False, default=str)

        for key in CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value is not None and key not in log_record:
                log_record[key] = value


_logging_configured = False


def _build_log_file_path() -> Path | None:
    env_dir = os.getenv("VOXROUTER_LOG_DIR")
    if not env_dir:
        return None
    base_path = Path(env_dir)
    base_path.mkdir(parents=True, exist_ok=True)
    return base_path / LOG_FILE_NAME


def setup_unified_logging(level: str | None = None, log_format: str | None = None) -> None:
    global _logging_configured

    log_format = (log_format or os.getenv("LOG_FORMAT", "text")).lower()
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    use_json = log_format == "json"

    formatter: logging.Formatter = JsonFormatter("%(message)s") if use_json else UnifiedFormatter()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level_name)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_file_path = _build_log_file_path()
    if log_file_path is not None:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path,
            maxBytes=DEFAULT_MAX_BYTES,
            backupCount=DEFAULT_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name in ("uvicorn", "uvicorn.access", "uvicorn.error", "fastapi"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _logging_configured = True


def ensure_logging_configured() -> None:
    if not _logging_configured:
        setup_unified_logging()


def get_logger(name: str) -> logging.Logger:
    ensure_logging_configured()
    return logging.getLogger(name)
