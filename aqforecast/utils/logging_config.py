"""Logging configuration for the forecasting pipeline."""

import logging
import sys
import json
from pathlib import Path
from typing import Any, Dict, Optional, Union
from datetime import datetime

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class JSONFormatter(logging.Formatter):
    """Formats records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
            "lineNo": record.lineno,
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # structured fields passed as extra={"props": {...}}
        props = getattr(record, "props", None)
        if isinstance(props, dict):
            log_obj.update(props)

        return json.dumps(log_obj, default=str)


def setup_logging(
    log_level: Union[str, int] = "INFO",
    log_dir: Optional[str] = "logs",
    console: bool = True,
) -> None:
    """
    Configure the root logger.

    Console output is human readable. When ``log_dir`` is given, records are
    also written as JSON lines to ``app.jsonl``, and errors additionally to
    ``errors.jsonl``.

    Args:
        log_level: Logging level (INFO, DEBUG, etc.)
        log_dir: Directory for the JSON log files, or None to skip them
        console: Whether to log to stdout
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        root_logger.addHandler(console_handler)

    if log_dir is not None:
        Path(log_dir).mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(Path(log_dir) / "app.jsonl")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

        error_handler = logging.FileHandler(Path(log_dir) / "errors.jsonl")
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(error_handler)

    logging.getLogger(__name__).info(f"Logging configured with level {log_level}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
