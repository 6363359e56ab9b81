"""Logging setup for the service."""

import json
import logging
import sys
from datetime import datetime


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.utcnow().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


class TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S")
        message = f"[{timestamp}] {record.levelname:8s} - {record.name} - {record.getMessage()}"
        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(level: str = "INFO", log_format: str = "text") -> logging.Logger:
    """
    Configure the ``jobline`` logger hierarchy.

    Args:
        level: Log level name
        log_format: ``json`` or ``text``

    Returns:
        The configured root logger of the package
    """
    logger = logging.getLogger("jobline")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if log_format.lower() == "json" else TextFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger
