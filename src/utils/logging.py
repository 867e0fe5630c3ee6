"""
Structured logging utilities for the APS model viewer.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from src.config.config import config


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "service": getattr(record, 'service', 'model-viewer'),
            "urn": getattr(record, 'urn', None),
            "event": getattr(record, 'event', None) or record.funcName,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        # Add metrics if present
        if getattr(record, 'metrics', None):
            log_entry["metrics"] = record.metrics

        # Add metadata if present
        if getattr(record, 'metadata', None):
            log_entry["metadata"] = record.metadata

        # Add exception info if present
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def log_file_paths(log_dir: str, day: Optional[datetime] = None) -> Dict[str, Path]:
    """Return the combined and error-only log files for a given day."""
    day = day or datetime.utcnow()
    stamp = day.strftime("%Y-%m-%d")
    base = Path(log_dir)
    return {
        "combined": base / f"combined-{stamp}.log",
        "error": base / f"error-{stamp}.log"
    }


def build_handlers(log_to_console: bool, log_to_file: bool, log_dir: str) -> list:
    """Create console and date-partitioned file handlers."""
    formatter = StructuredFormatter()
    handlers = []

    if log_to_console:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        handlers.append(handler)

    if log_to_file:
        paths = log_file_paths(log_dir)
        paths["combined"].parent.mkdir(parents=True, exist_ok=True)

        combined = logging.FileHandler(paths["combined"], mode="a", encoding="utf-8")
        combined.setFormatter(formatter)
        handlers.append(combined)

        errors = logging.FileHandler(paths["error"], mode="a", encoding="utf-8")
        errors.setLevel(logging.ERROR)
        errors.setFormatter(formatter)
        handlers.append(errors)

    return handlers


_shared_handlers: Optional[list] = None


def shared_handlers() -> list:
    """Handlers built once per process and attached to every ViewerLogger."""
    global _shared_handlers
    if _shared_handlers is None:
        _shared_handlers = build_handlers(
            config.logging.log_to_console,
            config.logging.log_to_file,
            config.logging.log_dir
        )
    return _shared_handlers


class ViewerLogger:
    """Logger wrapper adding structured fields to every record."""

    def __init__(self, name: str, service: str = "model-viewer"):
        self.logger = logging.getLogger(name)
        self.service = service
        self._setup_logger()

    def _setup_logger(self):
        """Configure logger with structured formatting."""
        if not self.logger.handlers:
            for handler in shared_handlers():
                self.logger.addHandler(handler)
            self.logger.setLevel(getattr(logging, config.logging.log_level, logging.INFO))
            self.logger.propagate = False

    def _extra(self, urn: Optional[str], event: Optional[str],
               metrics: Optional[Dict[str, Any]], metadata: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            'service': self.service,
            'urn': urn,
            'event': event,
            'metrics': metrics,
            'metadata': metadata
        }

    def info(self, message: str, urn: Optional[str] = None, event: Optional[str] = None,
             metrics: Optional[Dict[str, Any]] = None,
             metadata: Optional[Dict[str, Any]] = None):
        """Log info level message with structured data."""
        self.logger.info(message, extra=self._extra(urn, event, metrics, metadata))

    def warning(self, message: str, urn: Optional[str] = None, event: Optional[str] = None,
                metrics: Optional[Dict[str, Any]] = None,
                metadata: Optional[Dict[str, Any]] = None):
        """Log warning level message with structured data."""
        self.logger.warning(message, extra=self._extra(urn, event, metrics, metadata))

    def error(self, message: str, urn: Optional[str] = None, event: Optional[str] = None,
              metrics: Optional[Dict[str, Any]] = None,
              metadata: Optional[Dict[str, Any]] = None, exc_info: bool = False):
        """Log error level message with structured data."""
        self.logger.error(message, extra=self._extra(urn, event, metrics, metadata), exc_info=exc_info)

    def debug(self, message: str, urn: Optional[str] = None, event: Optional[str] = None,
              metrics: Optional[Dict[str, Any]] = None,
              metadata: Optional[Dict[str, Any]] = None):
        """Log debug level message with structured data."""
        self.logger.debug(message, extra=self._extra(urn, event, metrics, metadata))

    def aps_call_failed(self, operation: str, status_code: Optional[int], error_message: str,
                        urn: Optional[str] = None, exc_info: bool = False):
        """Log a failed call to the vendor API."""
        self.error(
            f"APS {operation} failed: {error_message}",
            urn=urn,
            event="aps_call_failed",
            metadata={
                "operation": operation,
                "status_code": status_code,
                "error_message": error_message
            },
            exc_info=exc_info
        )

    def upload_completed(self, name: str, urn: str, size_bytes: int, duration_ms: float):
        """Log an upload that reached the translation service."""
        self.info(
            "Model uploaded and translation started",
            urn=urn,
            event="upload_completed",
            metrics={
                "size_bytes": size_bytes,
                "duration_ms": duration_ms
            },
            metadata={"name": name}
        )


# Global logger instances
api_logger = ViewerLogger("api", "api-gateway")
aps_logger = ViewerLogger("aps", "aps-client")
