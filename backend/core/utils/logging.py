"""
Structured logging utility: JSON log lines for events worth aggregating
(session failures, reconciliation summaries, storage fallbacks).
"""
import logging
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class StructuredLogger:
    """
    Structured logger that outputs JSON formatted logs
    """

    def __init__(self, name: str = "delivery_admin", service: str = "delivery-admin-api"):
        self.logger = logging.getLogger(name)
        self.service = service

    def _create_log_entry(
        self,
        level: str,
        message: str,
        user_id: Optional[str] = None,
        endpoint: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        exception: Optional[Exception] = None
    ) -> Dict[str, Any]:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.upper(),
            "message": message,
            "service": self.service,
        }

        if user_id:
            log_entry["user_id"] = user_id

        if endpoint:
            log_entry["endpoint"] = endpoint

        if metadata:
            log_entry["metadata"] = metadata

        if exception:
            log_entry["exception"] = {
                "type": type(exception).__name__,
                "message": str(exception),
            }

        return log_entry

    def _emit(self, level: int, name: str, message: str, **kwargs):
        entry = self._create_log_entry(name, message, **kwargs)
        self.logger.log(level, json.dumps(entry, default=str))

    def info(self, message: str, user_id: Optional[str] = None, endpoint: Optional[str] = None,
             metadata: Optional[Dict[str, Any]] = None):
        self._emit(logging.INFO, "info", message, user_id=user_id, endpoint=endpoint, metadata=metadata)

    def warning(self, message: str, user_id: Optional[str] = None, endpoint: Optional[str] = None,
                metadata: Optional[Dict[str, Any]] = None, exception: Optional[Exception] = None):
        self._emit(logging.WARNING, "warning", message, user_id=user_id, endpoint=endpoint,
                   metadata=metadata, exception=exception)

    def error(self, message: str, user_id: Optional[str] = None, endpoint: Optional[str] = None,
              metadata: Optional[Dict[str, Any]] = None, exception: Optional[Exception] = None):
        self._emit(logging.ERROR, "error", message, user_id=user_id, endpoint=endpoint,
                   metadata=metadata, exception=exception)


# Create global logger instance
structured_logger = StructuredLogger()
