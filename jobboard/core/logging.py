import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
from contextvars import ContextVar

# Correlation ID of the request being served ("" outside a request)
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

QUIET_LOGGERS = ("uvicorn.access", "urllib3", "requests")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    def __init__(self, *args, service: Optional[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.service = service

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        req_id = request_id_var.get()
        if req_id:
            log_record["request_id"] = req_id
        if self.service:
            log_record["service"] = self.service

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = (log_record.get("level") or record.levelname).upper()


def setup_logging(level: int = logging.INFO, service: str = "jobboard"):
    root = logging.getLogger()
    # Reloads and test sessions must not stack handlers
    if any(isinstance(h.formatter, CustomJsonFormatter) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(CustomJsonFormatter("%(timestamp) %(level) %(name) %(message)", service=service))
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
