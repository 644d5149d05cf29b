import json
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from assistant_core.config.settings import settings


TOOL_CALL_STATUSES = ("running", "success", "error")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if settings.log_redact_content:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger() -> logging.Logger:
    logger = logging.getLogger("assistant_core")
    logger.setLevel(logging.INFO)
    if logger.handlers:
        return logger
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_dir / "assistant.log", encoding="utf-8")
    fh.setLevel(logging.INFO)
    fh.setFormatter(JsonFormatter())
    logger.addHandler(fh)
    return logger


logger = setup_logger()


def log_tool_call(name: str, status: str = "running", params: Optional[Dict[str, Any]] = None) -> None:
    """记录一次工具调用的生命周期事件（running / success / error）。"""

    if status not in TOOL_CALL_STATUSES:
        raise ValueError(f"Unknown tool call status: {status!r}")
    level = logging.WARNING if status == "error" else logging.INFO
    fields: Dict[str, Any] = {"tool_name": name, "status": status}
    if params and not settings.log_redact_content:
        fields["tool_args"] = params
    logger.log(level, f"Tool {name} {status}", extra={"extra": fields})
