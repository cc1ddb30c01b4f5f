import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

# Passed as logger.info(..., extra={"ctx": {...}}); merged into the JSON line.
CONTEXT_ATTR = "ctx"

class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        ctx = getattr(record, CONTEXT_ATTR, None)
        if isinstance(ctx, dict):
            for k, v in ctx.items():
                payload.setdefault(k, v)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)

def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    h = logging.StreamHandler()
    h.setFormatter(JsonFormatter())
    root.addHandler(h)

    # pymongo's own command/topology chatter stays at WARNING
    logging.getLogger("pymongo").setLevel(logging.WARNING)
