import json
import logging
from datetime import datetime, timezone

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

logger = logging.getLogger("storefront.events")


def log_event(level: str, event: str, **fields) -> None:
    payload = {
        "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "level": level.lower(),
        "event": event,
    }
    payload.update(fields or {})
    try:
        logger.log(_LEVELS.get(level.lower(), logging.INFO), json.dumps(payload, ensure_ascii=False, default=str))
    except Exception:
        # best-effort logging
        pass
