"""Structured Logging — one JSON object per line, carrying marketplace ids.

Invariants:
    - Every line has timestamp (the record's creation time, UTC), level, logger, message
    - Marketplace extras (identity/listing/order/conversation ids, status moves,
      error codes) are emitted only when the log call passed them
    - setup_logging is idempotent: a repeated call swaps the market handler
      instead of stacking a second one

Design Decisions:
    - stdlib logging.Formatter subclass: services log through plain
      logging.getLogger(__name__) with `extra={...}`
    - Extras rendered with str(): UUIDs and enums serialize without a custom encoder
"""

import json
import logging
from datetime import datetime, timezone

HANDLER_NAME = "shemarket"

MARKET_FIELDS = (
    "identity_id", "listing_id", "order_id", "conversation_id",
    "from_status", "to_status", "error_code", "operation", "path",
)

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """Render a LogRecord as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (field, str(record.__dict__[field]))
            for field in MARKET_FIELDS
            if record.__dict__.get(field) is not None
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the market handler on the root logger, replacing an earlier one."""
    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        JSONFormatter() if fmt == "json" else logging.Formatter(_TEXT_FORMAT),
    )
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
