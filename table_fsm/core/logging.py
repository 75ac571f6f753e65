# Copyright (c) 2026 TableFSM Contributors. All Rights Reserved.

"""
Structured Logging — JSON format with transition context.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Optional, TextIO

from table_fsm.core.config import settings

# Extras attached by the builder / entry via ``logger.x(..., extra={...})``
CONTEXT_KEYS = ("state", "event", "handler", "ret_code", "next_state")


class StructuredFormatter(logging.Formatter):
    """JSON log formatter with state/event/handler context."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }
        # Attach context if available
        for key in CONTEXT_KEYS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val

        if record.exc_info and record.exc_info[0]:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False)


def setup_logging(level: Optional[str] = None, stream: Optional[TextIO] = None) -> None:
    """Configure structured JSON logging for the ``fsm`` logger tree."""
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(StructuredFormatter())

    level = level or settings.FSM_LOG_LEVEL
    root = logging.getLogger("fsm")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)
