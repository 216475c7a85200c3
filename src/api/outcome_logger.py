"""Structured per-request outcome records."""

import json
import logging
from typing import Optional

from config.logging_config import get_logger
from models.models import LogEvent

logger = get_logger(__name__)


class OutcomeLogger:
    """Writes one JSON line per translate request."""

    def __init__(self, target: Optional[logging.Logger] = None):
        self.target = target or get_logger("translator.outcome")

    def emit(self, event: LogEvent) -> None:
        """Log ``event``; never raises."""
        try:
            self.target.info(json.dumps(event.to_dict(), ensure_ascii=False))
        except Exception as e:
            logger.warning(f"Failed to write outcome record: {type(e).__name__}: {e}")
