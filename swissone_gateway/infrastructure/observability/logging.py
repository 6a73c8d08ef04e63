"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
from swissone_gateway.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_settlement(
    request_id: str,
    user_id: str,
    operation: str,
    outcome: str,
    amount: Optional[float],
    transaction_id: Optional[str] = None,
    duration_ms: Optional[float] = None,
) -> None:
    """Log structured settlement outcome for analysis"""
    extra = {
        "request_id": request_id,
        "user_id": user_id,
        "step": "settlement_complete",
        "operation": operation,
        "outcome": outcome,
        "amount": amount,
        "transaction_id": transaction_id,
    }
    if duration_ms is not None:
        extra["duration_ms"] = duration_ms

    level = logging.INFO if outcome == "completed" else logging.WARNING
    logging.getLogger("swissone_gateway.settlement").log(level, "Settlement finished", extra=extra)
