"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args, service_name: str = "juakali-lend", **kwargs):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "juakali-lend") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name=service_name,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_loan_event(
    request_id: str,
    loan_id: Optional[int],
    borrower_id: str,
    event: str,
    status: str,
    duration_ms: float,
    amount: Optional[str] = None,
) -> None:
    """Log structured loan lifecycle event for analysis"""
    extra = {
        "request_id": request_id,
        "loan_id": loan_id,
        "borrower_id": borrower_id,
        "step": event,
        "loan_status": status,
        "duration_ms": duration_ms,
    }
    if amount is not None:
        extra["amount"] = amount
    logging.info("Loan %s", event, extra=extra)


def log_rejected_operation(request_id: str, operation: str, error: Exception) -> None:
    """Log a domain rule violation returned to the caller"""
    logging.warning(
        "Rejected %s: %s",
        operation,
        error,
        extra={
            "request_id": request_id,
            "step": operation,
            "error_kind": type(error).__name__,
        },
    )
