"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from pythonjsonlogger import jsonlogger

from echeancier_gateway.config import settings


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


def log_regeneration(
    request_id: str,
    tranche_id: str,
    success: bool,
    duration_ms: float,
    created_coupons: int = 0,
    deleted_pending_coupons: int = 0,
    missing_params: Optional[List[str]] = None,
) -> None:
    """Log structured regeneration outcome for analysis"""
    logging.info(
        "Echeancier regeneration completed" if success else "Echeancier regeneration rejected",
        extra={
            "request_id": request_id,
            "tranche_id": tranche_id,
            "step": "regeneration_outcome",
            "outcome": "success" if success else "failure",
            "created_coupons": created_coupons,
            "deleted_pending_coupons": deleted_pending_coupons,
            "missing_params": missing_params or [],
            "duration_ms": duration_ms,
        },
    )
