"""Structured logging for processing job transitions."""

import logging
from typing import Any
from uuid import UUID

logger = logging.getLogger(__name__)


class StructuredJobLogger:
    """Structured logger for job lifecycle events."""

    def log_transition(
        self,
        document_id: UUID,
        *,
        status: str,
        step: str,
        outcome: str,
        error_reason: str | None = None,
        exc_info: bool = False,
    ) -> None:
        """Log a job transition with structured data.

        Failures are logged at ERROR, cancellations and normal progress at INFO.
        """
        log_data: dict[str, Any] = {
            "document_id": str(document_id),
            "status": status,
            "step": step,
            "outcome": outcome,
        }

        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Processing job {document_id}: {outcome} ({step})"

        if outcome == "error":
            logger.error(log_msg, extra={"structured": log_data}, exc_info=exc_info)
        else:
            logger.info(log_msg, extra={"structured": log_data})

    def log_auth_failure(self, document_id: UUID, step: str) -> None:
        """Log a rejected or missing generation credential."""
        log_data: dict[str, Any] = {
            "document_id": str(document_id),
            "status": "error",
            "step": step,
            "outcome": "error",
            "error_reason": "authentication_failed",
        }
        logger.error(
            f"Processing job {document_id}: generation service rejected credentials "
            "- check OPENAI_API_KEY",
            extra={"structured": log_data},
        )
