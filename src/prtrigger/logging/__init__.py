"""Logging configuration and dispatch trail helpers."""

from prtrigger.logging.audit import (
    configure_logging,
    get_logger,
    log_build_triggered,
    log_dispatch_complete,
    log_event_received,
    log_job_skipped,
    log_side_effect_failed,
    redact_secrets,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "log_build_triggered",
    "log_dispatch_complete",
    "log_event_received",
    "log_job_skipped",
    "log_side_effect_failed",
    "redact_secrets",
]
