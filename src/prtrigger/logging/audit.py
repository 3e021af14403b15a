"""Structured JSON logging and the dispatch trail.

This module provides:
- structlog configuration for JSON logging to stderr
- Secret redaction for credentials (GitHub tokens, authorization values)
- Structured log events for each step of a dispatch
"""

from __future__ import annotations

import logging
import re
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable

    from structlog.typing import EventDict, WrappedLogger

SECRET_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # GitHub tokens (ghp_, gho_, ghu_, ghs_, ghr_ prefixes)
    (re.compile(r"(gh[pousr]_[A-Za-z0-9_]{36,})"), "[REDACTED_GITHUB_TOKEN]"),
    # Fine-grained personal access tokens
    (re.compile(r"(github_pat_[A-Za-z0-9_]{20,})"), "[REDACTED_GITHUB_TOKEN]"),
    (re.compile(r"(token[=:]\s*['\"]?)([A-Za-z0-9_-]{20,})"), r"\1[REDACTED]"),
    (re.compile(r"(Bearer\s+)([A-Za-z0-9._-]+)", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(authorization[=:]\s*['\"]?)([^\s'\"]+)", re.IGNORECASE), r"\1[REDACTED]"),
]


def redact_secrets(value: Any) -> Any:
    """Redact sensitive values from a string, dict, or list.

    Args:
        value: Value to redact. Can be str, dict, list, or other.

    Returns:
        Value with sensitive data redacted
    """
    if isinstance(value, str):
        result = value
        for pattern, replacement in SECRET_PATTERNS:
            result = pattern.sub(replacement, result)
        return result

    if isinstance(value, dict):
        return {k: redact_secrets(v) for k, v in value.items()}

    if isinstance(value, list):
        return [redact_secrets(item) for item in value]

    return value


def _redact_processor(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """structlog processor that redacts secrets from log events."""
    return redact_secrets(event_dict)


def configure_logging(
    verbose: bool = False,
    json_output: bool = True,
) -> None:
    """Configure structured logging for the application.

    Sets up structlog with JSON formatting to stderr, including ISO UTC
    timestamps, log level, secret redaction and exception formatting.

    Args:
        verbose: If True, enable DEBUG level. Otherwise INFO.
        json_output: If True, output JSON. Otherwise use console format.
    """
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
    )

    processors: list[Callable[..., Any]] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _redact_processor,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured structlog logger.

    Args:
        name: Optional logger name (typically __name__)

    Returns:
        Bound structlog logger
    """
    return structlog.get_logger(name)


# Dispatch trail


def log_event_received(
    event_name: str,
    delivery_id: str | None,
    action: str | None,
    repository_url: str | None,
) -> None:
    """Log when a webhook payload arrives.

    Args:
        event_name: Webhook event name (e.g. 'issue_comment')
        delivery_id: Delivery identifier, if known
        action: Payload ``action`` value
        repository_url: Repository the payload is about
    """
    log = get_logger("prtrigger.events")
    log.debug(
        "event_received",
        event_name=event_name,
        delivery_id=delivery_id,
        action=action,
        repository_url=repository_url,
    )


def log_job_skipped(
    context: dict[str, Any],
    job_name: str,
    reason: str,
    detail: str = "",
) -> None:
    """Log a matched job that will not build for this event.

    Args:
        context: Event log context (``Event.log_context()``)
        job_name: Full job name
        reason: Skip reason value
        detail: Explanation, e.g. why the predicate rejected
    """
    log = get_logger("prtrigger.dispatch")
    log.debug(
        "job_skipped",
        job=job_name,
        reason=reason,
        detail=detail,
        **context,
    )


def log_build_triggered(
    context: dict[str, Any],
    job_name: str,
    rule_name: str,
    cause: str,
) -> None:
    """Log a trigger decision.

    Args:
        context: Event log context
        job_name: Full job name
        rule_name: Rule that fired
        cause: Short description of the cause
    """
    log = get_logger("prtrigger.dispatch")
    log.info(
        "build_triggered",
        job=job_name,
        rule=rule_name,
        cause=cause,
        **context,
    )


def log_dispatch_complete(
    context: dict[str, Any],
    repository: str | None,
    jobs_matched: int,
    jobs_triggered: int,
    jobs_skipped: int,
    duration_ms: float,
) -> None:
    """Log dispatch completion.

    Args:
        context: Event log context
        repository: ``owner/name`` of the resolved repository
        jobs_matched: Jobs the matcher yielded
        jobs_triggered: Trigger decisions emitted
        jobs_skipped: Jobs skipped for any reason
        duration_ms: Dispatch duration in milliseconds
    """
    log = get_logger("prtrigger.dispatch")
    log.info(
        "dispatch_complete",
        repository=repository,
        jobs_matched=jobs_matched,
        jobs_triggered=jobs_triggered,
        jobs_skipped=jobs_skipped,
        duration_ms=round(duration_ms, 2),
        **context,
    )


def log_side_effect_failed(
    context: dict[str, Any],
    job_name: str,
    side_effect: str,
    error: str,
) -> None:
    """Log a post-trigger side effect that did not go through.

    Args:
        context: Event log context
        job_name: Job that was triggered
        side_effect: What was attempted (e.g. 'reaction')
        error: Error message
    """
    log = get_logger("prtrigger.adapters")
    log.warning(
        "side_effect_failed",
        job=job_name,
        side_effect=side_effect,
        error=error,
        **context,
    )
