"""Security utilities for log sanitization and credential masking."""

from __future__ import annotations

import shlex

from launchdeck.constants import (
    AUTH_BEARER_PATTERN,
    DEFAULT_LOG_TRUNCATE_LIMIT,
    PROGRESS_LOG_TRUNCATE_LIMIT,
    SECRET_ASSIGNMENT_PATTERN,
    URL_CREDENTIAL_PATTERN,
)


def truncate_log(value: str, limit: int = DEFAULT_LOG_TRUNCATE_LIMIT) -> str:
    """Truncate log text to the specified limit with ellipsis."""
    value = value.strip()
    if len(value) <= limit:
        return value
    return value[: max(0, limit - 3)] + "..."


def mask_secrets(value: str) -> str:
    """Mask bearer tokens, URL credentials and secret assignments; without truncating."""
    if not value:
        return ""
    masked = AUTH_BEARER_PATTERN.sub(r"\1 ***", value)
    masked = URL_CREDENTIAL_PATTERN.sub(r"\1***:***@", masked)
    return SECRET_ASSIGNMENT_PATTERN.sub(r"\1=***", masked)


def sanitize_log_text(value: str, limit: int = DEFAULT_LOG_TRUNCATE_LIMIT) -> str:
    """Mask sensitive values and return a bounded-length log string."""
    if not value:
        return ""
    return truncate_log(mask_secrets(value), limit)


def sanitize_progress_text(value: str) -> str:
    """Sanitize text shown in progress windows using the tighter limit."""
    return sanitize_log_text(value, limit=PROGRESS_LOG_TRUNCATE_LIMIT)


def command_for_log(args: list[str]) -> str:
    """Return a shell-safe command string bounded for logging."""
    if not args:
        return ""
    return sanitize_log_text(" ".join(shlex.quote(part) for part in args))
