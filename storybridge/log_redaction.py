"""Secret redaction for log output.

Provides:
  - ``redact_secrets(msg)``          — strip sensitive patterns from a string
  - ``LogRedactionFilter``           — ``logging.Filter`` that auto-redacts
  - ``apply_log_redaction(logger)``  — attach the filter to all handlers
  - ``apply_global_log_redaction()`` — attach the filter to the root logger

Usage::

    from storybridge.log_redaction import apply_global_log_redaction
    apply_global_log_redaction()  # call once at startup, after basicConfig
"""
from __future__ import annotations

import logging
import re

# ---------------------------------------------------------------------------
# Sensitive patterns (name, compiled regex)
# ---------------------------------------------------------------------------
_SENSITIVE_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    # Telegram bot token embedded in Bot API URLs: /bot123456:ABC-.../
    ("telegram_url_token", re.compile(r"(?<=/bot)\d+:[A-Za-z0-9_-]+")),
    # Bare Telegram bot tokens
    ("telegram_token", re.compile(r"\b\d{6,}:[A-Za-z0-9_-]{30,}\b")),
    # Instagram session cookie
    (
        "ig_session",
        re.compile(r"(?<=sessionid=)[^;\s&\"']+", re.IGNORECASE),
    ),
    # key=value style secrets
    (
        "api_token",
        re.compile(
            r"(?<=[?&])(?:api[_-]?key|token|secret|password)=[^&\s]+",
            re.IGNORECASE,
        ),
    ),
    # Authorization / Bearer headers
    (
        "auth_header",
        re.compile(r"(?:Authorization|Bearer)\s*[:=]\s*\S+", re.IGNORECASE),
    ),
]

_REPLACEMENT = "***REDACTED***"

_FORMATTER = logging.Formatter()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def redact_secrets(msg: str, replacement: str = _REPLACEMENT) -> str:
    """Return *msg* with all recognised secret patterns replaced."""
    if not msg:
        return msg
    result = msg
    for _name, pattern in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


class LogRedactionFilter(logging.Filter):
    """Logging filter that automatically redacts sensitive data.

    Attach to a handler (not a logger) for best results::

        handler.addFilter(LogRedactionFilter())
    """

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        if record.msg and isinstance(record.msg, str):
            record.msg = redact_secrets(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: redact_secrets(v) if isinstance(v, str) else v
                    for k, v in record.args.items()
                }
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    redact_secrets(v) if isinstance(v, str) else v
                    for v in record.args
                )
        # Format the traceback here so handlers reuse the redacted text.
        if record.exc_info and not record.exc_text:
            record.exc_text = _FORMATTER.formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = redact_secrets(record.exc_text)
        if record.stack_info:
            record.stack_info = redact_secrets(record.stack_info)
        return True


def apply_log_redaction(logger: logging.Logger) -> None:
    """Attach :class:`LogRedactionFilter` to every handler of *logger*."""
    filt = LogRedactionFilter()
    for handler in logger.handlers:
        handler.addFilter(filt)


def apply_global_log_redaction() -> None:
    """Attach :class:`LogRedactionFilter` to the **root** logger's handlers."""
    apply_log_redaction(logging.getLogger())
