"""Shared HTTP helpers for the Instagram and Telegram adapters.

Centralises URL/exception sanitisation so that bot tokens and session
cookies are never logged in plain text, regardless of which adapter
raises the error.

Also provides the canonical ``request_with_retry`` helper used by both
adapters.
"""

from __future__ import annotations

import json
import logging
import math
import re
import time
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# Regex to strip bot tokens from Bot API URLs (…/bot<token>/sendPhoto).
_BOT_TOKEN_RE = re.compile(r"/bot[^/\s]+")

# Status codes eligible for automatic retry with backoff.
_RETRYABLE: frozenset[int] = frozenset({429, 500, 502, 503, 504})

# Maximum number of attempts (including the first request).
_MAX_ATTEMPTS: int = 3


def _sanitize_url(url: str) -> str:
    """Remove bot tokens and query strings from a URL for safe logging."""
    return _BOT_TOKEN_RE.sub("/bot***", url.split("?")[0])


def _sanitize_exc(exc: Exception) -> str:
    """Strip tokens and session ids from exception text for safe logging."""
    text = _BOT_TOKEN_RE.sub("/bot***", str(exc))
    return re.sub(r"(sessionid)=[^;\s&]+", r"\1=***", text, flags=re.IGNORECASE)


def safe_json(r: httpx.Response, label: str) -> Any:
    """Parse JSON response; raise ValueError with sanitized URL on failure."""
    ct = r.headers.get("content-type", "")
    try:
        return r.json()
    except (json.JSONDecodeError, ValueError):
        raise ValueError(
            f"{label} returned non-JSON (content-type={ct!r}, "
            f"status={r.status_code}, url={_sanitize_url(str(r.url))})"
        )


def _retry_after(r: httpx.Response, attempt: int) -> float:
    """Seconds to wait before the next attempt.

    Honours a numeric ``Retry-After`` header (clamped to 0..30s), else
    exponential backoff.
    """
    raw = r.headers.get("retry-after", "")
    try:
        value = float(raw)
    except ValueError:
        value = math.nan
    if not math.isfinite(value):
        return float(2 ** attempt)
    return min(max(value, 0.0), 30.0)


def request_with_retry(
    client: httpx.Client,
    method: str,
    url: str,
    label: str,
    **kwargs: Any,
) -> httpx.Response:
    """Send a request with exponential backoff on retryable status codes.

    Retries up to ``_MAX_ATTEMPTS`` times on 429/5xx responses and on
    transient network errors (``ConnectError``, ``ReadTimeout``).  The
    final response is returned as-is; callers decide what a non-2xx
    status means for them.
    """
    last_exc: Exception | None = None
    r: httpx.Response | None = None
    for attempt in range(_MAX_ATTEMPTS):
        try:
            r = client.request(method, url, **kwargs)
        except (httpx.ConnectError, httpx.ReadTimeout) as exc:
            last_exc = exc
            if attempt < _MAX_ATTEMPTS - 1:
                logger.warning(
                    "%s network error (attempt %d/%d): %s – retrying in %ds",
                    label,
                    attempt + 1,
                    _MAX_ATTEMPTS,
                    _sanitize_exc(exc),
                    2 ** attempt,
                )
                time.sleep(2 ** attempt)
                continue
            raise
        if r.status_code in _RETRYABLE and attempt < _MAX_ATTEMPTS - 1:
            wait = _retry_after(r, attempt)
            logger.warning(
                "%s HTTP %s from %s (attempt %d/%d) – retrying in %.0fs",
                label,
                r.status_code,
                _sanitize_url(str(r.url)),
                attempt + 1,
                _MAX_ATTEMPTS,
                wait,
            )
            time.sleep(wait)
            continue
        return r
    if r is not None:
        return r
    raise RuntimeError(
        f"{label}: no response after retries"
        + (f" (last error: {_sanitize_exc(last_exc)})" if last_exc else "")
    )
