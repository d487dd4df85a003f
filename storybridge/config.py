"""Global configuration for the story crossposter.

All tunables can be overridden via environment variables.  Credentials
for the two external services live here too, but the pipeline core only
ever sees the poll interval and the backlog flag.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field


def _env_float(key: str, default: float) -> float:
    """Read an env var as float, returning *default* on parse failure."""
    try:
        return float(os.getenv(key, str(default)))
    except (ValueError, TypeError):
        return default


def _env_bool(key: str, default: bool) -> bool:
    """Read an env var as a ``"1"``/``"0"`` flag."""
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    """Central configuration – one instance per process.

    Environment variables are read at **instantiation** time (not module
    import time) so callers can set them programmatically before
    creating a ``Config``.
    """

    # ── Telegram (sink) ─────────────────────────────────────────
    telegram_bot_token: str = field(default_factory=lambda: os.getenv("TELEGRAM_BOT_TOKEN", ""), repr=False)
    telegram_chat_id: str = field(default_factory=lambda: os.getenv("TELEGRAM_CHAT_ID", ""))

    # ── Instagram (source) ──────────────────────────────────────
    ig_session_id: str = field(default_factory=lambda: os.getenv("IG_SESSION_ID", ""), repr=False)
    # Used only when IG_SESSION_ID is empty: password login, session kept in a file.
    ig_username: str = field(default_factory=lambda: os.getenv("IG_USERNAME", ""))
    ig_password: str = field(default_factory=lambda: os.getenv("IG_PASSWORD", ""), repr=False)
    ig_settings_path: str = field(default_factory=lambda: os.getenv("IG_SETTINGS_PATH", ".igauthdata"))
    # Empty means "resolve from the session at startup".
    ig_user_id: str = field(default_factory=lambda: os.getenv("IG_USER_ID", ""))

    # ── Polling cadence ─────────────────────────────────────────
    poll_interval_s: float = field(default_factory=lambda: _env_float("POLL_INTERVAL_S", 60.0))

    # When True, stories already visible at startup are never forwarded.
    crosspost_new_only: bool = field(default_factory=lambda: _env_bool("CROSSPOST_NEW_ONLY", True))

    # ── HTTP ────────────────────────────────────────────────────
    http_timeout_s: float = field(default_factory=lambda: _env_float("HTTP_TIMEOUT_S", 15.0))

    # ── Logging ─────────────────────────────────────────────────
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    def validate(self) -> list[str]:
        """Return a list of human-readable problems (empty when usable)."""
        problems: list[str] = []
        if not self.telegram_bot_token:
            problems.append("TELEGRAM_BOT_TOKEN missing")
        if not self.telegram_chat_id:
            problems.append("TELEGRAM_CHAT_ID missing")
        if not self.ig_session_id and not (self.ig_username and self.ig_password):
            problems.append("IG_SESSION_ID or IG_USERNAME + IG_PASSWORD missing")
        if not math.isfinite(self.poll_interval_s) or self.poll_interval_s <= 0:
            problems.append(f"POLL_INTERVAL_S must be a positive number (got {self.poll_interval_s})")
        if not math.isfinite(self.http_timeout_s) or self.http_timeout_s <= 0:
            problems.append(f"HTTP_TIMEOUT_S must be a positive number (got {self.http_timeout_s})")
        if not isinstance(logging.getLevelName(self.log_level), int):
            problems.append(f"LOG_LEVEL not recognised: {self.log_level!r}")
        return problems
