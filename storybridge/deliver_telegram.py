"""Telegram Bot API sink.

Forwards a story to one chat by URL: Telegram downloads the media
itself, so nothing is buffered locally.

    video → POST /bot<token>/sendVideo  {chat_id, video}
    image → POST /bot<token>/sendPhoto  {chat_id, photo}
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ._http import _sanitize_exc, request_with_retry, safe_json
from .common_types import StoryItem
from .errors import AuthError, DeliveryError

logger = logging.getLogger(__name__)

TELEGRAM_BASE = "https://api.telegram.org"


class TelegramSink:
    """Posts stories into a single Telegram chat."""

    def __init__(self, token: str, chat_id: str, timeout: float = 15.0) -> None:
        if not token:
            raise AuthError("TELEGRAM_BOT_TOKEN missing", service="telegram")
        self.chat_id = chat_id
        self.bot_username = ""
        self._base = f"{TELEGRAM_BASE}/bot{token}"
        self.client = httpx.Client(timeout=timeout)

    def _call(self, method: str, payload: dict[str, Any] | None = None) -> httpx.Response:
        return request_with_retry(
            self.client, "POST", f"{self._base}/{method}", "Telegram", json=payload or {},
        )

    def authenticate(self) -> str:
        """Call ``getMe`` to verify the token.  Returns the bot username."""
        try:
            r = self._call("getMe")
            data = safe_json(r, "Telegram")
        except (httpx.HTTPError, ValueError, RuntimeError) as exc:
            raise AuthError(
                f"Telegram getMe failed: {_sanitize_exc(exc)}", service="telegram",
            ) from None
        if r.status_code != 200 or not isinstance(data, dict) or not data.get("ok"):
            desc = data.get("description", "") if isinstance(data, dict) else ""
            raise AuthError(
                f"Telegram getMe rejected (HTTP {r.status_code}): {desc}", service="telegram",
            )
        result = data.get("result") or {}
        self.bot_username = str(result.get("username") or "")
        logger.info("Telegram bot authorized as @%s", self.bot_username)
        return self.bot_username

    def deliver(self, item: StoryItem) -> None:
        """Send *item* as a video or photo message; raise ``DeliveryError``."""
        if item.is_video:
            method, payload = "sendVideo", {"chat_id": self.chat_id, "video": item.url}
        else:
            method, payload = "sendPhoto", {"chat_id": self.chat_id, "photo": item.url}

        try:
            r = self._call(method, payload)
        except (httpx.HTTPError, RuntimeError) as exc:
            raise DeliveryError(
                f"{method} failed: {_sanitize_exc(exc)}", item_id=item.item_id,
            ) from None

        try:
            data = safe_json(r, "Telegram")
        except ValueError as exc:
            raise DeliveryError(str(exc), item_id=item.item_id, status_code=r.status_code) from None

        if r.status_code != 200 or not isinstance(data, dict) or not data.get("ok"):
            desc = data.get("description", "") if isinstance(data, dict) else ""
            raise DeliveryError(
                f"{method} HTTP {r.status_code}: {desc}",
                item_id=item.item_id,
                status_code=r.status_code,
            )

    def close(self) -> None:
        self.client.close()
