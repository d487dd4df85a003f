"""Synchronous Instagram story source.

Polls the operator's own story reel through the private web API:
 1. /api/v1/accounts/current_user/   (startup: verify session, resolve pk)
 2. /api/v1/feed/user/{pk}/story/    (every cycle: current reel)

Authentication reuses an existing browser/app session cookie
(``sessionid``); there is no username/password login flow.

Returns ``List[StoryItem]`` via the shared normalisation layer.
"""

from __future__ import annotations

import logging
from typing import Any, List

import httpx

from ._http import _sanitize_exc, request_with_retry, safe_json
from .common_types import StoryItem
from .errors import AuthError, FetchError
from .normalize import normalize_reel

logger = logging.getLogger(__name__)

IG_BASE = "https://i.instagram.com/api/v1"

# Public web app id; the private API rejects requests without one.
_IG_APP_ID = "936619743392459"
_USER_AGENT = "Instagram 219.0.0.12.117 Android (storybridge)"


class InstagramStorySource:
    """Lists the stories currently visible on the operator's own reel."""

    def __init__(self, session_id: str, user_id: str = "", timeout: float = 15.0) -> None:
        if not session_id:
            raise AuthError("IG_SESSION_ID missing", service="instagram")
        self.user_id = str(user_id or "")
        self.username = ""
        self.client = httpx.Client(
            base_url=IG_BASE,
            timeout=timeout,
            headers={"User-Agent": _USER_AGENT, "X-IG-App-ID": _IG_APP_ID},
            cookies={"sessionid": session_id},
        )

    def _get(self, path: str) -> Any:
        r = request_with_retry(self.client, "GET", path, "Instagram")
        r.raise_for_status()
        return safe_json(r, "Instagram")

    # ── Startup ─────────────────────────────────────────────────

    def authenticate(self) -> str:
        """Verify the session and resolve the account id.  Returns the pk.

        Raises ``AuthError`` on any failure; there is no point polling with
        a dead session because every fetch would fail.
        """
        try:
            data = self._get("/accounts/current_user/")
        except (httpx.HTTPError, ValueError, RuntimeError) as exc:
            raise AuthError(
                f"Instagram session check failed: {_sanitize_exc(exc)}",
                service="instagram",
            ) from None
        user = data.get("user") if isinstance(data, dict) else None
        pk = str(user.get("pk") or user.get("pk_id") or "") if isinstance(user, dict) else ""
        if not pk:
            raise AuthError("Instagram session check returned no user", service="instagram")
        if self.user_id and self.user_id != pk:
            logger.warning(
                "IG_USER_ID %s does not match session owner %s; using session owner.",
                self.user_id, pk,
            )
        self.user_id = pk
        self.username = str(user.get("username") or "")
        logger.info("Logged in to Instagram as %s", self.username or pk)
        return pk

    # ── Per-cycle ───────────────────────────────────────────────

    def fetch_candidates(self) -> List[StoryItem]:
        """GET /feed/user/{pk}/story/ and normalise the reel items."""
        if not self.user_id:
            raise FetchError("Instagram source not authenticated", source="instagram")
        try:
            data = self._get(f"/feed/user/{self.user_id}/story/")
        except (httpx.HTTPError, ValueError, RuntimeError) as exc:
            raise FetchError(
                f"failed to load story data: {_sanitize_exc(exc)}",
                source="instagram",
            ) from None

        reel = data.get("reel") if isinstance(data, dict) else None
        if not isinstance(reel, dict):
            # No active stories: the API returns ``"reel": null``.
            return []
        owner = reel.get("user")
        if isinstance(owner, dict) and str(owner.get("pk", self.user_id)) != self.user_id:
            logger.warning("Reel owner %s is not the session owner; ignored.", owner.get("pk"))
            return []
        return normalize_reel(reel.get("items"))

    def close(self) -> None:
        self.client.close()
