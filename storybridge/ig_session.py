"""Instagram session bootstrap for username/password setups.

When no ``IG_SESSION_ID`` cookie is configured, log in with
``IG_USERNAME``/``IG_PASSWORD`` through instagrapi and keep the resulting
device settings + cookies in a local file (``IG_SETTINGS_PATH``).  On the
next start the saved settings are loaded first, so instagrapi reuses the
session instead of doing a fresh password login.

Only the ``sessionid`` cookie leaves this module; story polling itself
goes through ``InstagramStorySource`` on httpx.
"""

from __future__ import annotations

import logging
import os

from instagrapi import Client

from .errors import AuthError
from .log_redaction import redact_secrets

logger = logging.getLogger(__name__)


def login_session_id(username: str, password: str, settings_path: str) -> str:
    """Return a live ``sessionid`` cookie, reusing *settings_path* if present.

    A missing or unreadable settings file falls back to a fresh login.
    Failing to save the settings afterwards is logged, not raised: the
    session still works, the next start just logs in again.
    """
    if not username or not password:
        raise AuthError("IG_USERNAME / IG_PASSWORD missing", service="instagram")

    cl = Client()
    if settings_path and os.path.exists(settings_path):
        try:
            cl.load_settings(settings_path)
            logger.info("Reusing previous Instagram auth data from %s", settings_path)
        except Exception as exc:
            logger.warning(
                "Instagram auth file %s unusable, logging in with name and pass: %s",
                settings_path, redact_secrets(str(exc)),
            )
            cl = Client()
    else:
        logger.info("Logging in to Instagram with name and pass")

    try:
        cl.login(username, password)
    except Exception as exc:
        raise AuthError(
            f"Instagram login failed: {type(exc).__name__}: {redact_secrets(str(exc))}",
            service="instagram",
        ) from None

    session_id = cl.sessionid
    if not session_id:
        raise AuthError("Instagram login returned no session cookie", service="instagram")

    if settings_path:
        try:
            cl.dump_settings(settings_path)
        except Exception as exc:
            logger.warning(
                "Failed to store Instagram auth data, will need name and pass next time: %s",
                redact_secrets(str(exc)),
            )
    return session_id
