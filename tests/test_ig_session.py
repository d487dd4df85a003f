"""Tests for storybridge.ig_session — password login with a saved session file."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from storybridge.errors import AuthError
from storybridge.ig_session import login_session_id


@pytest.fixture
def client_cls():
    with patch("storybridge.ig_session.Client") as cls:
        cls.return_value.sessionid = "sess-from-login"
        yield cls


class TestLoginSessionId:
    def test_missing_credentials(self, client_cls, tmp_path):
        with pytest.raises(AuthError) as ei:
            login_session_id("me", "", str(tmp_path / "auth"))
        assert ei.value.service == "instagram"
        client_cls.assert_not_called()

    def test_fresh_login_saves_settings(self, client_cls, tmp_path):
        path = str(tmp_path / "auth")
        assert login_session_id("me", "pw", path) == "sess-from-login"
        cl = client_cls.return_value
        cl.load_settings.assert_not_called()
        cl.login.assert_called_once_with("me", "pw")
        cl.dump_settings.assert_called_once_with(path)

    def test_saved_settings_reused(self, client_cls, tmp_path):
        path = tmp_path / "auth"
        path.write_text("{}")
        login_session_id("me", "pw", str(path))
        cl = client_cls.return_value
        cl.load_settings.assert_called_once_with(str(path))
        cl.login.assert_called_once_with("me", "pw")
        assert client_cls.call_count == 1

    def test_unreadable_settings_fall_back_to_fresh_login(self, client_cls, tmp_path):
        path = tmp_path / "auth"
        path.write_text("not json")
        stale, fresh = MagicMock(), MagicMock()
        stale.load_settings.side_effect = ValueError("bad json")
        fresh.sessionid = "sess-fresh"
        client_cls.side_effect = [stale, fresh]

        assert login_session_id("me", "pw", str(path)) == "sess-fresh"
        stale.login.assert_not_called()
        fresh.login.assert_called_once_with("me", "pw")
        fresh.dump_settings.assert_called_once_with(str(path))

    def test_login_failure_is_auth_error(self, client_cls, tmp_path):
        client_cls.return_value.login.side_effect = RuntimeError("challenge_required")
        with pytest.raises(AuthError) as ei:
            login_session_id("me", "pw", str(tmp_path / "auth"))
        assert "challenge_required" in str(ei.value)
        client_cls.return_value.dump_settings.assert_not_called()

    def test_login_without_cookie_is_auth_error(self, client_cls, tmp_path):
        client_cls.return_value.sessionid = None
        with pytest.raises(AuthError):
            login_session_id("me", "pw", str(tmp_path / "auth"))

    def test_save_failure_is_not_fatal(self, client_cls, tmp_path, caplog):
        client_cls.return_value.dump_settings.side_effect = OSError("read-only fs")
        with caplog.at_level("WARNING", logger="storybridge.ig_session"):
            assert login_session_id("me", "pw", str(tmp_path / "auth")) == "sess-from-login"
        assert "Failed to store Instagram auth data" in caplog.text
