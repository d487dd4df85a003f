"""Tests for the Telegram Bot API sink."""

from __future__ import annotations

from typing import Any, Generator
from unittest.mock import MagicMock, patch

import httpx
import pytest

from storybridge.common_types import ItemKind, StoryItem
from storybridge.deliver_telegram import TelegramSink
from storybridge.errors import AuthError, DeliveryError

_TOKEN = "123456:ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghi"


def _resp(status: int, payload: Any) -> MagicMock:
    r = MagicMock(spec=httpx.Response)
    r.status_code = status
    r.headers = {"content-type": "application/json"}
    r.url = f"https://api.telegram.org/bot{_TOKEN}/sendPhoto"
    r.json.return_value = payload
    return r


@pytest.fixture
def sink() -> Generator[TelegramSink, None, None]:
    s = TelegramSink(_TOKEN, "-100500", timeout=1.0)
    s.client.close()
    s.client = MagicMock()
    yield s


class TestTelegramSink:
    def test_missing_token_is_auth_error(self):
        with pytest.raises(AuthError):
            TelegramSink("", "1")

    def test_authenticate(self, sink):
        sink.client.request.return_value = _resp(200, {"ok": True, "result": {"username": "story_bot"}})
        assert sink.authenticate() == "story_bot"
        method, url = sink.client.request.call_args.args[:2]
        assert method == "POST"
        assert url.endswith("/getMe")

    def test_authenticate_rejected(self, sink):
        sink.client.request.return_value = _resp(401, {"ok": False, "description": "Unauthorized"})
        with pytest.raises(AuthError) as ei:
            sink.authenticate()
        assert "Unauthorized" in str(ei.value)
        assert _TOKEN not in str(ei.value)

    def test_image_sent_as_photo(self, sink):
        sink.client.request.return_value = _resp(200, {"ok": True, "result": {}})
        sink.deliver(StoryItem(item_id="a", url="https://cdn/a.jpg", kind=ItemKind.IMAGE))
        args, kwargs = sink.client.request.call_args
        assert args[1].endswith("/sendPhoto")
        assert kwargs["json"] == {"chat_id": "-100500", "photo": "https://cdn/a.jpg"}

    def test_video_sent_as_video(self, sink):
        sink.client.request.return_value = _resp(200, {"ok": True, "result": {}})
        sink.deliver(StoryItem(item_id="v", url="https://cdn/v.mp4", kind=ItemKind.VIDEO))
        args, kwargs = sink.client.request.call_args
        assert args[1].endswith("/sendVideo")
        assert kwargs["json"] == {"chat_id": "-100500", "video": "https://cdn/v.mp4"}

    def test_api_error_raises_delivery_error(self, sink):
        sink.client.request.return_value = _resp(
            400, {"ok": False, "description": "Bad Request: wrong file identifier/HTTP URL specified"},
        )
        with pytest.raises(DeliveryError) as ei:
            sink.deliver(StoryItem(item_id="a", url="https://cdn/a.jpg"))
        assert ei.value.item_id == "a"
        assert ei.value.status_code == 400

    def test_ok_false_with_200_is_failure(self, sink):
        sink.client.request.return_value = _resp(200, {"ok": False})
        with pytest.raises(DeliveryError):
            sink.deliver(StoryItem(item_id="a", url="https://cdn/a.jpg"))

    def test_non_json_is_failure(self, sink):
        r = _resp(502, None)
        r.json.side_effect = ValueError("no json")
        sink.client.request.return_value = r
        with patch("storybridge._http.time"):
            with pytest.raises(DeliveryError) as ei:
                sink.deliver(StoryItem(item_id="a", url="https://cdn/a.jpg"))
        assert _TOKEN not in str(ei.value)

    def test_network_error_sanitized(self, sink):
        sink.client.request.side_effect = httpx.ReadTimeout(
            f"timed out: https://api.telegram.org/bot{_TOKEN}/sendPhoto",
        )
        with patch("storybridge._http.time"):
            with pytest.raises(DeliveryError) as ei:
                sink.deliver(StoryItem(item_id="a", url="https://cdn/a.jpg"))
        assert _TOKEN not in str(ei.value)
        assert sink.client.request.call_count == 3

    @patch("storybridge._http.time")
    def test_rate_limit_honours_retry_after(self, mock_time, sink):
        limited = _resp(429, {"ok": False, "description": "Too Many Requests"})
        limited.headers = {"content-type": "application/json", "retry-after": "5"}
        sink.client.request.side_effect = [limited, _resp(200, {"ok": True})]
        sink.deliver(StoryItem(item_id="a", url="https://cdn/a.jpg"))
        mock_time.sleep.assert_called_once_with(5.0)


class TestRetryAfter:
    @pytest.mark.parametrize("raw, attempt, expected", [
        ("5", 0, 5.0),
        ("120", 0, 30.0),
        ("-3", 0, 0.0),
        ("nan", 1, 2.0),
        ("inf", 2, 4.0),
        ("", 1, 2.0),
        ("Wed, 21 Oct 2026 07:28:00 GMT", 0, 1.0),
    ])
    def test_values(self, raw, attempt, expected):
        from storybridge._http import _retry_after

        r = _resp(429, {})
        r.headers = {"retry-after": raw}
        assert _retry_after(r, attempt) == expected

    @patch("storybridge._http.time")
    def test_negative_retry_after_does_not_escape(self, mock_time, sink):
        limited = _resp(429, {"ok": False})
        limited.headers = {"content-type": "application/json", "retry-after": "-1"}
        sink.client.request.side_effect = [limited, _resp(200, {"ok": True})]
        sink.deliver(StoryItem(item_id="a", url="https://cdn/a.jpg"))
        mock_time.sleep.assert_called_once_with(0.0)
