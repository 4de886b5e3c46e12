"""Tests for the slack_sdk-backed chat directory."""

from unittest.mock import MagicMock

import pytest
from slack_sdk.errors import SlackApiError

from prthread_core.errors import ChatAPIError
from prthread_core.slack.client import SlackChat

PAYLOAD = {"text": "hi", "blocks": []}


def _chat():
    client = MagicMock()
    return SlackChat(client), client


class TestLookupByEmail:
    def test_returns_user_id(self):
        chat, client = _chat()
        client.users_lookupByEmail.return_value = {"ok": True, "user": {"id": "U1"}}
        assert chat.lookup_by_email("alice@co.com") == "U1"
        client.users_lookupByEmail.assert_called_once_with(email="alice@co.com")

    def test_users_not_found_is_a_miss(self):
        chat, client = _chat()
        client.users_lookupByEmail.side_effect = SlackApiError(
            "users_not_found", {"ok": False, "error": "users_not_found"}
        )
        assert chat.lookup_by_email("ghost@co.com") is None


class TestMessages:
    def test_post_message_returns_ts(self):
        chat, client = _chat()
        client.chat_postMessage.return_value = {"ok": True, "ts": "123.45"}
        assert chat.post_message("C1", PAYLOAD) == "123.45"
        client.chat_postMessage.assert_called_once_with(channel="C1", text="hi", blocks=[])

    def test_update_message(self):
        chat, client = _chat()
        client.chat_update.return_value = {"ok": True}
        chat.update_message("C1", "123.45", PAYLOAD)
        client.chat_update.assert_called_once_with(channel="C1", ts="123.45", text="hi", blocks=[])

    def test_thread_reply(self):
        chat, client = _chat()
        client.chat_postMessage.return_value = {"ok": True, "ts": "124.00"}
        assert chat.post_thread_reply("C1", "123.45", PAYLOAD) == "124.00"
        assert client.chat_postMessage.call_args.kwargs["thread_ts"] == "123.45"

    def test_slack_error_raises_chat_api_error(self):
        chat, client = _chat()
        client.chat_postMessage.side_effect = SlackApiError(
            "channel_not_found", {"ok": False, "error": "channel_not_found"}
        )
        with pytest.raises(ChatAPIError, match="channel_not_found"):
            chat.post_message("C1", PAYLOAD)

    def test_not_ok_response_raises(self):
        chat, client = _chat()
        client.chat_update.return_value = {"ok": False, "error": "message_not_found"}
        with pytest.raises(ChatAPIError, match="message_not_found"):
            chat.update_message("C1", "1.0", PAYLOAD)
