"""ChatDirectory implementation on top of the slack_sdk WebClient.

User lookups are best-effort: SlackApiError (users_not_found, missing scope,
rate limit) is logged at debug level and reported as a miss. Posting and
updating messages is the critical path, so failures there raise ChatAPIError.
"""

from __future__ import annotations

import logging

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from prthread_core.errors import ChatAPIError

logger = logging.getLogger(__name__)


class SlackChat:
    def __init__(self, client: WebClient):
        self._client = client

    @classmethod
    def from_token(cls, token: str) -> SlackChat:
        return cls(WebClient(token=token))

    def lookup_by_email(self, email: str) -> str | None:
        try:
            result = self._client.users_lookupByEmail(email=email)
        except SlackApiError as e:
            logger.debug("Failed to find Slack user by email %s: %s", email, e.response.get("error", e))
            return None
        if result.get("ok") and result.get("user"):
            return result["user"]["id"]
        return None

    def post_message(self, channel: str, payload: dict) -> str:
        result = self._call("chat_postMessage", channel=channel, **payload)
        logger.info("Slack message sent to %s", channel)
        return result["ts"]

    def update_message(self, channel: str, ts: str, payload: dict) -> None:
        self._call("chat_update", channel=channel, ts=ts, **payload)
        logger.info("Slack message %s updated in %s", ts, channel)

    def post_thread_reply(self, channel: str, thread_ts: str, payload: dict) -> str:
        result = self._call("chat_postMessage", channel=channel, thread_ts=thread_ts, **payload)
        logger.info("Slack thread reply sent to %s (thread %s)", channel, thread_ts)
        return result["ts"]

    def _call(self, method: str, **kwargs):
        try:
            result = getattr(self._client, method)(**kwargs)
        except SlackApiError as e:
            raise ChatAPIError(f"Slack {method} failed: {e.response.get('error', e)}") from e
        if not result.get("ok"):
            raise ChatAPIError(f"Slack {method} returned error: {result.get('error')}")
        return result
