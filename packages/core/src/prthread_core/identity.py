"""GitHub handle -> Slack user resolution.

Resolution order (stops at first success):
  1. ``email_mappings`` from config: handle -> e-mail -> Slack lookup
  2. if ``auto_match_by_email`` is on: the handle's public GitHub e-mail -> Slack lookup
  3. None; callers fall back to a plain-text ``@handle``

A miss is never an error. Any exception raised by a single lookup (API error
or transport failure) is logged and treated as "not found".
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class IdentityMapper:
    def __init__(self, chat, code_host, config: dict):
        self._chat = chat
        self._code_host = code_host
        self._config = config
        # Per-delivery cache, misses included.
        self._handles: dict[str, str | None] = {}
        self._emails: dict[str, str | None] = {}

    def resolve_email(self, email: str) -> str | None:
        """Look up a Slack user ID directly by e-mail."""
        if email not in self._emails:
            try:
                self._emails[email] = self._chat.lookup_by_email(email)
            except Exception as e:
                logger.warning("Slack lookup for %s failed: %s", email, e)
                self._emails[email] = None
        return self._emails[email]

    def resolve(self, handle: str) -> str | None:
        if handle not in self._handles:
            self._handles[handle] = self._resolve_uncached(handle)
        return self._handles[handle]

    def _resolve_uncached(self, handle: str) -> str | None:
        mapped_email = (self._config.get("email_mappings") or {}).get(handle)
        if mapped_email:
            logger.debug("Found mapping for %s -> %s", handle, mapped_email)
            slack_id = self.resolve_email(mapped_email)
            if slack_id:
                return slack_id

        if self._config.get("auto_match_by_email", True):
            logger.debug("Attempting auto-match for %s", handle)
            try:
                github_email = self._code_host.get_user_email(handle)
            except Exception as e:
                logger.warning("Failed to get GitHub user email for %s: %s", handle, e)
                github_email = None
            if github_email:
                slack_id = self.resolve_email(github_email)
                if slack_id:
                    logger.info("Auto-matched %s via email %s", handle, github_email)
                    return slack_id

        logger.warning("Could not find Slack user for GitHub user: %s", handle)
        return None

    def resolve_many(self, handles) -> list[str]:
        """Resolve handles in order, dropping the ones with no Slack user."""
        slack_ids = []
        for handle in handles:
            slack_id = self.resolve(handle)
            if slack_id:
                slack_ids.append(slack_id)
        return slack_ids

    def resolve_emails(self, emails) -> list[str]:
        slack_ids = []
        for email in emails:
            slack_id = self.resolve_email(email)
            if slack_id:
                slack_ids.append(slack_id)
            else:
                logger.warning("Could not find Slack user for default reviewer email: %s", email)
        return slack_ids

    def mention(self, handle: str) -> str:
        """Slack mention markup for handle, or plain ``@handle`` when unresolved."""
        slack_id = self.resolve(handle)
        return f"<@{slack_id}>" if slack_id else f"@{handle}"
