"""Capabilities the notifier needs from the outside world.

The core only talks to these protocols. ``prthread_core.gh.pull_request``
implements CodeHost on top of PyGithub and ``prthread_core.slack.client``
implements ChatDirectory on top of slack_sdk; tests substitute MagicMocks.
"""

from __future__ import annotations

from typing import Protocol


class ChatDirectory(Protocol):
    def lookup_by_email(self, email: str) -> str | None:
        """Return the chat user ID registered for email, or None."""

    def post_message(self, channel: str, payload: dict) -> str:
        """Post a top-level message and return its timestamp."""

    def update_message(self, channel: str, ts: str, payload: dict) -> None:
        """Replace the content of an existing message in place."""

    def post_thread_reply(self, channel: str, thread_ts: str, payload: dict) -> str:
        """Reply inside the thread rooted at thread_ts and return the reply timestamp."""


class CodeHost(Protocol):
    def get_user_email(self, handle: str) -> str | None:
        """Return the public e-mail of a user, or None."""

    def get_pull_request(self, number: int):
        """Return the full pull request object for number."""

    def get_pull_request_body(self, number: int) -> str:
        """Return the current description of a pull request ("" when empty)."""

    def update_pull_request_body(self, number: int, body: str) -> None:
        """Overwrite the description of a pull request."""

    def list_changed_files(self, number: int) -> list[str]:
        """Return the paths touched by a pull request."""

    def get_file_content(self, path: str) -> str | None:
        """Return the decoded text of a file on the default branch, or None."""
