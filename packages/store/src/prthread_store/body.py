"""PRBodyStore — the pull request description is the database.

Two independent HTML comments are appended to the PR body:

    <!-- slack-thread-ts: 1712345678.123456 -->
    <!-- slack-status: in-review -->

GitHub does not render them, so the description looks unchanged to humans.
Each marker is read with a tolerant pattern and rewritten in place, so their
order and whatever text surrounds them do not matter. Every get_pointer call
re-reads the body from GitHub; nothing is cached between invocations.
"""

from __future__ import annotations

import logging
import re

from prthread_store.base import BasePointerStore
from prthread_store.models import ThreadPointer

logger = logging.getLogger(__name__)

_THREAD_TS_RE = re.compile(r"<!--\s*slack-thread-ts:\s*(\S+?)\s*-->")
_STATUS_RE = re.compile(r"<!--\s*slack-status:\s*(\S+?)\s*-->")


def _thread_ts_marker(ts: str) -> str:
    return f"<!-- slack-thread-ts: {ts} -->"


def _status_marker(status: str) -> str:
    return f"<!-- slack-status: {status} -->"


def read_pointer(body: str | None) -> ThreadPointer | None:
    """Extract the thread pointer from a PR body, or None if there is no thread marker."""
    body = body or ""
    ts_match = _THREAD_TS_RE.search(body)
    if not ts_match:
        return None
    status_match = _STATUS_RE.search(body)
    return ThreadPointer(thread_ts=ts_match.group(1), status=status_match.group(1) if status_match else None)


def _set_marker(body: str, pattern: re.Pattern, marker: str) -> str:
    if pattern.search(body):
        # The replacement is a literal; lambda keeps backslashes in it safe from re.sub.
        return pattern.sub(lambda _: marker, body, count=1)
    if body and not body.endswith("\n"):
        body += "\n"
    return body + marker + "\n"


def write_pointer(body: str | None, pointer: ThreadPointer) -> str:
    """Return body with both markers set to pointer, leaving all other text untouched."""
    body = _set_marker(body or "", _THREAD_TS_RE, _thread_ts_marker(pointer.thread_ts))
    if pointer.status is not None:
        body = _set_marker(body, _STATUS_RE, _status_marker(pointer.status))
    return body


class PRBodyStore(BasePointerStore):
    """Stores the thread pointer inside the PR description via the CodeHost capability."""

    def __init__(self, code_host):
        self._code_host = code_host

    def get_pointer(self, pr_number: int) -> ThreadPointer | None:
        try:
            body = self._code_host.get_pull_request_body(pr_number)
        except Exception as e:
            logger.error("Failed to get Slack thread ts for PR #%d: %s", pr_number, e)
            return None

        pointer = read_pointer(body)
        if pointer is None:
            logger.warning("No Slack thread ts found in PR #%d", pr_number)
        else:
            logger.debug("Found Slack thread ts for PR #%d: %s", pr_number, pointer.thread_ts)
        return pointer

    def set_pointer(self, pr_number: int, pointer: ThreadPointer) -> None:
        body = self._code_host.get_pull_request_body(pr_number)
        new_body = write_pointer(body, pointer)
        if new_body == body:
            return
        self._code_host.update_pull_request_body(pr_number, new_body)
        logger.info("Saved Slack thread pointer to PR #%d (%s)", pr_number, pointer.status)
