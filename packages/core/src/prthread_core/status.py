"""PR review status and its transitions.

    review-pending --comment--> in-review
    any            --review: approved--> approved
    any            --review: changes_requested--> changes-requested

Every other observation leaves the status alone. merged and closed are
reserved for lifecycle events prthread does not subscribe to. Drafts are not
a state: ``is_draft`` is rendered on top of whatever status is stored.
"""

from __future__ import annotations

from enum import Enum

from prthread_core.events import VERDICT_APPROVED, VERDICT_CHANGES_REQUESTED, ReviewSubmitted


class PRStatus(str, Enum):
    REVIEW_PENDING = "review-pending"
    IN_REVIEW = "in-review"
    APPROVED = "approved"
    CHANGES_REQUESTED = "changes-requested"
    MERGED = "merged"
    CLOSED = "closed"


STATUS_DISPLAY: dict[PRStatus, tuple[str, str]] = {
    PRStatus.REVIEW_PENDING: ("🟡", "review pending"),
    PRStatus.IN_REVIEW: ("🔵", "in review"),
    PRStatus.APPROVED: ("✅", "approved"),
    PRStatus.CHANGES_REQUESTED: ("🔴", "changes requested"),
    PRStatus.MERGED: ("🎉", "merged"),
    PRStatus.CLOSED: ("⚫", "closed"),
}

DRAFT_DISPLAY = ("📝", "draft")

_VERDICT_STATUS = {
    VERDICT_APPROVED: PRStatus.APPROVED,
    VERDICT_CHANGES_REQUESTED: PRStatus.CHANGES_REQUESTED,
}


def next_status(current: PRStatus, event) -> PRStatus:
    """Status after observing a comment-like event on a PR currently at ``current``."""
    if isinstance(event, ReviewSubmitted) and event.review_state in _VERDICT_STATUS:
        return _VERDICT_STATUS[event.review_state]
    if current == PRStatus.REVIEW_PENDING:
        return PRStatus.IN_REVIEW
    return current


def status_text(status: PRStatus, is_draft: bool = False) -> str:
    """Status field of the head message, with the draft marker in front for drafts."""
    emoji, label = STATUS_DISPLAY[status]
    text = f"{emoji} {label}"
    if is_draft:
        text = f"{DRAFT_DISPLAY[0]} {DRAFT_DISPLAY[1]} · {text}"
    return text
