"""Typed records for the webhook deliveries prthread reacts to.

Every delivery is parsed into exactly one variant of a closed union:

    PullRequestOpened   pull_request
    IssueComment        issue_comment (only when the issue is a pull request)
    ReviewSubmitted     pull_request_review
    ReviewLineComment   pull_request_review_comment

Anything else is rejected with UnsupportedEventError.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from prthread_core.errors import InvalidPayloadError, UnsupportedEventError

logger = logging.getLogger(__name__)

ISSUE_COMMENT = "issue_comment"
PULL_REQUEST = "pull_request"
PULL_REQUEST_REVIEW = "pull_request_review"
PULL_REQUEST_REVIEW_COMMENT = "pull_request_review_comment"

SUPPORTED_EVENTS = (PULL_REQUEST, ISSUE_COMMENT, PULL_REQUEST_REVIEW, PULL_REQUEST_REVIEW_COMMENT)

# The one action handled per event. Deliveries without an action are accepted.
HANDLED_ACTIONS = {
    PULL_REQUEST: "opened",
    ISSUE_COMMENT: "created",
    PULL_REQUEST_REVIEW: "submitted",
    PULL_REQUEST_REVIEW_COMMENT: "created",
}

# Review verdicts that move the status machine and notify the PR author.
VERDICT_APPROVED = "approved"
VERDICT_CHANGES_REQUESTED = "changes_requested"
VERDICT_COMMENTED = "commented"


@dataclass(frozen=True)
class Repository:
    name: str
    full_name: str
    url: str


@dataclass(frozen=True)
class PullRequestRecord:
    """Immutable snapshot of a pull request at event time."""

    number: int
    title: str
    url: str
    author: str
    base: str
    head: str
    repository: Repository
    body: str = ""
    author_url: str = ""
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    is_draft: bool = False
    requested_reviewers: tuple[str, ...] = field(default_factory=tuple)
    assignees: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, pull_request: dict, repository: dict) -> PullRequestRecord:
        """Build a record from the raw ``pull_request`` and ``repository`` webhook objects."""
        user = pull_request.get("user") or {}
        return cls(
            number=pull_request["number"],
            title=pull_request.get("title") or "",
            url=pull_request.get("html_url") or "",
            author=user.get("login", ""),
            author_url=user.get("html_url") or "",
            body=pull_request.get("body") or "",
            base=(pull_request.get("base") or {}).get("ref", ""),
            head=(pull_request.get("head") or {}).get("ref", ""),
            additions=pull_request.get("additions") or 0,
            deletions=pull_request.get("deletions") or 0,
            changed_files=pull_request.get("changed_files") or 0,
            is_draft=bool(pull_request.get("draft")),
            requested_reviewers=tuple(r["login"] for r in pull_request.get("requested_reviewers") or []),
            assignees=tuple(a["login"] for a in pull_request.get("assignees") or []),
            repository=Repository(
                name=repository.get("name", ""),
                full_name=repository.get("full_name", ""),
                url=repository.get("html_url") or "",
            ),
        )

    @classmethod
    def from_github(cls, pr) -> PullRequestRecord:
        """Build a record from a PyGithub ``PullRequest`` fetched through the REST API."""
        repo = pr.base.repo
        return cls(
            number=pr.number,
            title=pr.title or "",
            url=pr.html_url or "",
            author=pr.user.login,
            author_url=pr.user.html_url or "",
            body=pr.body or "",
            base=pr.base.ref,
            head=pr.head.ref,
            additions=pr.additions or 0,
            deletions=pr.deletions or 0,
            changed_files=pr.changed_files or 0,
            is_draft=bool(pr.draft),
            requested_reviewers=tuple(u.login for u in pr.requested_reviewers or []),
            assignees=tuple(a.login for a in pr.assignees or []),
            repository=Repository(name=repo.name, full_name=repo.full_name, url=repo.html_url or ""),
        )


@dataclass(frozen=True)
class PullRequestOpened:
    record: PullRequestRecord
    kind: str = PULL_REQUEST


@dataclass(frozen=True)
class IssueComment:
    pr_number: int
    author: str
    body: str
    url: str
    kind: str = ISSUE_COMMENT


@dataclass(frozen=True)
class ReviewSubmitted:
    pr_number: int
    author: str
    body: str
    url: str
    review_state: str
    pr_author: str = ""
    kind: str = PULL_REQUEST_REVIEW

    @property
    def is_verdict(self) -> bool:
        return self.review_state in (VERDICT_APPROVED, VERDICT_CHANGES_REQUESTED)


@dataclass(frozen=True)
class ReviewLineComment:
    pr_number: int
    author: str
    body: str
    url: str
    kind: str = PULL_REQUEST_REVIEW_COMMENT


CommentEvent = Union[IssueComment, ReviewSubmitted, ReviewLineComment]
Event = Union[PullRequestOpened, IssueComment, ReviewSubmitted, ReviewLineComment]


def _require(payload: dict, key: str, event_name: str) -> dict:
    value = payload.get(key)
    if not value:
        raise InvalidPayloadError(f"{event_name} payload is missing '{key}'")
    return value


def parse_event(event_name: str | None, payload: dict) -> Event:
    """Parse a webhook delivery into one variant of the event union.

    Raises UnsupportedEventError for event names outside SUPPORTED_EVENTS and
    InvalidPayloadError when the payload lacks the object its kind requires.
    Only the action listed in HANDLED_ACTIONS is accepted for each event, so
    e.g. a pull_request "synchronize" or an edited comment is rejected too.
    """
    action = payload.get("action")
    if event_name in HANDLED_ACTIONS and action and action != HANDLED_ACTIONS[event_name]:
        raise UnsupportedEventError(event_name, action)

    if event_name == PULL_REQUEST:
        pull_request = _require(payload, "pull_request", event_name)
        event = PullRequestOpened(PullRequestRecord.from_payload(pull_request, payload.get("repository") or {}))

    elif event_name == ISSUE_COMMENT:
        issue = _require(payload, "issue", event_name)
        comment = _require(payload, "comment", event_name)
        if not issue.get("pull_request"):
            raise InvalidPayloadError("issue_comment event is not from a pull request")
        event = IssueComment(
            pr_number=issue["number"],
            author=comment["user"]["login"],
            body=comment.get("body") or "",
            url=comment.get("html_url") or "",
        )

    elif event_name == PULL_REQUEST_REVIEW:
        pull_request = _require(payload, "pull_request", event_name)
        review = _require(payload, "review", event_name)
        event = ReviewSubmitted(
            pr_number=pull_request["number"],
            author=review["user"]["login"],
            body=review.get("body") or "",
            url=review.get("html_url") or "",
            # The REST API reports "APPROVED"; webhooks send "approved".
            review_state=(review.get("state") or "").lower(),
            pr_author=(pull_request.get("user") or {}).get("login", ""),
        )

    elif event_name == PULL_REQUEST_REVIEW_COMMENT:
        pull_request = _require(payload, "pull_request", event_name)
        comment = _require(payload, "comment", event_name)
        event = ReviewLineComment(
            pr_number=pull_request["number"],
            author=comment["user"]["login"],
            body=comment.get("body") or "",
            url=comment.get("html_url") or "",
        )

    else:
        raise UnsupportedEventError(event_name)

    logger.debug("Parsed %s event: %s", event_name, event)
    return event


def load_event(event_name: str | None, event_path: str) -> Event:
    """Read a webhook payload from disk (GITHUB_EVENT_PATH) and parse it."""
    path = Path(event_path)
    if not path.exists():
        raise InvalidPayloadError(f"Event payload not found: {event_path}")
    with open(path, encoding="utf-8") as f:
        try:
            payload = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidPayloadError(f"Event payload {event_path} is not valid JSON: {e}") from e
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise InvalidPayloadError(f"Event payload {event_path} must be a JSON object")
    return parse_event(event_name, payload)
