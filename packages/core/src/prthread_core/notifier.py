"""Core notification orchestration: one Slack thread per pull request.

    PR opened      -> post head message, store (thread_ts, review-pending)
    comment/review -> read pointer, advance status, re-render head message on
                      change, reply in the thread to the people who need to know

The thread pointer is re-read from the store on every event. Nothing here is
transactional: if the pointer write fails after the head message was posted,
the message stays and the error propagates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from prthread_core.codeowners import CODEOWNERS_PATHS, get_code_owners
from prthread_core.events import PullRequestOpened, PullRequestRecord, ReviewSubmitted
from prthread_core.identity import IdentityMapper
from prthread_core.mentions import extract_mentions
from prthread_core.reviewers import aggregate_reviewers, assigned_reviewers
from prthread_core.slack.messages import build_comment_message, build_pr_message
from prthread_core.status import PRStatus, next_status
from prthread_store.models import ThreadPointer

logger = logging.getLogger(__name__)


@dataclass
class NotificationResult:
    """What a single delivery did — returned to the CLI for reporting."""

    pr_number: int
    event: str
    thread_ts: str | None = None
    status: str | None = None
    previous_status: str | None = None
    reviewers: list[str] = field(default_factory=list)
    provenance: str = "none"
    head_updated: bool = False
    notified: list[str] = field(default_factory=list)  # handles mentioned in the thread reply
    reply_ts: str | None = None
    skipped: bool = False


def _parse_status(value: str | None) -> PRStatus:
    if value is None:
        return PRStatus.REVIEW_PENDING
    try:
        return PRStatus(value)
    except ValueError:
        logger.warning("Unknown stored status %r, treating as %s", value, PRStatus.REVIEW_PENDING.value)
        return PRStatus.REVIEW_PENDING


class Notifier:
    def __init__(self, code_host, chat, store, config: dict, channel: str):
        self._code_host = code_host
        self._chat = chat
        self._store = store
        self._config = config
        self._channel = channel
        self.mapper = IdentityMapper(chat, code_host, config)

    def handle(self, event) -> NotificationResult:
        if isinstance(event, PullRequestOpened):
            return self.handle_pr_opened(event)
        return self.handle_comment(event)

    # ------------------------------------------------------------------ #
    # PR opened                                                            #
    # ------------------------------------------------------------------ #

    def handle_pr_opened(self, event: PullRequestOpened) -> NotificationResult:
        record = event.record
        logger.info("Processing PR #%d: %s", record.number, record.title)

        # At most one thread per PR: a re-delivered "opened" keeps the existing one.
        existing = self._store.get_pointer(record.number)
        if existing is not None:
            logger.info("PR #%d already has Slack thread %s; not posting again", record.number, existing.thread_ts)
            return NotificationResult(
                pr_number=record.number,
                event=event.kind,
                thread_ts=existing.thread_ts,
                status=existing.status,
                skipped=True,
            )

        author_id = self.mapper.resolve(record.author)
        owners = get_code_owners(
            self._code_host,
            record.number,
            precedence=self._config.get("codeowners_precedence", "last"),
            paths=self._config.get("codeowners_paths") or CODEOWNERS_PATHS,
        )
        reviewers = aggregate_reviewers(record, self.mapper, self._config, owners)

        status = PRStatus.REVIEW_PENDING
        payload = build_pr_message(record, reviewers.slack_ids, author_id, status)
        thread_ts = self._chat.post_message(self._channel, payload)
        self._store.set_pointer(record.number, ThreadPointer(thread_ts=thread_ts, status=status.value))

        return NotificationResult(
            pr_number=record.number,
            event=event.kind,
            thread_ts=thread_ts,
            status=status.value,
            reviewers=list(reviewers.slack_ids),
            provenance=reviewers.provenance,
        )

    # ------------------------------------------------------------------ #
    # Comments and reviews                                                 #
    # ------------------------------------------------------------------ #

    def handle_comment(self, event) -> NotificationResult:
        result = NotificationResult(pr_number=event.pr_number, event=event.kind)

        pointer = self._store.get_pointer(event.pr_number)
        if pointer is None:
            logger.info("PR #%d has no Slack thread; nothing to update", event.pr_number)
            result.skipped = True
            return result

        current = _parse_status(pointer.status)
        new = next_status(current, event)
        result.thread_ts = pointer.thread_ts
        result.previous_status = current.value
        result.status = new.value

        if new != current:
            logger.info("PR #%d status: %s -> %s", event.pr_number, current.value, new.value)
            result.reviewers = self._rerender_head(event.pr_number, pointer.thread_ts, new)
            result.head_updated = True
            self._store.set_pointer(event.pr_number, ThreadPointer(thread_ts=pointer.thread_ts, status=new.value))

        handles = self._reply_recipients(event)
        if not handles:
            logger.info("No one to notify for %s on PR #%d", event.kind, event.pr_number)
            return result

        mentions = [self.mapper.mention(handle) for handle in handles]
        result.reply_ts = self._chat.post_thread_reply(
            self._channel, pointer.thread_ts, build_comment_message(event, mentions)
        )
        result.notified = handles
        return result

    def _rerender_head(self, pr_number: int, thread_ts: str, status: PRStatus) -> list[str]:
        """Rebuild the head message from the live PR and edit it in place.

        Only assigned reviewers are recomputed; code owners and default
        reviewers are a PR-opened concern.
        """
        record = PullRequestRecord.from_github(self._code_host.get_pull_request(pr_number))
        reviewers = assigned_reviewers(record, self.mapper)
        author_id = self.mapper.resolve(record.author)
        self._chat.update_message(
            self._channel, thread_ts, build_pr_message(record, reviewers.slack_ids, author_id, status)
        )
        return list(reviewers.slack_ids)

    def _reply_recipients(self, event) -> list[str]:
        """PR author on an approve / request-changes verdict, plus everyone @mentioned."""
        handles = []
        if isinstance(event, ReviewSubmitted) and event.is_verdict:
            pr_author = event.pr_author or self._code_host.get_pull_request(event.pr_number).user.login
            handles.append(pr_author)
        handles.extend(extract_mentions(event.body))
        return list(dict.fromkeys(handles))
