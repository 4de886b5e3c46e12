from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from prthread_core.events import PullRequestRecord

logger = logging.getLogger(__name__)

SOURCE_REVIEWERS = "reviewers"
SOURCE_CODEOWNERS = "codeowners"
SOURCE_DEFAULT = "default"


@dataclass
class ReviewerSet:
    """Slack users to notify about a PR and the sources they came from."""

    slack_ids: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)

    def add(self, source: str, slack_ids: Iterable[str]) -> None:
        added = False
        for slack_id in slack_ids:
            added = True
            if slack_id not in self.slack_ids:
                self.slack_ids.append(slack_id)
        if added and source not in self.sources:
            self.sources.append(source)

    @property
    def provenance(self) -> str:
        return " + ".join(self.sources) if self.sources else "none"

    def __len__(self) -> int:
        return len(self.slack_ids)


def _without_author(handles: Iterable[str], author: str) -> list[str]:
    # GitHub handles are case-insensitive.
    return [h for h in dict.fromkeys(handles) if h.lower() != author.lower()]


def assigned_reviewers(record: PullRequestRecord, mapper) -> ReviewerSet:
    """Reviewer set built from the PR's requested reviewers only."""
    reviewers = ReviewerSet()
    handles = _without_author(record.requested_reviewers, record.author)
    if handles:
        logger.info("Found %d assigned reviewers", len(handles))
        reviewers.add(SOURCE_REVIEWERS, mapper.resolve_many(handles))
    return reviewers


def aggregate_reviewers(
    record: PullRequestRecord,
    mapper,
    config: dict,
    code_owners: Iterable[str] = (),
) -> ReviewerSet:
    """Merge requested reviewers, code owners and default reviewers.

    The PR author is excluded from the first two sources. Default reviewers
    are e-mails and go straight to the Slack lookup. An empty result is valid:
    the notification then addresses the channel only.
    """
    reviewers = assigned_reviewers(record, mapper)

    owners = _without_author(sorted(code_owners), record.author)
    if owners:
        reviewers.add(SOURCE_CODEOWNERS, mapper.resolve_many(owners))

    defaults = config.get("default_reviewers") or []
    if defaults:
        reviewers.add(SOURCE_DEFAULT, mapper.resolve_emails(defaults))

    if reviewers:
        logger.info("Notifying %d Slack users (%s)", len(reviewers), reviewers.provenance)
    else:
        logger.warning("No reviewers found and no default reviewers configured")
    return reviewers
