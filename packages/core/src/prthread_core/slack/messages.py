"""Slack Block Kit payloads for the PR head message and thread replies.

Pure functions: every Slack ID passed in is already resolved, nothing here
talks to an API. Text that comes from GitHub is escaped before it is placed in
mrkdwn, so it can neither ping the channel nor inject links.
"""

from __future__ import annotations

from prthread_core.events import (
    ISSUE_COMMENT,
    PULL_REQUEST_REVIEW,
    PULL_REQUEST_REVIEW_COMMENT,
    PullRequestRecord,
)
from prthread_core.status import PRStatus, status_text

EMPTY_BODY_PLACEHOLDER = "_No description provided._"

_BODY_SUMMARY_LINES = 3
_BODY_SUMMARY_CHARS = 200
_COMMENT_QUOTE_CHARS = 500

# (emoji, title) per review verdict; other review states fall back to "Reviewed".
VERDICT_DISPLAY = {
    "approved": ("✅", "Approved"),
    "changes_requested": ("🔴", "Changes requested"),
    "commented": ("💬", "Reviewed"),
}

EVENT_DISPLAY = {
    ISSUE_COMMENT: ("💬", "New comment"),
    PULL_REQUEST_REVIEW_COMMENT: ("📝", "New review comment"),
    PULL_REQUEST_REVIEW: VERDICT_DISPLAY["commented"],
}


def _escape(text: str) -> str:
    """Escape the three characters Slack mrkdwn treats as control characters."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def summarize_body(body: str | None) -> str:
    """First three non-blank lines of a PR description, capped at 200 characters."""
    if not body or not body.strip():
        return EMPTY_BODY_PLACEHOLDER

    lines = [line for line in body.splitlines() if line.strip()]
    summary = "\n".join(lines[:_BODY_SUMMARY_LINES])
    if len(summary) > _BODY_SUMMARY_CHARS:
        return summary[: _BODY_SUMMARY_CHARS - 3] + "..."
    return summary or EMPTY_BODY_PLACEHOLDER


def _mentions(slack_ids) -> str:
    return " ".join(f"<@{slack_id}>" for slack_id in slack_ids)


def _mrkdwn(text: str) -> dict:
    return {"type": "mrkdwn", "text": text}


def _button(text: str, url: str, style: str | None = None) -> dict:
    button = {"type": "button", "text": {"type": "plain_text", "text": text}, "url": url}
    if style:
        button["style"] = style
    return button


def build_pr_message(
    record: PullRequestRecord,
    reviewer_ids,
    author_id: str | None = None,
    status: PRStatus = PRStatus.REVIEW_PENDING,
) -> dict:
    """Head message of a PR thread. Re-rendered in place whenever the status changes."""
    author = f"<@{author_id}>" if author_id else f"@{_escape(record.author)}"
    reviewers = _mentions(reviewer_ids) or "_None_"

    blocks = [
        {"type": "header", "text": {"type": "plain_text", "text": "👀 Code review requested"}},
        {
            "type": "section",
            "text": _mrkdwn(
                f"*<{record.url}|{_escape(record.title)}>*\n`{_escape(record.head)}` → `{_escape(record.base)}`"
            ),
        },
        {
            "type": "section",
            "fields": [
                _mrkdwn(f"*Author:*\n{author}"),
                _mrkdwn(f"*Reviewers:*\n{reviewers}"),
                _mrkdwn(f"*Changes:*\n+{record.additions} / -{record.deletions} ({record.changed_files} files)"),
                _mrkdwn(f"*Status:*\n{status_text(status, record.is_draft)}"),
            ],
        },
        {"type": "divider"},
        {"type": "section", "text": _mrkdwn(_escape(summarize_body(record.body)))},
        {
            "type": "actions",
            "elements": [
                _button("View PR", record.url, style="primary"),
                _button("Files changed", f"{record.url}/files"),
            ],
        },
        {"type": "context", "elements": [_mrkdwn(f"📍 {_escape(record.repository.name)} • #{record.number}")]},
    ]

    return {"blocks": blocks, "text": f"New PR: {_escape(record.title)}"}


def _event_display(event) -> tuple[str, str]:
    if event.kind == PULL_REQUEST_REVIEW:
        return VERDICT_DISPLAY.get(event.review_state, EVENT_DISPLAY[PULL_REQUEST_REVIEW])
    return EVENT_DISPLAY[event.kind]


def _quote(body: str) -> str:
    if len(body) > _COMMENT_QUOTE_CHARS:
        body = body[:_COMMENT_QUOTE_CHARS] + "..."
    return "\n".join(f"> {_escape(line)}" for line in body.splitlines())


def build_comment_message(event, mentions) -> dict:
    """Thread reply for a comment or review.

    ``mentions`` are ready-made mention strings (``<@U123>`` or plain
    ``@handle`` for people with no Slack match).
    """
    emoji, title = _event_display(event)
    # Commenter as plain text; only recipients get a Slack mention.
    blocks = [{"type": "section", "text": _mrkdwn(f"{emoji} *{title}* by `{_escape(event.author)}`")}]

    body = (event.body or "").strip()
    if body:
        blocks.append({"type": "section", "text": _mrkdwn(_quote(body))})

    mention_line = " ".join(mentions)
    if mention_line:
        blocks.append({"type": "context", "elements": [_mrkdwn(f"🔔 {mention_line}")]})

    if event.url:
        blocks.append({"type": "actions", "elements": [_button("View comment", event.url)]})

    text = f"{title} by {_escape(event.author)}"
    if mention_line:
        text = f"{mention_line} {text}"
    return {"blocks": blocks, "text": text}
