"""Credential lookup for the two services prthread talks to.

GitHub: GITHUB_TOKEN first, then the token of an existing `gh auth login`
session. Slack: SLACK_BOT_TOKEN only.

Both resolvers return None instead of raising; commands turn a missing
token into a click.UsageError.
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

_GH_TOKEN_CMD = ["gh", "auth", "token"]


def _gh_session_token() -> str | None:
    try:
        proc = subprocess.run(_GH_TOKEN_CMD, capture_output=True, text=True, timeout=5)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        logger.debug("gh CLI unavailable; no session token.")
        return None
    if proc.returncode != 0:
        return None
    return proc.stdout.strip() or None


def resolve_github_token() -> str | None:
    env_token = os.environ.get("GITHUB_TOKEN")
    if env_token:
        return env_token
    token = _gh_session_token()
    if token:
        logger.debug("Using GitHub token from gh CLI session.")
    return token


def resolve_slack_token() -> str | None:
    return os.environ.get("SLACK_BOT_TOKEN") or None
