"""Thread pointer data model.

Has no dependency on prthread_core. Status is kept as its plain string value.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ThreadPointer:
    """Where a PR's Slack thread lives and the status last rendered on it."""

    thread_ts: str
    status: str | None = None  # None for bodies written before status tracking
