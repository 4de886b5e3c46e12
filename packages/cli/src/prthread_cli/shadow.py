"""Dry-run collaborators for `prthread notify --shadow`.

ShadowChat prints every payload instead of sending it; user lookups still go
to Slack when a real client is available so the preview shows real mentions.
ShadowStore reads pointers from the real store but only prints writes.
"""

from __future__ import annotations

import json

from rich.console import Console

from prthread_store.base import BasePointerStore

console = Console()

_SHADOW_TS = "0000000000.000000"


class ShadowChat:
    def __init__(self, delegate=None):
        self._delegate = delegate

    def lookup_by_email(self, email: str) -> str | None:
        if self._delegate is None:
            return None
        return self._delegate.lookup_by_email(email)

    def post_message(self, channel: str, payload: dict) -> str:
        self._print(f"post to {channel}", payload)
        return _SHADOW_TS

    def update_message(self, channel: str, ts: str, payload: dict) -> None:
        self._print(f"update {ts} in {channel}", payload)

    def post_thread_reply(self, channel: str, thread_ts: str, payload: dict) -> str:
        self._print(f"reply in thread {thread_ts} in {channel}", payload)
        return _SHADOW_TS

    @staticmethod
    def _print(action: str, payload: dict) -> None:
        console.print(f"\n[bold]Shadow — {action} (not sent)[/bold]")
        console.print_json(json.dumps(payload, ensure_ascii=False))


class ShadowStore(BasePointerStore):
    def __init__(self, store: BasePointerStore):
        self._store = store

    def get_pointer(self, pr_number: int):
        return self._store.get_pointer(pr_number)

    def set_pointer(self, pr_number: int, pointer) -> None:
        console.print(
            f"[dim]Shadow — would save thread {pointer.thread_ts} ({pointer.status}) for PR #{pr_number}[/dim]"
        )

    def close(self) -> None:
        self._store.close()
