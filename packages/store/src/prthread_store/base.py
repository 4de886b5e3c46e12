"""Abstract pointer store interface.

The notifier depends on BasePointerStore only. Backends: PRBodyStore (the
default, markers in the PR description) and SQLiteStore.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prthread_store.models import ThreadPointer


class BasePointerStore(ABC):
    """Durable PR -> Slack thread mapping.

    There is no locking: get_pointer / set_pointer is a plain read-modify-write.
    Two deliveries for the same PR racing each other can lose one status update.
    """

    @abstractmethod
    def get_pointer(self, pr_number: int) -> ThreadPointer | None:
        """Return the thread pointer for a PR, or None if no thread exists yet."""

    @abstractmethod
    def set_pointer(self, pr_number: int, pointer: ThreadPointer) -> None:
        """Persist the thread pointer for a PR. Failures propagate."""

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        No-op by default.
        """
