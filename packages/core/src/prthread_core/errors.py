"""Exception hierarchy for prthread.

Input and configuration errors (an event we do not handle, a payload missing
the object we need, an unknown config value) are fatal for the invocation.
Lookup misses are not exceptions at all: they are logged and return None or
an empty collection.
"""

from __future__ import annotations


class PRThreadError(Exception):
    """Base class for every error the notifier raises on purpose."""


class UnsupportedEventError(PRThreadError, ValueError):
    """The webhook event name, or its action, is not one prthread understands."""

    def __init__(self, event_name: str | None, action: str | None = None):
        self.event_name = event_name
        self.action = action
        kind = f"{event_name}.{action}" if action else event_name
        super().__init__(f"Unsupported event type: {kind}")


class InvalidPayloadError(PRThreadError, ValueError):
    """The webhook payload lacks the object the event kind requires."""


class ChatAPIError(PRThreadError):
    """Slack rejected a call on the critical path (head message send or update)."""


class ConfigError(PRThreadError, ValueError):
    """A configuration value is outside the accepted set."""
