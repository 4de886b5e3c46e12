from __future__ import annotations

import re

# A handle is alphanumeric at both ends with hyphens allowed in between.
_MENTION_RE = re.compile(r"@([a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?)")


def extract_mentions(text: str | None) -> list[str]:
    """Return the @handles in text, de-duplicated in order of first appearance."""
    if not text:
        return []
    return list(dict.fromkeys(_MENTION_RE.findall(text)))
