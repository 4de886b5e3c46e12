"""Code-owner resolution from a CODEOWNERS-style file.

The pattern language (see match_pattern) is a small subset of CODEOWNERS
globs. Which rule wins when several match a file is
controlled by ``precedence``:

    "last"   later lines override earlier ones (rules are reversed after parsing)
    "first"  the first matching line in the file wins

Matching itself always takes the first hit in the list it is given, so the
precedence choice never leaks into the matcher.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

logger = logging.getLogger(__name__)

CODEOWNERS_PATHS = (".github/CODEOWNERS", "CODEOWNERS", "docs/CODEOWNERS")

PRECEDENCE_LAST = "last"
PRECEDENCE_FIRST = "first"


@dataclass(frozen=True)
class OwnershipRule:
    pattern: str
    owners: frozenset[str]


def parse_codeowners(content: str, precedence: str = PRECEDENCE_LAST) -> list[OwnershipRule]:
    """Parse ownership rules, ordered so that the winning rule comes first.

    Only ``@handle`` and ``@org/team`` owners are kept; e-mail owners are
    ignored, and a line left without owners is dropped.
    """
    if precedence not in (PRECEDENCE_LAST, PRECEDENCE_FIRST):
        raise ValueError(f"Unknown codeowners precedence: {precedence!r}. Choose 'last' or 'first'.")

    rules = []
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        parts = stripped.split()
        if len(parts) < 2:
            continue
        owners = frozenset(o[1:] for o in parts[1:] if o.startswith("@"))
        if owners:
            rules.append(OwnershipRule(pattern=parts[0], owners=owners))

    if precedence == PRECEDENCE_LAST:
        rules.reverse()
    return rules


def match_pattern(path: str, pattern: str) -> bool:
    """Match one changed path against one rule pattern.

    A trailing-slash pattern is a plain prefix test on the name with and
    without the slash, so ``docs/`` also matches ``docsearch/x.py``; the
    over-match is part of the pattern semantics.
    """
    if pattern == "*":
        return True
    if pattern.startswith("*."):
        return path.endswith(pattern[1:])
    if pattern.endswith("/"):
        return path.startswith(pattern) or path.startswith(pattern[:-1])
    if pattern.startswith("/"):
        anchored = pattern[1:]
        return path == anchored or path.startswith(anchored + "/")
    # Plain patterns match anywhere in the path.
    return pattern in path


def resolve_owners(rules: list[OwnershipRule], files: Iterable[str]) -> set[str]:
    """Union of the first matching rule's owners for every file."""
    owners: set[str] = set()
    for path in files:
        for rule in rules:
            if match_pattern(path, rule.pattern):
                owners.update(rule.owners)
                break
    return owners


def find_codeowners(code_host, paths: Iterable[str] = CODEOWNERS_PATHS) -> str | None:
    """Return the content of the first ownership file found among paths."""
    for path in paths:
        try:
            content = code_host.get_file_content(path)
        except Exception as e:
            logger.debug("Could not read %s: %s", path, e)
            continue
        if content:
            logger.info("Found CODEOWNERS at %s", path)
            return content
    return None


def get_code_owners(
    code_host,
    pr_number: int,
    precedence: str = PRECEDENCE_LAST,
    paths: Iterable[str] = CODEOWNERS_PATHS,
) -> set[str]:
    """Resolve the code owners of every file changed by a pull request.

    Returns an empty set, and never raises for a code-host failure, when the
    PR has no changed files or no ownership file exists. An unknown
    ``precedence`` is a configuration error and raises ValueError.
    """
    try:
        files = code_host.list_changed_files(pr_number)
        content = find_codeowners(code_host, paths) if files else None
    except Exception as e:
        logger.warning("Failed to get code owners: %s", e)
        return set()

    if not files:
        return set()
    if not content:
        logger.debug("No CODEOWNERS file found")
        return set()

    owners = resolve_owners(parse_codeowners(content, precedence), files)
    if owners:
        logger.info("Found %d code owners from CODEOWNERS: %s", len(owners), ", ".join(sorted(owners)))
    return owners
