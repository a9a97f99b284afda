"""
Ticket-reference extraction from commit messages and pull request text.

Four pattern families are applied and their matches unioned:

- closing keywords: ``closes PROJ-12``, ``fixed #PROJ-12``, ``resolves PROJ-12``
- reference keywords: ``refs PROJ-12``, ``references #PROJ-12``
- bare identifiers: ``PROJ-12`` followed by whitespace, punctuation or end of text
- bracketed identifiers: ``[PROJ-12]``

Identifiers are returned uppercased; ticket lookup is case-insensitive.
"""

import re
from typing import Optional, Set

_IDENTIFIER = r"(\w+-\d+)"

REFERENCE_PATTERNS = [
    re.compile(r"\b(?:close[sd]?|fix(?:e[sd])?|resolve[sd]?)\s+#?" + _IDENTIFIER, re.IGNORECASE),
    re.compile(r"\b(?:refs?|references?)\s+#?" + _IDENTIFIER, re.IGNORECASE),
    re.compile(_IDENTIFIER + r"(?=\s|$|[^\w-])", re.IGNORECASE),
    re.compile(r"\[" + _IDENTIFIER + r"\]", re.IGNORECASE),
]


def extract_ticket_references(text: Optional[str]) -> Set[str]:
    """
    Extract the set of ticket identifiers mentioned in ``text``.

    Args:
        text: Commit message, or PR title and body joined by a space

    Returns:
        Uppercased identifiers; empty for empty or missing text
    """
    if not text:
        return set()

    references: Set[str] = set()
    for pattern in REFERENCE_PATTERNS:
        for match in pattern.finditer(text):
            references.add(match.group(1).upper())

    return references
