"""
Precise job-title matching.

A naive substring or \\b search for "President" also hits "Vice President".
Here a title only counts when it starts the text or follows a list delimiter
(comma, semicolon, "&" or the word "and"), and only when it is followed by a
delimiter, whitespace or the end of the text:

  "President"                  → match
  "President of Engineering"   → match
  "President, EMEA"            → match
  "CEO & President"            → match
  "Vice President"             → no match
  "Presidential Advisor"       → no match
"""
from __future__ import annotations

import re
from typing import Iterable, Optional

_LEADING = r"(?:^\s*|[,;&]\s*|\band\s+)"
_TRAILING = r"(?=[,;&\s]|$)"


def build_title_pattern(titles: Optional[Iterable[str]]) -> Optional[re.Pattern[str]]:
    """
    Compile one case-insensitive pattern matching any of `titles`.

    Returns None when there is nothing to match (None, empty, or only blank
    titles). Callers treat None as "no title bonus available".
    """
    if not titles:
        return None
    cleaned = [t.strip() for t in titles if t and t.strip()]
    if not cleaned:
        return None
    # Longest first so "VP of Engineering" wins over "VP" inside the alternation
    cleaned.sort(key=len, reverse=True)
    alternation = "|".join(re.escape(t) for t in cleaned)
    return re.compile(f"{_LEADING}(?:{alternation}){_TRAILING}", re.IGNORECASE)


class TitleMatcher:
    """Tests free-text job titles against a fixed list of target titles."""

    def __init__(self, pattern: Optional[re.Pattern[str]]) -> None:
        self.pattern = pattern

    @classmethod
    def from_titles(cls, titles: Optional[Iterable[str]]) -> "TitleMatcher":
        return cls(build_title_pattern(titles))

    @property
    def is_empty(self) -> bool:
        return self.pattern is None

    def matches(self, text: Optional[str]) -> bool:
        if self.pattern is None or not text:
            return False
        return self.pattern.search(text) is not None
