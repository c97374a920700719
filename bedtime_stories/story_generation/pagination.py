"""
Utilities for splitting a full story into pages, one sentence per page.
"""

from __future__ import annotations

import re

DEFAULT_MAX_PAGES = 10

# A full stop is consumed; "!" and "?" stay on their sentence. Runs like "?!"
# and a closing quote after them are kept together.
_SENTENCE_BOUNDARY = re.compile(r"\.|(?<=[!?])(?![!?\"'”’])")


def split_story_into_pages(text: str, *, max_pages: int = DEFAULT_MAX_PAGES) -> list[str]:
    """
    Split raw story text into trimmed, non-empty sentence fragments.

    Order is preserved and the result is truncated to ``max_pages`` entries.
    Stories with fewer sentences keep all of them.
    """
    if max_pages < 1:
        raise ValueError(f"max_pages must be at least 1, received {max_pages}.")

    pages: list[str] = []
    for fragment in _SENTENCE_BOUNDARY.split(text):
        cleaned = fragment.strip()
        if not cleaned:
            continue
        pages.append(cleaned)
        if len(pages) == max_pages:
            break
    return pages
