"""Hierarchical tag decomposition and tag query parsing."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple


_QUERY_SEPARATOR = re.compile(r'[\s,]+')


def decompose(tag: str) -> List[str]:
    """Expand a slash-delimited tag into itself and all of its ancestors.

    ``"hello/i/am"`` yields ``["hello/i/am", "hello/i", "hello"]``, most
    specific first. Blank input yields an empty list.

    Args:
        tag: Raw tag string.

    Returns:
        The tag followed by every truncation at a ``/`` boundary.
    """
    tag = tag.strip()
    if not tag:
        return []

    chain: List[str] = [tag]
    while '/' in tag:
        tag = tag[:tag.rindex('/')]
        # "/a" would otherwise produce the empty tag
        if not tag:
            break
        chain.append(tag)
    return chain


def expand_tags(tags: Iterable[str]) -> List[str]:
    """Decompose every tag and flatten the chains (duplicates kept)."""
    expanded: List[str] = []
    for tag in tags:
        expanded.extend(decompose(tag))
    return expanded


def parse_tag_query(text: Optional[str], split: bool = True) -> Tuple[str, ...]:
    """Turn user-entered text into a list of tags to match against.

    Args:
        text: Free text as typed by the user, e.g. ``"#project, area/work"``.
        split: Split on commas and whitespace. When False the whole trimmed
            string is a single tag.

    Returns:
        Tuple of tags with any leading ``#`` removed.
    """
    if text is None or not text.strip():
        return ()

    parts = _QUERY_SEPARATOR.split(text.strip()) if split else [text.strip()]
    tags: List[str] = []
    for part in parts:
        part = part.lstrip('#').strip()
        if part:
            tags.append(part)
    return tuple(tags)
