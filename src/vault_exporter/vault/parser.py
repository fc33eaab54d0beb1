"""
Markdown note parsing.

Extracts the metadata the exporter needs from a note: frontmatter, hierarchical
tags and internal link targets (wikilinks, embeds and relative markdown links).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

import yaml
from loguru import logger


FRONTMATTER_RE = re.compile(r'\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)', re.DOTALL)

# ``` fenced blocks and `inline code`
FENCED_CODE_RE = re.compile(r'^(```|~~~).*?^\1', re.DOTALL | re.MULTILINE)
INLINE_CODE_RE = re.compile(r'`[^`\n]*`')

# #tag, #area/sub-area; must start a line or follow whitespace
INLINE_TAG_RE = re.compile(r'(?:^|(?<=\s))#([\w\-/]+)', re.MULTILINE)

# [[Note]], [[Note#Heading|Alias]], ![[image.png]]
WIKI_LINK_RE = re.compile(r'!?\[\[([^\]]+)\]\]')

# [text](path) and ![alt](path "title")
MD_LINK_RE = re.compile(r'!?\[[^\]]*\]\(\s*<?([^)>\s]+)>?(?:\s+"[^"]*")?\s*\)')

URL_SCHEME_RE = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.\-]*:')


@dataclass(frozen=True)
class ParsedNote:
    """Metadata extracted from a single note."""
    title: Optional[str]
    frontmatter: Dict[str, Any]
    tags: List[str]
    links: List[str]


class NoteParser:
    """Parser for markdown notes."""

    def parse(self, content: str) -> ParsedNote:
        """Parse note content.

        Args:
            content: Raw note text.

        Returns:
            ParsedNote with tags in order of appearance (frontmatter first) and
            raw link targets in order of appearance, repeats included.
        """
        frontmatter, body = self._split_frontmatter(content)
        searchable = self._strip_code(body)

        tags = self._frontmatter_tags(frontmatter)
        for tag in self._inline_tags(searchable):
            if tag not in tags:
                tags.append(tag)

        return ParsedNote(
            title=self._extract_title(frontmatter, body),
            frontmatter=frontmatter,
            tags=tags,
            links=self._extract_links(searchable)
        )

    def _split_frontmatter(self, content: str) -> tuple[Dict[str, Any], str]:
        match = FRONTMATTER_RE.match(content)
        if not match:
            return {}, content

        body = content[match.end():]
        try:
            parsed = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            logger.debug(f"Ignoring malformed frontmatter: {e}")
            return {}, body

        if not isinstance(parsed, dict):
            return {}, body
        return parsed, body

    def _strip_code(self, body: str) -> str:
        body = FENCED_CODE_RE.sub('', body)
        return INLINE_CODE_RE.sub('', body)

    def _extract_title(self, frontmatter: Dict[str, Any], body: str) -> Optional[str]:
        title = frontmatter.get('title')
        if isinstance(title, str) and title.strip():
            return title.strip()

        h1_match = re.search(r'^#\s+(.+)', body, re.MULTILINE)
        return h1_match.group(1).strip() if h1_match else None

    def _frontmatter_tags(self, frontmatter: Dict[str, Any]) -> List[str]:
        raw = frontmatter.get('tags', frontmatter.get('tag'))
        if raw is None:
            return []

        if isinstance(raw, str):
            values = re.split(r'[\s,]+', raw)
        elif isinstance(raw, (list, tuple)):
            values = [str(item) for item in raw if item is not None]
        else:
            values = [str(raw)]

        tags: List[str] = []
        for value in values:
            tag = self._normalize_tag(value)
            if tag and tag not in tags:
                tags.append(tag)
        return tags

    def _inline_tags(self, text: str) -> List[str]:
        tags: List[str] = []
        for match in INLINE_TAG_RE.finditer(text):
            tag = self._normalize_tag(match.group(1))
            if tag and tag not in tags:
                tags.append(tag)
        return tags

    def _normalize_tag(self, value: str) -> str:
        tag = value.strip().lstrip('#').strip('/')
        # Purely numeric values such as #2024 are not tags
        if not re.search(r'[^\d/]', tag):
            return ''
        return tag

    def _extract_links(self, text: str) -> List[str]:
        links: List[str] = []

        for match in WIKI_LINK_RE.finditer(text):
            target = match.group(1).split('|', 1)[0]
            target = re.split(r'[#^]', target, maxsplit=1)[0].strip()
            if target:
                links.append(target)

        for match in MD_LINK_RE.finditer(text):
            target = match.group(1).strip()
            if URL_SCHEME_RE.match(target) or target.startswith('#'):
                continue
            target = unquote(target.split('#', 1)[0].split('?', 1)[0])
            if target:
                links.append(target)

        return links
