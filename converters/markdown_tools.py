"""Markdown heuristics and helpers shared by the exporters and the CLI."""

import logging
import re
from datetime import date
from typing import Dict, Optional, Tuple

from models import slugify

logger = logging.getLogger('article_exporter.converters.markdown_tools')

MARKDOWN_PATTERNS = [
    re.compile(r'^#{1,6}\s+', re.MULTILINE),        # headings
    re.compile(r'^\s*[-*+]\s+', re.MULTILINE),      # bullet lists
    re.compile(r'^\s*\d+\.\s+', re.MULTILINE),      # numbered lists
    re.compile(r'^\s*>\s+', re.MULTILINE),          # blockquotes
    re.compile(r'^\s*```', re.MULTILINE),           # fenced code
    re.compile(r'\*\*[^*\n]+\*\*'),                 # bold
    re.compile(r'(?<![\w*])\*[^*\s][^*\n]*\*(?!\w)'),  # italic
    re.compile(r'`[^`\n]+`'),                       # inline code
    re.compile(r'!\[[^\]\n]*\]\([^)\n]*\)'),        # images
    re.compile(r'\[[^\]\n]+\]\([^)\n]*\)'),         # links
]

FRONT_MATTER_PATTERN = re.compile(r'^---[ \t]*\n(.*?)\n---[ \t]*(?:\n(.*))?$', re.DOTALL)


def is_markdown_like(text: str) -> bool:
    """Heuristically decide whether ``text`` is Markdown rather than plain prose."""
    if not text:
        return False
    return any(pattern.search(text) for pattern in MARKDOWN_PATTERNS)


def extract_front_matter(text: str) -> Tuple[Optional[Dict[str, str]], str]:
    """
    Split a leading ``---`` block into a flat key/value map and the body.

    Returns:
        Tuple of (front matter dict or None, body). A missing or malformed block
        yields None and the whole input as body.
    """
    match = FRONT_MATTER_PATTERN.match(text or '')
    if not match:
        return None, text

    front_matter: Dict[str, str] = {}
    for line in match.group(1).split('\n'):
        if not line.strip() or line.lstrip().startswith('#'):
            continue
        key, sep, value = line.partition(':')
        if not sep or not key.strip():
            logger.debug(f"Malformed front matter line: {line!r}")
            return None, text
        front_matter[key.strip()] = re.sub(r'^["\']|["\']$', '', value.strip())

    return front_matter, match.group(2) or ''


def clean_markdown(text: str) -> str:
    """Normalize line endings, tabs and non-breaking spaces."""
    return (
        (text or '')
        .replace('\r\n', '\n')
        .replace('\r', '\n')
        .replace('\t', '    ')
        .replace('\u00a0', ' ')
        .strip()
    )


def markdown_filename(title: Optional[str] = None, on: Optional[date] = None) -> str:
    """Build ``{slug}-{YYYY-MM-DD}.md`` for a title, falling back to 'article'."""
    stamp = (on or date.today()).isoformat()
    safe_name = slugify(title or '') or 'article'
    return f"{safe_name}-{stamp}.md"


__all__ = ['is_markdown_like', 'extract_front_matter', 'clean_markdown', 'markdown_filename']
