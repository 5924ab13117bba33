"""Converters package for Markdown <-> HTML conversion and print preparation."""

import html as html_lib
import logging

from .html_cleaner import HtmlCleaner
from .html_renderer import HtmlRenderer, markdown_to_html
from .markdown_converter import MarkdownConverter, html_to_markdown
from .markdown_tools import clean_markdown, extract_front_matter, is_markdown_like, markdown_filename
from .text_extractor import html_to_text
from .tree_renderer import TreeRenderer, render_tree, tree_to_markdown

logger = logging.getLogger('article_exporter.converters')


def convert_markdown_document(text: str, logger=None):
    """
    Convenience function to turn a Markdown document into HTML.

    This runs the reading pipeline used for text input:
    1. Line ending and whitespace cleanup
    2. Front matter extraction
    3. Markdown rendering (only when the body looks like Markdown)

    Args:
        text: Raw document text, possibly with a leading ``---`` block
        logger: Optional logger instance (uses module logger if not provided)

    Returns:
        Tuple of (html, front matter dict or None)

    Example:
        >>> from converters import convert_markdown_document
        >>> html, meta = convert_markdown_document('---\\ntitle: Hi\\n---\\n# Hello')
        >>> meta['title']
        'Hi'
    """
    if logger is None:
        logger = logging.getLogger('article_exporter.converters')

    front_matter, body = extract_front_matter(clean_markdown(text))
    body = clean_markdown(body)

    if is_markdown_like(body):
        logger.debug("Input looks like Markdown, rendering to HTML")
        return markdown_to_html(body), front_matter

    logger.debug("Input looks like plain prose, wrapping paragraphs")
    paragraphs = [p.strip() for p in body.split('\n\n') if p.strip()]
    html = ''.join(f"<p>{html_lib.escape(p, quote=False).replace(chr(10), '<br>')}</p>" for p in paragraphs)
    return html, front_matter


__all__ = [
    'convert_markdown_document',
    'HtmlCleaner',
    'HtmlRenderer',
    'MarkdownConverter',
    'TreeRenderer',
    'clean_markdown',
    'extract_front_matter',
    'html_to_markdown',
    'html_to_text',
    'is_markdown_like',
    'markdown_filename',
    'markdown_to_html',
    'render_tree',
    'tree_to_markdown',
]
