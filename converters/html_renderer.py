"""Markdown to HTML rendering with task list and bare-link support."""

import html
import logging
import re
from typing import Optional

import markdown as md
from bs4 import BeautifulSoup, NavigableString

logger = logging.getLogger('article_exporter.converters.html_renderer')

TASK_MARKER_PATTERN = re.compile(r'^\s*\[([ xX])\]\s+')
BARE_LINK_PATTERN = re.compile(
    r'(?<![\w/@])((?:https?://|www\.)[^\s<>"\']+[^\s<>"\'.,;:!?)\]])'
)
# Text inside these elements is never auto-linked
NO_LINKIFY_PARENTS = {'a', 'code', 'pre', 'script', 'style'}


class HtmlRenderer:
    """Renders Markdown to HTML fragments."""

    def __init__(self, logger: Optional[logging.Logger] = None, allow_html: bool = True):
        self.logger = logger or logging.getLogger('article_exporter.converters.html_renderer')
        self.allow_html = allow_html

        # 'nl2br' makes single newlines significant, matching how the editor breaks lines
        self.md = md.Markdown(
            extensions=[
                'extra',
                'sane_lists',
                'nl2br',
            ]
        )

        self.logger.debug("Initialized HtmlRenderer with markdown extensions")

    def render(self, markdown_content: str) -> str:
        """Convert Markdown to an HTML fragment."""
        if not markdown_content:
            return ''

        source = markdown_content
        if not self.allow_html:
            source = html.escape(source, quote=False)

        self.md.reset()
        rendered = self.md.convert(source)

        soup = BeautifulSoup(rendered, 'html.parser')
        self._convert_task_lists(soup)
        self._linkify(soup)

        html_content = str(soup)
        self.logger.debug(
            f"Rendered {len(markdown_content)} chars of markdown to {len(html_content)} chars of HTML"
        )
        return html_content

    def _convert_task_lists(self, soup: BeautifulSoup) -> None:
        """Turn ``[ ]`` / ``[x]`` list items into checkbox items."""
        for li in soup.find_all('li'):
            first_text = self._first_text_node(li)
            if first_text is None:
                continue

            match = TASK_MARKER_PATTERN.match(str(first_text))
            if not match:
                continue

            checked = match.group(1).lower() == 'x'
            first_text.replace_with(str(first_text)[match.end():])

            checkbox = soup.new_tag('input', attrs={'type': 'checkbox', 'disabled': ''})
            if checked:
                checkbox['checked'] = ''

            # Loose lists wrap the item text in a paragraph; keep the box next to the text
            first_tag = li.find(True)
            target = first_tag if first_tag is not None and first_tag.name == 'p' else li
            target.insert(0, checkbox)

            li['class'] = li.get('class', []) + ['task-item']
            li['data-checked'] = 'true' if checked else 'false'
            parent = li.parent
            if parent is not None and parent.name == 'ul' and 'task-list' not in parent.get('class', []):
                parent['class'] = parent.get('class', []) + ['task-list']

    @staticmethod
    def _first_text_node(li) -> Optional[NavigableString]:
        for descendant in li.descendants:
            if isinstance(descendant, NavigableString):
                if str(descendant).strip():
                    return descendant
                continue
            if descendant.name in ('ul', 'ol'):
                return None
        return None

    def _linkify(self, soup: BeautifulSoup) -> None:
        """Wrap bare URLs in anchors."""
        for text_node in list(soup.find_all(string=BARE_LINK_PATTERN)):
            if any(parent.name in NO_LINKIFY_PARENTS for parent in text_node.parents):
                continue

            text = str(text_node)
            pieces = []
            position = 0
            for match in BARE_LINK_PATTERN.finditer(text):
                if match.start() > position:
                    pieces.append(NavigableString(text[position:match.start()]))
                url = match.group(1)
                href = url if url.startswith('http') else f'http://{url}'
                anchor = soup.new_tag('a', href=href)
                anchor.string = url
                pieces.append(anchor)
                position = match.end()
            if position < len(text):
                pieces.append(NavigableString(text[position:]))

            for piece in reversed(pieces):
                text_node.insert_after(piece)
            text_node.extract()


def markdown_to_html(markdown_content: str, include_html: bool = True) -> str:
    """
    Convert Markdown to HTML.

    Never raises: on internal failure the input comes back wrapped in a single
    paragraph.
    """
    try:
        return HtmlRenderer(allow_html=include_html).render(markdown_content)
    except Exception as e:
        logger.warning(f"Markdown to HTML conversion failed, wrapping source: {e}")
        return f"<p>{html.escape(markdown_content or '')}</p>"


__all__ = ['HtmlRenderer', 'markdown_to_html']
