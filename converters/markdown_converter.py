"""HTML to Markdown conversion built on markdownify with editor-specific overrides."""

import logging
import re
from typing import Any, Dict, Optional

from bs4 import BeautifulSoup, Tag
from markdownify import MarkdownConverter as MarkdownifyConverter

from errors import ConversionError

logger = logging.getLogger('article_exporter.converters.markdown_converter')

FENCE_PATTERN = re.compile(r'^\s*(```|~~~)')
BULLET_PATTERN = re.compile(r'^(\s*)[*+][ \t]+')
HEADING_PATTERN = re.compile(r'^(#{1,6})[ \t]*(?=\S)')
EMPHASIS_RUN_PATTERN = re.compile(r'\*{3,}')
UNDERSCORE_RUN_PATTERN = re.compile(r'_{3,}')


class MarkdownConverter(MarkdownifyConverter):
    """
    Converts editor HTML to GitHub-flavoured Markdown.

    Extends markdownify.MarkdownConverter with handlers for:
    - task list items (checkbox list items become ``- [x]`` / ``- [ ]``)
    - horizontal rules (``---``)
    - fenced code blocks with language detection
    - links and images that keep their ``title`` attribute
    """

    def __init__(self, logger: logging.Logger = None, config: Dict[str, Any] = None, **kwargs):
        markdownify_options = {
            'heading_style': 'ATX',
            'bullets': '-',
            'strong_em_symbol': '*',
            'escape_asterisks': False,
            'escape_underscores': False,
            'escape_misc': False,
        }
        markdownify_options.update(kwargs)
        super().__init__(**markdownify_options)

        self.logger = logger or logging.getLogger('article_exporter.converters.markdown_converter')
        self.config = config or {}

    def convert_document(self, html_content: str) -> str:
        """
        Convert an HTML fragment or document to cleaned Markdown.

        Raises:
            ConversionError: If parsing or conversion fails
        """
        try:
            soup = BeautifulSoup(html_content, 'lxml')
            self._pre_process_html(soup)
            raw_markdown = self.convert_soup(soup)
        except Exception as e:
            raise ConversionError(f"HTML to Markdown conversion failed: {e}") from e
        return self._post_process_markdown(raw_markdown)

    def _pre_process_html(self, soup: BeautifulSoup) -> None:
        """Drop non-content elements before conversion."""
        for element in soup.find_all(['script', 'style', 'head']):
            element.decompose()

    def _post_process_markdown(self, markdown: str) -> str:
        """Normalize markers and whitespace outside of fenced code blocks."""
        markdown = markdown.replace('\r\n', '\n').replace('\r', '\n')

        lines = []
        in_fence = False
        for line in markdown.split('\n'):
            if FENCE_PATTERN.match(line):
                in_fence = not in_fence
                lines.append(line.rstrip())
                continue
            if in_fence:
                lines.append(line)
                continue

            line = BULLET_PATTERN.sub(r'\1- ', line)
            line = HEADING_PATTERN.sub(r'\1 ', line)
            line = EMPHASIS_RUN_PATTERN.sub('**', line)
            line = UNDERSCORE_RUN_PATTERN.sub('__', line)
            lines.append(_strip_trailing(line))

        markdown = '\n'.join(lines)
        markdown = re.sub(r'\n{3,}', '\n\n', markdown)
        return markdown.strip()

    # Custom markdownify converters

    def convert_li(self, el, text, parent_tags=None, **kwargs):
        """Render task items as checkbox bullets; defer everything else to markdownify."""
        checked = self._task_item_state(el)
        if checked is None:
            return super().convert_li(el, text, parent_tags=parent_tags, **kwargs)

        text = (text or '').strip()
        marker = f"- [{'x' if checked else ' '}] "
        lines = text.split('\n') if text else ['']
        rendered = [marker + lines[0]]
        rendered.extend(('  ' + line) if line.strip() else '' for line in lines[1:])
        return '\n'.join(rendered) + '\n'

    def convert_hr(self, el, text, parent_tags=None, **kwargs):
        return '\n\n---\n\n'

    def convert_pre(self, el, text, parent_tags=None, **kwargs):
        """Emit a fenced code block from the raw text of the pre element."""
        code_el = el.find('code')
        source = code_el if code_el is not None else el
        code_text = source.get_text()
        if not code_text.strip():
            return ''

        language = self._extract_code_language(source)
        return f"\n\n```{language}\n{code_text.strip(chr(10))}\n```\n\n"

    def convert_code(self, el, text, parent_tags=None, **kwargs):
        """Inline code; code inside pre is handled by convert_pre."""
        parent = el.parent
        if parent is not None and parent.name == 'pre':
            return text
        code_text = el.get_text()
        if not code_text:
            return ''
        fence = '``' if '`' in code_text else '`'
        return f"{fence}{code_text}{fence}"

    def convert_a(self, el, text, parent_tags=None, **kwargs):
        """Links keep their title attribute as a quoted suffix."""
        href = el.get('href')
        if not href:
            return text
        if parent_tags and '_noformat' in parent_tags:
            return text

        title = el.get('title')
        label = text or href
        if title:
            title = title.replace('"', '\\"')
            return f'[{label}]({href} "{title}")'
        return f'[{label}]({href})'

    def convert_img(self, el, text, parent_tags=None, **kwargs):
        """Images keep both alt text and title."""
        src = el.get('src')
        if not src:
            return ''

        alt = el.get('alt') or ''
        title = el.get('title')
        if title:
            title = title.replace('"', '\\"')
            return f'![{alt}]({src} "{title}")'
        return f'![{alt}]({src})'

    def _task_item_state(self, el: Tag) -> Optional[bool]:
        """Return the checked state of a task list item, or None for ordinary items."""
        if el.get('data-type') == 'taskItem':
            return str(el.get('data-checked', 'false')).lower() == 'true'

        checkbox = el.find('input', attrs={'type': 'checkbox'})
        if checkbox is None:
            return None

        # Only a checkbox belonging to this item counts, not one in a nested list
        owner = checkbox.find_parent('li')
        if owner is not el:
            return None
        return checkbox.has_attr('checked')

    def _extract_code_language(self, element: Tag) -> str:
        """Extract programming language from a code or pre element."""
        for candidate in (element, element.parent):
            if candidate is None or not isinstance(candidate, Tag):
                continue
            for cls in candidate.get('class', []):
                cls = str(cls)
                if cls.startswith('language-'):
                    return cls[len('language-'):]
                if cls.startswith('lang-'):
                    return cls[len('lang-'):]
            lang = candidate.get('data-language')
            if lang:
                return lang
        return ''


def _strip_trailing(line: str) -> str:
    """Strip trailing whitespace, keeping the two-space hard line break."""
    stripped = line.rstrip()
    if stripped and line.endswith('  '):
        return stripped + '  '
    return stripped


def html_to_markdown(html_content: str, **options) -> str:
    """
    Convert HTML to Markdown.

    Never raises: if conversion fails internally the original HTML is returned
    unchanged so the caller still has something to emit.
    """
    if not html_content:
        return ''

    try:
        return MarkdownConverter(**options).convert_document(html_content)
    except ConversionError as e:
        logger.warning(f"HTML to Markdown conversion failed, returning source: {e}")
        return html_content


__all__ = ['MarkdownConverter', 'html_to_markdown']
