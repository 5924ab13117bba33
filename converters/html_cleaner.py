"""HTML cleaner that prepares editor markup for print rendering."""

import logging
import re
from typing import Dict, List

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger('article_exporter.converters.html_cleaner')

DARK_TEXT = 'color: #000000; text-decoration: none'

# Per-element print styling; applied before any existing inline style so author styles still win
ELEMENT_STYLES: Dict[str, str] = {
    'table': 'width: 100%; border-collapse: collapse; margin: 1.5em 0; ' + DARK_TEXT,
    'th': 'border: 1px solid #333; padding: 8px 12px; background-color: #f0f0f0; font-weight: 600; ' + DARK_TEXT,
    'td': 'border: 1px solid #333; padding: 8px 12px; vertical-align: top; ' + DARK_TEXT,
    'pre': ("background-color: #f5f5f5; padding: 1em; border: 1px solid #ddd; "
            "font-family: 'Courier New', monospace; white-space: pre-wrap; font-size: 11pt; " + DARK_TEXT),
    'code': ("background-color: #f5f5f5; font-family: 'Courier New', monospace; "
             "font-size: 10pt; " + DARK_TEXT),
    'blockquote': ('border-left: 4px solid #007bff; margin: 1.5em 0; padding: 1em 1.5em; '
                   'background-color: #f8f9fa; font-style: italic; ' + DARK_TEXT),
    'ul': 'margin: 1em 0; padding-left: 2em; ' + DARK_TEXT,
    'ol': 'margin: 1em 0; padding-left: 2em; ' + DARK_TEXT,
    'li': 'margin: 0.5em 0; line-height: 1.6; ' + DARK_TEXT,
    'p': 'margin: 1em 0; line-height: 1.6; ' + DARK_TEXT,
    'img': 'max-width: 100%; height: auto; margin: 1em 0; display: block',
    'a': 'color: #0066cc; text-decoration: none; font-weight: normal',
    'strong': 'font-weight: 700; ' + DARK_TEXT,
    'b': 'font-weight: 700; ' + DARK_TEXT,
    'em': 'font-style: italic; ' + DARK_TEXT,
    'i': 'font-style: italic; ' + DARK_TEXT,
    's': 'text-decoration: line-through; color: #000000',
    'del': 'text-decoration: line-through; color: #000000',
    'strike': 'text-decoration: line-through; color: #000000',
    'hr': 'border: none; border-top: 2px solid #333; margin: 2em 0',
    'div': DARK_TEXT,
    'span': DARK_TEXT,
}

HEADING_SIZES_PT = {'h1': 24, 'h2': 20, 'h3': 16, 'h4': 14, 'h5': 12, 'h6': 11}
HEADING_WEIGHTS = {'h1': 700}

STRIKE_TAGS = {'s', 'del', 'strike'}

# Classes that mark whole collaboration widgets rather than highlighted text
COMMENT_WIDGET_PATTERN = re.compile(r'comment-(?:marker|thread|bubble|indicator|widget|popover)')
COMMENT_ATTRIBUTE_PATTERNS = ['data-comment*', 'data-thread*']

UNDERLINE_PATTERN = re.compile(r'text-decoration(-line)?\s*:\s*underline[^;]*', re.IGNORECASE)
LIGHT_HEX_PATTERN = re.compile(r'(?<![\w-])color\s*:\s*#[7-9a-f][0-9a-f]{5}\b', re.IGNORECASE)
LIGHT_RGB_PATTERN = re.compile(r'(?<![\w-])color\s*:\s*rgba?\([^)]*[789][^)]*\)', re.IGNORECASE)
LIGHT_NAME_PATTERN = re.compile(r'(?<![\w-])color\s*:\s*(?:gray|grey|lightgray|lightgrey|silver)\b', re.IGNORECASE)
OPACITY_PATTERN = re.compile(r'(?<![\w-])opacity\s*:\s*[^;]*;?', re.IGNORECASE)


class HtmlCleaner:
    """Rewrites a staged document so it prints dark, legible and free of collaboration markup."""

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger('article_exporter.converters.html_cleaner')

    def sanitize_for_print(self, soup: BeautifulSoup) -> BeautifulSoup:
        """
        Main entry point: sanitize ``soup`` in place for print.

        Args:
            soup: Parsed staged document

        Returns:
            The same BeautifulSoup object
        """
        self.logger.debug("Sanitizing staged document for print")

        self._remove_collaboration_artifacts(soup)
        self._neutralize_decorative_tags(soup)
        self._remove_empty_elements(soup)
        self._apply_element_styles(soup)
        self._normalize_inline_styles(soup)

        self.logger.debug("Print sanitizing completed")
        return soup

    def unwrap_comment_highlights(self, soup: BeautifulSoup) -> int:
        """Unwrap comment highlights while keeping their text. Returns how many were unwrapped."""
        count = 0
        for element in soup.find_all(self._is_comment_highlight):
            self._unwrap_element(element)
            count += 1
        return count

    def _remove_collaboration_artifacts(self, soup: BeautifulSoup) -> None:
        """Drop comment widgets and selection markers, unwrap highlights, strip comment data."""
        removed = 0
        for element in soup.find_all(class_=COMMENT_WIDGET_PATTERN):
            element.decompose()
            removed += 1

        for element in soup.find_all(class_='selection-marker'):
            element.decompose()
            removed += 1

        unwrapped = self.unwrap_comment_highlights(soup)

        for element in soup.find_all(True):
            self._remove_attributes(element, COMMENT_ATTRIBUTE_PATTERNS)
            self._remove_classes(element, ['ProseMirror-selectednode'])

        if removed or unwrapped:
            self.logger.debug(f"Removed {removed} collaboration widgets, unwrapped {unwrapped} highlights")

    def _neutralize_decorative_tags(self, soup: BeautifulSoup) -> None:
        """Underlines and highlights become plain spans."""
        for element in soup.find_all(['u', 'mark']):
            element.name = 'span'
            element['style'] = self._join_styles(
                DARK_TEXT + '; background-color: transparent', element.get('style', '')
            )

    def _apply_element_styles(self, soup: BeautifulSoup) -> None:
        for element in soup.find_all(True):
            base = ELEMENT_STYLES.get(element.name)
            if element.name in HEADING_SIZES_PT:
                weight = HEADING_WEIGHTS.get(element.name, 600)
                base = (
                    f"font-size: {HEADING_SIZES_PT[element.name]}pt; font-weight: {weight}; "
                    f"line-height: 1.3; margin-top: 1.5em; margin-bottom: 0.5em; {DARK_TEXT}"
                )
            if base is None:
                continue
            # Headings keep their size fixed regardless of author styles
            if element.name in HEADING_SIZES_PT:
                element['style'] = self._join_styles(element.get('style', ''), base)
            else:
                element['style'] = self._join_styles(base, element.get('style', ''))

    def _normalize_inline_styles(self, soup: BeautifulSoup) -> None:
        """Force opaque dark text and strip underlines from every inline style."""
        for element in soup.find_all(style=True):
            style = element['style']
            style = UNDERLINE_PATTERN.sub(lambda m: f"text-decoration{m.group(1) or ''}: none", style)
            style = OPACITY_PATTERN.sub('', style)
            style = LIGHT_HEX_PATTERN.sub('color: #000000', style)
            style = LIGHT_RGB_PATTERN.sub('color: #000000', style)
            style = LIGHT_NAME_PATTERN.sub('color: #000000', style)

            if element.name not in STRIKE_TAGS and 'text-decoration' not in style:
                style = self._join_styles(style, 'text-decoration: none')
            if element.name != 'img' and not re.search(r'(?<![\w-])color\s*:', style):
                style = self._join_styles(style, 'color: #000000')
            element['style'] = style

    def _remove_classes(self, element: Tag, classes: list) -> None:
        """Remove specified CSS classes from element."""
        if not element.get('class'):
            return

        remaining_classes = [c for c in element.get('class', []) if c not in classes]
        if remaining_classes:
            element['class'] = remaining_classes
        else:
            del element['class']

    def _remove_attributes(self, element: Tag, patterns: list) -> None:
        """Remove attributes matching wildcard patterns from element."""
        if not element.attrs:
            return

        attrs_to_remove = []
        for attr in element.attrs:
            for pattern in patterns:
                if pattern.endswith('*'):
                    if attr.startswith(pattern[:-1]):
                        attrs_to_remove.append(attr)
                        break
                elif attr == pattern:
                    attrs_to_remove.append(attr)
                    break

        for attr in attrs_to_remove:
            del element[attr]

    def _unwrap_element(self, element: Tag) -> None:
        """Safely unwrap element while preserving child content."""
        self.logger.debug(f"Unwrapping element: {element.name} {element.get('class', '')}")
        element.unwrap()

    def _remove_empty_elements(self, soup: BeautifulSoup) -> None:
        """Remove spans and divs that hold neither text nor child elements."""
        removed_count = 0

        for element in soup.find_all(['div', 'span']):
            if element.find():
                continue
            if element.get_text(strip=True):
                continue
            element.decompose()
            removed_count += 1

        if removed_count > 0:
            self.logger.debug(f"Removed {removed_count} empty elements")

    @staticmethod
    def _is_comment_highlight(element: Tag) -> bool:
        if element.name not in ('span', 'mark'):
            return False
        classes: List[str] = element.get('class', [])
        return any('comment' in cls and not COMMENT_WIDGET_PATTERN.search(cls) for cls in classes)

    @staticmethod
    def _join_styles(*styles: str) -> str:
        parts = [s.strip().strip(';').strip() for s in styles if s and s.strip().strip(';').strip()]
        return '; '.join(parts)


__all__ = ['HtmlCleaner']
