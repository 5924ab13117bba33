"""Render editor node trees (ProseMirror/TipTap JSON) to HTML."""

import logging
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from .markdown_converter import html_to_markdown

logger = logging.getLogger('article_exporter.converters.tree_renderer')

# node type -> (tag name, static attributes)
BLOCK_NODES = {
    'paragraph': ('p', {}),
    'blockquote': ('blockquote', {}),
    'bulletList': ('ul', {}),
    'orderedList': ('ol', {}),
    'listItem': ('li', {}),
    'taskList': ('ul', {'data-type': 'taskList', 'class': 'task-list'}),
    'table': ('table', {}),
    'tableRow': ('tr', {}),
    'tableHeader': ('th', {}),
    'tableCell': ('td', {}),
}

# mark type -> tag name
MARK_TAGS = {
    'bold': 'strong',
    'strong': 'strong',
    'italic': 'em',
    'em': 'em',
    'underline': 'u',
    'strike': 's',
    'code': 'code',
    'subscript': 'sub',
    'superscript': 'sup',
}


class TreeRenderer:
    """
    Non-interactive renderer for a structured editor tree.

    Each instance owns one scratch document; create it, call render() once and
    discard it.
    """

    def __init__(self, tree: Dict[str, Any], logger: Optional[logging.Logger] = None):
        self.tree = tree
        self.logger = logger or logging.getLogger('article_exporter.converters.tree_renderer')
        self.soup = BeautifulSoup('', 'html.parser')
        self.unknown_nodes: List[str] = []

    def render(self) -> str:
        """Render the tree and return its HTML serialization."""
        if not isinstance(self.tree, dict):
            raise ValueError("Structured tree must be a mapping")

        root = self.tree
        nodes = root.get('content', []) if root.get('type') == 'doc' else [root]
        for node in nodes:
            rendered = self._render_node(node)
            if rendered is not None:
                self.soup.append(rendered)

        if self.unknown_nodes:
            self.logger.debug(f"Rendered unknown node types as containers: {sorted(set(self.unknown_nodes))}")

        return str(self.soup)

    def _render_node(self, node: Dict[str, Any]):
        node_type = node.get('type')
        attrs = node.get('attrs') or {}

        if node_type == 'text':
            return self._render_text(node)

        if node_type == 'hardBreak':
            return self.soup.new_tag('br')

        if node_type == 'horizontalRule':
            return self.soup.new_tag('hr')

        if node_type == 'image':
            return self._render_image(attrs)

        if node_type == 'heading':
            level = min(max(int(attrs.get('level', 1) or 1), 1), 6)
            element = self.soup.new_tag(f'h{level}')
        elif node_type == 'codeBlock':
            element = self.soup.new_tag('pre')
            code = self.soup.new_tag('code')
            language = attrs.get('language')
            if language:
                code['class'] = [f'language-{language}']
            code.string = ''.join(child.get('text', '') for child in node.get('content', []))
            element.append(code)
            return element
        elif node_type == 'taskItem':
            element = self.soup.new_tag('li')
            element['data-type'] = 'taskItem'
            checked = bool(attrs.get('checked'))
            element['data-checked'] = 'true' if checked else 'false'
            checkbox = self.soup.new_tag('input', attrs={'type': 'checkbox'})
            if checked:
                checkbox['checked'] = 'checked'
            element.append(checkbox)
        elif node_type == 'orderedList':
            element = self.soup.new_tag('ol')
            start = attrs.get('start')
            if start and start != 1:
                element['start'] = str(start)
        elif node_type in BLOCK_NODES:
            tag_name, static_attrs = BLOCK_NODES[node_type]
            element = self.soup.new_tag(tag_name)
            for key, value in static_attrs.items():
                element[key] = value
            if node_type in ('tableHeader', 'tableCell'):
                for span in ('colspan', 'rowspan'):
                    if attrs.get(span, 1) not in (None, 1):
                        element[span] = str(attrs[span])
        else:
            self.unknown_nodes.append(str(node_type))
            element = self.soup.new_tag('div')

        if node_type == 'table':
            body = self.soup.new_tag('tbody')
            element.append(body)
            container = body
        else:
            container = element

        for child in node.get('content', []) or []:
            rendered = self._render_node(child)
            if rendered is not None:
                container.append(rendered)

        return element

    def _render_text(self, node: Dict[str, Any]):
        result = NavigableString(node.get('text', ''))

        # Marks apply innermost first so the outermost mark wraps everything
        for mark in reversed(node.get('marks', []) or []):
            result = self._wrap_mark(result, mark)
        return result

    def _wrap_mark(self, inner, mark: Dict[str, Any]) -> Tag:
        mark_type = mark.get('type')
        attrs = mark.get('attrs') or {}

        if mark_type == 'link':
            wrapper = self.soup.new_tag('a', href=attrs.get('href', ''))
            if attrs.get('title'):
                wrapper['title'] = attrs['title']
        elif mark_type == 'highlight':
            wrapper = self.soup.new_tag('mark')
        elif mark_type == 'comment':
            wrapper = self.soup.new_tag('span')
            wrapper['class'] = ['comment-highlight']
            if attrs.get('commentId'):
                wrapper['data-comment-id'] = str(attrs['commentId'])
        elif mark_type in MARK_TAGS:
            wrapper = self.soup.new_tag(MARK_TAGS[mark_type])
        else:
            wrapper = self.soup.new_tag('span')

        wrapper.append(inner)
        return wrapper

    def _render_image(self, attrs: Dict[str, Any]) -> Optional[Tag]:
        src = attrs.get('src')
        if not src:
            return None
        image = self.soup.new_tag('img', src=src)
        for key in ('alt', 'title', 'width', 'height'):
            if attrs.get(key):
                image[key] = str(attrs[key])
        return image


def render_tree(tree: Dict[str, Any]) -> str:
    """Render a structured tree to HTML using a throwaway renderer."""
    renderer = TreeRenderer(tree)
    try:
        return renderer.render()
    finally:
        renderer.soup.decompose()


def tree_to_markdown(tree: Dict[str, Any]) -> str:
    """Convert a structured tree to Markdown by way of its HTML rendering."""
    return html_to_markdown(render_tree(tree))


__all__ = ['TreeRenderer', 'render_tree', 'tree_to_markdown']
