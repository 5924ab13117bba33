"""Resolve an export envelope into one canonical HTML string."""

import logging
from typing import Optional, Union

from converters.text_extractor import html_to_text
from converters.tree_renderer import TreeRenderer
from errors import ContentResolutionError
from models import ExportableContent, ExportFormat


class ContentResolver:
    """
    Picks the authoritative source from an envelope.

    Resolution order:
    1. ``live_document.get_html()``
    2. ``html`` verbatim
    3. ``structured_tree`` rendered by a throwaway TreeRenderer
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('article_exporter.exporters.content_resolver')

    def resolve_html(self, content: ExportableContent, export_format: Union[ExportFormat, str]) -> str:
        """
        Return non-empty HTML for ``content``.

        Raises:
            ContentResolutionError: If no source yields any HTML
        """
        label = export_format.value if isinstance(export_format, ExportFormat) else str(export_format)

        if content.live_document is not None:
            html = content.live_document.get_html()
            if html and html.strip():
                self.logger.debug(f"Resolved {len(html)} chars of HTML from live document")
                return html
            self.logger.debug("Live document returned no HTML, trying other sources")

        if content.html and content.html.strip():
            return content.html

        if content.structured_tree:
            renderer = TreeRenderer(content.structured_tree, logger=self.logger)
            try:
                html = renderer.render()
            except (ValueError, TypeError, AttributeError) as e:
                raise ContentResolutionError(f"Unsupported content format for {label} export: {e}")
            finally:
                renderer.soup.decompose()
            if html.strip():
                self.logger.debug(f"Rendered structured tree to {len(html)} chars of HTML")
                return html

        raise ContentResolutionError(f"Unsupported content format for {label} export")

    def resolve_text(self, content: ExportableContent, export_format: Union[ExportFormat, str]) -> str:
        """Return plain text, preferring the live document's own text view."""
        if content.live_document is not None:
            text = content.live_document.get_text()
            if text and text.strip():
                return text

        return html_to_text(self.resolve_html(content, export_format))


__all__ = ['ContentResolver', 'html_to_text']
