"""Format strategies for article export.

Package Structure:
- base: ExportStrategy contract (filename, metadata, failure capture)
- content_resolver: picks the authoritative HTML from an export envelope
- text_exporter: plain text with an optional metadata banner
- markdown_exporter: Markdown with optional YAML front matter
- html_exporter: standalone styled HTML document
- docx_exporter: Word document built with python-docx
- pdf_exporter: paginated PDF through the pagination pipeline
"""

from .base import ExportStrategy
from .content_resolver import ContentResolver
from .docx_exporter import DocxExporter
from .html_exporter import HtmlExporter
from .markdown_exporter import MarkdownExporter
from .pdf_exporter import PdfExporter
from .text_exporter import TextExporter

__all__ = [
    'ContentResolver',
    'DocxExporter',
    'ExportStrategy',
    'HtmlExporter',
    'MarkdownExporter',
    'PdfExporter',
    'TextExporter',
]
