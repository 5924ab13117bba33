"""Standalone HTML document export."""

import html as html_lib
from datetime import datetime, timezone

from bs4 import BeautifulSoup

from converters.html_cleaner import HtmlCleaner
from converters.text_extractor import html_to_text
from models import ExportableContent, ExportFormat, ExportOptions, ExportResult, Margins, safe_font_family
from .base import ExportStrategy

GENERATOR = 'article-exporter'

DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>{meta_tags}
    <style>
{styles}
    </style>
</head>
<body>
    <div class="document-container">
        <header class="document-header">
            <h1>{title}</h1>{metadata_panel}
        </header>
        <main class="document-content">
{content}
        </main>
        <footer class="document-footer">
            <p>Exported on {exported_date} at {exported_time}</p>
        </footer>
    </div>
</body>
</html>
"""

STYLESHEET = """
        * {{
            box-sizing: border-box;
        }}

        body {{
            font-family: {font_family};
            font-size: {font_size}pt;
            line-height: 1.6;
            color: #333;
            margin: 0;
            padding: 0;
            background-color: #f9f9f9;
        }}

        .document-container {{
            max-width: 800px;
            margin: 20px auto;
            background: white;
            box-shadow: 0 2px 10px rgba(0, 0, 0, 0.1);
            border-radius: 8px;
            overflow: hidden;
        }}

        .document-header {{
            background: #f8f9fa;
            padding: {padding};
            border-bottom: 1px solid #e9ecef;
        }}

        .document-header h1 {{
            margin: 0 0 10px 0;
            color: #2c3e50;
            font-size: 2em;
            font-weight: 600;
        }}

        .metadata-header {{
            font-size: 0.9em;
            color: #6c757d;
            margin-top: 10px;
        }}

        .metadata-header p {{
            margin: 5px 0;
        }}

        .document-content {{
            padding: {padding};
        }}

        .document-footer {{
            background: #f8f9fa;
            padding: 15px {right}px;
            border-top: 1px solid #e9ecef;
            text-align: center;
            font-size: 0.85em;
            color: #6c757d;
        }}

        h1, h2, h3, h4, h5, h6 {{
            color: #2c3e50;
            margin-top: 1.5em;
            margin-bottom: 0.5em;
            font-weight: 600;
        }}

        h1 {{ font-size: 2em; }}
        h2 {{ font-size: 1.75em; }}
        h3 {{ font-size: 1.5em; }}
        h4 {{ font-size: 1.25em; }}
        h5 {{ font-size: 1.1em; }}
        h6 {{ font-size: 1em; }}

        p {{
            margin: 1em 0;
        }}

        a {{
            color: #007bff;
            text-decoration: none;
        }}

        a:hover {{
            text-decoration: underline;
        }}

        ul, ol {{
            margin: 1em 0;
            padding-left: 2em;
        }}

        li {{
            margin: 0.5em 0;
        }}

        blockquote {{
            border-left: 4px solid #007bff;
            margin: 1.5em 0;
            padding: 1em 1.5em;
            background: #f8f9fa;
            font-style: italic;
        }}

        code {{
            background: #f4f4f4;
            padding: 2px 4px;
            border-radius: 3px;
            font-family: 'Courier New', monospace;
            font-size: 0.9em;
        }}

        pre {{
            background: #f4f4f4;
            padding: 1em;
            border-radius: 5px;
            overflow-x: auto;
            font-family: 'Courier New', monospace;
        }}

        pre code {{
            background: none;
            padding: 0;
        }}

        table {{
            width: 100%;
            border-collapse: collapse;
            margin: 1.5em 0;
        }}

        th, td {{
            border: 1px solid #ddd;
            padding: 8px 12px;
            text-align: left;
        }}

        th {{
            background: #f8f9fa;
            font-weight: 600;
        }}

        img {{
            max-width: 100%;
            height: auto;
            border-radius: 4px;
            margin: 1em 0;
        }}

        hr {{
            border: none;
            border-top: 2px solid #e9ecef;
            margin: 2em 0;
        }}

        .comment-highlight {{
            background-color: #fff3cd;
            border-bottom: 2px solid #ffc107;
        }}

        .task-list {{
            list-style: none;
            padding-left: 1.5em;
        }}

        .task-item {{
            position: relative;
        }}

        .task-item input[type="checkbox"] {{
            position: absolute;
            left: -1.5em;
            top: 0.2em;
        }}

        @media print {{
            body {{
                background: white;
            }}

            .document-container {{
                box-shadow: none;
                border: none;
                margin: 0;
            }}

            .document-header,
            .document-footer {{
                background: white !important;
            }}
        }}"""


class HtmlExporter(ExportStrategy):
    """Exports the article as a self-contained, styled HTML document."""

    format = ExportFormat.HTML

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.cleaner = HtmlCleaner(logger=self.logger)

    async def _export(self, content: ExportableContent, options: ExportOptions, title: str) -> ExportResult:
        body = self._prepare_body(self.resolver.resolve_html(content, self.format), options)
        document = self.create_document(body, title, options)
        return self.build_result(content, options, title, document, text=document)

    def _prepare_body(self, html: str, options: ExportOptions) -> str:
        if options.include_images and options.include_comments:
            return html

        soup = BeautifulSoup(html, 'lxml')
        if not options.include_images:
            for image in soup.find_all('img'):
                image.decompose()
        if not options.include_comments:
            unwrapped = self.cleaner.unwrap_comment_highlights(soup)
            self.logger.debug(f"Unwrapped {unwrapped} comment highlights")

        body = soup.body
        return body.decode_contents() if body is not None else str(soup)

    def create_document(self, body: str, title: str, options: ExportOptions) -> str:
        """Wrap ``body`` in the full document template."""
        now = datetime.now()
        escaped_title = html_lib.escape(title)

        return DOCUMENT_TEMPLATE.format(
            title=escaped_title,
            meta_tags=self._meta_tags(escaped_title) if options.include_metadata else '',
            styles=self.stylesheet(options),
            metadata_panel=self._metadata_panel(body, now) if options.include_metadata else '',
            content=body,
            exported_date=now.strftime('%Y-%m-%d'),
            exported_time=now.strftime('%H:%M:%S'),
        )

    @staticmethod
    def stylesheet(options: ExportOptions) -> str:
        margins = options.margins or Margins()
        return STYLESHEET.format(
            font_family=safe_font_family(options.font_family),
            font_size=_format_number(options.font_size),
            padding=' '.join(f"{_format_number(side)}px" for side in margins.as_list()),
            right=_format_number(margins.right),
        )

    def _meta_tags(self, escaped_title: str) -> str:
        exported = datetime.now(timezone.utc).isoformat()
        return (
            f'\n    <meta name="description" content="Exported article: {escaped_title}">'
            f'\n    <meta name="generator" content="{GENERATOR}">'
            f'\n    <meta name="export-date" content="{exported}">'
            f'\n    <meta name="export-format" content="{self.format.value}">'
        )

    @staticmethod
    def _metadata_panel(body: str, now: datetime) -> str:
        words = len(html_to_text(body).split())
        return (
            '\n            <div class="metadata-header">'
            f'\n                <p><strong>Exported:</strong> {now.strftime("%Y-%m-%d %H:%M:%S")}</p>'
            '\n                <p><strong>Format:</strong> HTML</p>'
            f'\n                <p><strong>Words:</strong> {words}</p>'
            '\n            </div>'
        )


def _format_number(value) -> str:
    return f"{value:g}" if isinstance(value, float) else str(value)


__all__ = ['HtmlExporter']
