"""Staging surface: an isolated working directory holding the document to rasterize."""

import html as html_lib
import logging
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional

from bs4 import BeautifulSoup

from models import ExportOptions, safe_font_family

DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"><title>{title}</title></head>
<body>
<div id="staging-root" style="color: #000000; font-family: {font_family}; font-size: {font_size}pt; line-height: 1.6;">
<div class="document-header" style="border-bottom: 2px solid #333; margin-bottom: 30px; padding-bottom: 20px;">
<h1 class="document-title" style="margin: 0 0 10px 0; color: #000000; font-size: 24pt; font-weight: 700;">{title}</h1>
{metadata}
</div>
<div class="document-content" style="margin-bottom: 30px; color: #000000;">
{body}
</div>
<div class="document-footer" style="border-top: 1px solid #333; padding-top: 15px; text-align: center; font-size: 10pt;">
<p style="margin: 0;">Exported on {exported_date} at {exported_time}</p>
</div>
</div>
</body>
</html>
"""

METADATA_TEMPLATE = """<div class="metadata-header" style="font-size: 10pt; margin-top: 10px;">
<p style="margin: 5px 0;"><strong>Exported:</strong> {exported_date} {exported_time}</p>
<p style="margin: 5px 0;"><strong>Format:</strong> PDF</p>
</div>"""

BASE_CSS = """
a { text-decoration: none; color: #0066cc; }
u { text-decoration: none; }
img { max-width: 100%; }
"""


class StagedDocument:
    """
    A staged document and the temporary directory backing it.

    ``soup`` is the working copy every later stage mutates. Loaded image
    assets are written into ``directory`` and resolved from there when the
    document is rasterized.
    """

    def __init__(self, directory: Path, soup: BeautifulSoup, width: int, padding: int, user_css: str):
        self.directory = directory
        self.soup = soup
        self.width = width
        self.padding = padding
        self.user_css = user_css
        self.released = False

    @property
    def content(self):
        return self.soup.find(id='staging-root') or self.soup

    def release(self) -> None:
        """Remove the staging directory. Safe to call more than once."""
        if self.released:
            return
        shutil.rmtree(self.directory, ignore_errors=True)
        self.released = True


class Stager:
    """Builds the off-screen staging surface for one PDF export."""

    def __init__(self, virtual_width: int = 1200, padding: int = 40, logger: Optional[logging.Logger] = None):
        self.virtual_width = virtual_width
        self.padding = padding
        self.logger = logger or logging.getLogger('article_exporter.pagination.stager')

    def stage(self, body_html: str, title: str, options: ExportOptions) -> StagedDocument:
        """
        Inject title block, optional metadata, body and footer into a fresh staging surface.

        Args:
            body_html: Resolved article HTML
            title: Display title
            options: Fully defaulted export options

        Returns:
            StagedDocument owning a new temporary directory
        """
        now = datetime.now()
        exported_date = now.strftime('%Y-%m-%d')
        exported_time = now.strftime('%H:%M:%S')
        escaped_title = html_lib.escape(title)

        metadata = ''
        if options.include_metadata:
            metadata = METADATA_TEMPLATE.format(exported_date=exported_date, exported_time=exported_time)

        document = DOCUMENT_TEMPLATE.format(
            title=escaped_title,
            font_family=html_lib.escape(safe_font_family(options.font_family), quote=True),
            font_size=options.font_size or 12,
            metadata=metadata,
            body=body_html,
            exported_date=exported_date,
            exported_time=exported_time,
        )

        soup = BeautifulSoup(document, 'lxml')
        if not options.include_images:
            for image in soup.find_all('img'):
                image.decompose()

        directory = Path(tempfile.mkdtemp(prefix='article-export-'))
        user_css = BASE_CSS + "\nbody { margin: 0; padding: 0; }\n"

        self.logger.debug(f"Staged '{title}' at {self.virtual_width}px in {directory}")
        return StagedDocument(directory, soup, self.virtual_width, self.padding, user_css)


__all__ = ['Stager', 'StagedDocument']
