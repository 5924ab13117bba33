"""Assemble page slices into a PDF document."""

import io
import logging
from typing import List, Optional

from fpdf import FPDF
from PIL import Image

from models import PageGeometry
from .paginator import PageSlice

CREATOR = 'article-exporter'


class PageComposer:
    """
    Places raster slices on fpdf2 pages.

    Each slice is flattened onto a white background, JPEG-encoded and drawn
    at the top-left margin, scaled to the printable width.
    """

    def __init__(self, jpeg_quality: int = 95, logger: Optional[logging.Logger] = None):
        self.jpeg_quality = jpeg_quality
        self.logger = logger or logging.getLogger('article_exporter.pagination.composer')

    def compose(self, raster: Image.Image, slices: List[PageSlice], geometry: PageGeometry, title: str = '') -> bytes:
        """
        Build the PDF.

        Args:
            raster: Full-document raster
            slices: Output of paginate() for this raster
            geometry: Page size and margins in millimetres
            title: Document title stored in the PDF info dictionary

        Returns:
            PDF bytes
        """
        pdf = FPDF(orientation='P', unit='mm', format=(geometry.width, geometry.height))
        pdf.set_auto_page_break(auto=False)
        pdf.set_creator(CREATOR)
        if title:
            pdf.set_title(title)

        margins = geometry.margins
        for page_slice in slices:
            page_image = self._flatten(raster.crop((0, page_slice.top_px, raster.width, page_slice.bottom_px)))

            buffer = io.BytesIO()
            page_image.save(buffer, format='JPEG', quality=self.jpeg_quality)
            buffer.seek(0)

            pdf.add_page()
            pdf.image(buffer, x=margins.left, y=margins.top, w=geometry.printable_width, h=page_slice.height_mm)

        self.logger.debug(f"Composed {len(slices)} pages on {geometry.page_size.value}")
        return bytes(pdf.output())

    @staticmethod
    def _flatten(image: Image.Image) -> Image.Image:
        background = Image.new('RGB', image.size, (255, 255, 255))
        if image.mode in ('RGBA', 'LA', 'P'):
            rgba = image.convert('RGBA')
            background.paste(rgba, mask=rgba.split()[-1])
        else:
            background.paste(image.convert('RGB'))
        return background


__all__ = ['PageComposer']
