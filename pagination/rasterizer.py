"""Lay out the staged document headlessly and flatten it into one raster."""

import io
import logging
import math
from typing import List, Optional

import fitz  # PyMuPDF
from bs4 import BeautifulSoup
from PIL import Image

from .stager import StagedDocument

TRANSIENT_CLASSES = ('comment-highlight', 'ProseMirror-selectednode', 'selection-marker')


class Rasterizer:
    """
    Renders a staged document to a single white-background image.

    Layout runs through ``fitz.Story`` in fixed-height chunks; each chunk's
    filled area is rendered at ``oversampling`` and the strips are stacked in
    order. The measured width may exceed the nominal width when content
    overflows it.
    """

    def __init__(
        self,
        oversampling: float = 2,
        chunk_height: int = 4000,
        max_chunks: int = 500,
        logger: Optional[logging.Logger] = None
    ):
        self.oversampling = oversampling
        self.chunk_height = chunk_height
        self.max_chunks = max_chunks
        self.logger = logger or logging.getLogger('article_exporter.pagination.rasterizer')

    def exclude_transient(self, soup: BeautifulSoup) -> int:
        """Remove elements flagged transient. Returns how many were removed."""
        removed = 0
        for element in soup.find_all(class_=list(TRANSIENT_CLASSES)):
            if element.decomposed:
                continue
            element.decompose()
            removed += 1
        return removed

    def rasterize(self, staged: StagedDocument) -> Image.Image:
        """Render ``staged`` and return an RGB image at ``oversampling`` times the layout size."""
        excluded = self.exclude_transient(staged.soup)
        if excluded:
            self.logger.debug(f"Excluded {excluded} transient elements from the raster")

        html = str(staged.soup)

        padding = staged.padding
        nominal_width = staged.width + 2 * padding
        # Wide enough to keep horizontally overflowing content on the page
        mediabox = fitz.Rect(0, 0, nominal_width * 2, self.chunk_height)
        where = fitz.Rect(padding, 0, padding + staged.width, self.chunk_height)

        archive = fitz.Archive(str(staged.directory))
        story = fitz.Story(html=html, user_css=staged.user_css, archive=archive)

        buffer = io.BytesIO()
        writer = fitz.DocumentWriter(buffer)
        fills: List[fitz.Rect] = []
        more = True
        try:
            while more:
                if len(fills) >= self.max_chunks:
                    raise RuntimeError(f"layout did not finish within {self.max_chunks} chunks")
                device = writer.begin_page(mediabox)
                more, filled = story.place(where)
                story.draw(device)
                writer.end_page()
                fills.append(fitz.Rect(filled))
        finally:
            writer.close()

        measured_width = nominal_width
        for filled in fills:
            if not filled.is_empty:
                measured_width = max(measured_width, math.ceil(filled.x1) + padding)
        measured_width = min(measured_width, mediabox.width)

        strips = self._render_strips(buffer.getvalue(), fills, measured_width)
        raster = self._stack(strips, padding)
        self.logger.debug(
            f"Rasterized {len(fills)} layout chunks to {raster.width}x{raster.height}px "
            f"(layout width {measured_width})"
        )
        return raster

    def _render_strips(self, pdf_bytes: bytes, fills: List[fitz.Rect], width: float) -> List[Image.Image]:
        matrix = fitz.Matrix(self.oversampling, self.oversampling)
        strips = []
        document = fitz.open('pdf', pdf_bytes)
        try:
            for page, filled in zip(document, fills):
                if filled.is_empty or filled.y1 <= 0:
                    continue
                clip = fitz.Rect(0, 0, width, filled.y1)
                pixmap = page.get_pixmap(matrix=matrix, clip=clip, alpha=False)
                strips.append(Image.frombytes('RGB', (pixmap.width, pixmap.height), pixmap.samples))
        finally:
            document.close()

        if not strips:
            raise RuntimeError("staged document rendered no content")
        return strips

    def _stack(self, strips: List[Image.Image], padding: int) -> Image.Image:
        pad = int(round(padding * self.oversampling))
        width = max(strip.width for strip in strips)
        height = sum(strip.height for strip in strips) + 2 * pad

        raster = Image.new('RGB', (width, height), (255, 255, 255))
        offset = pad
        for strip in strips:
            raster.paste(strip, (0, offset))
            offset += strip.height
        return raster


__all__ = ['Rasterizer', 'TRANSIENT_CLASSES']
