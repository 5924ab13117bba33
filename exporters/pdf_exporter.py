"""Paginated PDF export."""

from typing import Optional

from models import ExportableContent, ExportFormat, ExportOptions, ExportResult
from pagination.pipeline import PdfPipeline
from .base import ExportStrategy


class PdfExporter(ExportStrategy):
    """
    Exports the article as a paginated PDF.

    Each call builds a fresh PdfPipeline, so concurrent exports never share
    a staging surface. Word and character counts come from the sanitized
    staging document, i.e. the text that ends up on the pages.
    """

    format = ExportFormat.PDF

    def __init__(self, *args, image_timeout: Optional[float] = None, settle_delay: Optional[float] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.image_timeout = image_timeout
        self.settle_delay = settle_delay

    async def _export(self, content: ExportableContent, options: ExportOptions, title: str) -> ExportResult:
        html = self.resolver.resolve_html(content, self.format)

        pipeline = PdfPipeline(
            config=self.config,
            logger=self.logger,
            image_timeout=self.image_timeout,
            settle_delay=self.settle_delay,
        )
        result = await pipeline.run(html, title, options)

        self.logger.debug(
            f"Rendered {result.page_count} pages; images: {result.asset_stats}"
        )
        return self.build_result(
            content,
            options,
            title,
            result.pdf_bytes,
            text=result.text,
            page_count=result.page_count,
        )


__all__ = ['PdfExporter']
