"""PDF rendering pipeline: stage, sanitize, await assets, rasterize, paginate, compose, clean up."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from config_loader import get_nested
from converters.html_cleaner import HtmlCleaner
from converters.text_extractor import html_to_text
from errors import RenderingError
from image_loader import ImageLoader
from models import ExportOptions, Margins, PageGeometry, PageSize
from .assets import AssetWaiter
from .composer import PageComposer
from .paginator import paginate
from .rasterizer import Rasterizer
from .stager import StagedDocument, Stager


class PipelineState(Enum):
    """Pipeline states in execution order, plus the two terminal states."""
    STAGE = "STAGE"
    SANITIZE = "SANITIZE"
    AWAIT_ASSETS = "AWAIT_ASSETS"
    RASTERIZE = "RASTERIZE"
    PAGINATE = "PAGINATE"
    COMPOSE = "COMPOSE"
    CLEANUP = "CLEANUP"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


@dataclass
class PipelineResult:
    """Output of one successful pipeline run."""

    pdf_bytes: bytes
    page_count: int
    text: str
    raster_size: tuple
    asset_stats: Dict[str, int] = field(default_factory=dict)


class PdfPipeline:
    """
    Runs one PDF export through every stage.

    A pipeline instance is single-use. ``history`` records every state
    entered; a failure in any stage records FAILURE then CLEANUP and raises
    RenderingError naming the stage.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
        image_loader: Optional[ImageLoader] = None,
        image_timeout: Optional[float] = None,
        settle_delay: Optional[float] = None
    ):
        self.config = config or {}
        self.logger = logger or logging.getLogger('article_exporter.pagination.pipeline')

        self.virtual_width = get_nested(self.config, 'pdf.virtual_width', 1200)
        self.padding = get_nested(self.config, 'pdf.padding', 40)
        self.oversampling = get_nested(self.config, 'pdf.oversampling', 2)
        self.jpeg_quality = get_nested(self.config, 'pdf.jpeg_quality', 95)
        self.image_timeout = image_timeout if image_timeout is not None else get_nested(
            self.config, 'pdf.image_timeout', 3.0)
        self.settle_delay = settle_delay if settle_delay is not None else get_nested(
            self.config, 'pdf.settle_delay', 0.5)

        self._owns_loader = image_loader is None
        self.image_loader = image_loader or ImageLoader(config=self.config, logger=self.logger)

        self.stager = Stager(self.virtual_width, self.padding, logger=self.logger)
        self.cleaner = HtmlCleaner(logger=self.logger)
        self.assets = AssetWaiter(self.image_loader, self.image_timeout, self.settle_delay, logger=self.logger)
        self.rasterizer = Rasterizer(self.oversampling, logger=self.logger)
        self.composer = PageComposer(self.jpeg_quality, logger=self.logger)

        self.state: Optional[PipelineState] = None
        self.history: List[PipelineState] = []

    async def run(self, body_html: str, title: str, options: ExportOptions) -> PipelineResult:
        """
        Render ``body_html`` to PDF bytes.

        Raises:
            RenderingError: If any stage fails; the staging surface is released first
        """
        staged: Optional[StagedDocument] = None
        geometry = PageGeometry.for_options(options.page_size or PageSize.A4, options.margins or Margins())

        try:
            self._enter(PipelineState.STAGE)
            staged = self.stager.stage(body_html, title, options)

            self._enter(PipelineState.SANITIZE)
            self.cleaner.sanitize_for_print(staged.soup)
            text = html_to_text(str(staged.content))

            self._enter(PipelineState.AWAIT_ASSETS)
            asset_stats = await self.assets.wait(staged)

            self._enter(PipelineState.RASTERIZE)
            raster = await asyncio.to_thread(self.rasterizer.rasterize, staged)

            self._enter(PipelineState.PAGINATE)
            slices = paginate(raster.width, raster.height, geometry)

            self._enter(PipelineState.COMPOSE)
            pdf_bytes = self.composer.compose(raster, slices, geometry, title=title)
        except Exception as e:
            failed_stage = self.state.value if self.state else PipelineState.STAGE.value
            self._enter(PipelineState.FAILURE)
            if isinstance(e, RenderingError):
                raise
            raise RenderingError(str(e) or e.__class__.__name__, stage=failed_stage) from e
        finally:
            self._enter(PipelineState.CLEANUP)
            if staged is not None:
                staged.release()
            if self._owns_loader:
                self.image_loader.close()

        self._enter(PipelineState.SUCCESS)
        self.logger.debug(
            f"PDF pipeline finished: {len(slices)} pages from a {raster.width}x{raster.height}px raster"
        )
        return PipelineResult(
            pdf_bytes=pdf_bytes,
            page_count=len(slices),
            text=text,
            raster_size=raster.size,
            asset_stats=asset_stats,
        )

    def _enter(self, state: PipelineState) -> None:
        self.state = state
        self.history.append(state)
        self.logger.debug(f"PDF pipeline -> {state.value}")


__all__ = ['PdfPipeline', 'PipelineResult', 'PipelineState']
