"""Paginated PDF rendering.

Package Structure:
- stager: isolated staging surface (temporary directory + working document)
- assets: per-image ready-futures joined with asyncio.gather, then a settle delay
- rasterizer: headless layout with PyMuPDF Story, flattened to one Pillow image
- paginator: pure slicing of the raster into printable-height pages
- composer: fpdf2 document assembly from JPEG page slices
- pipeline: the state machine tying the stages together
"""

from .assets import AssetWaiter
from .composer import PageComposer
from .paginator import PageSlice, page_count, paginate
from .pipeline import PdfPipeline, PipelineResult, PipelineState
from .rasterizer import Rasterizer
from .stager import StagedDocument, Stager

__all__ = [
    'AssetWaiter',
    'PageComposer',
    'PageSlice',
    'PdfPipeline',
    'PipelineResult',
    'PipelineState',
    'Rasterizer',
    'StagedDocument',
    'Stager',
    'page_count',
    'paginate',
]
