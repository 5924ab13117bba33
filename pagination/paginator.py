"""Split a tall raster into page-sized slices."""

import math
from dataclasses import dataclass
from typing import List

from models import PageGeometry

# Absorbs float noise so an exact multiple of the page height does not spill onto an extra page
PAGE_EPSILON = 1e-9


@dataclass(frozen=True)
class PageSlice:
    """One page worth of raster rows, ``[top_px, bottom_px)``."""

    index: int
    top_px: int
    bottom_px: int
    height_mm: float

    @property
    def height_px(self) -> int:
        return self.bottom_px - self.top_px


def page_count(raster_width: int, raster_height: int, geometry: PageGeometry) -> int:
    """Number of pages needed once the raster is scaled to the printable width."""
    scale = geometry.printable_width / raster_width
    content_height = raster_height * scale
    return max(1, math.ceil(content_height / geometry.printable_height - PAGE_EPSILON))


def paginate(raster_width: int, raster_height: int, geometry: PageGeometry) -> List[PageSlice]:
    """
    Slice a raster top to bottom into printable-height pages.

    The raster is scaled uniformly so its width equals the printable width.
    Every page but the last is exactly one printable height (to the nearest
    pixel); the last holds the remainder. Slices are contiguous: each starts
    where the previous one ended, the first at row 0 and the last at
    ``raster_height``.

    Raises:
        ValueError: If the raster or the printable area is empty
    """
    if raster_width <= 0 or raster_height <= 0:
        raise ValueError(f"Raster must be non-empty, got {raster_width}x{raster_height}")
    if geometry.printable_width <= 0 or geometry.printable_height <= 0:
        raise ValueError("Margins leave no printable area on the page")

    scale = geometry.printable_width / raster_width
    rows_per_page = geometry.printable_height / scale
    count = page_count(raster_width, raster_height, geometry)

    boundaries = [min(math.floor(k * rows_per_page), raster_height) for k in range(count)]
    boundaries.append(raster_height)

    return [
        PageSlice(
            index=k,
            top_px=boundaries[k],
            bottom_px=boundaries[k + 1],
            height_mm=(boundaries[k + 1] - boundaries[k]) * scale,
        )
        for k in range(count)
    ]


__all__ = ['PageSlice', 'paginate', 'page_count']
