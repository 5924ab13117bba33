"""Wait for every staged image to load, fail or time out."""

import asyncio
import io
import logging
from typing import Dict, List, Optional

from PIL import Image, UnidentifiedImageError

from image_loader import ImageLoader
from .stager import StagedDocument

# PIL format name -> file extension understood by the layout engine
IMAGE_EXTENSIONS = {
    'PNG': 'png',
    'JPEG': 'jpg',
    'GIF': 'gif',
    'BMP': 'bmp',
    'TIFF': 'tif',
    'WEBP': 'png',
}


class AssetWaiter:
    """
    Resolves the images of a staged document.

    Each image gets its own ready-future; all of them are joined with
    ``asyncio.gather`` and followed by one settle delay. Images that fail or
    time out are removed from the staged document, loaded ones are written
    into the staging directory and their ``src`` rewritten to the local name.
    """

    def __init__(
        self,
        image_loader: ImageLoader,
        timeout: float = 3.0,
        settle_delay: float = 0.5,
        logger: Optional[logging.Logger] = None
    ):
        self.image_loader = image_loader
        self.timeout = timeout
        self.settle_delay = settle_delay
        self.logger = logger or logging.getLogger('article_exporter.pagination.assets')
        self.stats = {
            'loaded': 0,
            'failed': 0,
            'timed_out': 0,
        }

    async def wait(self, staged: StagedDocument) -> Dict[str, int]:
        """Resolve every ``<img>`` in ``staged``; returns the stats."""
        images = staged.soup.find_all('img')
        if images:
            self.logger.debug(f"Waiting for {len(images)} images (timeout {self.timeout}s each)")

        loop = asyncio.get_running_loop()
        futures: List[asyncio.Future] = []
        loaders: List[asyncio.Task] = []
        for image in images:
            future = loop.create_future()
            loaders.append(loop.create_task(self._load_into(future, image.get('src'))))
            futures.append(future)

        results = await asyncio.gather(*futures)
        await asyncio.gather(*loaders)

        for index, (image, data) in enumerate(zip(images, results)):
            self._settle_image(staged, image, data, index)

        if self.settle_delay > 0:
            await asyncio.sleep(self.settle_delay)

        return dict(self.stats)

    async def _load_into(self, future: asyncio.Future, src: Optional[str]) -> None:
        """Resolve ``future`` with image bytes, or None on error or timeout. Never raises."""
        try:
            data = await asyncio.wait_for(asyncio.to_thread(self.image_loader.load, src), self.timeout)
        except asyncio.TimeoutError:
            self.logger.warning(f"Image timed out after {self.timeout}s: {_describe(src)}")
            self.stats['timed_out'] += 1
            data = None
        except Exception as e:
            self.logger.warning(f"Image failed to load: {_describe(src)}: {e}")
            data = None

        if not future.done():
            future.set_result(data)

    def _settle_image(self, staged: StagedDocument, image, data: Optional[bytes], index: int) -> None:
        name = self._store(staged, data, index) if data else None
        if name is None:
            image.decompose()
            self.stats['failed'] += 1
            return

        image['src'] = name
        self.stats['loaded'] += 1

    def _store(self, staged: StagedDocument, data: bytes, index: int) -> Optional[str]:
        """Write image bytes into the staging directory; returns the local name or None if undecodable."""
        head = data.lstrip()[:256].lower()
        if head.startswith(b'<svg') or (head.startswith(b'<?xml') and b'<svg' in head):
            name = f"asset-{index}.svg"
            (staged.directory / name).write_bytes(data)
            return name

        try:
            with Image.open(io.BytesIO(data)) as image:
                image_format = image.format
                if image_format == 'WEBP':
                    converted = io.BytesIO()
                    image.convert('RGBA').save(converted, format='PNG')
                    data = converted.getvalue()
        except (UnidentifiedImageError, OSError) as e:
            self.logger.warning(f"Dropping undecodable image #{index}: {e}")
            return None

        extension = IMAGE_EXTENSIONS.get(image_format)
        if extension is None:
            self.logger.warning(f"Dropping image #{index} with unsupported format {image_format}")
            return None

        name = f"asset-{index}.{extension}"
        (staged.directory / name).write_bytes(data)
        return name


def _describe(src: Optional[str]) -> str:
    if not src:
        return '<empty src>'
    return src[:40] + '...' if src.startswith('data:') else src


__all__ = ['AssetWaiter']
