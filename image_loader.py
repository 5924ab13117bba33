"""Image loader for resolving <img> sources to raw bytes."""

import base64
import binascii
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import unquote, unquote_to_bytes, urlparse

import requests

from config_loader import get_nested

# Upper bound for a single image
MAX_IMAGE_BYTES = 50 * 1024 * 1024


class ImageLoader:
    """
    Resolves image sources for the document builders.

    Sources are tried as:
    1. ``data:`` URIs (base64 or percent-encoded)
    2. Relative paths inside ``base_dir``; absolute paths and ``file://`` URLs
       only when local file access is enabled
    3. ``http(s)://`` URLs downloaded with a timeout

    Results (including failures) are cached per source for the loader's lifetime.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
        timeout: Optional[float] = None,
        base_dir: Optional[Path] = None,
        session: Optional[requests.Session] = None,
        allow_local_files: Optional[bool] = None
    ):
        """
        Initialize the image loader.

        Args:
            config: Configuration dictionary (reads images.download_timeout and images.headers)
            logger: Logger instance
            timeout: Download timeout override in seconds
            base_dir: Directory relative paths are resolved against
            session: Optional requests session (a new one is created when omitted)
            allow_local_files: Read absolute paths, file:// URLs and paths outside
                ``base_dir`` (defaults to images.allow_local_files, off)
        """
        self.config = config or {}
        self.logger = logger or logging.getLogger('article_exporter.image_loader')
        self.timeout = timeout if timeout is not None else get_nested(self.config, 'images.download_timeout', 3.0)
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()
        self.session = session or requests.Session()
        self.session.headers.update(get_nested(self.config, 'images.headers', {}) or {})
        self.allow_local_files = bool(
            allow_local_files if allow_local_files is not None
            else get_nested(self.config, 'images.allow_local_files', False)
        )

        self._cache: Dict[str, Optional[bytes]] = {}
        self.stats = {
            'loaded': 0,
            'failed': 0,
            'cached': 0,
        }

    def load(self, src: Optional[str]) -> Optional[bytes]:
        """
        Load image bytes for ``src``.

        Returns:
            Binary content or None on failure
        """
        if not src:
            return None

        if src in self._cache:
            self.stats['cached'] += 1
            return self._cache[src]

        try:
            if src.startswith('data:'):
                content = self._load_data_uri(src)
            elif src.startswith(('http://', 'https://')):
                content = self._download(src)
            else:
                content = self._load_local(src)

            if not content:
                raise ValueError("empty image")
            if len(content) > MAX_IMAGE_BYTES:
                raise ValueError(f"image too large ({len(content) / 1024 / 1024:.1f}MB)")

            self.stats['loaded'] += 1
        except Exception as e:
            self.logger.warning(f"Failed to load image '{self._describe(src)}': {e}")
            self.stats['failed'] += 1
            content = None

        self._cache[src] = content
        return content

    def close(self) -> None:
        self.session.close()

    def _load_data_uri(self, src: str) -> bytes:
        header, sep, payload = src.partition(',')
        if not sep:
            raise ValueError("malformed data URI")
        if header.endswith(';base64'):
            try:
                return base64.b64decode(payload, validate=False)
            except binascii.Error as e:
                raise ValueError(f"invalid base64 payload: {e}")
        return unquote_to_bytes(payload)

    def _load_local(self, src: str) -> bytes:
        parsed = urlparse(src)
        if parsed.scheme == 'file':
            file_path = Path(unquote(parsed.path))
        elif parsed.scheme and len(parsed.scheme) > 1:
            raise ValueError(f"unsupported scheme '{parsed.scheme}'")
        else:
            file_path = Path(unquote(src))

        if file_path.is_absolute() or parsed.scheme == 'file':
            if not self.allow_local_files:
                raise PermissionError(f"absolute image paths are disabled: {file_path}")
        else:
            file_path = self.base_dir / file_path

        file_path = file_path.resolve()
        if not self.allow_local_files and not file_path.is_relative_to(self.base_dir.resolve()):
            raise PermissionError(f"image path escapes {self.base_dir}: {src}")

        if not file_path.is_file():
            raise FileNotFoundError(f"Image file not found: {file_path}")

        return file_path.read_bytes()

    def _download(self, url: str) -> bytes:
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.content

    @staticmethod
    def _describe(src: str) -> str:
        return src[:40] + '...' if src.startswith('data:') else src


__all__ = ['ImageLoader', 'MAX_IMAGE_BYTES']
