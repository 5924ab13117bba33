"""Delivery of finished artifacts."""

import logging
from pathlib import Path
from typing import Optional, Protocol, Union


class FileSaver(Protocol):
    """Anything that can hand an artifact to the user."""

    def save(self, artifact: Union[str, bytes], filename: str, content_type: str) -> None:
        ...


class DirectorySaver:
    """Writes artifacts into a local directory."""

    def __init__(self, directory: Union[str, Path], logger: Optional[logging.Logger] = None):
        self.directory = Path(directory)
        self.logger = logger or logging.getLogger('article_exporter.orchestrator.delivery')
        self.saved = []

    def save(self, artifact: Union[str, bytes], filename: str, content_type: str) -> Path:
        """
        Write ``artifact`` to ``directory/filename``.

        Text artifacts are written as UTF-8. Only the final path component of
        ``filename`` is used.

        Returns:
            Path of the written file
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / Path(filename).name

        data = artifact.encode('utf-8') if isinstance(artifact, str) else bytes(artifact)
        path.write_bytes(data)

        self.saved.append(path)
        self.logger.debug(f"Saved {path} ({len(data)} bytes, {content_type})")
        return path


__all__ = ['FileSaver', 'DirectorySaver']
