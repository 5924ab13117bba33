"""Shared contract for format strategies."""

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional, Union

from errors import ExportError
from models import (
    ExportableContent,
    ExportFormat,
    ExportMetadata,
    ExportOptions,
    ExportResult,
    count_words,
    default_options,
    slugify,
)
from .content_resolver import ContentResolver


class ExportStrategy(ABC):
    """
    Base class for one output format.

    Subclasses implement ``_export`` and may raise freely; ``export`` turns
    every exception into a failure result so callers only ever see
    ``ExportResult`` objects.
    """

    format: ExportFormat

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
        resolver: Optional[ContentResolver] = None
    ):
        self.config = config or {}
        self.logger = logger or logging.getLogger(f'article_exporter.exporters.{self.format.value}')
        self.resolver = resolver or ContentResolver(logger=self.logger)

    def supported_formats(self) -> List[ExportFormat]:
        return [self.format]

    async def export(self, content: ExportableContent, options: Optional[ExportOptions] = None) -> ExportResult:
        """
        Export ``content`` to this strategy's format.

        Unset options are filled from the per-format defaults before use.
        """
        resolved = (options or ExportOptions()).merged_with(default_options(self.format))
        title = content.display_title

        self.logger.debug(f"Exporting '{title}' as {self.format.value}")
        try:
            result = await self._export(content, resolved, title)
        except ExportError as e:
            self.logger.error(f"{self.format.value.upper()} export failed: {e.message}", exc_info=True)
            return ExportResult.fail(e.message, e.kind)
        except Exception as e:
            self.logger.error(f"{self.format.value.upper()} export failed: {e}", exc_info=True)
            return ExportResult.fail(str(e) or f"Unknown {self.format.value} export error", ExportError.kind)

        self.logger.info(
            f"Exported '{title}' to {result.filename} "
            f"({result.metadata.word_count} words, {result.metadata.file_size} bytes)"
        )
        return result

    @abstractmethod
    async def _export(self, content: ExportableContent, options: ExportOptions, title: str) -> ExportResult:
        """Produce the artifact; raise on failure."""

    def generate_filename(self, title: str, custom_filename: Optional[str] = None, on: Optional[date] = None) -> str:
        """
        Build the download filename.

        A custom filename is used verbatim, with the extension appended when
        missing. Otherwise ``{slug}-{YYYY-MM-DD}.{ext}``.
        """
        extension = self.format.extension
        if custom_filename:
            if custom_filename.lower().endswith(f'.{extension}'):
                return custom_filename
            return f"{custom_filename}.{extension}"

        stamp = (on or date.today()).isoformat()
        safe_name = slugify(title) or 'article'
        return f"{safe_name}-{stamp}.{extension}"

    def create_metadata(
        self,
        text: str,
        title: str,
        artifact: Union[str, bytes],
        article_id: Optional[str] = None,
        page_count: Optional[int] = None
    ) -> ExportMetadata:
        """Compute metadata from the emitted text and artifact."""
        if isinstance(artifact, str):
            file_size = len(artifact.encode('utf-8'))
        else:
            file_size = len(artifact)

        return ExportMetadata(
            format=self.format,
            title=title,
            word_count=count_words(text),
            character_count=len(text),
            file_size=file_size,
            article_id=article_id,
            page_count=page_count,
        )

    def build_result(
        self,
        content: ExportableContent,
        options: ExportOptions,
        title: str,
        artifact: Union[str, bytes],
        text: Optional[str] = None,
        page_count: Optional[int] = None
    ) -> ExportResult:
        """Package an artifact with its filename and metadata."""
        if text is None:
            text = artifact if isinstance(artifact, str) else ''
        metadata = self.create_metadata(text, title, artifact, content.id, page_count)
        filename = self.generate_filename(title, options.custom_filename)
        return ExportResult.ok(filename, artifact, metadata)


__all__ = ['ExportStrategy']
