"""
Export coordinator.

This module owns the format registry and the single entry point used by
callers: validate the request, fill in defaults, dispatch to the format
strategy and hand successful artifacts to an optional file saver. The
coordinator never raises; every failure comes back as an ExportResult.
"""

import logging
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

from config_loader import get_nested
from converters import convert_markdown_document
from errors import (
    ExportError,
    InvalidContentError,
    OptionsValidationError,
    UnsupportedFormatError,
)
from exporters import (
    DocxExporter,
    ExportStrategy,
    HtmlExporter,
    MarkdownExporter,
    PdfExporter,
    TextExporter,
)
from models import (
    ExportableContent,
    ExportFormat,
    ExportOptions,
    ExportResult,
    LiveDocument,
    Margins,
    PageSize,
    ValidationReport,
    default_options,
    is_safe_font_family,
)
from orchestrator.delivery import FileSaver

STRATEGY_CLASSES = (MarkdownExporter, TextExporter, HtmlExporter, PdfExporter, DocxExporter)

MIN_FONT_SIZE = 8
MAX_FONT_SIZE = 72
MIN_MARGIN = 0
MAX_MARGIN = 100

OptionsInput = Optional[Union[ExportOptions, Dict[str, Any]]]


class ExportService:
    """Central coordinator for article exports."""

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
        saver: Optional[FileSaver] = None,
        strategies: Optional[Mapping[ExportFormat, ExportStrategy]] = None
    ):
        """
        Initialize the coordinator and build the format registry.

        Args:
            config: Configuration dictionary (see config_loader.DEFAULT_CONFIG)
            logger: Optional logger instance
            saver: Optional FileSaver called with every successful artifact
            strategies: Optional registry override; defaults to one strategy per format

        Raises:
            ValueError: If ``export.defaults`` in the configuration cannot be parsed
        """
        self.config = config or {}
        self.logger = logger or logging.getLogger('article_exporter.orchestrator.export_service')
        self.saver = saver

        if strategies is None:
            strategies = {
                cls.format: cls(
                    config=self.config,
                    logger=logging.getLogger(f'article_exporter.exporters.{cls.format.value}')
                )
                for cls in STRATEGY_CLASSES
            }
        self._registry = MappingProxyType(dict(strategies))

        self.service_defaults = ExportOptions.from_dict(get_nested(self.config, 'export.defaults', {}))
        self.stats = {
            'exports': 0,
            'succeeded': 0,
            'failed': 0,
        }

        self.logger.debug(f"ExportService initialized with formats: {[f.value for f in self._registry]}")

    @property
    def registry(self) -> Mapping[ExportFormat, ExportStrategy]:
        return self._registry

    def get_supported_formats(self) -> List[ExportFormat]:
        return list(self._registry.keys())

    async def export(self, content: Optional[ExportableContent], options: OptionsInput = None) -> ExportResult:
        """
        Export ``content`` using ``options``.

        Steps:
        1. Reject envelopes without any source
        2. Validate the (partial) options, reporting every error at once
        3. Fill unset options from configuration, then per-format defaults
        4. Dispatch to the registered strategy
        5. Deliver the artifact to the saver on success

        Returns:
            ExportResult; never raises
        """
        self.stats['exports'] += 1
        result = await self._export(content, options)

        if result.success:
            self.stats['succeeded'] += 1
        else:
            self.stats['failed'] += 1
            self.logger.warning(f"Export failed ({result.error_kind}): {result.error}")
        return result

    async def _export(self, content: Optional[ExportableContent], options: OptionsInput) -> ExportResult:
        if content is None or not content.has_source():
            error = InvalidContentError()
            return ExportResult.fail(error.message, error.kind)

        requested = _requested_format(options)
        if requested is not None and not self._is_registered(requested):
            error = UnsupportedFormatError(_format_label(requested))
            return ExportResult.fail(error.message, error.kind)

        report = self.validate_export_options(options)
        if not report.valid:
            error = OptionsValidationError(report.errors)
            return ExportResult.fail(error.message, error.kind)

        partial = options if isinstance(options, ExportOptions) else ExportOptions.from_dict(options)
        export_format = partial.format or ExportFormat.parse(
            get_nested(self.config, 'export.default_format', ExportFormat.PDF.value)
        )

        strategy = self._registry.get(export_format)
        if strategy is None:
            error = UnsupportedFormatError(export_format.value)
            return ExportResult.fail(error.message, error.kind)

        resolved = partial.merged_with(self.service_defaults).merged_with(self.get_default_options(export_format))

        try:
            result = await strategy.export(content, resolved)
        except ExportError as e:
            self.logger.error(f"Export service error: {e.message}", exc_info=True)
            return ExportResult.fail(e.message, e.kind)
        except Exception as e:
            self.logger.error(f"Export service error: {e}", exc_info=True)
            return ExportResult.fail(str(e) or 'Unknown export error', ExportError.kind)

        if result.success and self.saver is not None:
            try:
                self.saver.save(result.artifact, result.filename, result.content_type)
            except Exception as e:
                self.logger.error(f"Failed to save {result.filename}: {e}", exc_info=True)
                return ExportResult.fail(f"Failed to save {result.filename}: {e}", ExportError.kind)

        return result

    async def export_from_editor(
        self,
        document: LiveDocument,
        title: Optional[str] = None,
        article_id: Optional[str] = None,
        options: OptionsInput = None
    ) -> ExportResult:
        """Export whatever the live editing surface currently shows."""
        content = ExportableContent(live_document=document, title=title, id=article_id)
        return await self.export(content, options)

    async def export_from_html(
        self,
        html: str,
        title: Optional[str] = None,
        article_id: Optional[str] = None,
        options: OptionsInput = None
    ) -> ExportResult:
        content = ExportableContent(html=html, title=title, id=article_id)
        return await self.export(content, options)

    async def export_from_markdown(
        self,
        markdown: str,
        title: Optional[str] = None,
        article_id: Optional[str] = None,
        options: OptionsInput = None
    ) -> ExportResult:
        """
        Export a Markdown document.

        Front matter ``title`` is used when no explicit title is given.
        """
        html, front_matter = convert_markdown_document(markdown or '', logger=self.logger)
        if not title and front_matter:
            title = front_matter.get('title')
        content = ExportableContent(html=html, title=str(title) if title else None, id=article_id)
        return await self.export(content, options)

    def get_default_options(self, export_format: Union[ExportFormat, str]) -> ExportOptions:
        return default_options(ExportFormat.parse(export_format))

    def validate_export_options(self, options: OptionsInput) -> ValidationReport:
        """
        Validate a partial options object without applying defaults.

        Args:
            options: ExportOptions or a dict with snake_case or camelCase keys

        Returns:
            ValidationReport listing every problem found
        """
        if isinstance(options, ExportOptions):
            values = {name: getattr(options, name) for name in options.__dataclass_fields__}
        else:
            values = {
                ExportOptions._ALIASES.get(key, key): value
                for key, value in (options or {}).items()
            }

        errors = []

        export_format = values.get('format')
        if export_format is not None and not self._is_registered(export_format):
            errors.append(f"Unsupported export format: {_format_label(export_format)}")

        page_size = values.get('page_size')
        if page_size is not None:
            try:
                PageSize.parse(page_size)
            except ValueError:
                errors.append(f"Invalid page size: {page_size}")

        font_size = values.get('font_size')
        if font_size is not None and not _in_range(font_size, MIN_FONT_SIZE, MAX_FONT_SIZE):
            errors.append(f"Font size must be between {MIN_FONT_SIZE} and {MAX_FONT_SIZE}")

        margins = values.get('margins')
        if margins is not None and not _margins_in_range(margins):
            errors.append(f"Margins must be between {MIN_MARGIN} and {MAX_MARGIN}")

        font_family = values.get('font_family')
        if font_family is not None and not is_safe_font_family(font_family):
            errors.append(f"Invalid font family: {font_family!r}")

        return ValidationReport(valid=not errors, errors=errors)

    def _is_registered(self, export_format: Any) -> bool:
        try:
            return ExportFormat.parse(export_format) in self._registry
        except ValueError:
            return False


def _requested_format(options: OptionsInput) -> Any:
    if isinstance(options, ExportOptions):
        return options.format
    for key, value in (options or {}).items():
        if ExportOptions._ALIASES.get(key, key) == 'format':
            return value
    return None


def _format_label(export_format: Any) -> str:
    return export_format.value if isinstance(export_format, ExportFormat) else str(export_format)


def _in_range(value: Any, low: float, high: float) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return low <= value <= high


def _margins_in_range(margins: Any) -> bool:
    if isinstance(margins, Margins):
        sides = margins.as_list()
    elif isinstance(margins, dict):
        sides = list(margins.values())
    else:
        sides = [margins]
    return all(_in_range(side, MIN_MARGIN, MAX_MARGIN) for side in sides)


_service: Optional[ExportService] = None


def get_export_service(config: Optional[Dict[str, Any]] = None) -> ExportService:
    """
    Return the process-wide coordinator, creating it on first use.

    ``config`` only applies to the first call.
    """
    global _service
    if _service is None:
        _service = ExportService(config=config)
    return _service


__all__ = ['ExportService', 'get_export_service']
