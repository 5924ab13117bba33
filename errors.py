"""Exception taxonomy for the export pipeline."""

from typing import List, Optional


class ExportError(Exception):
    """Base class for every failure raised inside the export engine."""

    kind = 'ExportFailure'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidContentError(ExportError):
    """The content envelope carries no source at all."""

    kind = 'InvalidContent'

    def __init__(self, message: str = 'Invalid content provided for export'):
        super().__init__(message)


class UnsupportedFormatError(ExportError):
    """No strategy is registered for the requested format."""

    kind = 'UnsupportedFormat'

    def __init__(self, export_format: str):
        super().__init__(f"Unsupported export format: {export_format}")
        self.export_format = export_format


class ContentResolutionError(ExportError):
    """The normalizer could not produce usable HTML from the envelope."""

    kind = 'ContentResolutionFailure'


class RenderingError(ExportError):
    """A PDF pipeline stage failed."""

    kind = 'RenderingFailure'

    def __init__(self, message: str, stage: Optional[str] = None):
        if stage:
            message = f"PDF {stage.lower()} failed: {message}"
        super().__init__(message)
        self.stage = stage


class ConversionError(ExportError):
    """Markdown/HTML conversion failed internally."""

    kind = 'ConversionFailure'


class OptionsValidationError(ExportError):
    """Export options are out of range."""

    kind = 'ValidationFailure'

    def __init__(self, errors: List[str]):
        super().__init__('; '.join(errors) if errors else 'Invalid export options')
        self.errors = list(errors)


__all__ = [
    'ExportError',
    'InvalidContentError',
    'UnsupportedFormatError',
    'ContentResolutionError',
    'RenderingError',
    'ConversionError',
    'OptionsValidationError',
]
