"""Data models for the article export pipeline."""

import logging
import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Union

logger = logging.getLogger('article_exporter')

POINT_TO_MM = 0.352778
DEFAULT_TITLE = 'Untitled Article'
DEFAULT_FONT_FAMILY = 'Arial, sans-serif'
# Comma-separated family names, optionally quoted; nothing that can close a CSS block or tag
FONT_FAMILY_PATTERN = re.compile(r"""^[\w\s,'"-]+$""")


class ExportFormat(Enum):
    """Supported export formats."""
    MARKDOWN = "markdown"
    HTML = "html"
    PDF = "pdf"
    DOCX = "docx"
    TXT = "txt"

    @property
    def extension(self) -> str:
        """File extension without the leading dot."""
        return _EXTENSIONS[self]

    @property
    def content_type(self) -> str:
        """Content type handed to the file saver."""
        return _CONTENT_TYPES[self]

    @classmethod
    def parse(cls, value: Union[str, 'ExportFormat']) -> 'ExportFormat':
        """Resolve a format from its value (case-insensitive) or an alias like 'md'."""
        if isinstance(value, ExportFormat):
            return value
        normalized = str(value).strip().lower()
        normalized = _FORMAT_ALIASES.get(normalized, normalized)
        return cls(normalized)


_EXTENSIONS = {
    ExportFormat.MARKDOWN: 'md',
    ExportFormat.HTML: 'html',
    ExportFormat.PDF: 'pdf',
    ExportFormat.DOCX: 'docx',
    ExportFormat.TXT: 'txt',
}

_CONTENT_TYPES = {
    ExportFormat.MARKDOWN: 'text/markdown;charset=utf-8',
    ExportFormat.HTML: 'text/html;charset=utf-8',
    ExportFormat.PDF: 'application/pdf',
    ExportFormat.DOCX: 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    ExportFormat.TXT: 'text/plain;charset=utf-8',
}

_FORMAT_ALIASES = {
    'md': 'markdown',
    'htm': 'html',
    'text': 'txt',
    'word': 'docx',
}


class PageSize(Enum):
    """Page presets for paginated output."""
    A4 = "A4"
    LETTER = "Letter"
    LEGAL = "Legal"

    @classmethod
    def parse(cls, value: Union[str, 'PageSize']) -> 'PageSize':
        """Resolve a page size preset case-insensitively."""
        if isinstance(value, PageSize):
            return value
        for member in cls:
            if member.value.lower() == str(value).strip().lower():
                return member
        raise ValueError(f"Invalid page size: {value}")


# Physical page dimensions in millimetres (width, height)
PAGE_DIMENSIONS_MM = {
    PageSize.A4: (210.0, 297.0),
    PageSize.LETTER: (216.0, 279.0),
    PageSize.LEGAL: (216.0, 356.0),
}


@dataclass
class Margins:
    """Page margins in points."""

    top: float = 20
    right: float = 20
    bottom: float = 20
    left: float = 20

    @classmethod
    def from_value(cls, value: Any) -> 'Margins':
        """Build margins from a Margins, a dict, or a single number for all sides."""
        if isinstance(value, Margins):
            return replace(value)
        if isinstance(value, (int, float)):
            return cls(value, value, value, value)
        if isinstance(value, dict):
            return cls(
                top=value.get('top', 20),
                right=value.get('right', 20),
                bottom=value.get('bottom', 20),
                left=value.get('left', 20),
            )
        raise ValueError(f"Invalid margins: {value!r}")

    def as_list(self) -> List[float]:
        return [self.top, self.right, self.bottom, self.left]

    def to_mm(self) -> 'Margins':
        """Convert every side from points to millimetres."""
        return Margins(*(side * POINT_TO_MM for side in self.as_list()))

    def to_dict(self) -> Dict[str, float]:
        return {'top': self.top, 'right': self.right, 'bottom': self.bottom, 'left': self.left}


@dataclass
class ExportOptions:
    """Options controlling one export call. Unset fields are filled from per-format defaults."""

    format: Optional[ExportFormat] = None
    include_images: Optional[bool] = None
    include_comments: Optional[bool] = None
    include_metadata: Optional[bool] = None
    page_size: Optional[PageSize] = None
    margins: Optional[Margins] = None
    font_size: Optional[float] = None
    font_family: Optional[str] = None
    custom_filename: Optional[str] = None

    # camelCase keys accepted from callers that speak the editor's dialect
    _ALIASES = {
        'includeImages': 'include_images',
        'includeComments': 'include_comments',
        'includeMetadata': 'include_metadata',
        'pageSize': 'page_size',
        'fontSize': 'font_size',
        'fontFamily': 'font_family',
        'customFilename': 'custom_filename',
    }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ExportOptions':
        """
        Build options from a partial dictionary.

        Values are coerced into their enum/dataclass types; raises ValueError
        on values that cannot be coerced.
        """
        if not data:
            return cls()

        values = {}
        for key, value in data.items():
            name = cls._ALIASES.get(key, key)
            if name not in cls.__dataclass_fields__ or value is None:
                continue
            values[name] = value

        if 'format' in values:
            values['format'] = ExportFormat.parse(values['format'])
        if 'page_size' in values:
            values['page_size'] = PageSize.parse(values['page_size'])
        if 'margins' in values:
            values['margins'] = Margins.from_value(values['margins'])
        return cls(**values)

    def merged_with(self, defaults: 'ExportOptions') -> 'ExportOptions':
        """Return a copy where every unset field takes the value from ``defaults``."""
        merged = {}
        for name in self.__dataclass_fields__:
            value = getattr(self, name)
            merged[name] = value if value is not None else getattr(defaults, name)
        if isinstance(merged['margins'], Margins):
            merged['margins'] = replace(merged['margins'])
        return ExportOptions(**merged)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'format': self.format.value if self.format else None,
            'include_images': self.include_images,
            'include_comments': self.include_comments,
            'include_metadata': self.include_metadata,
            'page_size': self.page_size.value if self.page_size else None,
            'margins': self.margins.to_dict() if self.margins else None,
            'font_size': self.font_size,
            'font_family': self.font_family,
            'custom_filename': self.custom_filename,
        }


# (include_images, include_comments) per format; everything else is shared
_FORMAT_FLAGS = {
    ExportFormat.TXT: (False, False),
    ExportFormat.MARKDOWN: (True, False),
    ExportFormat.HTML: (True, True),
    ExportFormat.PDF: (True, False),
    ExportFormat.DOCX: (True, True),
}


def default_options(export_format: ExportFormat) -> ExportOptions:
    """Per-format defaults applied to any option the caller leaves unset."""
    include_images, include_comments = _FORMAT_FLAGS.get(export_format, (True, False))
    return ExportOptions(
        format=export_format,
        include_images=include_images,
        include_comments=include_comments,
        include_metadata=True,
        page_size=PageSize.A4,
        margins=Margins(),
        font_size=12,
        font_family=DEFAULT_FONT_FAMILY,
    )


class LiveDocument(Protocol):
    """Read-only view of the interactive editing surface."""

    def get_html(self) -> str:
        ...

    def get_json(self) -> Dict[str, Any]:
        ...

    def get_text(self) -> str:
        ...


@dataclass
class ExportableContent:
    """Envelope holding at most one authoritative content source."""

    live_document: Optional[LiveDocument] = None
    html: Optional[str] = None
    structured_tree: Optional[Dict[str, Any]] = None
    title: Optional[str] = None
    id: Optional[str] = None

    def has_source(self) -> bool:
        """Check whether any source is present at all."""
        return bool(self.live_document is not None or self.html or self.structured_tree)

    @property
    def display_title(self) -> str:
        return (self.title or '').strip() or DEFAULT_TITLE


@dataclass
class ExportMetadata:
    """Statistics about the emitted artifact."""

    format: ExportFormat
    title: str
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    word_count: int = 0
    character_count: int = 0
    file_size: int = 0
    article_id: Optional[str] = None
    page_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'format': self.format.value,
            'title': self.title,
            'generated_at': self.generated_at.isoformat(),
            'word_count': self.word_count,
            'character_count': self.character_count,
            'file_size': self.file_size,
            'article_id': self.article_id,
            'page_count': self.page_count,
        }


@dataclass
class ExportResult:
    """Outcome of one export call: either an artifact or an error, never both."""

    success: bool
    filename: Optional[str] = None
    artifact: Optional[Union[str, bytes]] = None
    metadata: Optional[ExportMetadata] = None
    content_type: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @classmethod
    def ok(cls, filename: str, artifact: Union[str, bytes], metadata: ExportMetadata) -> 'ExportResult':
        return cls(
            success=True,
            filename=filename,
            artifact=artifact,
            metadata=metadata,
            content_type=metadata.format.content_type,
        )

    @classmethod
    def fail(cls, error: str, kind: Optional[str] = None) -> 'ExportResult':
        return cls(success=False, error=error, error_kind=kind)

    def artifact_bytes(self) -> bytes:
        """Artifact encoded as bytes (text artifacts are UTF-8 encoded)."""
        if self.artifact is None:
            return b''
        if isinstance(self.artifact, str):
            return self.artifact.encode('utf-8')
        return bytes(self.artifact)


@dataclass
class ValidationReport:
    """Result of validating a partial options object."""

    valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class PageGeometry:
    """Physical page and printable area for a page preset, in millimetres."""

    page_size: PageSize
    width: float
    height: float
    margins: Margins

    @classmethod
    def for_options(cls, page_size: PageSize, margins_pt: Margins) -> 'PageGeometry':
        """Build geometry from a preset and margins expressed in points."""
        width, height = PAGE_DIMENSIONS_MM.get(page_size, PAGE_DIMENSIONS_MM[PageSize.A4])
        return cls(page_size=page_size, width=width, height=height, margins=margins_pt.to_mm())

    @property
    def printable_width(self) -> float:
        return self.width - self.margins.left - self.margins.right

    @property
    def printable_height(self) -> float:
        return self.height - self.margins.top - self.margins.bottom


def count_words(text: str) -> int:
    """Count whitespace-separated tokens."""
    return len([word for word in re.split(r'\s+', text.strip()) if word])


def is_safe_font_family(value: Any) -> bool:
    """True if ``value`` is a plain CSS font-family list."""
    return isinstance(value, str) and bool(FONT_FAMILY_PATTERN.match(value))


def safe_font_family(value: Optional[str]) -> str:
    """Return ``value`` when it is a plain font list, otherwise the default family."""
    if value and is_safe_font_family(value):
        return value
    if value:
        logger.warning(f"Ignoring unsafe font family {value!r}")
    return DEFAULT_FONT_FAMILY


def slugify(title: str) -> str:
    """Lowercase a title and collapse non-alphanumeric runs into single hyphens."""
    return re.sub(r'[^a-z0-9]+', '-', (title or '').lower()).strip('-')


__all__ = [
    'POINT_TO_MM',
    'DEFAULT_TITLE',
    'DEFAULT_FONT_FAMILY',
    'PAGE_DIMENSIONS_MM',
    'ExportFormat',
    'PageSize',
    'Margins',
    'ExportOptions',
    'default_options',
    'LiveDocument',
    'ExportableContent',
    'ExportMetadata',
    'ExportResult',
    'ValidationReport',
    'PageGeometry',
    'count_words',
    'is_safe_font_family',
    'safe_font_family',
    'slugify',
]
