"""Plain text export."""

import re
from datetime import datetime

from models import ExportableContent, ExportFormat, ExportOptions, ExportResult, count_words
from .base import ExportStrategy

BANNER_RULE = '=' * 40


class TextExporter(ExportStrategy):
    """Exports the article as UTF-8 plain text with an optional metadata banner."""

    format = ExportFormat.TXT

    async def _export(self, content: ExportableContent, options: ExportOptions, title: str) -> ExportResult:
        text = clean_text(self.resolver.resolve_text(content, self.format))

        if options.include_metadata:
            text = self._metadata_banner(title, text) + text

        return self.build_result(content, options, title, text)

    def _metadata_banner(self, title: str, body: str) -> str:
        now = datetime.now()
        return (
            f"{BANNER_RULE}\n"
            f"DOCUMENT: {title}\n"
            f"EXPORTED: {now.strftime('%Y-%m-%d %H:%M:%S')}\n"
            f"FORMAT: Plain Text\n"
            f"WORD COUNT: {count_words(body)}\n"
            f"CHARACTER COUNT: {len(body)}\n"
            f"{BANNER_RULE}\n\n"
        )


def clean_text(text: str) -> str:
    """Normalize line endings and whitespace, collapse blank runs and trim every line."""
    text = text.replace('\r\n', '\n').replace('\r', '\n')
    text = re.sub(r'[ \t\u00a0]+', ' ', text)
    lines = [line.strip() for line in text.split('\n')]
    text = '\n'.join(lines)
    return re.sub(r'\n{3,}', '\n\n', text).strip()


__all__ = ['TextExporter', 'clean_text']
