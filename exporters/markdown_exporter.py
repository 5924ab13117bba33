"""Markdown export."""

from datetime import date, datetime, timezone
from typing import Optional

import yaml
from bs4 import BeautifulSoup

from converters.markdown_converter import MarkdownConverter
from converters.markdown_tools import clean_markdown, markdown_filename
from errors import ConversionError
from models import ExportableContent, ExportFormat, ExportOptions, ExportResult, count_words
from .base import ExportStrategy


class MarkdownExporter(ExportStrategy):
    """
    Exports the article as Markdown.

    With metadata enabled the document starts with a front matter block
    (title, exported, format, word_count, character_count) and a level-one
    title heading.
    """

    format = ExportFormat.MARKDOWN

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.converter = MarkdownConverter(logger=self.logger, config=self.config)

    async def _export(self, content: ExportableContent, options: ExportOptions, title: str) -> ExportResult:
        html = self.resolver.resolve_html(content, self.format)
        if not options.include_images:
            html = _strip_images(html)

        try:
            body = self.converter.convert_document(html)
        except ConversionError as e:
            self.logger.warning(f"{e}; emitting source HTML")
            body = html

        body = clean_markdown(body)
        markdown = body
        if options.include_metadata:
            markdown = self._front_matter(title, body) + f"# {title}\n\n" + body

        return self.build_result(content, options, title, markdown.strip() + '\n')

    def generate_filename(self, title: str, custom_filename: Optional[str] = None, on: Optional[date] = None) -> str:
        if custom_filename:
            return super().generate_filename(title, custom_filename, on)
        return markdown_filename(title, on)

    def _front_matter(self, title: str, body: str) -> str:
        front_matter = {
            'title': title,
            'exported': datetime.now(timezone.utc).isoformat(),
            'format': self.format.value,
            'word_count': count_words(body),
            'character_count': len(body),
        }
        dumped = yaml.safe_dump(front_matter, default_flow_style=False, allow_unicode=True, sort_keys=False)
        return f"---\n{dumped}---\n\n"


def _strip_images(html: str) -> str:
    soup = BeautifulSoup(html, 'lxml')
    for image in soup.find_all('img'):
        image.decompose()
    body = soup.body
    return body.decode_contents() if body is not None else str(soup)


__all__ = ['MarkdownExporter']
