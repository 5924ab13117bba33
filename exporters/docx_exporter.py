"""Word-processor (DOCX) export built from the resolved HTML tree."""

import asyncio
import io
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment
from docx import Document
from docx.enum.text import WD_COLOR_INDEX
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Emu, Inches, Mm, Pt, RGBColor
from PIL import Image, UnidentifiedImageError

from image_loader import ImageLoader
from models import PAGE_DIMENSIONS_MM, ExportableContent, ExportFormat, ExportOptions, ExportResult, PageSize
from .base import ExportStrategy

HEADING_TAGS = {'h1': 1, 'h2': 2, 'h3': 3, 'h4': 4, 'h5': 5, 'h6': 6}
CONTAINER_TAGS = {'div', 'section', 'article', 'main', 'header', 'footer', 'body', 'html', 'figure', 'tbody', 'thead'}
SKIP_TAGS = {'script', 'style', 'head', 'title', 'meta', 'link', 'input', 'colgroup'}
STRIKE_TAGS = {'s', 'del', 'strike'}

LINK_COLOR = RGBColor(0x00, 0x66, 0xCC)
META_COLOR = RGBColor(0x66, 0x66, 0x66)
CODE_FONT = 'Courier New'

# Formats python-docx can embed directly; everything else is re-encoded to PNG
NATIVE_IMAGE_FORMATS = {'PNG', 'JPEG', 'GIF', 'BMP', 'TIFF'}
SCREEN_DPI = 96

TASK_BOXES = {True: '☒ ', False: '☐ '}


class DocxExporter(ExportStrategy):
    """Exports the article as a DOCX document."""

    format = ExportFormat.DOCX

    async def _export(self, content: ExportableContent, options: ExportOptions, title: str) -> ExportResult:
        html = self.resolver.resolve_html(content, self.format)
        artifact, text = await asyncio.to_thread(self._build, html, title, options)
        return self.build_result(content, options, title, artifact, text=text)

    def _build(self, html: str, title: str, options: ExportOptions) -> Tuple[bytes, str]:
        loader = ImageLoader(config=self.config, logger=self.logger) if options.include_images else None
        try:
            builder = DocxBuilder(options, image_loader=loader, logger=self.logger)
            document = builder.build(html, title)
        finally:
            if loader is not None:
                loader.close()

        buffer = io.BytesIO()
        document.save(buffer)
        return buffer.getvalue(), document_text(document)


class DocxBuilder:
    """
    Walks a BeautifulSoup tree and emits python-docx paragraphs, runs and tables.

    Block elements map to paragraphs with Word's built-in styles (headings,
    List Bullet/List Number, Quote, Table Grid); inline elements map to run
    formatting.
    """

    def __init__(self, options: ExportOptions, image_loader: Optional[ImageLoader] = None,
                 logger: Optional[logging.Logger] = None):
        self.options = options
        self.image_loader = image_loader
        self.logger = logger or logging.getLogger('article_exporter.exporters.docx')
        self.document = Document()
        self.stats = {
            'images_embedded': 0,
            'images_placeholder': 0,
            'comments_highlighted': 0,
        }

    def build(self, html: str, title: str):
        self._configure_page()
        self._configure_fonts()

        self.document.core_properties.title = title
        self.document.core_properties.created = datetime.now(timezone.utc)

        self.document.add_heading(title, level=0)
        if self.options.include_metadata:
            self._add_metadata_line()

        soup = BeautifulSoup(html, 'lxml')
        root = soup.body or soup
        self._blocks(root, self.document)

        self.logger.debug(f"DOCX build stats: {self.stats}")
        return self.document

    def _configure_page(self) -> None:
        page_size = self.options.page_size or PageSize.A4
        width, height = PAGE_DIMENSIONS_MM[page_size]
        section = self.document.sections[0]
        section.page_width = Mm(width)
        section.page_height = Mm(height)

        margins = self.options.margins
        if margins is not None:
            section.top_margin = Pt(margins.top)
            section.right_margin = Pt(margins.right)
            section.bottom_margin = Pt(margins.bottom)
            section.left_margin = Pt(margins.left)

    def _configure_fonts(self) -> None:
        normal = self.document.styles['Normal']
        family = (self.options.font_family or '').split(',')[0].strip().strip('"\'')
        if family and family.lower() not in ('sans-serif', 'serif', 'monospace'):
            normal.font.name = family
        if self.options.font_size:
            normal.font.size = Pt(self.options.font_size)

    def _add_metadata_line(self) -> None:
        paragraph = self.document.add_paragraph()
        run = paragraph.add_run(f"Exported: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}  |  Format: DOCX")
        run.italic = True
        run.font.size = Pt(9)
        run.font.color.rgb = META_COLOR

    def _style(self, name: str) -> Optional[str]:
        return name if name in self.document.styles else None

    @property
    def _printable_width(self) -> int:
        section = self.document.sections[0]
        return section.page_width - section.left_margin - section.right_margin

    # Block level

    def _blocks(self, parent: Tag, container, style: Optional[str] = None) -> None:
        """Emit every child of ``parent`` as blocks into ``container``."""
        pending = None
        for child in parent.children:
            if isinstance(child, Comment):
                continue
            if isinstance(child, NavigableString) or self._is_inline(child):
                if isinstance(child, NavigableString) and not str(child).strip() and pending is None:
                    continue
                if pending is None:
                    pending = container.add_paragraph(style=style)
                self._inline(child, pending, {})
                continue
            pending = None
            self._block(child, container, style)

    def _block(self, element: Tag, container, style: Optional[str] = None) -> None:
        name = element.name

        if name in SKIP_TAGS:
            return

        if name in HEADING_TAGS:
            paragraph = container.add_paragraph(style=f'Heading {HEADING_TAGS[name]}')
            self._inline_children(element, paragraph, {})
        elif name == 'p':
            paragraph = container.add_paragraph(style=style)
            self._inline_children(element, paragraph, {})
        elif name in ('ul', 'ol'):
            self._list(element, container, level=1)
        elif name == 'blockquote':
            self._blocks(element, container, style=self._style('Quote'))
        elif name == 'pre':
            self._code_block(element, container)
        elif name == 'table':
            self._table(element, container)
        elif name == 'hr':
            self._horizontal_rule(container)
        elif name == 'img':
            paragraph = container.add_paragraph(style=style)
            self._image(element, paragraph)
        else:
            self._blocks(element, container, style)

    def _list(self, element: Tag, container, level: int) -> None:
        ordered = element.name == 'ol'
        base = 'List Number' if ordered else 'List Bullet'
        list_style = base if level == 1 else f'{base} {min(level, 3)}'
        if list_style not in self.document.styles:
            list_style = base

        for item in element.find_all('li', recursive=False):
            checked = _task_state(item)
            item_style = self._style('List Paragraph') if checked is not None else list_style
            paragraph = container.add_paragraph(style=item_style)
            if checked is not None:
                paragraph.add_run(TASK_BOXES[checked])

            first_block = True
            for child in item.children:
                if isinstance(child, Tag) and child.name in ('ul', 'ol'):
                    self._list(child, container, level + 1)
                    first_block = False
                elif isinstance(child, Tag) and child.name == 'p':
                    target = paragraph if first_block else container.add_paragraph(style=self._style('List Continue'))
                    self._inline_children(child, target, {})
                    first_block = False
                elif isinstance(child, Tag) and not self._is_inline(child):
                    self._block(child, container)
                    first_block = False
                else:
                    self._inline(child, paragraph, {})

    def _code_block(self, element: Tag, container) -> None:
        paragraph = container.add_paragraph()
        lines = element.get_text().strip('\n').split('\n')
        for index, line in enumerate(lines):
            run = paragraph.add_run(line)
            run.font.name = CODE_FONT
            run.font.size = Pt(9)
            if index < len(lines) - 1:
                run.add_break()

    def _table(self, element: Tag, container) -> None:
        rows = [row for row in element.find_all('tr') if row.find_parent('table') is element]
        if not rows:
            return

        width = max(
            sum(_int_attr(cell, 'colspan') for cell in row.find_all(['td', 'th'], recursive=False))
            for row in rows
        )
        if width == 0:
            return

        table = container.add_table(rows=len(rows), cols=width)
        table.style = 'Table Grid'

        for row_index, row in enumerate(rows):
            col_index = 0
            for cell_element in row.find_all(['td', 'th'], recursive=False):
                span = _int_attr(cell_element, 'colspan')
                cell = table.cell(row_index, col_index)
                if span > 1:
                    cell = cell.merge(table.cell(row_index, min(col_index + span, width) - 1))
                self._cell(cell_element, cell, header=cell_element.name == 'th')
                col_index += span

    def _cell(self, element: Tag, cell, header: bool) -> None:
        self._blocks(element, cell)
        # A fresh cell starts with one empty paragraph; drop it when content followed
        paragraphs = cell.paragraphs
        if len(paragraphs) > 1 and not paragraphs[0].text and not paragraphs[0].runs:
            first = paragraphs[0]._element
            first.getparent().remove(first)
        if header:
            for paragraph in cell.paragraphs:
                for run in paragraph.runs:
                    run.bold = True

    def _horizontal_rule(self, container) -> None:
        paragraph = container.add_paragraph()
        p_pr = paragraph._p.get_or_add_pPr()
        border = OxmlElement('w:pBdr')
        bottom = OxmlElement('w:bottom')
        bottom.set(qn('w:val'), 'single')
        bottom.set(qn('w:sz'), '12')
        bottom.set(qn('w:space'), '1')
        bottom.set(qn('w:color'), '333333')
        border.append(bottom)
        p_pr.append(border)

    # Inline level

    def _inline_children(self, element: Tag, paragraph, fmt: Dict[str, Any]) -> None:
        for child in element.children:
            self._inline(child, paragraph, fmt)

    def _inline(self, node, paragraph, fmt: Dict[str, Any]) -> None:
        if isinstance(node, Comment):
            return

        if isinstance(node, NavigableString):
            text = re.sub(r'\s+', ' ', str(node))
            if not paragraph.runs:
                text = text.lstrip()
            if text:
                self._run(paragraph, text, fmt)
            return

        name = node.name
        if name in SKIP_TAGS:
            return
        if name == 'br':
            paragraph.add_run().add_break()
            return
        if name == 'img':
            self._image(node, paragraph)
            return
        if name in ('ul', 'ol', 'table', 'pre'):
            # Block content nested in an inline context is flattened to text
            self._run(paragraph, ' ' + node.get_text(' ', strip=True), fmt)
            return

        child_fmt = dict(fmt)
        if name in ('strong', 'b'):
            child_fmt['bold'] = True
        elif name in ('em', 'i'):
            child_fmt['italic'] = True
        elif name == 'u':
            child_fmt['underline'] = True
        elif name in STRIKE_TAGS:
            child_fmt['strike'] = True
        elif name == 'code':
            child_fmt['code'] = True
        elif name == 'sub':
            child_fmt['subscript'] = True
        elif name == 'sup':
            child_fmt['superscript'] = True
        elif name == 'a' and node.get('href'):
            child_fmt['link'] = True
        elif name in ('span', 'mark') and _is_comment(node):
            if self.options.include_comments:
                child_fmt['highlight'] = True
                self.stats['comments_highlighted'] += 1
        elif name == 'mark':
            child_fmt['highlight'] = True

        self._inline_children(node, paragraph, child_fmt)

    def _run(self, paragraph, text: str, fmt: Dict[str, Any]):
        run = paragraph.add_run(text)
        if fmt.get('bold'):
            run.bold = True
        if fmt.get('italic'):
            run.italic = True
        if fmt.get('underline') or fmt.get('link'):
            run.underline = True
        if fmt.get('strike'):
            run.font.strike = True
        if fmt.get('code'):
            run.font.name = CODE_FONT
        if fmt.get('subscript'):
            run.font.subscript = True
        if fmt.get('superscript'):
            run.font.superscript = True
        if fmt.get('link'):
            run.font.color.rgb = LINK_COLOR
        if fmt.get('highlight'):
            run.font.highlight_color = WD_COLOR_INDEX.YELLOW
        return run

    def _image(self, element: Tag, paragraph) -> None:
        alt = element.get('alt') or element.get('title') or 'image'
        picture = self._load_picture(element.get('src')) if self.image_loader is not None else None

        if picture is None:
            self._run(paragraph, f"[Image: {alt}]", {'italic': True})
            self.stats['images_placeholder'] += 1
            return

        stream, width = picture
        paragraph.add_run().add_picture(stream, width=width)
        self.stats['images_embedded'] += 1

    def _load_picture(self, src: Optional[str]) -> Optional[Tuple[io.BytesIO, Emu]]:
        data = self.image_loader.load(src)
        if data is None:
            return None

        try:
            with Image.open(io.BytesIO(data)) as image:
                pixel_width = image.width
                if image.format not in NATIVE_IMAGE_FORMATS:
                    converted = io.BytesIO()
                    image.convert('RGBA').save(converted, format='PNG')
                    data = converted.getvalue()
        except (UnidentifiedImageError, OSError) as e:
            self.logger.warning(f"Unsupported image data for '{src[:60]}': {e}")
            return None

        width = min(Inches(pixel_width / SCREEN_DPI), self._printable_width)
        return io.BytesIO(data), Emu(int(width))

    @staticmethod
    def _is_inline(element: Tag) -> bool:
        return element.name not in HEADING_TAGS and element.name not in CONTAINER_TAGS and element.name not in {
            'p', 'ul', 'ol', 'li', 'blockquote', 'pre', 'table', 'tr', 'td', 'th', 'hr', 'img',
        } and element.name not in SKIP_TAGS


def _task_state(item: Tag) -> Optional[bool]:
    if item.get('data-type') == 'taskItem':
        return str(item.get('data-checked', 'false')).lower() == 'true'
    checkbox = item.find('input', attrs={'type': 'checkbox'})
    if checkbox is not None and checkbox.find_parent('li') is item:
        return checkbox.has_attr('checked')
    return None


def _is_comment(element: Tag) -> bool:
    return any('comment' in cls for cls in element.get('class', []))


def _int_attr(element: Tag, name: str) -> int:
    try:
        return max(int(element.get(name, 1)), 1)
    except (TypeError, ValueError):
        return 1


def document_text(document) -> str:
    """Text of every paragraph in the document body, tables included."""
    lines = []
    for paragraph in document.element.body.iter(qn('w:p')):
        lines.append(''.join(node.text or '' for node in paragraph.iter(qn('w:t'))))
    return '\n'.join(lines)


__all__ = ['DocxExporter', 'DocxBuilder', 'document_text']
