"""Tests for the text, Markdown, HTML and DOCX format strategies."""

import base64
import io
import unittest
from datetime import date

import yaml
from bs4 import BeautifulSoup
from docx import Document
from PIL import Image

from exporters import DocxExporter, HtmlExporter, MarkdownExporter, TextExporter
from models import ExportableContent, ExportFormat, ExportOptions, count_words

ARTICLE_HTML = (
    '<h1>Title</h1>'
    '<p>Hello <strong>world</strong> and <span class="comment-highlight" data-comment-id="7">friends</span></p>'
    '<ul><li>first</li><li>second</li></ul>'
    '<table><tr><th>Name</th><th>Value</th></tr><tr><td>a</td><td>1</td></tr></table>'
)


def png_data_uri(size=(8, 4)):
    buffer = io.BytesIO()
    Image.new('RGB', size, (200, 30, 30)).save(buffer, format='PNG')
    return 'data:image/png;base64,' + base64.b64encode(buffer.getvalue()).decode('ascii')


class FakeDocument:
    """Stands in for the live editing surface."""

    def __init__(self, html, text=None):
        self.html = html
        self.text = text

    def get_html(self):
        return self.html

    def get_json(self):
        return {'type': 'doc', 'content': []}

    def get_text(self):
        return self.text or ''


def article(html=ARTICLE_HTML, title='Notes'):
    return ExportableContent(html=html, title=title, id='article-1')


class TestFilenames(unittest.TestCase):

    def setUp(self):
        self.exporter = MarkdownExporter()

    def test_generated_filename(self):
        self.assertEqual(
            self.exporter.generate_filename('My Notes!', on=date(2024, 1, 2)),
            'my-notes-2024-01-02.md'
        )

    def test_custom_filename_gets_extension(self):
        self.assertEqual(self.exporter.generate_filename('x', 'report'), 'report.md')

    def test_custom_filename_used_verbatim(self):
        self.assertEqual(self.exporter.generate_filename('x', 'Q3 Report.md'), 'Q3 Report.md')

    def test_empty_slug_falls_back(self):
        self.assertTrue(self.exporter.generate_filename('???').startswith('article-'))


class TestTextExporter(unittest.IsolatedAsyncioTestCase):

    async def test_banner_and_body(self):
        result = await TextExporter().export(article())
        self.assertTrue(result.success)
        self.assertTrue(result.filename.startswith('notes-'))
        self.assertTrue(result.filename.endswith('.txt'))
        self.assertTrue(result.artifact.startswith('=' * 40 + '\nDOCUMENT: Notes\n'))
        self.assertIn('FORMAT: Plain Text', result.artifact)
        self.assertIn('Hello world and friends', result.artifact)
        self.assertNotIn('<', result.artifact)

    async def test_counts_match_emitted_text(self):
        result = await TextExporter().export(article())
        self.assertEqual(result.metadata.word_count, count_words(result.artifact))
        self.assertEqual(result.metadata.character_count, len(result.artifact))
        self.assertEqual(result.metadata.file_size, len(result.artifact.encode('utf-8')))
        self.assertEqual(result.metadata.article_id, 'article-1')

    async def test_without_metadata(self):
        result = await TextExporter().export(article('<p>Just   this</p>'), ExportOptions(include_metadata=False))
        self.assertEqual(result.artifact, 'Just this')

    async def test_prefers_live_document_text(self):
        content = ExportableContent(live_document=FakeDocument('<p>html</p>', 'editor text'), title='T')
        result = await TextExporter().export(content, ExportOptions(include_metadata=False))
        self.assertEqual(result.artifact, 'editor text')

    async def test_content_type(self):
        result = await TextExporter().export(article())
        self.assertEqual(result.content_type, 'text/plain;charset=utf-8')

    async def test_unresolvable_content_fails(self):
        result = await TextExporter().export(ExportableContent(html='   ', title='T'))
        self.assertFalse(result.success)
        self.assertIsNone(result.artifact)
        self.assertEqual(result.error, 'Unsupported content format for txt export')
        self.assertEqual(result.error_kind, 'ContentResolutionFailure')


class TestMarkdownExporter(unittest.IsolatedAsyncioTestCase):

    async def test_front_matter_and_title(self):
        result = await MarkdownExporter().export(article())
        self.assertTrue(result.success)
        self.assertTrue(result.filename.endswith('.md'))

        _, front_matter, body = result.artifact.split('---\n', 2)
        meta = yaml.safe_load(front_matter)
        self.assertEqual(meta['title'], 'Notes')
        self.assertEqual(meta['format'], 'markdown')
        self.assertIn('# Notes', body)
        self.assertIn('**world**', body)
        self.assertIn('- first', body)

    async def test_body_is_markdown_not_markup(self):
        result = await MarkdownExporter().export(
            ExportableContent(html='<h2>x</h2><p>one two three</p>', title='Plain'),
            ExportOptions(include_metadata=False)
        )
        self.assertEqual(result.artifact, '## x\n\none two three\n')

    async def test_filename_from_title(self):
        exporter = MarkdownExporter()
        self.assertEqual(exporter.generate_filename('My Notes!', on=date(2024, 3, 1)), 'my-notes-2024-03-01.md')
        self.assertEqual(exporter.generate_filename('', on=date(2024, 3, 1)), 'article-2024-03-01.md')
        self.assertEqual(exporter.generate_filename('x', 'custom'), 'custom.md')

    async def test_counts_cover_the_whole_artifact(self):
        result = await MarkdownExporter().export(article())
        self.assertEqual(result.metadata.word_count, count_words(result.artifact))
        self.assertEqual(result.metadata.character_count, len(result.artifact))

    async def test_without_metadata(self):
        result = await MarkdownExporter().export(article(), ExportOptions(include_metadata=False))
        self.assertTrue(result.artifact.startswith('# Title'))

    async def test_images_follow_option(self):
        html = f'<p>see</p><p><img src="{png_data_uri()}" alt="chart"></p>'
        with_images = await MarkdownExporter().export(article(html))
        without_images = await MarkdownExporter().export(article(html), ExportOptions(include_images=False))
        self.assertIn('![chart](data:image/png;base64,', with_images.artifact)
        self.assertNotIn('![', without_images.artifact)

    async def test_structured_tree_source(self):
        tree = {'type': 'doc', 'content': [
            {'type': 'heading', 'attrs': {'level': 2}, 'content': [{'type': 'text', 'text': 'From tree'}]},
        ]}
        result = await MarkdownExporter().export(ExportableContent(structured_tree=tree, title='T'))
        self.assertTrue(result.success)
        self.assertIn('## From tree', result.artifact)


class TestHtmlExporter(unittest.IsolatedAsyncioTestCase):

    async def test_standalone_document(self):
        result = await HtmlExporter().export(article())
        self.assertTrue(result.success)
        self.assertTrue(result.artifact.startswith('<!DOCTYPE html>'))
        self.assertIn('<title>Notes</title>', result.artifact)
        self.assertIn('<meta name="generator" content="article-exporter">', result.artifact)
        self.assertIn('<meta name="export-format" content="html">', result.artifact)
        self.assertEqual(result.content_type, 'text/html;charset=utf-8')

    async def test_comments_kept_by_default(self):
        result = await HtmlExporter().export(article())
        self.assertIn('class="comment-highlight"', result.artifact)

    async def test_comments_unwrapped_when_disabled(self):
        result = await HtmlExporter().export(article(), ExportOptions(include_comments=False))
        soup = BeautifulSoup(result.artifact, 'lxml')
        self.assertIsNone(soup.find('span', class_='comment-highlight'))
        self.assertIn('friends', soup.get_text())

    async def test_options_flow_into_stylesheet(self):
        result = await HtmlExporter().export(
            article(),
            ExportOptions(font_size=14, font_family='Georgia, serif', include_metadata=False)
        )
        self.assertIn('font-size: 14pt;', result.artifact)
        self.assertIn('font-family: Georgia, serif;', result.artifact)
        self.assertNotIn('metadata-header"', result.artifact)

    async def test_title_is_escaped(self):
        result = await HtmlExporter().export(article(title='<b>Bold</b> & co'))
        self.assertIn('<title>&lt;b&gt;Bold&lt;/b&gt; &amp; co</title>', result.artifact)

    async def test_counts_match_document(self):
        result = await HtmlExporter().export(article())
        self.assertEqual(result.metadata.character_count, len(result.artifact))
        self.assertEqual(result.metadata.word_count, count_words(result.artifact))

    async def test_font_family_cannot_close_the_stylesheet(self):
        hostile = 'x}</style><script>alert(1)</script><style>{'
        result = await HtmlExporter().export(article(), ExportOptions(font_family=hostile))
        self.assertTrue(result.success)
        self.assertNotIn('<script>', result.artifact)
        self.assertIn('font-family: Arial, sans-serif;', result.artifact)

    async def test_quoted_font_names_are_kept(self):
        result = await HtmlExporter().export(article(), ExportOptions(font_family='"Fira Sans", Georgia, serif'))
        self.assertIn('font-family: "Fira Sans", Georgia, serif;', result.artifact)


class TestDocxExporter(unittest.IsolatedAsyncioTestCase):

    async def export(self, html=ARTICLE_HTML, **options):
        result = await DocxExporter().export(article(html), ExportOptions(**options))
        self.assertTrue(result.success, result.error)
        return result, Document(io.BytesIO(result.artifact))

    async def test_structure(self):
        result, document = await self.export()
        self.assertTrue(result.filename.endswith('.docx'))
        self.assertEqual(result.content_type, ExportFormat.DOCX.content_type)

        paragraphs = document.paragraphs
        self.assertEqual(paragraphs[0].text, 'Notes')
        styles = {p.text: p.style.name for p in paragraphs}
        self.assertEqual(styles['Title'], 'Heading 1')
        self.assertEqual(styles['first'], 'List Bullet')
        self.assertIn('Hello world and friends', styles)

        self.assertEqual(len(document.tables), 1)
        self.assertEqual(document.tables[0].cell(0, 0).text, 'Name')
        self.assertEqual(document.tables[0].cell(1, 1).text, '1')
        self.assertEqual(document.core_properties.title, 'Notes')

    async def test_inline_formatting(self):
        _, document = await self.export()
        runs = [p for p in document.paragraphs if p.text.startswith('Hello')][0].runs
        bold = [run.text for run in runs if run.bold]
        self.assertEqual(bold, ['world'])
        highlighted = [run.text for run in runs if run.font.highlight_color is not None]
        self.assertEqual(highlighted, ['friends'])

    async def test_comments_not_highlighted_when_disabled(self):
        _, document = await self.export(include_comments=False)
        runs = [p for p in document.paragraphs if p.text.startswith('Hello')][0].runs
        self.assertFalse(any(run.font.highlight_color is not None for run in runs))

    async def test_images_are_embedded(self):
        _, document = await self.export(f'<p>chart:</p><p><img src="{png_data_uri((96, 48))}" alt="chart"></p>')
        self.assertEqual(len(document.inline_shapes), 1)

    async def test_unloadable_image_becomes_placeholder(self):
        _, document = await self.export('<p><img src="missing/nowhere.png" alt="lost"></p>')
        self.assertEqual(len(document.inline_shapes), 0)
        self.assertIn('[Image: lost]', [p.text for p in document.paragraphs])

    async def test_task_items(self):
        html = '<ul><li data-type="taskItem" data-checked="true"><p>done</p></li></ul>'
        _, document = await self.export(html)
        self.assertIn('☒ done', [p.text for p in document.paragraphs])

    async def test_counts_come_from_document_text(self):
        result, _ = await self.export(include_metadata=False)
        self.assertEqual(result.metadata.word_count, 12)


if __name__ == '__main__':
    unittest.main()
