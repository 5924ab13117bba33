"""Tests for Markdown <-> HTML conversion and text extraction."""

import re
import unittest
from unittest import mock

from bs4 import BeautifulSoup

from converters import convert_markdown_document, html_to_markdown, html_to_text, markdown_to_html
from converters.markdown_converter import MarkdownConverter
from errors import ConversionError


class TestHtmlToMarkdown(unittest.TestCase):

    def test_heading_and_strong(self):
        markdown = html_to_markdown("<h1>Title</h1><p>Hello <strong>world</strong></p>")
        self.assertIn('# Title', markdown)
        self.assertIn('**world**', markdown)

    def test_empty_input(self):
        self.assertEqual(html_to_markdown(''), '')

    def test_code_block_keeps_language(self):
        markdown = html_to_markdown('<pre><code class="language-python">print("hi")\n</code></pre>')
        self.assertIn('```python\nprint("hi")\n```', markdown)

    def test_inline_code(self):
        self.assertIn('`x = 1`', html_to_markdown('<p>Use <code>x = 1</code> here</p>'))

    def test_link_keeps_title(self):
        markdown = html_to_markdown('<p><a href="https://example.com" title="Example">site</a></p>')
        self.assertIn('[site](https://example.com "Example")', markdown)

    def test_image_keeps_alt(self):
        markdown = html_to_markdown('<p><img src="a.png" alt="Diagram"></p>')
        self.assertIn('![Diagram](a.png)', markdown)

    def test_task_items(self):
        html = (
            '<ul data-type="taskList">'
            '<li data-type="taskItem" data-checked="true"><p>done</p></li>'
            '<li data-type="taskItem" data-checked="false"><p>todo</p></li>'
            '</ul>'
        )
        markdown = html_to_markdown(html)
        self.assertIn('- [x] done', markdown)
        self.assertIn('- [ ] todo', markdown)

    def test_horizontal_rule(self):
        self.assertIn('---', html_to_markdown('<p>a</p><hr><p>b</p>'))

    def test_bullets_use_dashes(self):
        markdown = html_to_markdown('<ul><li>one</li><li>two</li></ul>')
        self.assertIn('- one', markdown)
        self.assertIn('- two', markdown)

    def test_no_blank_line_runs(self):
        markdown = html_to_markdown('<p>a</p><div></div><div></div><p>b</p>')
        self.assertNotIn('\n\n\n', markdown)

    def test_scripts_are_dropped(self):
        self.assertNotIn('alert', html_to_markdown('<p>text</p><script>alert(1)</script>'))

    def test_converter_raises_conversion_error(self):
        converter = MarkdownConverter()
        with mock.patch.object(converter, 'convert_soup', side_effect=RuntimeError('broken')):
            with self.assertRaises(ConversionError):
                converter.convert_document('<p>x</p>')

    def test_full_document_converts_to_markdown(self):
        markdown = MarkdownConverter().convert_document(
            '<html><head><title>t</title></head><body><h2>x</h2><p>one two three</p></body></html>'
        )
        self.assertEqual(markdown, '## x\n\none two three')

    def test_hard_breaks_are_kept(self):
        self.assertEqual(html_to_markdown('<p>a<br>b</p>'), 'a  \nb')

    def test_trailing_spaces_without_break_are_stripped(self):
        self.assertNotIn(' \n', html_to_markdown('<p>a </p><p>b</p>'))

    def test_failed_conversion_returns_source(self):
        with mock.patch.object(MarkdownConverter, 'convert_soup', side_effect=RuntimeError('broken')):
            self.assertEqual(html_to_markdown('<p>x</p>'), '<p>x</p>')


class TestMarkdownToHtml(unittest.TestCase):

    def test_basic_blocks(self):
        html = markdown_to_html('# Title\n\nSome *emphasis* and **bold**.')
        soup = BeautifulSoup(html, 'html.parser')
        self.assertEqual(soup.find('h1').get_text(), 'Title')
        self.assertIsNotNone(soup.find('em'))
        self.assertIsNotNone(soup.find('strong'))

    def test_tables(self):
        html = markdown_to_html('| a | b |\n|---|---|\n| 1 | 2 |')
        self.assertIn('<table>', html)

    def test_task_list_items_get_checkboxes(self):
        soup = BeautifulSoup(markdown_to_html('- [x] done\n- [ ] todo'), 'html.parser')
        boxes = soup.find_all('input', attrs={'type': 'checkbox'})
        self.assertEqual(len(boxes), 2)
        self.assertTrue(boxes[0].has_attr('checked'))
        self.assertFalse(boxes[1].has_attr('checked'))
        self.assertIn('task-list', soup.find('ul')['class'])

    def test_bare_links_are_linkified(self):
        soup = BeautifulSoup(markdown_to_html('visit https://example.com/docs today'), 'html.parser')
        anchor = soup.find('a')
        self.assertIsNotNone(anchor)
        self.assertEqual(anchor['href'], 'https://example.com/docs')

    def test_links_inside_code_are_left_alone(self):
        soup = BeautifulSoup(markdown_to_html('`https://example.com`'), 'html.parser')
        self.assertIsNone(soup.find('a'))

    def test_single_newlines_become_breaks(self):
        self.assertIn('<br', markdown_to_html('line one\nline two'))

    def test_empty_input(self):
        self.assertEqual(markdown_to_html(''), '')


class TestRoundTrip(unittest.TestCase):

    def test_heading_count_survives(self):
        source = '# One\n\ntext\n\n## Two\n\n- a\n- b\n\n### Three\n\nmore'
        markdown = html_to_markdown(markdown_to_html(source))
        headings = [line for line in markdown.split('\n') if re.match(r'^#{1,6} ', line)]
        self.assertEqual(len(headings), 3)


class TestConvertMarkdownDocument(unittest.TestCase):

    def test_front_matter_and_markdown_body(self):
        html, meta = convert_markdown_document('---\ntitle: Hi\n---\n# Hello')
        self.assertEqual(meta['title'], 'Hi')
        self.assertIn('<h1>Hello</h1>', html)

    def test_plain_prose_is_wrapped_and_escaped(self):
        html, meta = convert_markdown_document('Line one\nline two\n\nSecond <para>')
        self.assertIsNone(meta)
        self.assertEqual(html, '<p>Line one<br>line two</p><p>Second &lt;para&gt;</p>')


class TestHtmlToText(unittest.TestCase):

    def test_blocks_become_lines(self):
        text = html_to_text('<h1>T</h1><p>a <b>b</b></p><ul><li>x</li><li>y</li></ul>')
        lines = [line for line in text.split('\n') if line]
        self.assertEqual(lines, ['T', 'a b', 'x', 'y'])

    def test_drops_scripts_and_styles(self):
        text = html_to_text('<style>p{}</style><p>kept</p><script>var x;</script>')
        self.assertEqual(text, 'kept')

    def test_breaks(self):
        self.assertEqual(html_to_text('<p>a<br>b</p>'), 'a\nb')


if __name__ == '__main__':
    unittest.main()
