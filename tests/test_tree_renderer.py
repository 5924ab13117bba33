"""Tests for structured editor tree rendering."""

import unittest

from bs4 import BeautifulSoup

from converters import TreeRenderer, render_tree, tree_to_markdown


def text(value, *marks):
    node = {'type': 'text', 'text': value}
    if marks:
        node['marks'] = list(marks)
    return node


SAMPLE_TREE = {
    'type': 'doc',
    'content': [
        {'type': 'heading', 'attrs': {'level': 2}, 'content': [text('Overview')]},
        {'type': 'paragraph', 'content': [
            text('Read '),
            text('the docs', {'type': 'bold'}, {'type': 'link', 'attrs': {'href': 'https://example.com'}}),
            text(' now', {'type': 'comment', 'attrs': {'commentId': 'c1'}}),
        ]},
        {'type': 'codeBlock', 'attrs': {'language': 'python'}, 'content': [text('print(1)')]},
        {'type': 'taskList', 'content': [
            {'type': 'taskItem', 'attrs': {'checked': True}, 'content': [
                {'type': 'paragraph', 'content': [text('ship it')]},
            ]},
        ]},
        {'type': 'orderedList', 'attrs': {'start': 3}, 'content': [
            {'type': 'listItem', 'content': [{'type': 'paragraph', 'content': [text('third')]}]},
        ]},
        {'type': 'table', 'content': [
            {'type': 'tableRow', 'content': [
                {'type': 'tableHeader', 'attrs': {'colspan': 2}, 'content': [
                    {'type': 'paragraph', 'content': [text('Head')]},
                ]},
            ]},
        ]},
        {'type': 'image', 'attrs': {'src': 'a.png', 'alt': 'Diagram'}},
        {'type': 'callout', 'content': [{'type': 'paragraph', 'content': [text('custom')]}]},
    ],
}


class TestTreeRenderer(unittest.TestCase):

    def setUp(self):
        self.soup = BeautifulSoup(render_tree(SAMPLE_TREE), 'html.parser')

    def test_heading_level(self):
        self.assertEqual(self.soup.find('h2').get_text(), 'Overview')

    def test_marks_nest_outermost_first(self):
        strong = self.soup.find('strong')
        self.assertIsNotNone(strong)
        self.assertEqual(strong.find('a')['href'], 'https://example.com')

    def test_comment_mark(self):
        span = self.soup.find('span', class_='comment-highlight')
        self.assertEqual(span['data-comment-id'], 'c1')
        self.assertEqual(span.get_text(), ' now')

    def test_code_block_language(self):
        code = self.soup.find('pre').find('code')
        self.assertEqual(code['class'], ['language-python'])
        self.assertEqual(code.get_text(), 'print(1)')

    def test_task_item(self):
        item = self.soup.find('li', attrs={'data-type': 'taskItem'})
        self.assertEqual(item['data-checked'], 'true')
        self.assertTrue(item.find('input').has_attr('checked'))

    def test_ordered_list_start(self):
        self.assertEqual(self.soup.find('ol')['start'], '3')

    def test_table_cells(self):
        header = self.soup.find('table').find('tbody').find('th')
        self.assertEqual(header['colspan'], '2')

    def test_image(self):
        image = self.soup.find('img')
        self.assertEqual(image['src'], 'a.png')
        self.assertEqual(image['alt'], 'Diagram')

    def test_unknown_nodes_become_containers(self):
        renderer = TreeRenderer(SAMPLE_TREE)
        html = renderer.render()
        self.assertIn('<div><p>custom</p></div>', html)
        self.assertEqual(renderer.unknown_nodes, ['callout'])

    def test_heading_level_is_clamped(self):
        html = render_tree({'type': 'heading', 'attrs': {'level': 9}, 'content': [text('x')]})
        self.assertEqual(html, '<h6>x</h6>')

    def test_non_mapping_tree_is_rejected(self):
        with self.assertRaises(ValueError):
            TreeRenderer(['not', 'a', 'tree']).render()


class TestTreeToMarkdown(unittest.TestCase):

    def test_converts_through_html(self):
        markdown = tree_to_markdown(SAMPLE_TREE)
        self.assertIn('## Overview', markdown)
        self.assertIn('```python', markdown)
        self.assertIn('- [x] ship it', markdown)


if __name__ == '__main__':
    unittest.main()
