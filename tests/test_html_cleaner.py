"""Tests for print sanitizing of staged documents."""

import unittest

from bs4 import BeautifulSoup

from converters.html_cleaner import HtmlCleaner


class TestSanitizeForPrint(unittest.TestCase):

    def setUp(self):
        self.cleaner = HtmlCleaner()

    def sanitize(self, html):
        return self.cleaner.sanitize_for_print(BeautifulSoup(html, 'lxml'))

    def test_comment_widgets_are_removed(self):
        soup = self.sanitize('<p>text<span class="comment-marker">3</span></p><div class="comment-thread">x</div>')
        self.assertIsNone(soup.find(class_='comment-marker'))
        self.assertIsNone(soup.find(class_='comment-thread'))
        self.assertEqual(soup.find('p').get_text(), 'text')

    def test_comment_highlights_keep_text(self):
        soup = self.sanitize('<p>a <span class="comment-highlight" data-comment-id="1">noted</span> b</p>')
        self.assertIsNone(soup.find(class_='comment-highlight'))
        self.assertEqual(soup.find('p').get_text(), 'a noted b')
        self.assertIsNone(soup.find(attrs={'data-comment-id': True}))

    def test_selection_classes_are_dropped(self):
        soup = self.sanitize('<p class="ProseMirror-selectednode">x</p><span class="selection-marker"></span>')
        self.assertFalse(soup.find('p').has_attr('class'))
        self.assertIsNone(soup.find(class_='selection-marker'))

    def test_light_colors_become_black(self):
        soup = self.sanitize('<p style="color: #999999">faint</p><p style="color: rgb(128, 128, 128)">grey</p>')
        for paragraph in soup.find_all('p'):
            self.assertIn('color: #000000', paragraph['style'])
            self.assertNotIn('#999999', paragraph['style'])
            self.assertNotIn('rgb(', paragraph['style'])

    def test_background_color_is_kept(self):
        soup = self.sanitize('<div style="background-color: #eeeeee">box</div>')
        self.assertIn('background-color: #eeeeee', soup.find('div')['style'])

    def test_underlines_are_removed(self):
        soup = self.sanitize('<p><span style="text-decoration: underline">u</span> <u>plain</u></p>')
        self.assertIsNone(soup.find('u'))
        for span in soup.find_all('span'):
            self.assertNotIn('underline', span['style'])

    def test_strike_through_survives(self):
        soup = self.sanitize('<p><s>gone</s></p>')
        self.assertIn('line-through', soup.find('s')['style'])

    def test_opacity_is_stripped(self):
        soup = self.sanitize('<p style="opacity: 0.5">dim</p>')
        self.assertNotIn('opacity', soup.find('p')['style'])

    def test_empty_wrappers_are_removed(self):
        soup = self.sanitize('<p>a<span></span></p><div> </div>')
        self.assertIsNone(soup.find('span'))
        self.assertIsNone(soup.find('div'))

    def test_table_borders_and_heading_sizes(self):
        soup = self.sanitize('<h1 style="font-size: 8px">T</h1><table><tr><td>c</td></tr></table>')
        self.assertIn('font-size: 24pt', soup.find('h1')['style'])
        self.assertTrue(soup.find('h1')['style'].endswith('color: #000000; text-decoration: none'))
        self.assertIn('border: 1px solid #333', soup.find('td')['style'])


class TestUnwrapCommentHighlights(unittest.TestCase):

    def test_counts_unwrapped_elements(self):
        soup = BeautifulSoup('<p><mark class="comment">a</mark><span class="comment-highlight">b</span></p>', 'lxml')
        self.assertEqual(HtmlCleaner().unwrap_comment_highlights(soup), 2)
        self.assertEqual(soup.find('p').decode_contents(), 'ab')


if __name__ == '__main__':
    unittest.main()
