"""Plain text extraction from HTML."""

import re

from bs4 import BeautifulSoup

BLOCK_TAGS = [
    'p', 'div', 'section', 'article', 'header', 'footer', 'main',
    'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'li', 'blockquote', 'pre', 'tr', 'table', 'ul', 'ol',
]


def html_to_text(html: str) -> str:
    """Extract text from HTML with block boundaries as newlines."""
    soup = BeautifulSoup(html or '', 'lxml')
    for element in soup.find_all(['script', 'style', 'head']):
        element.decompose()

    for br in soup.find_all('br'):
        br.replace_with('\n')
    for rule in soup.find_all('hr'):
        rule.replace_with('\n')
    for element in soup.find_all(BLOCK_TAGS):
        element.insert_before('\n')
        element.append('\n')
    for cell in soup.find_all(['td', 'th']):
        cell.append('\t')

    text = soup.get_text()
    text = re.sub(r'[ \t]*\n[ \t]*', '\n', text)
    return re.sub(r'\n{3,}', '\n\n', text).strip()


__all__ = ['html_to_text']
