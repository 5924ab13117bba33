"""Tests for the command line entry point and batch report."""

import io
import json
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

from export_cli import build_options, create_argument_parser, load_input, main
from models import ExportMetadata, ExportFormat, ExportResult
from orchestrator import ExportReport

ARTICLE = """---
title: Field Notes
---

# Field Notes

Some *observations* from the trip.

- first
- second
"""


class TestCli(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.output_dir = self.root / 'out'
        self.article = self.root / 'notes.md'
        self.article.write_text(ARTICLE, encoding='utf-8')

    def tearDown(self):
        self.temp_dir.cleanup()

    def run_cli(self, *argv):
        stdout, stderr = io.StringIO(), io.StringIO()
        with mock.patch('sys.argv', ['article-export', *argv]):
            with redirect_stdout(stdout), redirect_stderr(stderr):
                code = main()
        return code, stdout.getvalue(), stderr.getvalue()

    def test_exports_every_requested_format(self):
        code, stdout, _ = self.run_cli(
            str(self.article),
            '-f', 'txt', '-f', 'md', '-f', 'html',
            '--filename', 'notes-export',
            '--output-dir', str(self.output_dir),
        )

        self.assertEqual(code, 0)
        self.assertEqual(
            sorted(path.name for path in self.output_dir.iterdir()),
            ['notes-export.html', 'notes-export.md', 'notes-export.txt'],
        )
        self.assertIn('Field Notes', (self.output_dir / 'notes-export.txt').read_text(encoding='utf-8'))
        self.assertIn('EXPORT REPORT', stdout)
        self.assertIn('Succeeded: 3', stdout)

    def test_writes_json_report(self):
        report_path = self.root / 'report.json'
        code, _, _ = self.run_cli(
            str(self.article), '-f', 'markdown',
            '--output-dir', str(self.output_dir),
            '--report', str(report_path),
        )

        self.assertEqual(code, 0)
        report = json.loads(report_path.read_text(encoding='utf-8'))
        self.assertEqual(report['summary']['succeeded'], 1)
        self.assertTrue(report['exports'][0]['filename'].startswith('field-notes-'))

    def test_list_formats(self):
        code, stdout, _ = self.run_cli('--list-formats')

        self.assertEqual(code, 0)
        for export_format in ExportFormat:
            self.assertIn(export_format.value, stdout)

    def test_unknown_format_is_a_usage_error(self):
        code, _, stderr = self.run_cli(str(self.article), '-f', 'rtf', '--output-dir', str(self.output_dir))

        self.assertEqual(code, 2)
        self.assertIn('rtf', stderr)
        self.assertFalse(self.output_dir.exists())

    def test_missing_input(self):
        code, _, stderr = self.run_cli(str(self.root / 'absent.md'), '-f', 'txt')

        self.assertEqual(code, 2)
        self.assertIn('absent.md', stderr)

    def test_unreadable_input_fails_the_run(self):
        spreadsheet = self.root / 'data.csv'
        spreadsheet.write_text('a,b\n1,2\n', encoding='utf-8')

        code, stdout, _ = self.run_cli(
            str(spreadsheet), str(self.article), '-f', 'txt', '--output-dir', str(self.output_dir)
        )

        self.assertEqual(code, 1)
        self.assertIn('Failed:    1', stdout)
        self.assertIn('Unsupported input file type: .csv', stdout)
        self.assertEqual(len(list(self.output_dir.iterdir())), 1)

    def test_invalid_configuration(self):
        config_path = self.root / 'config.yaml'
        config_path.write_text('pdf:\n  jpeg_quality: 500\n', encoding='utf-8')

        code, _, stderr = self.run_cli(str(self.article), '--config', str(config_path))

        self.assertEqual(code, 2)
        self.assertIn('pdf.jpeg_quality', stderr)


class TestCliHelpers(unittest.TestCase):

    def test_build_options(self):
        args = create_argument_parser().parse_args(
            ['in.md', '--no-metadata', '--no-images', '--include-comments', '--filename', 'out']
        )
        self.assertEqual(build_options(args), {
            'include_metadata': False,
            'include_images': False,
            'include_comments': True,
            'custom_filename': 'out',
        })
        self.assertEqual(build_options(create_argument_parser().parse_args(['in.md'])), {})

    def test_load_input_by_suffix(self):
        with tempfile.TemporaryDirectory() as directory:
            root = Path(directory)
            (root / 'page.html').write_text('<p>hi</p>', encoding='utf-8')
            (root / 'tree.json').write_text(
                json.dumps({'type': 'doc', 'content': [{'type': 'paragraph', 'content': [{'type': 'text', 'text': 'hi'}]}]}),
                encoding='utf-8',
            )
            (root / 'notes.md').write_text(ARTICLE, encoding='utf-8')

            html = load_input(root / 'page.html')
            tree = load_input(root / 'tree.json', title='Tree')
            markdown = load_input(root / 'notes.md')

        self.assertEqual(html.html, '<p>hi</p>')
        self.assertEqual(html.title, 'page')
        self.assertEqual(tree.title, 'Tree')
        self.assertEqual(tree.structured_tree['type'], 'doc')
        self.assertEqual(markdown.title, 'Field Notes')
        self.assertIn('<em>observations</em>', markdown.html)


class TestExportReport(unittest.TestCase):

    def test_summary_and_errors(self):
        metadata = ExportMetadata(format=ExportFormat.PDF, title='T', word_count=10, character_count=50,
                                  file_size=2048, page_count=2)
        entries = [
            {'source': 'a.md', 'format': 'pdf', 'result': ExportResult.ok('t.pdf', b'%PDF', metadata)},
            {'source': 'b.md', 'format': 'docx', 'result': ExportResult.fail('broken', 'ExportFailure')},
        ]
        generator = ExportReport()
        report = generator.generate_report(entries, 75)

        self.assertEqual(report['summary']['exports'], 2)
        self.assertEqual(report['summary']['failed'], 1)
        self.assertEqual(report['summary']['total_bytes'], 2048)
        self.assertEqual(report['summary']['duration_formatted'], '1m 15s')
        self.assertEqual(report['errors'], [{'source': 'b.md', 'format': 'docx', 'error': 'broken'}])

        console = generator.format_console_report(report)
        self.assertIn('OK    t.pdf (10 words, 2048 bytes, 2 pages)', console)
        self.assertIn('FAIL  b.md [docx]: broken', console)


if __name__ == '__main__':
    unittest.main()
