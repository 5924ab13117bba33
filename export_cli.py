#!/usr/bin/env python3
"""
Article Exporter - Command Line Entry Point

Exports HTML, Markdown or structured-tree JSON documents to Markdown, plain
text, HTML, DOCX or paginated PDF files.
"""

import argparse
import asyncio
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from config_loader import ConfigLoader, get_nested
from converters import convert_markdown_document
from logger import ProgressTracker, log_config, log_section, setup_logging
from errors import InvalidContentError
from models import ExportableContent, ExportFormat, ExportResult
from orchestrator import DirectorySaver, ExportReport, ExportService

__version__ = "1.0.0"

HTML_SUFFIXES = {'.html', '.htm'}
TEXT_SUFFIXES = {'.md', '.markdown', '.txt'}
TREE_SUFFIXES = {'.json'}


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="Export articles to Markdown, plain text, HTML, DOCX or PDF",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Export a Markdown article to PDF
  article-export notes.md --format pdf

  # Export to several formats at once
  article-export article.html -f pdf -f docx -f markdown --output-dir out/

  # Letter paper, larger type, no metadata header
  article-export article.md -f pdf --page-size Letter --font-size 14 --no-metadata

  # Export a structured editor document
  article-export draft.json -f html --title "Release Notes"
        """
    )

    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    parser.add_argument(
        'inputs',
        nargs='*',
        help='Input files (.html, .md, .markdown, .txt or structured-tree .json)'
    )

    parser.add_argument('--config', type=str, help='Path to configuration YAML file')

    parser.add_argument(
        '-f', '--format',
        dest='formats',
        action='append',
        help='Export format (repeatable; default: export.default_format from config)'
    )

    parser.add_argument('--title', type=str, help='Document title (default: front matter title or file name)')
    parser.add_argument('--output-dir', type=str, help='Directory for exported files')
    parser.add_argument('--page-size', choices=['A4', 'Letter', 'Legal'], help='Page size for PDF/DOCX')
    parser.add_argument('--font-size', type=float, help='Base font size in points (8-72)')
    parser.add_argument('--font-family', type=str, help='Base font family')
    parser.add_argument('--margin', type=float, help='Margin in points applied to every side (0-100)')
    parser.add_argument('--filename', type=str, help='Custom output filename (extension added if missing)')

    parser.add_argument('--no-metadata', action='store_true', help='Omit metadata headers')
    parser.add_argument('--no-images', action='store_true', help='Drop images from the output')
    parser.add_argument('--include-comments', action='store_true', help='Keep comment highlights')

    parser.add_argument('--report', type=str, help='Write a JSON export report to this path')
    parser.add_argument('--log-file', type=str, help='Write logs to this file as well')
    parser.add_argument('--list-formats', action='store_true', help='List supported formats and exit')

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def build_options(args: argparse.Namespace) -> Dict[str, Any]:
    """Per-call options from CLI flags; everything else comes from configuration defaults."""
    options: Dict[str, Any] = {}
    if args.no_metadata:
        options['include_metadata'] = False
    if args.no_images:
        options['include_images'] = False
    if args.include_comments:
        options['include_comments'] = True
    if args.filename:
        options['custom_filename'] = args.filename
    return options


def load_input(path: Path, title: Optional[str] = None, logger: Optional[logging.Logger] = None) -> ExportableContent:
    """
    Read one input file into an export envelope.

    Raises:
        ValueError: If the file type is not supported
        OSError: If the file cannot be read
    """
    logger = logger or logging.getLogger('article_exporter.cli')
    suffix = path.suffix.lower()
    article_id = path.stem

    if suffix in TREE_SUFFIXES:
        with open(path, 'r', encoding='utf-8') as f:
            tree = json.load(f)
        return ExportableContent(structured_tree=tree, title=title or path.stem, id=article_id)

    text = path.read_text(encoding='utf-8')

    if suffix in HTML_SUFFIXES:
        return ExportableContent(html=text, title=title or path.stem, id=article_id)

    if suffix in TEXT_SUFFIXES:
        html, front_matter = convert_markdown_document(text, logger=logger)
        if not title and front_matter and front_matter.get('title'):
            title = str(front_matter['title'])
        return ExportableContent(html=html, title=title or path.stem, id=article_id)

    raise ValueError(f"Unsupported input file type: {path.suffix or path.name}")


async def run_exports(
    service: ExportService,
    inputs: List[Path],
    formats: List[str],
    options: Dict[str, Any],
    title: Optional[str],
    logger: logging.Logger
) -> List[Dict[str, Any]]:
    """Export every input to every format sequentially."""
    entries = []
    jobs = [(path, export_format) for path in inputs for export_format in formats]

    with ProgressTracker(len(jobs), item_type="exports") as tracker:
        contents: Dict[Path, Any] = {}
        for path, export_format in tqdm(jobs, desc="Exporting", unit="file", disable=len(jobs) < 2):
            if path not in contents:
                try:
                    contents[path] = load_input(path, title, logger)
                except (OSError, ValueError) as e:
                    contents[path] = e

            content = contents[path]
            if isinstance(content, Exception):
                result = ExportResult.fail(f"Could not read {path}: {content}", InvalidContentError.kind)
            else:
                result = await service.export(content, dict(options, format=export_format))

            tracker.increment(success=result.success, export_format=export_format)
            entries.append({'source': str(path), 'format': export_format, 'result': result})

            if result.success:
                logger.info(f"{path} -> {result.filename}")
            else:
                logger.error(f"{path} [{export_format}]: {result.error}")

    return entries


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args()

    try:
        setup_logging(verbosity=args.verbose)
        logger = logging.getLogger('article_exporter.cli')

        log_section("Article Exporter")
        logger.info(f"Version: {__version__}")

        if args.config:
            logger.info(f"Loading configuration from {args.config}")
            config = ConfigLoader.load(args.config)
        else:
            config = ConfigLoader.with_defaults({})

        config = ConfigLoader.merge_with_args(config, args)
        ConfigLoader.validate(config)

        setup_logging(
            verbosity=args.verbose,
            log_file=get_nested(config, 'logging.file'),
            level=None if args.verbose else get_nested(config, 'logging.level'),
        )
        log_config(config)

        output_dir = get_nested(config, 'export.output_directory', './exports')
        service = ExportService(config=config, saver=DirectorySaver(output_dir))

        if args.list_formats:
            for export_format in service.get_supported_formats():
                print(f"{export_format.value:<10} .{export_format.extension}")
            return 0

        if not args.inputs:
            parser.error("at least one input file is required")

        formats = args.formats or [get_nested(config, 'export.default_format', 'pdf')]
        for value in formats:
            ExportFormat.parse(value)

        inputs = [Path(value) for value in args.inputs]
        missing = [str(path) for path in inputs if not path.is_file()]
        if missing:
            raise FileNotFoundError(', '.join(missing))

        started = time.time()
        entries = asyncio.run(
            run_exports(service, inputs, formats, build_options(args), args.title, logger)
        )

        report_generator = ExportReport(logger)
        report = report_generator.generate_report(entries, time.time() - started)
        print("\n" + report_generator.format_console_report(report))

        if args.report:
            report_generator.export_json_report(report, args.report)

        return 1 if report['summary']['failed'] else 0

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nExport interrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
