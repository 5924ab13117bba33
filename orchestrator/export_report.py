"""
Export report generator for batch runs.

Aggregates ExportResult objects into a summary, formats it for the console
and writes it as JSON or CSV.
"""

import csv
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from models import ExportResult


class ExportReport:
    """Builds reports from (source, ExportResult) pairs."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('article_exporter.orchestrator.export_report')

    def generate_report(self, entries: List[Dict[str, Any]], duration: float) -> Dict[str, Any]:
        """
        Generate the report dictionary.

        Args:
            entries: Dicts with ``source``, ``format`` and ``result`` keys
            duration: Total run time in seconds

        Returns:
            Report dictionary with ``summary``, ``exports`` and ``errors``
        """
        exports = [self._build_entry(entry) for entry in entries]
        succeeded = sum(1 for entry in exports if entry['success'])
        total = len(exports)

        return {
            'summary': {
                'generated_at': datetime.now().isoformat(),
                'exports': total,
                'succeeded': succeeded,
                'failed': total - succeeded,
                'success_rate': (succeeded / total) if total else 0.0,
                'total_bytes': sum(entry.get('file_size', 0) for entry in exports),
                'duration_seconds': round(duration, 3),
                'duration_formatted': self._format_duration(duration),
            },
            'exports': exports,
            'errors': [
                {'source': entry['source'], 'format': entry['format'], 'error': entry['error']}
                for entry in exports if not entry['success']
            ],
        }

    def _build_entry(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        result: ExportResult = entry['result']
        built = {
            'source': str(entry.get('source', '')),
            'format': entry.get('format'),
            'success': result.success,
        }
        if result.success:
            built['filename'] = result.filename
            built.update(
                {key: value for key, value in result.metadata.to_dict().items() if key not in ('format', 'title')}
            )
        else:
            built['error'] = result.error
            built['error_kind'] = result.error_kind
        return built

    def _format_duration(self, seconds: float) -> str:
        if seconds < 60:
            return f"{seconds:.1f}s"
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"

    def format_console_report(self, report: Dict[str, Any]) -> str:
        """Format the report for console display."""
        summary = report.get('summary', {})
        sections = [
            "=" * 60,
            "EXPORT REPORT",
            "=" * 60,
            "",
            "Summary:",
            f"  Exports:   {summary.get('exports', 0)}",
            f"  Succeeded: {summary.get('succeeded', 0)}",
            f"  Failed:    {summary.get('failed', 0)}",
            f"  Duration:  {summary.get('duration_formatted', '0s')}",
            "",
        ]

        exports = report.get('exports', [])
        if exports:
            sections.append("Exports:")
            sections.append("-" * 60)
            for entry in exports:
                if entry['success']:
                    pages = f", {entry['page_count']} pages" if entry.get('page_count') else ''
                    sections.append(
                        f"  OK    {entry['filename']} ({entry['word_count']} words, "
                        f"{entry['file_size']} bytes{pages})"
                    )
                else:
                    sections.append(f"  FAIL  {entry['source']} [{entry['format']}]: {entry['error']}")
            sections.append("")

        sections.append("=" * 60)
        return "\n".join(sections)

    def export_json_report(self, report: Dict[str, Any], filepath: str) -> None:
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(report, f, indent=2, ensure_ascii=False, default=str)
        self.logger.info(f"JSON report exported to {filepath}")

    def export_csv_summary(self, report: Dict[str, Any], filepath: str) -> None:
        with open(filepath, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(['source', 'format', 'success', 'filename', 'word_count', 'file_size', 'error'])
            for entry in report.get('exports', []):
                writer.writerow([
                    entry['source'],
                    entry['format'],
                    entry['success'],
                    entry.get('filename', ''),
                    entry.get('word_count', ''),
                    entry.get('file_size', ''),
                    entry.get('error', ''),
                ])
        self.logger.info(f"CSV summary exported to {filepath}")


__all__ = ['ExportReport']
