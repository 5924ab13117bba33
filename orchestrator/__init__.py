"""
Orchestration package for article exports.

This package provides the coordinator that validates requests, fills in
defaults and dispatches to format strategies, plus artifact delivery and
batch reporting.
"""

from .delivery import DirectorySaver, FileSaver
from .export_report import ExportReport
from .export_service import ExportService, get_export_service

__all__ = [
    'DirectorySaver',
    'ExportReport',
    'ExportService',
    'FileSaver',
    'get_export_service',
]
