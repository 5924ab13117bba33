"""Logging setup for the exporter plus a small batch progress tracker."""

import copy
import logging
import logging.handlers
import time
from collections import Counter
from typing import Any, Dict, Optional

import colorlog

LOGGER_NAME = 'article_exporter'

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LEVEL_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}

SENSITIVE_KEYS = ('password', 'secret', 'api_key', 'token', 'authorization', 'cookie')


def resolve_level(verbosity: int = 0, level: Optional[str] = None) -> int:
    """
    Map a ``-v`` count or an explicit level name to a logging level.

    Raises:
        ValueError: If ``level`` is not a standard level name
    """
    if level:
        name = level.upper()
        if name not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f"Invalid log level '{level}'")
        return getattr(logging, name)
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def setup_logging(
    verbosity: int = 0,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    level: Optional[str] = None
) -> logging.Logger:
    """
    Configure the ``article_exporter`` logger.

    Console output is colored with colorlog; ``log_file`` adds a rotating
    plain-text file handler (10 MB x 5). Calling this again replaces the
    handlers, so the CLI can reconfigure once the config file is read.

    Args:
        verbosity: 0=WARNING, 1=INFO, 2+=DEBUG
        log_file: Optional path to a rotating log file
        log_format: Optional custom log format string
        date_format: Optional custom date format string
        level: Optional explicit level name; wins over verbosity

    Returns:
        The configured logger
    """
    log_level = resolve_level(verbosity, level)
    log_format = log_format or DEFAULT_FORMAT
    date_format = date_format or DEFAULT_DATE_FORMAT

    # Third-party loggers (PIL, fontTools, urllib3) stay at WARNING
    logging.basicConfig(level=logging.WARNING, format=log_format, datefmt=date_format)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    console = logging.StreamHandler()
    console.setLevel(log_level)
    console.setFormatter(colorlog.ColoredFormatter(
        fmt='%(log_color)s' + log_format,
        datefmt=date_format,
        log_colors=LEVEL_COLORS,
    ))
    logger.addHandler(console)

    if log_file:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding='utf-8'
            )
        except OSError as e:
            logger.warning(f"Could not open log file {log_file}: {e}")
        else:
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(fmt=log_format, datefmt=date_format))
            logger.addHandler(file_handler)
            logger.info(f"Logging to file: {log_file}")

    return logger


class ProgressTracker:
    """Counts finished exports in a batch and logs a summary on exit."""

    def __init__(self, total: int, item_type: str = "exports"):
        self.total = total
        self.item_type = item_type
        self.succeeded = 0
        self.failures_by_format: Counter = Counter()
        self.started_at: Optional[float] = None
        self.logger = logging.getLogger(f'{LOGGER_NAME}.progress')

    @property
    def failed(self) -> int:
        return sum(self.failures_by_format.values())

    @property
    def processed(self) -> int:
        return self.succeeded + self.failed

    def __enter__(self) -> 'ProgressTracker':
        self.started_at = time.monotonic()
        self.logger.info(f"Starting {self.total} {self.item_type}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.started_at is None:
            return

        stats = self.get_stats()
        if self.failed and not self.succeeded:
            log = self.logger.error
        elif self.failed:
            log = self.logger.warning
        else:
            log = self.logger.info

        log(
            f"{stats['processed']}/{self.total} {self.item_type} done: "
            f"{self.succeeded} ok, {self.failed} failed in {stats['elapsed']:.1f}s"
        )
        if self.failed:
            log(f"Failures by format: {dict(self.failures_by_format)}")

    def increment(self, success: bool = True, export_format: Optional[str] = None) -> None:
        """Record one finished export."""
        if success:
            self.succeeded += 1
            return

        self.failures_by_format[export_format or 'unknown'] += 1
        self.logger.warning(f"Export {self.processed}/{self.total} failed ({self.total - self.processed} remaining)")

    def get_stats(self) -> Dict[str, Any]:
        elapsed = 0.0 if self.started_at is None else time.monotonic() - self.started_at
        return {
            'total': self.total,
            'processed': self.processed,
            'succeeded': self.succeeded,
            'failed': self.failed,
            'failures_by_format': dict(self.failures_by_format),
            'elapsed': elapsed,
        }


def log_section(title: str) -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.info("=" * 60)
    logger.info(f"  {title.upper()}")
    logger.info("=" * 60)


def log_config(config: Dict[str, Any]) -> None:
    """Log the effective export configuration with secrets masked."""
    logger = logging.getLogger(LOGGER_NAME)
    masked = mask_secrets(config)

    log_section("Configuration")

    export_settings = masked.get('export', {})
    defaults = export_settings.get('defaults', {})
    logger.info(f"Output directory: {export_settings.get('output_directory', './exports')}")
    logger.info(f"Default format: {export_settings.get('default_format', 'pdf')}")
    if defaults:
        logger.info(f"Option defaults: {defaults}")

    pdf = masked.get('pdf', {})
    logger.info(
        f"PDF: {pdf.get('virtual_width', 1200)}px wide at {pdf.get('oversampling', 2)}x, "
        f"image timeout {pdf.get('image_timeout', 3.0)}s, settle {pdf.get('settle_delay', 0.5)}s"
    )

    headers = masked.get('images', {}).get('headers')
    if headers:
        logger.info(f"Image request headers: {headers}")


def mask_secrets(config: Any) -> Any:
    """Deep copy of ``config`` with values under sensitive-looking keys redacted."""
    if isinstance(config, dict):
        masked = {}
        for key, value in config.items():
            if isinstance(value, str) and any(word in str(key).lower() for word in SENSITIVE_KEYS):
                masked[key] = "***REDACTED***"
            else:
                masked[key] = mask_secrets(value)
        return masked
    if isinstance(config, list):
        return [mask_secrets(item) for item in config]
    return copy.deepcopy(config)


__all__ = [
    'LOGGER_NAME',
    'ProgressTracker',
    'log_config',
    'log_section',
    'mask_secrets',
    'resolve_level',
    'setup_logging',
]
