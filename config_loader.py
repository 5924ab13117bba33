"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict

import yaml

from models import ExportFormat, PageSize, is_safe_font_family

DEFAULT_CONFIG: Dict[str, Any] = {
    'export': {
        'default_format': 'pdf',
        'output_directory': './exports',
        'defaults': {},
    },
    'pdf': {
        'virtual_width': 1200,
        'padding': 40,
        'oversampling': 2,
        'image_timeout': 3.0,
        'settle_delay': 0.5,
        'jpeg_quality': 95,
    },
    'images': {
        'download_timeout': 3.0,
        'headers': {},
        'allow_local_files': False,
    },
    'logging': {
        'level': None,
        'file': None,
    },
}


class ConfigLoader:
    """Handles loading and validation of exporter configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a YAML file with environment variable substitution.

        The result is layered over DEFAULT_CONFIG so every known key is present.

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
            ValueError: If the file does not contain a mapping
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        config_data = cls._substitute_env_vars_recursive(config_data)
        return cls.with_defaults(config_data)

    @classmethod
    def with_defaults(cls, config: Dict[str, Any]) -> Dict[str, Any]:
        """Deep-merge ``config`` over DEFAULT_CONFIG."""
        return _deep_merge(DEFAULT_CONFIG, config or {})

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: If validation fails
        """
        default_format = get_nested(config, 'export.default_format', 'pdf')
        try:
            ExportFormat.parse(default_format)
        except ValueError:
            raise ValueError(
                f"export.default_format must be one of: {[f.value for f in ExportFormat]}"
            )

        page_size = get_nested(config, 'export.defaults.page_size')
        if page_size is not None:
            try:
                PageSize.parse(page_size)
            except ValueError:
                raise ValueError(
                    f"export.defaults.page_size must be one of: {[p.value for p in PageSize]}"
                )

        font_size = get_nested(config, 'export.defaults.font_size')
        if font_size is not None and (not isinstance(font_size, (int, float)) or not 8 <= font_size <= 72):
            raise ValueError("export.defaults.font_size must be between 8 and 72")

        font_family = get_nested(config, 'export.defaults.font_family')
        if font_family is not None and not is_safe_font_family(font_family):
            raise ValueError("export.defaults.font_family must be a plain comma-separated font list")

        margins = get_nested(config, 'export.defaults.margins')
        if margins is not None:
            values = margins.values() if isinstance(margins, dict) else [margins]
            if any(not isinstance(v, (int, float)) or v < 0 or v > 100 for v in values):
                raise ValueError("export.defaults.margins must be between 0 and 100")

        for key in ('virtual_width', 'padding', 'oversampling'):
            value = get_nested(config, f'pdf.{key}')
            if not isinstance(value, (int, float)) or value <= 0:
                raise ValueError(f"pdf.{key} must be a positive number")

        for key in ('pdf.image_timeout', 'pdf.settle_delay', 'images.download_timeout'):
            value = get_nested(config, key)
            if not isinstance(value, (int, float)) or value < 0:
                raise ValueError(f"{key} must be a non-negative number")

        quality = get_nested(config, 'pdf.jpeg_quality', 95)
        if not isinstance(quality, int) or not 1 <= quality <= 100:
            raise ValueError("pdf.jpeg_quality must be an integer between 1 and 100")

        if not isinstance(get_nested(config, 'images.allow_local_files', False), bool):
            raise ValueError("images.allow_local_files must be true or false")

        headers = get_nested(config, 'images.headers', {})
        if not isinstance(headers, dict):
            raise ValueError("images.headers must be a mapping")
        cls._check_unsubstituted(headers, 'images.headers')

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration with CLI arguments. CLI values take precedence.

        Args:
            config: Base configuration dictionary
            args: argparse namespace
        """
        merged = copy.deepcopy(config)
        merged.setdefault('export', {}).setdefault('defaults', {})
        merged.setdefault('logging', {})
        defaults = merged['export']['defaults']

        if getattr(args, 'output_dir', None):
            merged['export']['output_directory'] = args.output_dir

        if getattr(args, 'page_size', None):
            defaults['page_size'] = args.page_size

        if getattr(args, 'font_size', None) is not None:
            defaults['font_size'] = args.font_size

        if getattr(args, 'font_family', None):
            defaults['font_family'] = args.font_family

        if getattr(args, 'margin', None) is not None:
            defaults['margins'] = {side: args.margin for side in ('top', 'right', 'bottom', 'left')}

        if getattr(args, 'log_file', None):
            merged['logging']['file'] = args.log_file

        return merged

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        def replace_match(match):
            env_value = os.getenv(match.group(1))
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @classmethod
    def _check_unsubstituted(cls, section: Dict[str, Any], field: str) -> None:
        for key, value in section.items():
            if isinstance(value, str):
                match = cls.ENV_VAR_PATTERN.search(value)
                if match:
                    raise ValueError(
                        f"Configuration field '{field}.{key}' contains unsubstituted environment variable: "
                        f"{value}. Please set the {match.group(1)} environment variable."
                    )


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "pdf.image_timeout")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    value = config
    for key in path.split('.'):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value


__all__ = ['ConfigLoader', 'DEFAULT_CONFIG', 'get_nested']
