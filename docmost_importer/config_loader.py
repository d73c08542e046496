"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict
from urllib.parse import urlparse

import yaml

from .logger import LEVEL_NAMES
from .models import ConfigurationError

DEFAULT_CONFIG: Dict[str, Any] = {
    'storage': {
        'database_path': './notes.db',
        'uploads_path': './uploads',
        'url_prefix': '/uploads/'
    },
    'import': {
        'temp_path': None,
        'preserve_structure': True,
        'cleanup_uploads': False,
        'progress_bars': False,
        'ignore_patterns': ['__MACOSX', '.DS_Store', 'Thumbs.db'],
        'markdown_extensions': ['extra', 'sane_lists']
    },
    'logging': {
        'level': None,
        'file': None
    }
}

REQUIRED_FIELDS = ('storage.database_path', 'storage.uploads_path', 'storage.url_prefix')
BOOLEAN_FIELDS = ('import.preserve_structure', 'import.cleanup_uploads', 'import.progress_bars')
STRING_LIST_FIELDS = ('import.ignore_patterns', 'import.markdown_extensions')

# (argparse attribute, config path, whether False/0 still overrides)
ARG_OVERRIDES = (
    ('database', 'storage.database_path', False),
    ('uploads_dir', 'storage.uploads_path', False),
    ('preserve_structure', 'import.preserve_structure', True),
    ('progress', 'import.progress_bars', True),
    ('log_file', 'logging.file', False),
)


class ConfigLoader:
    """Loads, validates and overrides the importer's YAML configuration."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str) -> Dict[str, Any]:
        """
        Read ``config_path``, expand ``${VAR}`` references and apply defaults.

        Unset variables are left as written so that ``validate`` can name
        them.

        Args:
            config_path: Path to the YAML file

        Returns:
            DEFAULT_CONFIG with the file's values merged on top

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If the file does not hold a mapping
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping of sections")

        return cls.with_defaults(cls.expand_env_vars(config_data))

    @classmethod
    def with_defaults(cls, config: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of DEFAULT_CONFIG with `config` merged on top."""
        return _deep_merge(copy.deepcopy(DEFAULT_CONFIG), config)

    @classmethod
    def expand_env_vars(cls, data: Any) -> Any:
        """Replace ``${VAR}`` in every string of a parsed YAML document."""
        if isinstance(data, dict):
            return {key: cls.expand_env_vars(value) for key, value in data.items()}
        if isinstance(data, list):
            return [cls.expand_env_vars(item) for item in data]
        if not isinstance(data, str):
            return data

        def lookup(match):
            value = os.getenv(match.group(1))
            return match.group(0) if value is None else value

        return cls.ENV_VAR_PATTERN.sub(lookup, data)

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Check storage locations, import switches and the log level.

        Raises:
            ConfigurationError: On the first invalid value
        """
        for field in REQUIRED_FIELDS:
            cls._validate_required_field(config, field)

        url_prefix = get_nested(config, 'storage.url_prefix')
        if not url_prefix.startswith('/'):
            cls._validate_url(url_prefix, 'storage.url_prefix')

        for field in BOOLEAN_FIELDS:
            value = get_nested(config, field)
            if value is not None and not isinstance(value, bool):
                raise ConfigurationError(f"{field} must be true or false, got {value!r}")

        for field in STRING_LIST_FIELDS:
            value = get_nested(config, field, [])
            if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                raise ConfigurationError(f"{field} must be a list of strings")

        temp_path = get_nested(config, 'import.temp_path')
        if temp_path and os.path.exists(temp_path) and not os.path.isdir(temp_path):
            raise ConfigurationError(f"import.temp_path '{temp_path}' is not a directory")

        level = get_nested(config, 'logging.level')
        if level and str(level).upper() not in LEVEL_NAMES:
            raise ConfigurationError(f"logging.level must be one of: {', '.join(LEVEL_NAMES)}")

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Apply command-line overrides to a copy of ``config``.

        Arguments left at their argparse default (None) keep the file value.
        """
        merged = copy.deepcopy(config)

        for attribute, path, keep_falsy in ARG_OVERRIDES:
            value = getattr(args, attribute, None)
            if value is None or (not keep_falsy and not value):
                continue
            _set_nested(merged, path, value)

        return merged

    @staticmethod
    def _validate_required_field(config: dict, field: str) -> None:
        value = get_nested(config, field)
        if value is None or value == '':
            raise ConfigurationError(f"Missing required configuration: {field}")

        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ConfigurationError(
                f"{field} refers to unset environment variable {var_name} ({value}). "
                f"Export {var_name} or put the value in the config file."
            )

    @staticmethod
    def _validate_url(url: str, field_name: str) -> None:
        parsed = urlparse(url)
        if parsed.scheme not in ('http', 'https'):
            raise ConfigurationError(
                f"{field_name} must be an absolute path or use http or https scheme: {url}"
            )
        if not parsed.netloc:
            raise ConfigurationError(f"{field_name} missing hostname: {url}")


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Look up a dot-separated path such as ``"storage.uploads_path"``.

    Returns ``default`` when any segment is missing or not a mapping.
    """
    value = config
    for key in path.split('.'):
        if not isinstance(value, dict) or key not in value:
            return default
        value = value[key]
    return value


def _set_nested(config: dict, path: str, value: Any) -> None:
    *parents, leaf = path.split('.')
    target = config
    for key in parents:
        target = target.setdefault(key, {})
    target[leaf] = value


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


__all__ = ['ConfigLoader', 'DEFAULT_CONFIG', 'get_nested']
