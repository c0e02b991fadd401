"""
load the config from config.yaml and .env
"""

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

from .errors import ConfigError

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"

DEFAULTS: Dict[str, Any] = {
    'source': {
        'url': 'https://www.bcse.by/stock/securitydirectory/100345505/5-200-01-3593',
        'proxy_prefix': 'https://r.jina.ai/',
    },
    'fetcher': {
        'user_agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36',
        'timeout': 30.0,
        'max_redirects': 5,
    },
    'notifier': {
        'api_base': 'https://api.telegram.org',
        'timeout': None,
    },
    'logging': {
        'level': 'INFO',
        'format': 'console',
    },
}


@dataclass(frozen=True)
class Credentials:
    """Telegram bot token and target chat."""
    bot_token: str
    chat_id: str


def load_credentials(environ: Optional[Dict[str, str]] = None) -> Credentials:
    """Read TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID.

    Raises:
        ConfigError: if either variable is missing or empty.
    """
    if environ is None:
        environ = os.environ

    bot_token = environ.get('TELEGRAM_BOT_TOKEN')
    chat_id = environ.get('TELEGRAM_CHAT_ID')
    missing = [name for name, value in (('TELEGRAM_BOT_TOKEN', bot_token),
                                        ('TELEGRAM_CHAT_ID', chat_id)) if not value]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")
    return Credentials(bot_token=bot_token, chat_id=chat_id)


class Config:
    """Configuration loader that reads from config.yaml and environment variables."""

    def __init__(self, config_path: str = None, environ: Optional[Dict[str, str]] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to config.yaml file. If None, uses STOCKBOT_CONFIG
                        or config.yaml at the repository root. A path given
                        either way must exist; the repository file may not.
            environ: Mapping used for overrides, os.environ by default.
        """
        self._environ = os.environ if environ is None else environ
        if config_path is None:
            config_path = self._environ.get('STOCKBOT_CONFIG') or None
        self._explicit_path = config_path is not None
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        self.config_path = Path(config_path)
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file and override with environment variables."""
        config = copy.deepcopy(DEFAULTS)

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}
        except FileNotFoundError:
            if self._explicit_path:
                raise ConfigError(f"Configuration file not found: {self.config_path}")
            loaded = {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in configuration file: {e}")

        if not isinstance(loaded, dict):
            raise ConfigError(f"Configuration root must be a mapping: {self.config_path}")

        for section, values in loaded.items():
            if isinstance(values, dict) and isinstance(config.get(section), dict):
                config[section].update(values)
            else:
                config[section] = values

        return self._apply_env_overrides(config)

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration."""
        env_mappings = {
            'STOCK_URL': ('source', 'url'),
            'PROXY_PREFIX': ('source', 'proxy_prefix'),
            'FETCHER_USER_AGENT': ('fetcher', 'user_agent'),
            'FETCHER_TIMEOUT': ('fetcher', 'timeout'),
            'TELEGRAM_API_BASE': ('notifier', 'api_base'),
            'LOG_LEVEL': ('logging', 'level'),
            'LOG_FORMAT': ('logging', 'format'),
        }

        for env_var, config_path in env_mappings.items():
            env_value = self._environ.get(env_var)
            if env_value is not None:
                current = config
                for key in config_path[:-1]:
                    if key not in current:
                        current[key] = {}
                    current = current[key]

                final_key = config_path[-1]
                current[final_key] = self._convert_env_value(env_value)

        return config

    def _convert_env_value(self, value: str):
        """Convert environment variable string to appropriate Python type."""
        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def get(self, *keys, default=None):
        """Get configuration value by nested keys.

        Args:
            *keys: Configuration keys (e.g., 'fetcher', 'timeout')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        current = self._config
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    @property
    def source(self) -> Dict[str, Any]:
        """Get source page configuration."""
        return self.get('source', default={})

    @property
    def fetcher(self) -> Dict[str, Any]:
        """Get HTTP fetcher configuration."""
        return self.get('fetcher', default={})

    @property
    def notifier(self) -> Dict[str, Any]:
        """Get Telegram notifier configuration."""
        return self.get('notifier', default={})

    @property
    def logging(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self.get('logging', default={})
