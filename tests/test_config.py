"""
tests/test_config.py - YAML config, env overrides and credentials.
"""

import pytest

import stockbot.config as config_module
from stockbot.config import Config, load_credentials
from stockbot.errors import ConfigError


def test_missing_repository_file_uses_builtin_defaults(tmp_path, monkeypatch):
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATH", tmp_path / "absent.yaml")
    config = Config(environ={})

    assert config.source['url'] == "https://www.bcse.by/stock/securitydirectory/100345505/5-200-01-3593"
    assert config.source['proxy_prefix'] == "https://r.jina.ai/"
    assert config.fetcher['timeout'] == 30.0
    assert config.notifier['api_base'] == "https://api.telegram.org"


def test_yaml_values_merge_over_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("fetcher:\n  timeout: 10\nlogging:\n  format: json\n", encoding="utf-8")

    config = Config(path, environ={})

    assert config.fetcher['timeout'] == 10
    assert config.fetcher['max_redirects'] == 5
    assert config.logging == {'level': 'INFO', 'format': 'json'}


def test_env_overrides_are_typed(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    config = Config(path, environ={
        'FETCHER_TIMEOUT': '12.5',
        'LOG_LEVEL': 'DEBUG',
        'TELEGRAM_API_BASE': 'http://localhost:8081',
    })

    assert config.get('fetcher', 'timeout') == 12.5
    assert config.get('logging', 'level') == 'DEBUG'
    assert config.notifier['api_base'] == 'http://localhost:8081'
    assert config.get('missing', 'key', default='x') == 'x'


def test_explicit_missing_file_raises_config_error(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        Config(tmp_path / "absent.yaml", environ={})


def test_missing_file_named_by_environment_raises_config_error(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        Config(environ={'STOCKBOT_CONFIG': str(tmp_path / "absent.yaml")})


def test_invalid_yaml_raises_config_error(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("fetcher: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        Config(path, environ={})


def test_repository_config_file_loads():
    config = Config(environ={})
    assert config.source['url'].startswith("https://www.bcse.by/")


def test_credentials_are_read_from_environment():
    credentials = load_credentials({'TELEGRAM_BOT_TOKEN': 't', 'TELEGRAM_CHAT_ID': 'c'})
    assert credentials.bot_token == 't'
    assert credentials.chat_id == 'c'


@pytest.mark.parametrize("environ, missing", [
    ({}, "TELEGRAM_BOT_TOKEN, TELEGRAM_CHAT_ID"),
    ({'TELEGRAM_BOT_TOKEN': 't'}, "TELEGRAM_CHAT_ID"),
    ({'TELEGRAM_BOT_TOKEN': '', 'TELEGRAM_CHAT_ID': 'c'}, "TELEGRAM_BOT_TOKEN"),
])
def test_missing_credentials_raise(environ, missing):
    with pytest.raises(ConfigError, match=missing):
        load_credentials(environ)
