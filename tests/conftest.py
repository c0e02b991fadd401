"""
Pytest configuration and fixtures for stockbot tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


SAMPLE_PAGE = """
<html>
<head><meta charset="utf-8"><title>5-200-01-3593</title></head>
<body>
<table class="security">
  <tr><td>Дата последней сделки</td><td> 17.12.2025 </td></tr>
  <tr><td>Цена, BYN</td><td>42,10</td></tr>
  <tr><td>Изменение</td><td>0,70 (1,69%)</td></tr>
</table>
<table class="results">
  <tr><td>Период</td><td>Рынок</td><td>Кол-во</td><td>Объем</td><td>мин.</td><td>макс.</td><td>срвз</td></tr>
  <tr><td>Итоги торгов</td><td>первичный</td><td>1</td><td>10</td></tr>
  <tr><td>Итоги торгов</td><td>вторичный</td><td>12</td><td>505,20</td><td>41,80</td><td>42,30</td><td>42,05</td></tr>
</table>
</body>
</html>
"""


@pytest.fixture
def sample_page():
    return SAMPLE_PAGE


@pytest.fixture
def clean_env(monkeypatch):
    """Remove variables that would leak from the developer's shell."""
    for name in ('TELEGRAM_BOT_TOKEN', 'TELEGRAM_CHAT_ID', 'STOCKBOT_CONFIG', 'STOCK_URL',
                 'PROXY_PREFIX', 'FETCHER_USER_AGENT', 'FETCHER_TIMEOUT',
                 'TELEGRAM_API_BASE', 'LOG_LEVEL', 'LOG_FORMAT'):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
