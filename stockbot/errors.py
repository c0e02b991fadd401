"""
Exception hierarchy for the notifier pipeline
"""

from typing import Any, Optional


class StockbotError(Exception):
    """Base class for all errors raised by stockbot."""


class ConfigError(StockbotError):
    """Configuration is missing or cannot be parsed."""


class FetchError(StockbotError):
    """The source page could not be downloaded."""

    def __init__(self, message: str, url: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class NotifierError(StockbotError):
    """Telegram rejected the message or could not be reached."""

    def __init__(self, message: str, payload: Any = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.payload = payload
        self.status_code = status_code
