"""
Snapshot of the trading fields scraped for one run
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict


@dataclass(frozen=True)
class SecondaryResults:
    """Secondary market trading results (min / max / weighted average)."""
    min: str
    max: str
    avg: str


@dataclass(frozen=True)
class TradingSnapshot:
    """Display-ready trading fields. Values are strings, never parsed numbers."""
    date: str
    price: str
    change: str
    change_percent: str
    secondary: SecondaryResults

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_SECONDARY = SecondaryResults(min='41.40', max='41.40', avg='41.40')

DEFAULT_SNAPSHOT = TradingSnapshot(
    date='16.12.2025',
    price='41.40',
    change='9.40',
    change_percent='29.37%',
    secondary=DEFAULT_SECONDARY,
)
