"""
Symbol catalog: the fixed set of reel symbols with their payouts and weights.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Tuple

from slot_machine.core.exceptions import InvalidConfigurationError


@dataclass(frozen=True)
class SymbolDef:
    """One reel symbol."""

    symbol: str
    payout: float  # three-of-a-kind multiplier
    weight: float  # relative draw mass before odds adjustment
    color_key: str = "#ffd700"

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "payout": self.payout,
            "weight": self.weight,
            "color_key": self.color_key,
        }


def _positive(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


class SymbolCatalog:
    """
    Ordered, read-only collection of SymbolDef.
    Order matters: weighted draws walk symbols in catalog order and the
    first symbol is the draw fallback.
    """

    def __init__(self, symbols: Iterable[SymbolDef]):
        entries = tuple(symbols)
        if not entries:
            raise InvalidConfigurationError("Symbol catalog must not be empty")

        by_symbol: Dict[str, SymbolDef] = {}
        for entry in entries:
            if entry.symbol in by_symbol:
                raise InvalidConfigurationError(f"Duplicate symbol in catalog: {entry.symbol}")
            if not _positive(entry.weight):
                raise InvalidConfigurationError(
                    f"Symbol {entry.symbol} needs a positive weight, got {entry.weight!r}"
                )
            if not _positive(entry.payout):
                raise InvalidConfigurationError(
                    f"Symbol {entry.symbol} needs a positive payout, got {entry.payout!r}"
                )
            by_symbol[entry.symbol] = entry

        self._entries: Tuple[SymbolDef, ...] = entries
        self._by_symbol = by_symbol

    def __iter__(self) -> Iterator[SymbolDef]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, symbol) -> bool:
        return symbol in self._by_symbol

    def __getitem__(self, symbol: str) -> SymbolDef:
        return self._by_symbol[symbol]

    @property
    def symbols(self) -> Tuple[str, ...]:
        """Identifiers in catalog order."""
        return tuple(entry.symbol for entry in self._entries)

    @property
    def first(self) -> SymbolDef:
        return self._entries[0]

    def payout(self, symbol: str) -> float:
        return self._by_symbol[symbol].payout

    def to_list(self) -> List[dict]:
        return [entry.to_dict() for entry in self._entries]

    @classmethod
    def from_config(cls, entries) -> "SymbolCatalog":
        """Build from config entries (objects or dicts with symbol/weight/payout/color_key)."""
        defs = []
        for entry in entries:
            data = entry if isinstance(entry, dict) else entry.model_dump()
            defs.append(
                SymbolDef(
                    symbol=data["symbol"],
                    payout=data["payout"],
                    weight=data["weight"],
                    color_key=data.get("color_key", "#ffd700"),
                )
            )
        return cls(defs)


# Default fruit theme
DEFAULT_SYMBOLS = [
    SymbolDef("🍒", payout=2, weight=30, color_key="#e74c3c"),
    SymbolDef("🍋", payout=3, weight=25, color_key="#f1c40f"),
    SymbolDef("🍊", payout=4, weight=20, color_key="#e67e22"),
    SymbolDef("🍇", payout=5, weight=15, color_key="#9b59b6"),
    SymbolDef("💎", payout=10, weight=8, color_key="#3498db"),
    SymbolDef("⭐", payout=50, weight=2, color_key="#f39c12"),
]


def default_catalog() -> SymbolCatalog:
    return SymbolCatalog(DEFAULT_SYMBOLS)
