"""
Odds model: effective symbol weights derived from the odds multiplier,
and the weighted reel draw.
"""

import math
from collections.abc import Mapping
from typing import Dict, Iterator, Tuple

from slot_machine.core.catalog import SymbolCatalog, SymbolDef
from slot_machine.core.exceptions import InvalidConfigurationError
from slot_machine.core.logger import get_logger

logger = get_logger("odds")

NEUTRAL_MULTIPLIER = 1.0
MIN_EFFECTIVE_WEIGHT = 1


class EffectiveWeightTable(Mapping):
    """
    Immutable symbol -> effective weight mapping, in catalog order.
    A new table is built for every multiplier change.
    """

    __slots__ = ("_symbols", "_weights", "_index", "_total", "multiplier")

    def __init__(self, items: Tuple[Tuple[str, float], ...], multiplier: float):
        self._symbols = tuple(symbol for symbol, _ in items)
        self._weights = tuple(weight for _, weight in items)
        self._index = {symbol: i for i, symbol in enumerate(self._symbols)}
        self._total = math.fsum(self._weights)
        self.multiplier = multiplier

    def __getitem__(self, symbol: str) -> float:
        return self._weights[self._index[symbol]]

    def __iter__(self) -> Iterator[str]:
        return iter(self._symbols)

    def __len__(self) -> int:
        return len(self._symbols)

    def __repr__(self):
        return f"EffectiveWeightTable({dict(self.items())!r}, multiplier={self.multiplier})"

    @property
    def total(self) -> float:
        return self._total

    def probabilities(self) -> Dict[str, float]:
        """Per-reel draw probability of each symbol."""
        return {symbol: weight / self._total for symbol, weight in self.items()}


def validate_multiplier(multiplier) -> float:
    """Reject anything that is not a positive, finite number."""
    if isinstance(multiplier, bool) or not isinstance(multiplier, (int, float)):
        raise InvalidConfigurationError(f"Odds multiplier must be a number, got {multiplier!r}")
    try:
        value = float(multiplier)
    except OverflowError:
        raise InvalidConfigurationError("Odds multiplier is too large") from None
    if not math.isfinite(value) or value <= 0:
        raise InvalidConfigurationError(
            f"Odds multiplier must be positive and finite, got {value!r}"
        )
    return value


def effective_weight(symbol_def: SymbolDef, multiplier: float) -> float:
    """
    Scale a symbol's base weight by the multiplier, proportionally to its payout.

    Above 1.0 high-payout symbols gain the most weight, below 1.0 they lose
    the most. The result never drops below MIN_EFFECTIVE_WEIGHT.
    """
    base = symbol_def.weight
    share = symbol_def.payout / 10

    if multiplier > NEUTRAL_MULTIPLIER:
        weight = base * (1.0 + (multiplier - NEUTRAL_MULTIPLIER) * share)
    elif multiplier < NEUTRAL_MULTIPLIER:
        weight = base * (1.0 - (NEUTRAL_MULTIPLIER - multiplier) * share)
    else:
        weight = base

    return max(MIN_EFFECTIVE_WEIGHT, weight)


def build_weight_table(catalog: SymbolCatalog, multiplier: float) -> EffectiveWeightTable:
    multiplier = validate_multiplier(multiplier)
    items = tuple((entry.symbol, effective_weight(entry, multiplier)) for entry in catalog)

    try:
        if not all(math.isfinite(weight) for _, weight in items):
            raise OverflowError("effective weight overflow")
        return EffectiveWeightTable(items, multiplier)
    except OverflowError:
        raise InvalidConfigurationError(
            f"Odds multiplier {multiplier} pushes the symbol weights out of range"
        ) from None


def weighted_draw(table: EffectiveWeightTable, rng) -> str:
    """
    Draw one symbol with probability proportional to its effective weight.

    Walks the table in catalog order subtracting weights from a uniform
    value in [0, total). If rounding leaves nothing selected, the first
    catalog symbol is returned.
    """
    remaining = rng.random_float() * table.total

    for symbol, weight in table.items():
        remaining -= weight
        if remaining <= 0:
            return symbol

    # Only reachable through float rounding; keep it deterministic
    fallback = next(iter(table))
    logger.warning(
        "Weighted draw fell through, using first symbol",
        extra={"fallback": fallback, "remaining": remaining},
    )
    return fallback


def outcome_probabilities(table: EffectiveWeightTable, catalog: SymbolCatalog) -> Dict[str, float]:
    """
    Exact per-spin odds for three independent weighted reels.

    Returns:
        Dict with full_match, partial_match and no_match probabilities, and
        expected_payout (mean three-of-a-kind payout per spin)
    """
    probabilities = table.probabilities()
    sum_squares = math.fsum(p ** 2 for p in probabilities.values())
    sum_cubes = math.fsum(p ** 3 for p in probabilities.values())

    return {
        "full_match": sum_cubes,
        # Inclusion-exclusion over the three reel pairs
        "partial_match": 3 * sum_squares - 3 * sum_cubes,
        "no_match": 1 - 3 * sum_squares + 2 * sum_cubes,
        "expected_payout": math.fsum(
            p ** 3 * catalog.payout(symbol) for symbol, p in probabilities.items()
        ),
    }


class OddsModel:
    """Holds the catalog and the current multiplier, and the table derived from them."""

    def __init__(self, catalog: SymbolCatalog, multiplier: float = NEUTRAL_MULTIPLIER):
        self.catalog = catalog
        self._table = build_weight_table(catalog, multiplier)

    @property
    def multiplier(self) -> float:
        return self._table.multiplier

    @property
    def table(self) -> EffectiveWeightTable:
        return self._table

    def set_odds_multiplier(self, multiplier) -> EffectiveWeightTable:
        """
        Swap in a new table for `multiplier`.

        Raises:
            InvalidConfigurationError: multiplier is not a positive finite number.
                The current table is left in place.
        """
        table = build_weight_table(self.catalog, multiplier)
        self._table = table
        logger.info(f"Odds multiplier set to {table.multiplier}")
        logger.debug("Effective weights", extra={"weights": dict(table.items())})
        return table

    def replace_catalog(self, catalog: SymbolCatalog) -> EffectiveWeightTable:
        """Theme change: rebuild the table for a new catalog at the current multiplier."""
        table = build_weight_table(catalog, self.multiplier)
        self.catalog = catalog
        self._table = table
        logger.info(f"Symbol catalog replaced ({len(catalog)} symbols)")
        return table

    def outcome_probabilities(self) -> Dict[str, float]:
        return outcome_probabilities(self._table, self.catalog)
