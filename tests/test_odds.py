import unittest
from collections import Counter

from slot_machine.core.catalog import SymbolCatalog, SymbolDef, default_catalog
from slot_machine.core.exceptions import InvalidConfigurationError
from slot_machine.core.odds import (
    OddsModel,
    build_weight_table,
    effective_weight,
    outcome_probabilities,
    weighted_draw,
)
from slot_machine.core.rng import SeededRNG


class FixedRNG:
    """Hands out preset floats in order."""

    def __init__(self, *floats):
        self.floats = list(floats)

    def random_float(self):
        return self.floats.pop(0)


def two_symbol_catalog():
    return SymbolCatalog([
        SymbolDef("A", payout=2, weight=30),
        SymbolDef("B", payout=50, weight=2),
    ])


class TestEffectiveWeights(unittest.TestCase):

    def test_neutral_multiplier_keeps_base_weights(self):
        catalog = default_catalog()
        table = build_weight_table(catalog, 1.0)
        for entry in catalog:
            self.assertEqual(table[entry.symbol], entry.weight)

    def test_weights_never_drop_below_one(self):
        catalog = default_catalog()
        for multiplier in (0.01, 0.1, 0.5, 0.8, 0.99, 1.0, 1.01, 2.0, 10.0, 100.0):
            table = build_weight_table(catalog, multiplier)
            for symbol, weight in table.items():
                self.assertGreaterEqual(weight, 1, f"{symbol} at x{multiplier}")

    def test_raised_multiplier_favours_high_payouts(self):
        catalog = two_symbol_catalog()
        base = build_weight_table(catalog, 1.0)
        raised = build_weight_table(catalog, 2.0)

        self.assertAlmostEqual(raised["A"], 36.0)
        self.assertAlmostEqual(raised["B"], 12.0)
        self.assertGreater(raised["B"] / raised["A"], base["B"] / base["A"])
        self.assertGreater(raised["B"] / base["B"], raised["A"] / base["A"])

    def test_lowered_multiplier_shrinks_and_floors(self):
        catalog = two_symbol_catalog()
        table = build_weight_table(catalog, 0.5)
        self.assertAlmostEqual(table["A"], 27.0)
        # 2 * (1 - 0.5 * 5) is negative, so the floor applies
        self.assertEqual(table["B"], 1)

    def test_effective_weight_matches_table(self):
        entry = SymbolDef("💎", payout=10, weight=8)
        self.assertAlmostEqual(effective_weight(entry, 1.5), 8 * 1.5)

    def test_table_keys_follow_catalog_order(self):
        catalog = default_catalog()
        table = build_weight_table(catalog, 3.0)
        self.assertEqual(tuple(table), catalog.symbols)
        self.assertAlmostEqual(sum(table.probabilities().values()), 1.0)

    def test_table_is_read_only(self):
        table = build_weight_table(two_symbol_catalog(), 1.0)
        with self.assertRaises(TypeError):
            table["A"] = 5


class TestOddsModel(unittest.TestCase):

    def test_set_multiplier_replaces_table(self):
        model = OddsModel(two_symbol_catalog())
        before = model.table
        after = model.set_odds_multiplier(2.0)

        self.assertIsNot(before, after)
        self.assertIs(model.table, after)
        self.assertEqual(model.multiplier, 2.0)
        # The old table is untouched
        self.assertEqual(before["B"], 2)

    def test_invalid_multipliers_are_rejected(self):
        model = OddsModel(two_symbol_catalog())
        table = model.table
        for bad in (0, -1, -0.5, float("nan"), float("inf"), "2", None, True):
            with self.assertRaises(InvalidConfigurationError):
                model.set_odds_multiplier(bad)
        self.assertIs(model.table, table)
        self.assertEqual(model.multiplier, 1.0)

    def test_multipliers_that_overflow_the_weights_are_rejected(self):
        model = OddsModel(default_catalog())
        table = model.table
        for huge in (1e307, 1e308, 10 ** 400):
            with self.assertRaises(InvalidConfigurationError):
                model.set_odds_multiplier(huge)
        self.assertIs(model.table, table)

    def test_large_but_representable_multiplier(self):
        table = build_weight_table(default_catalog(), 1e6)
        self.assertAlmostEqual(sum(table.probabilities().values()), 1.0)

    def test_invalid_initial_multiplier(self):
        with self.assertRaises(InvalidConfigurationError):
            OddsModel(two_symbol_catalog(), multiplier=0)

    def test_replace_catalog_keeps_multiplier(self):
        model = OddsModel(two_symbol_catalog(), multiplier=2.0)
        table = model.replace_catalog(default_catalog())
        self.assertEqual(tuple(table), default_catalog().symbols)
        self.assertEqual(table.multiplier, 2.0)


class TestOutcomeProbabilities(unittest.TestCase):

    def test_two_symbols_always_pair_up(self):
        catalog = two_symbol_catalog()
        odds = outcome_probabilities(build_weight_table(catalog, 1.0), catalog)

        p_a, p_b = 30 / 32, 2 / 32
        self.assertAlmostEqual(odds["full_match"], p_a ** 3 + p_b ** 3)
        self.assertAlmostEqual(odds["no_match"], 0.0)
        self.assertAlmostEqual(odds["partial_match"], 1 - odds["full_match"])
        self.assertAlmostEqual(odds["expected_payout"], p_a ** 3 * 2 + p_b ** 3 * 50)

    def test_probabilities_sum_to_one(self):
        model = OddsModel(default_catalog())
        for multiplier in (0.5, 1.0, 3.0):
            model.set_odds_multiplier(multiplier)
            odds = model.outcome_probabilities()
            total = odds["full_match"] + odds["partial_match"] + odds["no_match"]
            self.assertAlmostEqual(total, 1.0)

    def test_higher_multiplier_raises_expected_payout(self):
        model = OddsModel(default_catalog())
        base = model.outcome_probabilities()["expected_payout"]
        model.set_odds_multiplier(3.0)
        self.assertGreater(model.outcome_probabilities()["expected_payout"], base)


class TestWeightedDraw(unittest.TestCase):

    def setUp(self):
        self.table = build_weight_table(two_symbol_catalog(), 1.0)

    def test_walks_weights_in_catalog_order(self):
        self.assertEqual(weighted_draw(self.table, FixedRNG(0.0)), "A")
        self.assertEqual(weighted_draw(self.table, FixedRNG(0.5)), "A")
        # 30 / 32 lands exactly on the A boundary
        self.assertEqual(weighted_draw(self.table, FixedRNG(30 / 32)), "A")
        self.assertEqual(weighted_draw(self.table, FixedRNG(0.99)), "B")

    def test_fallback_returns_first_symbol(self):
        with self.assertLogs("slot-machine.odds", level="WARNING"):
            symbol = weighted_draw(self.table, FixedRNG(1.5))
        self.assertEqual(symbol, "A")

    def test_distribution_matches_weights(self):
        """Chi-square goodness of fit over 100k draws of the default catalog."""
        catalog = default_catalog()
        table = build_weight_table(catalog, 1.0)
        rng = SeededRNG(20241016)
        trials = 100_000

        counts = Counter(weighted_draw(table, rng) for _ in range(trials))

        chi_square = 0.0
        for symbol, probability in table.probabilities().items():
            expected = trials * probability
            chi_square += (counts[symbol] - expected) ** 2 / expected

        # Critical value for 5 degrees of freedom at p = 0.001
        self.assertLess(chi_square, 20.515)

    def test_skewed_table_distribution(self):
        table = build_weight_table(two_symbol_catalog(), 2.0)  # A=36, B=12
        rng = SeededRNG(7)
        trials = 100_000

        counts = Counter(weighted_draw(table, rng) for _ in range(trials))

        self.assertAlmostEqual(counts["B"] / trials, 0.25, delta=0.01)


if __name__ == "__main__":
    unittest.main()
