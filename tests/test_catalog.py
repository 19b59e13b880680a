import unittest

from slot_machine.config import SymbolConfig
from slot_machine.core.catalog import SymbolCatalog, SymbolDef, default_catalog
from slot_machine.core.exceptions import InvalidConfigurationError


class TestSymbolCatalog(unittest.TestCase):

    def test_default_catalog(self):
        catalog = default_catalog()
        self.assertEqual(catalog.symbols, ("🍒", "🍋", "🍊", "🍇", "💎", "⭐"))
        self.assertEqual(catalog.payout("⭐"), 50)
        self.assertEqual(catalog["🍒"].weight, 30)
        self.assertEqual(catalog["💎"].color_key, "#3498db")
        self.assertEqual(catalog.first.symbol, "🍒")

    def test_empty_catalog_rejected(self):
        with self.assertRaises(InvalidConfigurationError):
            SymbolCatalog([])

    def test_duplicate_symbol_rejected(self):
        with self.assertRaises(InvalidConfigurationError):
            SymbolCatalog([SymbolDef("A", 2, 10), SymbolDef("A", 3, 5)])

    def test_non_positive_values_rejected(self):
        for weight, payout in ((0, 2), (-1, 2), (5, 0), (5, -3), (True, 2), (float("nan"), 2)):
            with self.assertRaises(InvalidConfigurationError, msg=f"{weight}, {payout}"):
                SymbolCatalog([SymbolDef("A", payout=payout, weight=weight)])

    def test_from_config_accepts_models_and_dicts(self):
        catalog = SymbolCatalog.from_config([
            SymbolConfig(symbol="7", weight=1, payout=77, color_key="#ff0000"),
            {"symbol": "BAR", "weight": 9, "payout": 5},
        ])
        self.assertEqual(catalog.symbols, ("7", "BAR"))
        self.assertEqual(catalog["7"].color_key, "#ff0000")
        self.assertEqual(catalog["BAR"].color_key, "#ffd700")
        self.assertIn("BAR", catalog)
        self.assertNotIn("🍒", catalog)

    def test_entries_are_frozen(self):
        entry = default_catalog().first
        with self.assertRaises(AttributeError):
            entry.weight = 100


if __name__ == "__main__":
    unittest.main()
