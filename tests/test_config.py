import json
import logging
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError

from slot_machine.config import AppConfig, GameConfig, load_config
from slot_machine.core.catalog import SymbolCatalog
from slot_machine.core.logger import JsonFormatter
from slot_machine.core.machine import SlotMachine
from slot_machine.core.resolver import SpinTimings


class TestLoadConfig(unittest.TestCase):

    def setUp(self):
        self.tmp = Path(tempfile.mkdtemp())
        self.config_path = self.tmp / "config.json"

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_defaults_without_file(self):
        with patch.dict(os.environ, {}, clear=True):
            config = load_config(self.config_path)

        self.assertEqual(config.game.default_odds_multiplier, 1.0)
        self.assertEqual(SpinTimings.from_config(config.game), SpinTimings())
        self.assertEqual(config.game.symbols, [])

    def test_file_values(self):
        self.config_path.write_text(json.dumps({
            "server": {"port": 9001},
            "game": {
                "reel_settle_ms": 500,
                "symbols": [{"symbol": "7", "weight": 1, "payout": 77}],
            },
        }), encoding="utf-8")

        with patch.dict(os.environ, {}, clear=True):
            config = load_config(self.config_path)

        self.assertEqual(config.server.port, 9001)
        self.assertEqual(config.game.reel_settle_ms, 500)
        self.assertEqual(SymbolCatalog.from_config(config.game.symbols).symbols, ("7",))

    def test_environment_overrides_file(self):
        self.config_path.write_text(json.dumps({"server": {"port": 9001}}), encoding="utf-8")
        env = {
            "SERVER_PORT": "9100",
            "ODDS_MULTIPLIER": "1.75",
            "LOG_LEVEL": "DEBUG",
            "SETTINGS_PATH": "elsewhere/settings.json",
            "RATE_LIMIT_ENABLED": "false",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_config(self.config_path)

        self.assertEqual(config.server.port, 9100)
        self.assertEqual(config.game.default_odds_multiplier, 1.75)
        self.assertEqual(config.logging.level, "DEBUG")
        self.assertEqual(config.paths.settings_file, "elsewhere/settings.json")
        self.assertFalse(config.rate_limit.enabled)

    def test_non_positive_multiplier_rejected(self):
        with self.assertRaises(ValidationError):
            GameConfig(default_odds_multiplier=0)

    def test_default_multiplier_used_without_saved_settings(self):
        config = AppConfig(game=GameConfig(default_odds_multiplier=1.5))
        config.paths.settings_file = str(self.tmp / "settings.json")

        machine = SlotMachine.from_config(config, sink=None)

        self.assertEqual(machine.session.odds_multiplier, 1.5)
        self.assertEqual(machine.session.catalog.symbols[0], "🍒")


class TestJsonFormatter(unittest.TestCase):

    def test_extra_fields_are_included(self):
        record = logging.LogRecord("slot-machine.resolver", logging.INFO, __file__, 1, "Spin", None, None)
        record.payout = 50
        data = json.loads(JsonFormatter().format(record))

        self.assertEqual(data["message"], "Spin")
        self.assertEqual(data["level"], "INFO")
        self.assertEqual(data["payout"], 50)
        self.assertNotIn("levelno", data)


if __name__ == "__main__":
    unittest.main()
