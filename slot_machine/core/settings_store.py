"""
Persisted player settings (odds multiplier, guaranteed win, sound).
Backed by a small JSON file. Best effort: a missing or broken file never
blocks play, the defaults are used instead.
"""

import json
import math
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from slot_machine.core.logger import get_logger

logger = get_logger("settings")


def get_default_settings() -> Dict[str, Any]:
    """Settings used when the file is missing or invalid."""
    return {
        "odds_multiplier": 1.0,
        "guaranteed_win": False,
        "sound_enabled": True,
    }


def _usable_multiplier(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        value = float(value)
    except OverflowError:
        # JSON integers have no size limit
        return False
    return math.isfinite(value) and value > 0


def _sanitize(raw: Any, defaults: Dict[str, Any]) -> Dict[str, Any]:
    """Keep the known keys that hold usable values, default the rest."""
    settings = dict(defaults)
    if not isinstance(raw, dict):
        logger.warning("Settings file does not hold an object, using defaults")
        return settings

    multiplier = raw.get("odds_multiplier")
    if _usable_multiplier(multiplier):
        settings["odds_multiplier"] = float(multiplier)
    elif multiplier is not None:
        logger.warning(
            "Ignoring invalid stored odds multiplier",
            extra={"value_type": type(multiplier).__name__},
        )

    if isinstance(raw.get("guaranteed_win"), bool):
        settings["guaranteed_win"] = raw["guaranteed_win"]
    if isinstance(raw.get("sound_enabled"), bool):
        settings["sound_enabled"] = raw["sound_enabled"]

    return settings


class SettingsStore:
    """
    JSON file store with an mtime-checked cache.

    Args:
        path: Location of the settings file
        defaults: Values used for anything missing or unreadable
    """

    def __init__(self, path: Path, defaults: Optional[Dict[str, Any]] = None):
        self.path = Path(path)
        self.defaults = _sanitize(defaults or {}, get_default_settings())
        self._cache: Optional[Dict[str, Any]] = None
        self._last_load_time: Optional[datetime] = None

    def load(self, force_reload: bool = False) -> Dict[str, Any]:
        """
        Load settings, reusing the cache unless the file changed.

        Returns:
            Dict with odds_multiplier, guaranteed_win and sound_enabled
        """
        if self._cache is not None and not force_reload:
            try:
                file_mtime = datetime.fromtimestamp(self.path.stat().st_mtime)
                if self._last_load_time and file_mtime <= self._last_load_time:
                    return dict(self._cache)
            except OSError:
                # File went away since the last load, cached values still apply
                return dict(self._cache)

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                self._cache = _sanitize(json.load(f), self.defaults)
            self._last_load_time = datetime.now()
            logger.info(f"Loaded settings from {self.path}")
        except FileNotFoundError:
            logger.warning(f"{self.path} not found, using default settings")
            self._cache = dict(self.defaults)
        except ValueError as e:
            # JSONDecodeError, UnicodeDecodeError and oversized integer literals
            logger.error(f"Invalid JSON in {self.path}: {e}")
            self._cache = dict(self.defaults)
        except OSError as e:
            logger.error(f"Could not read {self.path}: {e}")
            self._cache = dict(self.defaults)

        return dict(self._cache)

    def save(self, settings: Dict[str, Any]) -> bool:
        """
        Write settings to disk.

        Returns:
            True if saved successfully
        """
        data = _sanitize(settings, self.defaults)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=4)

            self._cache = data
            self._last_load_time = datetime.now()
            logger.debug("Saved settings", extra={"settings": data})
            return True
        except OSError as e:
            logger.error(f"Failed to save settings: {e}")
            return False
