"""
Game session: the single owner of the mutable game state.
"""

from enum import Enum
from typing import Optional

from slot_machine.core.catalog import SymbolCatalog
from slot_machine.core.exceptions import InvalidConfigurationError
from slot_machine.core.odds import EffectiveWeightTable, OddsModel
from slot_machine.core.settings_store import SettingsStore, get_default_settings
from slot_machine.core.logger import get_logger

logger = get_logger("session")


class SpinState(str, Enum):
    IDLE = "idle"
    SPINNING = "spinning"


class GameSession:
    """
    Owns the odds multiplier and its weight table, the guaranteed-win flag,
    the spin state and the sound setting. Every change to a persisted value
    is pushed to the settings store when one is attached.
    """

    def __init__(
        self,
        catalog: SymbolCatalog,
        settings_store: Optional[SettingsStore] = None,
        odds_multiplier: float = 1.0,
        guaranteed_win: bool = False,
        sound_enabled: bool = True,
    ):
        self.odds = OddsModel(catalog, odds_multiplier)
        self.settings_store = settings_store
        self.guaranteed_win = guaranteed_win
        self.sound_enabled = sound_enabled
        self.state = SpinState.IDLE

    @classmethod
    def from_store(
        cls,
        catalog: SymbolCatalog,
        store: Optional[SettingsStore],
    ) -> "GameSession":
        """Start a session from persisted settings, or defaults when there are none."""
        saved = store.load() if store is not None else get_default_settings()

        def build(multiplier):
            return cls(
                catalog,
                settings_store=store,
                odds_multiplier=multiplier,
                guaranteed_win=saved["guaranteed_win"],
                sound_enabled=saved["sound_enabled"],
            )

        try:
            return build(saved["odds_multiplier"])
        except InvalidConfigurationError as e:
            if store is None:
                raise
            logger.warning(f"Stored odds multiplier rejected, using default: {e}")
            return build(store.defaults["odds_multiplier"])

    @property
    def catalog(self) -> SymbolCatalog:
        return self.odds.catalog

    @property
    def table(self) -> EffectiveWeightTable:
        return self.odds.table

    @property
    def odds_multiplier(self) -> float:
        return self.odds.multiplier

    @property
    def is_spinning(self) -> bool:
        return self.state is SpinState.SPINNING

    # ==================== Settings ====================

    def set_odds_multiplier(self, multiplier) -> EffectiveWeightTable:
        table = self.odds.set_odds_multiplier(multiplier)
        self._persist()
        return table

    def toggle_guaranteed_win(self) -> bool:
        self.guaranteed_win = not self.guaranteed_win
        logger.info(f"Guaranteed win {'armed' if self.guaranteed_win else 'disarmed'}")
        self._persist()
        return self.guaranteed_win

    def consume_guaranteed_win(self) -> bool:
        """Read and clear the one-shot flag."""
        armed = self.guaranteed_win
        if armed:
            self.guaranteed_win = False
            self._persist()
        return armed

    def rearm_guaranteed_win(self):
        """Undo a consume whose spin never happened."""
        self.guaranteed_win = True
        self._persist()

    def toggle_sound(self) -> bool:
        self.sound_enabled = not self.sound_enabled
        self._persist()
        return self.sound_enabled

    def replace_catalog(self, catalog: SymbolCatalog) -> EffectiveWeightTable:
        return self.odds.replace_catalog(catalog)

    def settings(self) -> dict:
        return {
            "odds_multiplier": self.odds_multiplier,
            "guaranteed_win": self.guaranteed_win,
            "sound_enabled": self.sound_enabled,
        }

    def snapshot(self) -> dict:
        return {**self.settings(), "state": self.state.value}

    def _persist(self):
        if self.settings_store is None:
            return
        if not self.settings_store.save(self.settings()):
            logger.warning("Settings not persisted, continuing with in-memory values")
