"""
The slot machine as the web layer sees it: one session, one resolver,
and background playback of each spin to the connected clients.
"""

import asyncio
from typing import Optional, Set

from slot_machine.core.catalog import SymbolCatalog, default_catalog
from slot_machine.core.player import EffectPlayer, EffectSink
from slot_machine.core.resolver import SpinPlan, SpinResolver, SpinTimings
from slot_machine.core.session import GameSession
from slot_machine.core.settings_store import SettingsStore
from slot_machine.core.logger import get_logger

logger = get_logger("machine")


class SlotMachine:
    def __init__(
        self,
        session: GameSession,
        sink: EffectSink,
        resolver: SpinResolver = None,
        player: EffectPlayer = None,
    ):
        self.session = session
        self.sink = sink
        self.resolver = resolver or SpinResolver()
        self.player = player or EffectPlayer()
        self._playback_tasks: Set[asyncio.Task] = set()

    @classmethod
    def from_config(cls, app_config, sink: EffectSink, rng=None) -> "SlotMachine":
        game = app_config.game
        if game.symbols:
            catalog = SymbolCatalog.from_config(game.symbols)
        else:
            catalog = default_catalog()

        store = SettingsStore(
            app_config.paths.get_settings_path(),
            defaults={"odds_multiplier": game.default_odds_multiplier},
        )
        session = GameSession.from_store(catalog, store)
        resolver = SpinResolver(rng=rng, timings=SpinTimings.from_config(game))
        logger.info(
            f"Slot machine ready: {len(catalog)} symbols, odds x{session.odds_multiplier}"
        )
        return cls(session, sink, resolver=resolver)

    def spin(self) -> Optional[SpinPlan]:
        """
        Resolve a spin and start playing it in the background.
        Must be called from the running event loop.

        Returns:
            The plan, or None if a spin is still playing
        """
        plan = self.resolver.spin(self.session)
        if plan is None:
            return None

        task = asyncio.get_running_loop().create_task(self._play(plan))
        self._playback_tasks.add(task)
        task.add_done_callback(self._playback_tasks.discard)
        return plan

    async def _play(self, plan: SpinPlan):
        try:
            await self.player.play(plan, self.session, self.resolver, self.sink)
        except Exception as e:
            logger.error(f"Spin playback failed: {e}", exc_info=True)

    async def wait_idle(self):
        """Wait for every running playback to finish."""
        if self._playback_tasks:
            await asyncio.gather(*list(self._playback_tasks), return_exceptions=True)
