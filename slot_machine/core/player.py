"""
Async playback of a spin plan: walks the effects in order, sleeping on
Wait effects and handing everything else to a sink.
"""

import asyncio
from typing import Awaitable, Callable

from slot_machine.core.effects import AudioCue, Effect, SpinComplete, Wait
from slot_machine.core.resolver import SpinPlan, SpinResolver
from slot_machine.core.session import GameSession
from slot_machine.core.logger import get_logger

logger = get_logger("player")

EffectSink = Callable[[Effect], Awaitable[None]]


class EffectPlayer:
    """
    Plays spin plans on the event loop.

    Args:
        sleep: Coroutine used for Wait effects, swapped out in tests to run
            without real delays
    """

    def __init__(self, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.sleep = sleep

    async def play(
        self,
        plan: SpinPlan,
        session: GameSession,
        resolver: SpinResolver,
        sink: EffectSink,
    ):
        released = False
        try:
            for effect in plan.effects:
                if isinstance(effect, Wait):
                    await self.sleep(effect.duration_ms / 1000)
                    continue

                if isinstance(effect, SpinComplete):
                    resolver.finish(session)
                    released = True

                if isinstance(effect, AudioCue) and not session.sound_enabled:
                    continue

                await sink(effect)
        finally:
            if not released:
                # Playback broke off early; never leave the reels locked
                logger.warning("Spin playback ended before completion, releasing spin guard")
                resolver.finish(session)
