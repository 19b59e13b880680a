import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from slot_machine.core.rng import rng as default_rng
from slot_machine.core.odds import weighted_draw
from slot_machine.core.session import GameSession, SpinState
from slot_machine.core.exceptions import CatalogInvariantError
from slot_machine.core.logger import get_logger
from slot_machine.core.effects import (
    AudioCue,
    AudioToken,
    Classification,
    Effect,
    OutcomeEffect,
    ReelPlaceholder,
    ReelSettle,
    ReelSpinStart,
    SpinComplete,
    SpinStarted,
    Wait,
    WinHighlight,
    WinHighlightClear,
    build_timeline,
    win_cue,
)

logger = get_logger("resolver")

REEL_COUNT = 3


@dataclass(frozen=True)
class SpinTimings:
    reel_settle_ms: int = 800
    reel_refresh_ms: int = 100
    result_pause_ms: int = 300
    win_highlight_ms: int = 1000

    @classmethod
    def from_config(cls, game_config) -> "SpinTimings":
        return cls(
            reel_settle_ms=game_config.reel_settle_ms,
            reel_refresh_ms=game_config.reel_refresh_ms,
            result_pause_ms=game_config.result_pause_ms,
            win_highlight_ms=game_config.win_highlight_ms,
        )


@dataclass(frozen=True)
class Outcome:
    classification: Classification
    symbol: Optional[str] = None
    payout: Optional[float] = None

    @property
    def is_win(self) -> bool:
        return self.classification is Classification.FULL_MATCH


@dataclass(frozen=True)
class SpinResult:
    reels: Tuple[str, str, str]
    outcome: Outcome
    guaranteed: bool = False

    def to_dict(self) -> dict:
        return {
            "reels": list(self.reels),
            "classification": self.outcome.classification.value,
            "win": self.outcome.is_win,
            "symbol": self.outcome.symbol,
            "payout": self.outcome.payout,
            "guaranteed": self.guaranteed,
        }


@dataclass(frozen=True)
class SpinPlan:
    """A resolved spin plus the effects that present it, in order."""

    result: SpinResult
    effects: Tuple[Effect, ...] = field(default_factory=tuple)

    @property
    def duration_ms(self) -> int:
        return sum(e.duration_ms for e in self.effects if isinstance(e, Wait))

    def timeline(self) -> List[dict]:
        return build_timeline(self.effects)


def classify(reels: Sequence[str], catalog) -> Outcome:
    """
    Classify a 3-reel result.
    All three equal pays the symbol's payout; any two equal is a partial match.
    """
    first, second, third = reels

    if first == second == third:
        return Outcome(Classification.FULL_MATCH, symbol=first, payout=catalog.payout(first))

    if first == second or second == third or first == third:
        return Outcome(Classification.PARTIAL_MATCH)

    return Outcome(Classification.NO_MATCH)


class SpinResolver:
    """
    3-reel spin orchestration.

    `spin()` settles the outcome up front and returns the ordered effects
    that reveal it. The session stays SPINNING until `finish()` is called,
    which the effect player does when it reaches SpinComplete.
    """

    def __init__(self, rng=None, timings: SpinTimings = None):
        self.rng = rng or default_rng
        self.timings = timings or SpinTimings()

    def spin(self, session: GameSession) -> Optional[SpinPlan]:
        """
        Start a spin.

        Returns:
            The spin plan, or None when a spin is already in flight
        """
        if session.is_spinning:
            logger.debug("Spin ignored, reels already spinning")
            return None

        session.state = SpinState.SPINNING
        guaranteed = False
        try:
            guaranteed = session.consume_guaranteed_win()
            reels = self._draw_reels(session, guaranteed)
        except Exception:
            # No spin happened, so an armed win stays armed
            if guaranteed:
                session.rearm_guaranteed_win()
            session.state = SpinState.IDLE
            raise

        outcome = classify(reels, session.catalog)
        result = SpinResult(reels=reels, outcome=outcome, guaranteed=guaranteed)
        effects = self._build_effects(session, result)

        logger.info(
            f"Spin {' '.join(reels)} -> {outcome.classification.value}",
            extra={"payout": outcome.payout, "guaranteed": guaranteed},
        )
        return SpinPlan(result=result, effects=tuple(effects))

    def finish(self, session: GameSession):
        """Release the spin guard."""
        session.state = SpinState.IDLE

    def _draw_reels(self, session: GameSession, guaranteed: bool) -> Tuple[str, str, str]:
        catalog = session.catalog
        table = session.table

        if tuple(table) != catalog.symbols:
            raise CatalogInvariantError("Weight table is out of sync with the symbol catalog")

        if guaranteed:
            # Uniform over symbols, weights do not apply
            symbol = self.rng.random_choice(catalog.symbols)
            reels = (symbol,) * REEL_COUNT
        else:
            reels = tuple(weighted_draw(table, self.rng) for _ in range(REEL_COUNT))

        for symbol in reels:
            if symbol not in catalog:
                raise CatalogInvariantError(f"Drew unknown symbol {symbol!r}", symbol=symbol)

        logger.debug("Reels drawn", extra={"reels": reels, "multiplier": table.multiplier})
        return reels

    def _placeholder(self, symbols: Tuple[str, ...]) -> str:
        return symbols[self.rng.random_int(0, len(symbols) - 1)]

    def _build_effects(self, session: GameSession, result: SpinResult) -> List[Effect]:
        timings = self.timings
        symbols = session.catalog.symbols
        frames = max(1, math.ceil(timings.reel_settle_ms / timings.reel_refresh_ms))

        effects: List[Effect] = [SpinStarted(), AudioCue(AudioToken.SPIN_TICK.value)]

        # Reels stop one after another, each only once the previous one settled
        for position, symbol in enumerate(result.reels):
            effects.append(
                ReelSpinStart(
                    position=position,
                    duration_ms=timings.reel_settle_ms,
                    refresh_ms=timings.reel_refresh_ms,
                )
            )
            for frame in range(frames):
                effects.append(ReelPlaceholder(position=position, symbol=self._placeholder(symbols)))
                remaining = timings.reel_settle_ms - frame * timings.reel_refresh_ms
                effects.append(Wait(min(timings.reel_refresh_ms, remaining)))
            effects.append(ReelSettle(position=position, symbol=symbol))
            effects.append(AudioCue(AudioToken.REEL_STOP.value))

        effects.append(Wait(timings.result_pause_ms))

        outcome = result.outcome
        effects.append(
            OutcomeEffect(
                classification=outcome.classification,
                symbol=outcome.symbol,
                payout=outcome.payout,
            )
        )

        if outcome.is_win:
            effects.append(
                WinHighlight(
                    symbol=outcome.symbol,
                    color_key=session.catalog[outcome.symbol].color_key,
                    duration_ms=timings.win_highlight_ms,
                )
            )
            effects.append(AudioCue(win_cue(outcome.symbol)))
        elif outcome.classification is Classification.NO_MATCH:
            effects.append(AudioCue(AudioToken.LOSE.value))

        effects.append(SpinComplete())

        if outcome.is_win:
            effects.append(Wait(timings.win_highlight_ms))
            effects.append(WinHighlightClear())

        return effects
