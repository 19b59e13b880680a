"""
Effects emitted by the spin resolver, in the order the presentation layer
must apply them. `Wait` is the only effect that takes time.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Iterable, List, Optional


class AudioToken(str, Enum):
    SPIN_TICK = "spin-tick"
    REEL_STOP = "reel-stop"
    LOSE = "lose"


def win_cue(symbol: str) -> str:
    return f"win:{symbol}"


class Classification(str, Enum):
    FULL_MATCH = "full_match"
    PARTIAL_MATCH = "partial_match"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class Effect:
    type = "effect"

    def to_dict(self) -> dict:
        data = {"type": self.type}
        data.update(asdict(self))
        return data


@dataclass(frozen=True)
class Wait(Effect):
    type = "wait"
    duration_ms: int


@dataclass(frozen=True)
class SpinStarted(Effect):
    type = "spin_started"


@dataclass(frozen=True)
class ReelSpinStart(Effect):
    type = "reel_spin_start"
    position: int
    duration_ms: int
    refresh_ms: int


@dataclass(frozen=True)
class ReelPlaceholder(Effect):
    """Decorative symbol shown while a reel spins; unrelated to the outcome."""
    type = "reel_placeholder"
    position: int
    symbol: str


@dataclass(frozen=True)
class ReelSettle(Effect):
    type = "reel_settle"
    position: int
    symbol: str


@dataclass(frozen=True)
class AudioCue(Effect):
    type = "audio_cue"
    cue: str


@dataclass(frozen=True)
class OutcomeEffect(Effect):
    type = "outcome"
    classification: Classification
    symbol: Optional[str] = None
    payout: Optional[float] = None

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["classification"] = self.classification.value
        return data


@dataclass(frozen=True)
class WinHighlight(Effect):
    type = "win_highlight"
    symbol: str
    color_key: str
    duration_ms: int


@dataclass(frozen=True)
class WinHighlightClear(Effect):
    type = "win_highlight_clear"


@dataclass(frozen=True)
class SpinComplete(Effect):
    """The spin guard is released when playback reaches this effect."""
    type = "spin_complete"


def build_timeline(effects: Iterable[Effect]) -> List[dict]:
    """
    Serialize effects with their start offset in milliseconds.
    Wait effects only advance the clock and are left out.
    """
    timeline = []
    at_ms = 0
    for effect in effects:
        if isinstance(effect, Wait):
            at_ms += effect.duration_ms
            continue
        entry = effect.to_dict()
        entry["at_ms"] = at_ms
        timeline.append(entry)
    return timeline
