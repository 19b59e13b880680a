"""
Random sources for reel draws.

Both sources expose random_float / random_int / random_choice, which is all
the odds model and the resolver ask of an rng.
"""

import random
import secrets
from typing import Sequence

# Resolution of TrueRNG.random_float
FLOAT_STEPS = 10**12


class ReelRNG:
    """Argument checks shared by every source. Subclasses supply `_below(n)`, uniform on [0, n)."""

    def _below(self, n: int) -> int:
        raise NotImplementedError

    def random_float(self) -> float:
        """Uniform float in [0.0, 1.0)."""
        return self._below(FLOAT_STEPS) / FLOAT_STEPS

    def random_int(self, min_val: int, max_val: int) -> int:
        """Uniform integer in [min_val, max_val], both ends included."""
        if min_val > max_val:
            raise ValueError(f"Empty range [{min_val}, {max_val}]")
        return min_val + self._below(max_val - min_val + 1)

    def random_choice(self, options: Sequence):
        if not options:
            raise IndexError("Cannot choose from an empty sequence")
        return options[self._below(len(options))]


class TrueRNG(ReelRNG):
    """Production source, backed by the OS CSPRNG through `secrets`."""

    def _below(self, n: int) -> int:
        return secrets.randbelow(n)


class SeededRNG(ReelRNG):
    """
    Reproducible source for tests and replays.
    Floats come straight from `random.Random` rather than the stepped grid.
    """

    def __init__(self, seed=None):
        self._random = random.Random(seed)

    def _below(self, n: int) -> int:
        return self._random.randrange(n)

    def random_float(self) -> float:
        return self._random.random()


rng = TrueRNG()
