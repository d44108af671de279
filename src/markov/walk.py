# src/markov/walk.py
"""Stochastic walks over a ChainModel.

``sample`` is the bulk form used per request; ``MarkovWalker`` is the lazy
form pulled one token at a time by the mirror transformer. Both follow the
same step rule and keep their cursor local, so the shared model is only read.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import List, Optional

from src.shared.errors import GenerationError

from .chain import ChainModel, Token

# Keys always have successors, so one redraw is enough after a dead end.
MAX_CONSECUTIVE_REDRAWS = 64


@dataclass
class GenerationState:
    """Cursor and randomness source for one walk."""

    rng: random.Random = field(default_factory=random.Random)
    current: Optional[Token] = None


def step(model: ChainModel, state: GenerationState) -> Token:
    """Emit the current token and advance the cursor to one of its successors.

    A cursor with no successors is replaced by a fresh random key without
    emitting anything for that step.
    """
    redraws = 0
    while True:
        if state.current is None:
            state.current = model.random_key(state.rng)
        successors = model.successors(state.current)
        if not successors:
            redraws += 1
            if redraws > MAX_CONSECUTIVE_REDRAWS:
                raise GenerationError(
                    f"No token with successors found after {MAX_CONSECUTIVE_REDRAWS} redraws"
                )
            state.current = None
            continue
        token = state.current
        state.current = state.rng.choice(successors)
        return token


def sample(
    model: ChainModel, n: int, rng: Optional[random.Random] = None
) -> List[Token]:
    """Return exactly ``n`` tokens walked from a random starting key."""
    if n < 0:
        raise ValueError(f"token count must be >= 0, got {n}")
    state = GenerationState(rng=rng if rng is not None else random.Random())
    return [step(model, state) for _ in range(n)]


class MarkovWalker:
    """Infinite iterator over one walk; not restartable and not thread-safe."""

    def __init__(self, model: ChainModel, rng: Optional[random.Random] = None):
        self.model = model
        self._state = GenerationState(rng=rng if rng is not None else random.Random())

    def __iter__(self) -> "MarkovWalker":
        return self

    def __next__(self) -> Token:
        return step(self.model, self._state)

    def take(self, n: int) -> List[Token]:
        return [next(self) for _ in range(n)]
