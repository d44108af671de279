# src/markov/chain.py
"""First-order transition model built from a token sequence.

A successor that follows a token K times in training appears K times in that
token's successor tuple, so a uniform pick from the tuple reproduces the
observed transition frequency.
"""

from __future__ import annotations

import logging
import random
from types import MappingProxyType
from typing import Dict, Hashable, Iterable, Iterator, List, Mapping, Sequence, Tuple

from src.shared.errors import TrainingError

from .corpus import collect_tokens

logger = logging.getLogger(__name__)

Token = Hashable


class ChainModel:
    """Immutable map from a token to the tokens observed right after it.

    Instances are never mutated after construction and are shared between
    request threads without locking.
    """

    __slots__ = ("_chain", "_keys", "_token_count")

    def __init__(
        self, chain: Mapping[Token, Sequence[Token]], token_count: int | None = None
    ) -> None:
        frozen: Dict[Token, Tuple[Token, ...]] = {
            key: tuple(successors) for key, successors in chain.items()
        }
        if not frozen:
            raise TrainingError("Cannot build a chain model with no transitions")
        empty = [key for key, successors in frozen.items() if not successors]
        if empty:
            raise TrainingError(
                f"Chain model keys without successors: {empty[:5]!r}"
            )
        self._chain = MappingProxyType(frozen)
        self._keys = tuple(frozen)
        if token_count is None:
            token_count = sum(len(s) for s in frozen.values()) + 1
        self._token_count = token_count

    @classmethod
    def build(cls, tokens: Iterable[Token]) -> "ChainModel":
        """Build a model in one pass over ``tokens``.

        Raises TrainingError if fewer than two tokens are supplied, since no
        transition can be formed.
        """
        chain: Dict[Token, List[Token]] = {}
        count = 0
        previous: Token = None
        for token in tokens:
            if count:
                chain.setdefault(previous, []).append(token)
            previous = token
            count += 1
        if count < 2:
            raise TrainingError(
                f"Training corpus yielded {count} token(s); at least 2 are required"
            )
        return cls(chain, token_count=count)

    @property
    def keys(self) -> Tuple[Token, ...]:
        return self._keys

    @property
    def token_count(self) -> int:
        """Number of tokens the model was trained on."""
        return self._token_count

    @property
    def transition_count(self) -> int:
        return sum(len(successors) for successors in self._chain.values())

    def successors(self, token: Token) -> Tuple[Token, ...]:
        """Successor tuple for ``token``; empty if it never preceded anything."""
        return self._chain.get(token, ())

    def random_key(self, rng: random.Random) -> Token:
        return rng.choice(self._keys)

    def as_dict(self) -> Dict[Token, List[Token]]:
        return {key: list(successors) for key, successors in self._chain.items()}

    def __contains__(self, token: object) -> bool:
        return token in self._chain

    def __iter__(self) -> Iterator[Token]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return (
            f"ChainModel(keys={len(self._keys)}, "
            f"transitions={self.transition_count}, tokens={self._token_count})"
        )


def train(root: str) -> ChainModel:
    """Read the corpus under ``root`` and build a model from it.

    Raises:
        TrainingError: If the root is unreadable or yields fewer than two tokens.
    """
    tokens, stats = collect_tokens(root)
    model = ChainModel.build(tokens)
    logger.info(
        "Trained chain model from %s (%d files): %d keys, %d transitions",
        root,
        stats.files_read,
        len(model),
        model.transition_count,
    )
    return model
