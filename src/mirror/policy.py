# src/mirror/policy.py
"""Random decisions the mirror makes per word, text node and anchor point.

Each decision takes the randomness source explicitly so traversal code never
touches global state and the decisions can be tested on their own.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterator


def keep_original(rng: random.Random, keep_probability: float) -> bool:
    """Bernoulli(keep_probability): True keeps the original text."""
    return rng.random() < keep_probability


def inject_link(rng: random.Random, probability: float) -> bool:
    """Bernoulli(probability): True places a maze link at this point."""
    return rng.random() < probability


def split_padding(text: str) -> tuple[str, str, str]:
    """Split ``text`` into (leading whitespace, body, trailing whitespace)."""
    body = text.strip()
    if not body:
        return text, "", ""
    start = text.index(body)
    return text[:start], body, text[start + len(body):]


def replacement_text(text: str, tokens: Iterator[str]) -> str:
    """Replace every word of ``text`` with the next generated token,
    keeping the surrounding whitespace."""
    leading, body, trailing = split_padding(text)
    words = body.split()
    if not words:
        return text
    return leading + " ".join(next(tokens) for _ in words) + trailing


@dataclass(frozen=True)
class RewritePolicy:
    keep_probability: float
    embed_links: bool = False
    link_probability: float = 0.0
    linkpath: str = "/maze"

    def keep_text(self, rng: random.Random) -> bool:
        return keep_original(rng, self.keep_probability)

    def place_link(self, rng: random.Random) -> bool:
        return self.embed_links and inject_link(rng, self.link_probability)

    def rewrite_line(
        self, line: str, tokens: Iterator[str], rng: random.Random
    ) -> str:
        """Keep or replace each space-delimited word of one line.

        Runs of spaces are preserved as empty fields that are never replaced.
        """
        return " ".join(
            word if not word or self.keep_text(rng) else next(tokens)
            for word in line.split(" ")
        )
