# src/tarpit/assembler.py
"""Builds a maze HTML document from a token stream in one forward pass."""

from __future__ import annotations

import html
import logging
import random
from typing import Iterable, Optional

from src.shared.config_schema import AssemblyConfig
from src.shared.metrics import DECOY_LINKS_INJECTED

from .links import LinkFlyweight, anchor, generate_link

logger = logging.getLogger(__name__)

PREAMBLE = "<!doctype html><html><head><title>{title}</title></head><body>"
CLOSING = "</body></html>"


class _DocumentState:
    __slots__ = ("paragraph_open", "decoy_injected", "tokens")

    def __init__(self) -> None:
        self.paragraph_open = False
        self.decoy_injected = False
        self.tokens = 0


class ContentAssembler:
    """Turns tokens into paragraphs with randomly injected maze links.

    Holds only immutable configuration; all per-document state lives in the
    ``assemble`` call, so one instance serves concurrent requests.
    """

    def __init__(self, config: Optional[AssemblyConfig] = None):
        self.config = config or AssemblyConfig()
        self._links = LinkFlyweight(self.config.linkpath)

    def _link(self, rng: random.Random, state: _DocumentState, title: str) -> str:
        link = generate_link(rng)
        config = self.config
        if (
            config.decoy_enabled
            and not (config.decoy_once and state.decoy_injected)
            and rng.random() < config.decoy_probability
        ):
            state.decoy_injected = True
            DECOY_LINKS_INJECTED.inc()
            logger.info(
                "Injected decoy link to %s into page '%s'", config.decoy_path, title
            )
            return anchor(config.decoy_path, link)
        return self._links.get_link(link)

    def assemble(
        self,
        tokens: Iterable[str],
        title: str,
        rng: Optional[random.Random] = None,
    ) -> str:
        rng = rng if rng is not None else random.Random()
        config = self.config
        state = _DocumentState()
        parts = [PREAMBLE.format(title=html.escape(title))]

        for token in tokens:
            if not state.paragraph_open:
                parts.append("<p>")
                state.paragraph_open = True
            parts.append(" ")
            parts.append(html.escape(str(token), quote=False))
            state.tokens += 1

            if rng.random() < config.link_probability:
                parts.append(" ")
                parts.append(self._link(rng, state, title))

            if rng.random() < config.paragraph_probability:
                parts.append("</p>")
                state.paragraph_open = False

        if state.paragraph_open:
            parts.append("</p>")
        parts.append(CLOSING)
        return "".join(parts)


def assemble(
    tokens: Iterable[str],
    config: AssemblyConfig,
    title: str,
    rng: Optional[random.Random] = None,
) -> str:
    """Functional wrapper around ``ContentAssembler.assemble``."""
    return ContentAssembler(config).assemble(tokens, title, rng)
