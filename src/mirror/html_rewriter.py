# src/mirror/html_rewriter.py
"""Rewrites the text of an HTML document while keeping its markup."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Iterator

from bs4 import BeautifulSoup
from bs4.element import NavigableString

from src.markov.corpus import NON_TEXT_TAGS, iter_text_nodes
from src.tarpit.links import LinkFlyweight, generate_link

from .policy import RewritePolicy, replacement_text

logger = logging.getLogger(__name__)

# Text here is either not rendered or cannot hold an <a>.
PROTECTED_TAGS = NON_TEXT_TAGS | {"head", "title", "textarea", "option", "select"}


@dataclass
class RewriteStats:
    text_nodes: int = 0
    replaced: int = 0
    links: int = 0


def rewrite_html(
    markup: str,
    policy: RewritePolicy,
    tokens: Iterator[str],
    rng: random.Random,
) -> tuple[str, RewriteStats]:
    """Return the rewritten document and what was changed.

    Each rendered text node is kept or replaced independently; every such
    node outside an existing anchor is also a candidate point for a maze link.
    """
    soup = BeautifulSoup(markup, "html.parser")
    links = LinkFlyweight(policy.linkpath)
    stats = RewriteStats()

    for node in list(iter_text_nodes(soup, PROTECTED_TAGS)):
        text = str(node)
        if not text.strip():
            continue
        stats.text_nodes += 1

        if not policy.keep_text(rng):
            new_node = NavigableString(replacement_text(text, tokens))
            node.replace_with(new_node)
            node = new_node
            stats.replaced += 1

        if node.find_parent("a") is not None:
            continue
        if policy.place_link(rng):
            link = generate_link(rng)
            tag = soup.new_tag("a", href=links.href(link))
            tag.string = link
            node.insert_after(tag)
            node.insert_after(NavigableString(" "))
            stats.links += 1

    logger.debug(
        "Rewrote %d of %d text nodes, injected %d links",
        stats.replaced,
        stats.text_nodes,
        stats.links,
    )
    return str(soup), stats
