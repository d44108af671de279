from __future__ import annotations

import html
import random
import string

LINK_ALPHABET = string.ascii_letters + string.digits
MIN_LINK_LENGTH = 4
MAX_LINK_LENGTH = 16  # exclusive


def generate_link(rng: random.Random) -> str:
    """Random alphanumeric page id, length drawn from [4, 16)."""
    length = rng.randrange(MIN_LINK_LENGTH, MAX_LINK_LENGTH)
    return "".join(rng.choices(LINK_ALPHABET, k=length))


def anchor(href: str, text: str) -> str:
    return f'<a href="{html.escape(href)}">{html.escape(text, quote=False)}</a>'


class LinkFlyweight:
    """Flyweight for sharing the common parts of maze <a> tags."""

    def __init__(self, base_url: str):
        self.base_url = base_url
        self.opening_tag = f'<a href="{html.escape(base_url)}/'
        self.closing_tag = "</a>"

    def href(self, link: str) -> str:
        return f"{self.base_url}/{link}.html"

    def get_link(self, link: str) -> str:
        # Link ids are alphanumeric and need no escaping.
        return f'{self.opening_tag}{link}.html">{link}{self.closing_tag}'
