# Ensure tests import modules from the real tarpit package under ``src``.
from src.tarpit import assembler, links, maze_api

__all__ = [
    "assembler",
    "links",
    "maze_api",
]
