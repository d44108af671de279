from . import assembler, links, maze_api

__all__ = [
    'assembler',
    'links',
    'maze_api',
]
