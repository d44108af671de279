# src/markov/corpus.py
"""Turns a directory of .txt and .html files into one ordered token sequence."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from src.shared.errors import TrainingError

logger = logging.getLogger(__name__)

TRAINING_EXTENSIONS = frozenset({".html", ".txt"})

# Text inside these elements is never prose.
NON_TEXT_TAGS = frozenset({"script", "style", "noscript", "template"})

# Quotes and stray line breaks are dropped; punctuation stays with its word.
_DROPPED_CHARS = str.maketrans("", "", "\"'\r\n")


def clean_token(word: str) -> str:
    return word.translate(_DROPPED_CHARS)


def tokenize_line(line: str) -> List[str]:
    """Split one line on whitespace and clean each word."""
    tokens = []
    for word in line.split():
        token = clean_token(word)
        if token:
            tokens.append(token)
    return tokens


def tokenize_text(text: str) -> List[str]:
    tokens: List[str] = []
    for line in text.splitlines():
        tokens.extend(tokenize_line(line))
    return tokens


def iter_text_nodes(
    root: Tag, skip_tags: Iterable[str] = NON_TEXT_TAGS
) -> Iterator[NavigableString]:
    """Yield document text nodes in order, leaving out comments, doctypes
    and anything nested in one of ``skip_tags``."""
    skip = frozenset(skip_tags)
    for node in root.find_all(string=True):
        if isinstance(node, PreformattedString):
            continue
        if any(parent.name in skip for parent in node.parents):
            continue
        yield node


def extract_text_tokens(tree: Tag) -> List[str]:
    """Linearize the visible text of a parsed document into tokens."""
    tokens: List[str] = []
    for node in iter_text_nodes(tree):
        tokens.extend(tokenize_text(str(node)))
    return tokens


def tokenize_html(markup: str) -> List[str]:
    return extract_text_tokens(BeautifulSoup(markup, "html.parser"))


@dataclass
class CorpusStats:
    """What a corpus walk read and what it had to leave out."""

    files_read: int = 0
    files_ignored: int = 0
    tokens: int = 0
    skipped: List[str] = field(default_factory=list)


def _walk_error(error: OSError) -> None:
    logger.warning("Skipping unreadable corpus entry %s: %s", error.filename, error)


def iter_corpus_files(root: str) -> Iterator[str]:
    """Yield every file under ``root`` in a stable, sorted order."""
    if os.path.isfile(root):
        yield root
        return
    for dirpath, dirnames, filenames in os.walk(root, onerror=_walk_error):
        dirnames.sort()
        for name in sorted(filenames):
            yield os.path.join(dirpath, name)


def tokenize_file(path: str) -> List[str]:
    """Read and tokenize one training file.

    Raises OSError or UnicodeDecodeError when the file cannot be read.
    """
    extension = os.path.splitext(path)[1].lower()
    with open(path, "r", encoding="utf-8") as f:
        contents = f.read()
    if extension == ".html":
        return tokenize_html(contents)
    return tokenize_text(contents)


def collect_tokens(root: str) -> tuple[List[str], CorpusStats]:
    """Aggregate tokens from every usable file under ``root``.

    Files that cannot be read are logged and skipped; only a missing or
    unreadable root is fatal.
    """
    if not os.path.exists(root):
        raise TrainingError(f"Training corpus {root!r} does not exist")
    if not os.access(root, os.R_OK):
        raise TrainingError(f"Training corpus {root!r} is not readable")

    tokens: List[str] = []
    stats = CorpusStats()
    for path in iter_corpus_files(root):
        if os.path.splitext(path)[1].lower() not in TRAINING_EXTENSIONS:
            stats.files_ignored += 1
            continue
        try:
            file_tokens = tokenize_file(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping training file %s: %s", path, e)
            stats.skipped.append(path)
            continue
        tokens.extend(file_tokens)
        stats.files_read += 1

    stats.tokens = len(tokens)
    logger.info(
        "Read %d training files from %s (%d tokens, %d ignored, %d skipped)",
        stats.files_read,
        root,
        stats.tokens,
        stats.files_ignored,
        len(stats.skipped),
    )
    return tokens, stats
