from .chain import ChainModel, train
from .corpus import collect_tokens, extract_text_tokens, tokenize_html, tokenize_text
from .walk import GenerationState, MarkovWalker, sample

__all__ = [
    "ChainModel",
    "GenerationState",
    "MarkovWalker",
    "collect_tokens",
    "extract_text_tokens",
    "sample",
    "tokenize_html",
    "tokenize_text",
    "train",
]
