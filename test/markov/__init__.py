from src.markov import chain, corpus, walk

__all__ = ["chain", "corpus", "walk"]
