from src.mirror import html_rewriter, policy, transformer

__all__ = ["html_rewriter", "policy", "transformer"]
