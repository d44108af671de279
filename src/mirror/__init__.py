from .html_rewriter import rewrite_html
from .policy import RewritePolicy
from .transformer import BatchTransformer, TransformReport, run_transform

__all__ = [
    "BatchTransformer",
    "RewritePolicy",
    "TransformReport",
    "rewrite_html",
    "run_transform",
]
