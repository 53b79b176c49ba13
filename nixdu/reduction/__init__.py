"""Size-preserving reductions of the store dependency graph."""

from .condense import condense
from .keep import keep, keep_reachable, min_size_for_biggest
from .transient import merge_transient_roots

__all__ = [
    "condense",
    "keep",
    "keep_reachable",
    "merge_transient_roots",
    "min_size_for_biggest",
]
