"""Evaluation engine module for grapho.

This module provides the incremental evaluation pass over a node graph.
The engine orders a target's dependencies, serves unchanged nodes from an
explicitly owned cache, computes stale ones and reports what happened.

Key types:
- EvalCache: Per-graph cache of node results keyed by fingerprint
- EvalReport: What one pass computed, hit, timed and failed
- NodeError / UpstreamError: Errors recorded in a report
- ComputeError: Raised by a compute function to fail its node
- evaluate: Run one evaluation pass
"""

from ._cache import CacheEntry, EvalCache, fingerprint
from ._engine import ComputeFn, evaluate
from ._errors import ComputeError
from ._report import (
    EvalCacheStats,
    EvalError,
    EvalNodeReport,
    EvalReport,
    NodeError,
    UpstreamError,
    collect_error_state,
)

__all__ = [
    "CacheEntry",
    "ComputeError",
    "ComputeFn",
    "EvalCache",
    "EvalCacheStats",
    "EvalError",
    "EvalNodeReport",
    "EvalReport",
    "NodeError",
    "UpstreamError",
    "collect_error_state",
    "evaluate",
    "fingerprint",
]
