"""
Query utility functions.

Shared utilities used across query modules: timed store execution with a
uniform error type, and duration formatting for `db_query_time`.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

import peewee

from ..errors import StoreQueryError

logger = logging.getLogger("clusterscope.queries")


@dataclass
class QueryResult:
    rows: List[Dict[str, Any]]
    elapsed: float  # seconds spent in the store


def run_timed(fetch: Callable[[], List[Dict[str, Any]]]) -> QueryResult:
    """Run a store fetch; peewee/driver errors become StoreQueryError."""
    started = time.perf_counter()
    try:
        rows = fetch()
    except peewee.PeeweeException as e:
        raise StoreQueryError(str(e)) from e
    return QueryResult(rows=rows, elapsed=time.perf_counter() - started)


def execute(query) -> QueryResult:
    """Materialize a peewee select as a list of dicts."""
    return run_timed(lambda: list(query.dicts()))


def format_duration(seconds: float) -> str:
    """Short duration string: 850µs, 12.345ms, 1.204s."""
    if seconds < 0.001:
        return f"{seconds * 1e6:.0f}µs"
    if seconds < 1:
        return f"{seconds * 1e3:.3f}ms"
    return f"{seconds:.3f}s"
