"""
Metric Query Modules

Organized query utilities split by concern:
- scope.py: path identifiers -> Scope with a tagged entity level
- names.py: metric name -> id resolution (all-or-nothing)
- granularity.py: date range -> bucket rule (explicit or auto width)
- builder.py: snapshot, series and rollup queries
- shaper.py: per-row decoding and response grouping
- catalog.py: cluster/agent/node/metric-name listings
"""

from .scope import (
    Scope, NodeLevel, ProcessLevel, ContainerLevel, resolve_scope, remove_special_chars
)
from .names import resolve_metric_names
from .granularity import BucketRule, GRANULARITY_UNITS, parse_timestamp, plan_granularity
from .builder import FRESHNESS_WINDOW_SECONDS
from .utils import QueryResult, format_duration

__all__ = [
    # Scope
    'Scope',
    'NodeLevel',
    'ProcessLevel',
    'ContainerLevel',
    'resolve_scope',
    'remove_special_chars',

    # Metric names
    'resolve_metric_names',

    # Granularity
    'BucketRule',
    'GRANULARITY_UNITS',
    'parse_timestamp',
    'plan_granularity',

    # Execution
    'FRESHNESS_WINDOW_SECONDS',
    'QueryResult',
    'format_duration',
]
