#!/usr/bin/env python3
"""
clusterscope API Dependencies - Query Parameters and Store Execution
"""

import asyncio
import functools
import logging
from typing import Any, Callable, Sequence

from fastapi import Request
from pydantic import ValidationError

from .errors import InvalidParameterError, QueryTimeoutError
from .queries import BucketRule, Scope, plan_granularity, remove_special_chars, resolve_metric_names
from .queries.utils import QueryResult
from .schemas import MetricQuery

logger = logging.getLogger("clusterscope.server")


def parse_metric_query(request: Request) -> MetricQuery:
    """
    Read series/snapshot parameters.

    A JSON `query` parameter wins over the individual query-string params
    (timezone, metricNames, dateRange, granularity).
    """
    params = request.query_params
    raw = params.get("query", "")
    try:
        if raw:
            return MetricQuery.model_validate_json(raw)
        return MetricQuery(
            timezone=remove_special_chars(params.get("timezone", "")),
            granularity=remove_special_chars(params.get("granularity", "")),
            metric_names=params.getlist("metricNames"),
            date_range=params.getlist("dateRange"),
        )
    except ValidationError as e:
        logger.debug(f"invalid query parameters: {e}")
        raise InvalidParameterError("invalid query parameters") from e


def plan_series(query: MetricQuery) -> BucketRule:
    """Series endpoints need a date range and at least one metric name."""
    if not query.metric_names:
        raise InvalidParameterError("metricNames requires at least one value")
    return plan_granularity(query.date_range, query.timezone, query.granularity)


def fetch_with_names(fetch: Callable[..., QueryResult], scope: Scope, names: Sequence[str],
                     *args: Any) -> QueryResult:
    """Resolve metric names, then run the builder query with the resolved ids."""
    metric_ids = resolve_metric_names(names)
    return fetch(scope, metric_ids, *args)


class QueryRunner:
    """Runs blocking store calls off the event loop under a per-request time bound."""

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds

    async def __call__(self, func: Callable[..., Any], *args: Any) -> Any:
        # executor futures cancel at once; the worker thread finishes on its own
        future = asyncio.get_running_loop().run_in_executor(None, functools.partial(func, *args))
        try:
            return await asyncio.wait_for(future, timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            name = getattr(func, "__name__", repr(func))
            raise QueryTimeoutError(f"{name} exceeded {self.timeout_seconds}s") from None
