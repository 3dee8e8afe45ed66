#!/usr/bin/env python3
"""
clusterscope API Errors - Exception taxonomy and handlers

Client input problems surface as 404 "bad" envelopes with a readable message.
Store problems surface as 500 "bad" envelopes; the cause is logged, not echoed.
"""

import logging

from fastapi import FastAPI, Request

logger = logging.getLogger("clusterscope.server")


class QueryError(Exception):
    """Base class for failures scoped to a single request."""


class InvalidParameterError(QueryError):
    """Missing/invalid scope ids, metric names, date range, timezone or query JSON."""


class StoreQueryError(QueryError):
    """Connectivity or execution failure in the metrics store."""


class QueryTimeoutError(StoreQueryError):
    """Store call exceeded the configured per-request bound."""


def register_error_handlers(app: FastAPI) -> None:
    """Map the query error taxonomy onto envelope responses."""
    from ..core.audit import audit_logger
    from .responses import bad_response

    @app.exception_handler(InvalidParameterError)
    async def handle_invalid_parameter(request: Request, exc: InvalidParameterError):
        logger.debug(f"rejected {request.url.path}: {exc}")
        return bad_response(404, str(exc) or "invalid query parameters")

    @app.exception_handler(QueryTimeoutError)
    async def handle_timeout(request: Request, exc: QueryTimeoutError):
        logger.error(f"query timed out on {request.url.path}: {exc}")
        audit_logger.query_failed(request.url.path, "timeout", request=request)
        return bad_response(500, "query timed out")

    @app.exception_handler(StoreQueryError)
    async def handle_store_error(request: Request, exc: StoreQueryError):
        logger.error(f"store query failed on {request.url.path}: {exc}")
        audit_logger.query_failed(request.url.path, str(exc), request=request)
        return bad_response(500, "failed to get data")

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"unhandled error on {request.url.path}: {exc}")
        audit_logger.query_failed(request.url.path, type(exc).__name__, request=request)
        return bad_response(500, "internal server error")
