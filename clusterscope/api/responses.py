"""
JSON envelope helpers: {status, message, data, ...}.
"""

from typing import Any, Dict

from fastapi import Request
from fastapi.responses import JSONResponse

from ..core.audit import audit_logger
from .queries.shaper import Shaped
from .queries.utils import QueryResult, format_duration


def envelope(status: str, message: str = "", **extra: Any) -> Dict[str, Any]:
    body = {"status": status, "message": message}
    body.update(extra)
    return body


def bad_response(code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=code, content=envelope("bad", message))


def data_response(shaped: Shaped, result: QueryResult, endpoint: str, request: Request,
                  with_count: bool = False) -> Dict[str, Any]:
    """Successful envelope for a store-backed endpoint; also writes the audit line."""
    audit_logger.query_executed(
        endpoint,
        rows=len(result.rows),
        skipped=shaped.skipped,
        elapsed=result.elapsed,
        request=request,
    )
    body = envelope("ok", data=shaped.data)
    if with_count:
        body["count"] = shaped.count
    body["db_query_time"] = format_duration(result.elapsed)
    return body
