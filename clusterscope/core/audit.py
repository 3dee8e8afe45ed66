#!/usr/bin/env python3
"""
clusterscope Query Audit Logger

Structured logging of executed store queries: one JSON line per query.
"""

import json
import logging
import time
from typing import Any, Dict, Optional

from fastapi import Request


class QueryAuditLogger:
    """Centralized audit logging for store queries."""

    def __init__(self):
        self.logger = logging.getLogger("clusterscope.audit")

    def _log_event(self, event_type: str, details: Dict[str, Any], request: Optional[Request] = None):
        """Log a structured audit event."""
        audit_record = {
            "timestamp": int(time.time()),
            "event_type": event_type,
            "details": details
        }

        if request:
            client_ip = request.client.host if request.client else "unknown"
            audit_record.update({
                "client_ip": client_ip,
                "method": request.method,
                "path": request.url.path,
            })

        self.logger.info(json.dumps(audit_record))

    def query_executed(self, endpoint: str, rows: int, skipped: int, elapsed: float,
                       request: Optional[Request] = None, **details: Any):
        """Log a completed store query."""
        self._log_event(
            event_type="query_executed",
            details={
                "endpoint": endpoint,  # "snapshot_nodes", "series_pods", ...
                "rows": rows,
                "skipped_rows": skipped,
                "elapsed_ms": round(elapsed * 1000, 3),
                **details
            },
            request=request
        )

    def query_failed(self, endpoint: str, error: str, request: Optional[Request] = None):
        """Log a store query that raised."""
        self._log_event(
            event_type="query_failed",
            details={"endpoint": endpoint, "error": error},
            request=request
        )


# Global audit logger instance
audit_logger = QueryAuditLogger()
