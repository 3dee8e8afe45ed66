#!/usr/bin/env python3
"""
System Routes - Health Check, Server Status and Incidents
"""

import logging

from fastapi import APIRouter

from ...core.incidents import IncidentRegistry
from ...core.stats import ServerStats
from ...models import ping
from ..dependencies import QueryRunner
from ..responses import bad_response, envelope

logger = logging.getLogger("clusterscope.server")


def create_system_routes(stats: ServerStats, incidents: IncidentRegistry, runner: QueryRunner) -> APIRouter:
    """Create health/status/incident routes."""
    router = APIRouter()

    @router.get("/health")
    async def health():
        """Store round-trip check."""
        try:
            await runner(ping)
        except Exception as e:
            logger.error(f"health check failed: {e}")
            return bad_response(500, "DB connection failed")
        return envelope("ok")

    @router.get("/status")
    async def status():
        return envelope("ok", data=stats.snapshot())

    @router.get("/incidents/basic")
    async def incidents_basic():
        """Every incident, flattened across event names, newest first."""
        data = [item.model_dump(mode="json") for item in incidents.list_basic()]
        return envelope("ok", data=data)

    return router
