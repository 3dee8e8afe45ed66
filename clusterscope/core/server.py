#!/usr/bin/env python3
"""
clusterscope FastAPI application factory
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .. import __version__
from ..api.dependencies import QueryRunner
from ..api.errors import register_error_handlers
from ..api.routes.catalog_routes import create_catalog_routes
from ..api.routes.metrics_routes import create_metrics_routes
from ..api.routes.snapshot_routes import create_snapshot_routes
from ..api.routes.summary_routes import create_summary_routes
from ..api.routes.system_routes import create_system_routes
from ..models import DatabaseManager
from .config import ServerConfig
from .incidents import IncidentRegistry
from .stats import ServerStats

logger = logging.getLogger("clusterscope.server")


def create_app(
    config: ServerConfig,
    stats: Optional[ServerStats] = None,
    incidents: Optional[IncidentRegistry] = None,
    manage_database: bool = True,
) -> FastAPI:
    """
    Build the read API.

    Args:
        stats, incidents: process-wide read models (created when omitted)
        manage_database: connect/close the store in the app lifespan; tests
            bind their own database and pass False
    """
    stats = stats or ServerStats()
    incidents = incidents or IncidentRegistry()
    db_manager = DatabaseManager(config.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if manage_database and not db_manager.connect(create_tables=config.create_tables):
            logger.error("store unavailable at startup; /health will report it")
        yield
        if manage_database:
            db_manager.close()

    app = FastAPI(title="clusterscope", version=__version__, lifespan=lifespan)
    app.state.stats = stats
    app.state.incidents = incidents

    register_error_handlers(app)

    runner = QueryRunner(config.query_timeout_seconds)
    for router in (
        create_system_routes(stats, incidents, runner),
        create_catalog_routes(runner),
        create_snapshot_routes(runner),
        create_metrics_routes(runner),
        create_summary_routes(runner),
    ):
        app.include_router(router, prefix=config.api_prefix)

    return app
