#!/usr/bin/env python3
"""
Summary Routes - Last-60s Cluster and Node Rollups
"""

from fastapi import APIRouter, Request

from ..dependencies import QueryRunner
from ..queries import builder, resolve_scope
from ..queries.shaper import shape_nested
from ..responses import data_response
from ..schemas import ClusterSummaryRow, NodeSummaryRow


def create_summary_routes(runner: QueryRunner) -> APIRouter:
    """Create rollup routes (mounted under /summary)."""
    router = APIRouter(prefix="/summary")

    @router.get("/clusters")
    @router.get("/clusters/{cluster_id}")
    async def summary_clusters(request: Request):
        """{cluster_id: {metric_name: value}}"""
        scope = resolve_scope(**request.path_params, required=(), level="node")
        result = await runner(builder.summary_clusters, scope)
        return data_response(shape_nested(result.rows, ClusterSummaryRow, "cluster_id"), result,
                             "summary_clusters", request)

    @router.get("/clusters/{cluster_id}/nodes")
    @router.get("/clusters/{cluster_id}/nodes/{node_id}")
    async def summary_nodes(request: Request):
        """{host: {metric_name: value}}"""
        scope = resolve_scope(**request.path_params, required=("cluster_id",), level="node")
        result = await runner(builder.summary_nodes, scope)
        return data_response(shape_nested(result.rows, NodeSummaryRow, "host"), result, "summary_nodes", request)

    return router
