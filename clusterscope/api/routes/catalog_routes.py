#!/usr/bin/env python3
"""
Catalog Routes - Clusters, Agents, Nodes and Metric Names
"""

from fastapi import APIRouter, Request

from ..dependencies import QueryRunner
from ..queries import catalog, resolve_scope
from ..queries.shaper import shape_by_cluster, shape_list
from ..responses import data_response
from ..schemas import AgentItem, ClusterItem, MetricNameItem, NodeItem


def create_catalog_routes(runner: QueryRunner) -> APIRouter:
    """Create listing routes."""
    router = APIRouter()

    @router.get("/clusters")
    async def list_clusters(request: Request):
        result = await runner(catalog.list_clusters)
        return data_response(shape_list(result.rows, ClusterItem), result, "clusters", request)

    @router.get("/agents")
    async def list_agents(request: Request):
        """All agents grouped by owning cluster name."""
        result = await runner(catalog.list_agents)
        return data_response(shape_by_cluster(result.rows, AgentItem), result, "agents", request)

    @router.get("/nodes")
    async def list_nodes(request: Request):
        """All nodes grouped by owning cluster name."""
        result = await runner(catalog.list_nodes)
        return data_response(shape_by_cluster(result.rows, NodeItem), result, "nodes", request)

    @router.get("/metric_names")
    async def list_metric_names(request: Request):
        result = await runner(catalog.list_metric_names)
        return data_response(shape_list(result.rows, MetricNameItem), result, "metric_names", request)

    @router.get("/clusters/{cluster_id}/agents")
    async def list_cluster_agents(request: Request):
        scope = resolve_scope(**request.path_params)
        result = await runner(catalog.list_agents, scope.cluster_id)
        return data_response(shape_list(result.rows, AgentItem), result, "cluster_agents", request)

    @router.get("/clusters/{cluster_id}/nodes")
    async def list_cluster_nodes(request: Request):
        scope = resolve_scope(**request.path_params)
        result = await runner(catalog.list_nodes, scope.cluster_id)
        return data_response(shape_list(result.rows, NodeItem), result, "cluster_nodes", request)

    return router
