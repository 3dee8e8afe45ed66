#!/usr/bin/env python3
"""
Snapshot Routes - Newest Sample per Series in the Last 60 Seconds

Metric names are optional here; an empty list means every metric.
"""

from fastapi import APIRouter, Depends, Request

from ..dependencies import QueryRunner, fetch_with_names, parse_metric_query
from ..queries import builder, resolve_scope
from ..queries.shaper import shape_grouped
from ..responses import data_response
from ..schemas import ContainerSnapshot, MetricQuery, NodeSnapshot, PodSnapshot, ProcessSnapshot


def create_snapshot_routes(runner: QueryRunner) -> APIRouter:
    """Create snapshot routes (mounted under /snapshot)."""
    router = APIRouter(prefix="/snapshot")

    @router.get("/{cluster_id}/nodes")
    @router.get("/{cluster_id}/nodes/{node_id}")
    async def snapshot_nodes(request: Request, query: MetricQuery = Depends(parse_metric_query)):
        scope = resolve_scope(**request.path_params, required=("cluster_id",), level="node")
        result = await runner(fetch_with_names, builder.snapshot_nodes, scope, query.metric_names)
        return data_response(shape_grouped(result.rows, NodeSnapshot, "node"), result, "snapshot_nodes", request)

    @router.get("/{cluster_id}/nodes/{node_id}/processes")
    @router.get("/{cluster_id}/nodes/{node_id}/processes/{process_id}")
    async def snapshot_processes(request: Request, query: MetricQuery = Depends(parse_metric_query)):
        scope = resolve_scope(**request.path_params, required=("cluster_id", "node_id"), level="process")
        result = await runner(fetch_with_names, builder.snapshot_processes, scope, query.metric_names)
        return data_response(shape_grouped(result.rows, ProcessSnapshot, "process"), result,
                             "snapshot_processes", request)

    @router.get("/{cluster_id}/nodes/{node_id}/containers")
    @router.get("/{cluster_id}/nodes/{node_id}/containers/{container_id}")
    async def snapshot_containers(request: Request, query: MetricQuery = Depends(parse_metric_query)):
        scope = resolve_scope(**request.path_params, required=("cluster_id", "node_id"), level="container")
        result = await runner(fetch_with_names, builder.snapshot_containers, scope, query.metric_names)
        return data_response(shape_grouped(result.rows, ContainerSnapshot, "container"), result,
                             "snapshot_containers", request)

    @router.get("/{cluster_id}/k8s/pods")
    @router.get("/{cluster_id}/k8s/namespaces/{namespace_id}/pods")
    @router.get("/{cluster_id}/k8s/namespaces/{namespace_id}/pods/{pod_id}")
    async def snapshot_pods(request: Request, query: MetricQuery = Depends(parse_metric_query)):
        """Pod values are sums over the pod's containers."""
        scope = resolve_scope(**request.path_params, required=("cluster_id",), level="container")
        result = await runner(fetch_with_names, builder.snapshot_pods, scope, query.metric_names)
        return data_response(shape_grouped(result.rows, PodSnapshot, "pod"), result, "snapshot_pods", request)

    return router
