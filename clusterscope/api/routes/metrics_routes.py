#!/usr/bin/env python3
"""
Metrics Routes - Bucketed Time Series over a Date Range

Every route needs dateRange (two bounds) and at least one metric name.
"""

from fastapi import APIRouter, Depends, Request

from ..dependencies import QueryRunner, fetch_with_names, parse_metric_query, plan_series
from ..queries import builder, resolve_scope
from ..queries.shaper import shape_grouped, shape_list
from ..responses import data_response
from ..schemas import (
    ClusterSeriesPoint, ContainerSeriesPoint, MetricQuery, NodeSeriesPoint, PodSeriesPoint, ProcessSeriesPoint
)


def create_metrics_routes(runner: QueryRunner) -> APIRouter:
    """Create series routes (mounted under /metrics)."""
    router = APIRouter(prefix="/metrics")

    @router.get("/{cluster_id}/summary")
    async def series_cluster_summary(request: Request, query: MetricQuery = Depends(parse_metric_query)):
        """Node-level means summed across the cluster per bucket."""
        scope = resolve_scope(**request.path_params, required=("cluster_id",), level="node")
        rule = plan_series(query)
        result = await runner(fetch_with_names, builder.series_cluster_summary, scope, query.metric_names, rule)
        return data_response(shape_list(result.rows, ClusterSeriesPoint), result, "series_cluster_summary",
                             request, with_count=True)

    @router.get("/{cluster_id}/nodes")
    @router.get("/{cluster_id}/nodes/{node_id}")
    async def series_nodes(request: Request, query: MetricQuery = Depends(parse_metric_query)):
        scope = resolve_scope(**request.path_params, required=("cluster_id",), level="node")
        rule = plan_series(query)
        result = await runner(fetch_with_names, builder.series_nodes, scope, query.metric_names, rule)
        return data_response(shape_grouped(result.rows, NodeSeriesPoint, "node"), result, "series_nodes",
                             request, with_count=True)

    @router.get("/{cluster_id}/nodes/{node_id}/processes")
    @router.get("/{cluster_id}/nodes/{node_id}/processes/{process_id}")
    async def series_processes(request: Request, query: MetricQuery = Depends(parse_metric_query)):
        scope = resolve_scope(**request.path_params, required=("cluster_id", "node_id"), level="process")
        rule = plan_series(query)
        result = await runner(fetch_with_names, builder.series_processes, scope, query.metric_names, rule)
        return data_response(shape_grouped(result.rows, ProcessSeriesPoint, "process"), result,
                             "series_processes", request, with_count=True)

    @router.get("/{cluster_id}/nodes/{node_id}/containers")
    @router.get("/{cluster_id}/nodes/{node_id}/containers/{container_id}")
    async def series_containers(request: Request, query: MetricQuery = Depends(parse_metric_query)):
        scope = resolve_scope(**request.path_params, required=("cluster_id", "node_id"), level="container")
        rule = plan_series(query)
        result = await runner(fetch_with_names, builder.series_containers, scope, query.metric_names, rule)
        return data_response(shape_grouped(result.rows, ContainerSeriesPoint, "container"), result,
                             "series_containers", request, with_count=True)

    @router.get("/{cluster_id}/k8s/pods")
    @router.get("/{cluster_id}/k8s/namespaces/{namespace_id}/pods")
    @router.get("/{cluster_id}/k8s/namespaces/{namespace_id}/pods/{pod_id}")
    async def series_pods(request: Request, query: MetricQuery = Depends(parse_metric_query)):
        scope = resolve_scope(**request.path_params, required=("cluster_id",), level="container")
        rule = plan_series(query)
        result = await runner(fetch_with_names, builder.series_pods, scope, query.metric_names, rule)
        return data_response(shape_grouped(result.rows, PodSeriesPoint, "pod"), result, "series_pods",
                             request, with_count=True)

    return router
