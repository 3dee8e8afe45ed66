"""
Snapshot and series queries over the metrics fact table.

Two modes, both narrowed by a Scope and an optional metric-id filter:
- snapshot: newest sample per (entity, metric, label) inside the last 60s
- series: mean per (entity, metric, label, bucket) over [start, end)

Cluster and pod views are rollups: child values are summed and the label
dimension is dropped. Every user value reaches the store as a bound
parameter through peewee; bucketing and averaging run in pandas.
"""

import logging
import time
from typing import List, Optional, Sequence

import pandas as pd
from peewee import fn

from ...models import (
    Cluster, Container, K8sContainer, K8sNamespace, K8sPod, Metric,
    MetricLabel, MetricName, Node, Process
)
from .granularity import BucketRule
from .scope import ContainerLevel, NodeLevel, ProcessLevel, Scope
from .utils import QueryResult, execute

logger = logging.getLogger("clusterscope.queries")

FRESHNESS_WINDOW_SECONDS = 60

_SERIES_KEY = ["node_id", "process_id", "container_id", "name_id", "label_id"]


def scope_conditions(m, scope: Scope) -> list:
    """
    Predicates selecting the scope's rows on `m` (Metric or an alias of it).

    This is the only place the 0 sentinels of process_id/container_id appear.
    """
    conds = []
    if scope.cluster_id is not None:
        conds.append(m.cluster_id == scope.cluster_id)
    if scope.node_id is not None:
        conds.append(m.node_id == scope.node_id)

    level = scope.level
    if isinstance(level, NodeLevel):
        conds += [m.process_id == 0, m.container_id == 0]
    elif isinstance(level, ProcessLevel):
        conds.append(m.container_id == 0)
        if level.process_id is not None:
            conds.append(m.process_id == level.process_id)
        else:
            conds.append(m.process_id != 0)
    elif isinstance(level, ContainerLevel):
        conds.append(m.process_id == 0)
        if level.container_id is not None:
            conds.append(m.container_id == level.container_id)
        else:
            conds.append(m.container_id != 0)
    return conds


def _pod_conditions(scope: Scope) -> list:
    conds = []
    if scope.namespace_id is not None:
        conds.append(K8sNamespace.id == scope.namespace_id)
    if scope.pod_id is not None:
        conds.append(K8sPod.id == scope.pod_id)
    return conds


# ---- snapshot mode ----

def _newest(scope: Scope, metric_ids: Sequence[int], now: Optional[int]):
    """MAX(ts) per series inside the freshness window."""
    now = int(time.time()) if now is None else now
    m2 = Metric.alias("m2")
    # future-dated samples (agent clock skew) are not newest until their time comes
    conds = scope_conditions(m2, scope) + [m2.ts >= now - FRESHNESS_WINDOW_SECONDS, m2.ts <= now]
    if metric_ids:
        conds.append(m2.name_id.in_(list(metric_ids)))

    return (m2.select(m2.node_id, m2.process_id, m2.container_id, m2.name_id, m2.label_id,
                      fn.MAX(m2.ts).alias("ts"))
            .where(*conds)
            .group_by(m2.node_id, m2.process_id, m2.container_id, m2.name_id, m2.label_id)
            .alias("newest"))


def _latest_rows(select_fields, scope: Scope, metric_ids: Sequence[int], now: Optional[int]):
    """Metric rows that are the newest of their series, joined to names and labels."""
    newest = _newest(scope, metric_ids, now)
    on = (Metric.ts == newest.c.ts)
    for column in _SERIES_KEY:
        on &= (getattr(Metric, column) == getattr(newest.c, column))

    return (Metric.select(*select_fields)
            .join(newest, on=on)
            .join_from(Metric, MetricName, on=(Metric.name_id == MetricName.id))
            .join_from(Metric, MetricLabel, on=(Metric.label_id == MetricLabel.id)))


def snapshot_nodes(scope: Scope, metric_ids: Sequence[int] = (), now: Optional[int] = None) -> QueryResult:
    query = (_latest_rows([Node.host.alias("node"), Node.id.alias("node_id"), Metric.ts, Metric.value,
                           MetricName.name.alias("metric_name"), MetricLabel.label.alias("metric_label")],
                          scope, metric_ids, now)
             .join_from(Metric, Node, on=(Metric.node_id == Node.id))
             .order_by(Node.host, Node.id, MetricName.name, MetricLabel.label))
    return execute(query)


def snapshot_processes(scope: Scope, metric_ids: Sequence[int] = (), now: Optional[int] = None) -> QueryResult:
    query = (_latest_rows([Process.name.alias("process"), Process.id.alias("process_id"), Metric.ts, Metric.value,
                           MetricName.name.alias("metric_name"), MetricLabel.label.alias("metric_label")],
                          scope, metric_ids, now)
             .join_from(Metric, Process, on=(Metric.process_id == Process.id))
             .order_by(Process.name, Process.id, MetricName.name, MetricLabel.label))
    return execute(query)


def snapshot_containers(scope: Scope, metric_ids: Sequence[int] = (), now: Optional[int] = None) -> QueryResult:
    query = (_latest_rows([Container.name.alias("container"), Container.id.alias("container_id"), Metric.ts,
                           Metric.value, MetricName.name.alias("metric_name"),
                           MetricLabel.label.alias("metric_label")],
                          scope, metric_ids, now)
             .join_from(Metric, Container, on=(Metric.container_id == Container.id))
             .order_by(Container.name, Container.id, MetricName.name, MetricLabel.label))
    return execute(query)


def _join_pods(query):
    return (query
            .join_from(Metric, Container, on=(Metric.container_id == Container.id))
            .join_from(Container, K8sContainer, on=(Container.container_id == K8sContainer.container_id))
            .join_from(K8sContainer, K8sPod, on=(K8sContainer.k8s_pod_id == K8sPod.id))
            .join_from(K8sPod, K8sNamespace, on=(K8sPod.k8s_namespace_id == K8sNamespace.id)))


def snapshot_pods(scope: Scope, metric_ids: Sequence[int] = (), now: Optional[int] = None) -> QueryResult:
    """Pod values: newest container samples summed per (pod, metric)."""
    query = _join_pods(_latest_rows([K8sPod.name.alias("pod"), K8sNamespace.name.alias("namespace"),
                                     fn.MAX(Metric.ts).alias("ts"), fn.SUM(Metric.value).alias("value"),
                                     MetricName.name.alias("metric_name")],
                                    scope, metric_ids, now))
    conds = _pod_conditions(scope)
    if conds:
        query = query.where(*conds)
    query = (query.group_by(K8sPod.id, K8sPod.name, K8sNamespace.name, MetricName.name)
             .order_by(K8sNamespace.name, K8sPod.name, MetricName.name))
    return execute(query)


def summary_clusters(scope: Scope, now: Optional[int] = None) -> QueryResult:
    """Newest node samples summed per (cluster, metric)."""
    query = (_latest_rows([Cluster.id.alias("cluster_id"), Cluster.name.alias("cluster_name"),
                           MetricName.name.alias("metric_name"), fn.SUM(Metric.value).alias("value")],
                          scope, (), now)
             .join_from(Metric, Cluster, on=(Metric.cluster_id == Cluster.id))
             .group_by(Cluster.id, Cluster.name, MetricName.name)
             .order_by(Cluster.id, MetricName.name))
    return execute(query)


def summary_nodes(scope: Scope, now: Optional[int] = None) -> QueryResult:
    """Newest node samples summed over labels per (node, metric)."""
    query = (_latest_rows([Node.id.alias("node_id"), Node.host.alias("host"),
                           MetricName.name.alias("metric_name"), fn.SUM(Metric.value).alias("value")],
                          scope, (), now)
             .join_from(Metric, Node, on=(Metric.node_id == Node.id))
             .group_by(Node.id, Node.host, MetricName.name)
             .order_by(Node.host, MetricName.name))
    return execute(query)


# ---- series mode ----

def _range_rows(select_fields, scope: Scope, metric_ids: Sequence[int], rule: BucketRule):
    """Raw samples in [start, end) with metric name and label attached."""
    conds = scope_conditions(Metric, scope) + [Metric.ts >= rule.start_ts, Metric.ts < rule.end_ts]
    if metric_ids:
        conds.append(Metric.name_id.in_(list(metric_ids)))

    return (Metric.select(*select_fields, Metric.ts, Metric.value,
                          MetricName.name.alias("metric_name"), MetricLabel.label.alias("metric_label"))
            .join_from(Metric, MetricName, on=(Metric.name_id == MetricName.id))
            .join_from(Metric, MetricLabel, on=(Metric.label_id == MetricLabel.id))
            .where(*conds))


def _bucket_mean(rows: List[dict], rule: BucketRule, keys: List[str]) -> pd.DataFrame:
    df = pd.DataFrame(rows)
    df["bucket"] = rule.apply(df["ts"])
    return df.groupby(keys + ["bucket"], sort=False)["value"].mean().reset_index()


def _ordered_records(df: pd.DataFrame, keys: List[str]) -> List[dict]:
    return df.sort_values(["bucket"] + keys, kind="mergesort").to_dict("records")


def _series(query, rule: BucketRule, keys: List[str]) -> QueryResult:
    result = execute(query)
    if not result.rows:
        return result
    df = _bucket_mean(result.rows, rule, keys)
    result.rows = _ordered_records(df, keys)
    return result


def series_nodes(scope: Scope, metric_ids: Sequence[int], rule: BucketRule) -> QueryResult:
    query = (_range_rows([Node.host.alias("node"), Node.id.alias("node_id")], scope, metric_ids, rule)
             .join_from(Metric, Node, on=(Metric.node_id == Node.id)))
    return _series(query, rule, ["node", "node_id", "metric_name", "metric_label"])


def series_processes(scope: Scope, metric_ids: Sequence[int], rule: BucketRule) -> QueryResult:
    query = (_range_rows([Process.name.alias("process"), Process.id.alias("process_id")], scope, metric_ids, rule)
             .join_from(Metric, Process, on=(Metric.process_id == Process.id)))
    return _series(query, rule, ["process", "process_id", "metric_name", "metric_label"])


def series_containers(scope: Scope, metric_ids: Sequence[int], rule: BucketRule) -> QueryResult:
    query = (_range_rows([Container.name.alias("container"), Container.id.alias("container_id")],
                         scope, metric_ids, rule)
             .join_from(Metric, Container, on=(Metric.container_id == Container.id)))
    return _series(query, rule, ["container", "container_id", "metric_name", "metric_label"])


def series_pods(scope: Scope, metric_ids: Sequence[int], rule: BucketRule) -> QueryResult:
    """Per-container bucket means summed per (pod, metric, bucket)."""
    query = _join_pods(_range_rows([Metric.container_id.alias("container_ref"), K8sPod.id.alias("pod_id"),
                                    K8sPod.name.alias("pod"), K8sNamespace.name.alias("namespace")],
                                   scope, metric_ids, rule))
    conds = _pod_conditions(scope)
    if conds:
        query = query.where(*conds)

    result = execute(query)
    if not result.rows:
        return result
    pod_keys = ["pod_id", "pod", "namespace", "metric_name"]
    per_container = _bucket_mean(result.rows, rule, ["container_ref", "metric_label"] + pod_keys)
    summed = per_container.groupby(pod_keys + ["bucket"], sort=False)["value"].sum().reset_index()
    result.rows = _ordered_records(summed, ["namespace", "pod", "pod_id", "metric_name"])
    return result


def series_cluster_summary(scope: Scope, metric_ids: Sequence[int], rule: BucketRule) -> QueryResult:
    """Per-node bucket means summed per (metric, bucket) across the cluster."""
    query = _range_rows([Metric.node_id], scope, metric_ids, rule)

    result = execute(query)
    if not result.rows:
        return result
    per_node = _bucket_mean(result.rows, rule, ["node_id", "metric_label", "metric_name"])
    summed = per_node.groupby(["metric_name", "bucket"], sort=False)["value"].sum().reset_index()
    result.rows = _ordered_records(summed, ["metric_name"])
    return result
