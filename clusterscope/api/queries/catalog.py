"""
Catalog listings: clusters, agents, nodes and metric names.
"""

from typing import Optional

from peewee import JOIN, fn

from ...models import Agent, Cluster, K8sCluster, MetricName, MetricType, Node
from .utils import QueryResult, execute


def list_clusters() -> QueryResult:
    """Clusters with a kubernetes flag (any linked k8s_clusters row)."""
    query = (Cluster.select(Cluster.id, Cluster.name,
                            (fn.COUNT(K8sCluster.id) > 0).alias("kubernetes"))
             .join(K8sCluster, JOIN.LEFT_OUTER, on=(K8sCluster.agent_cluster_id == Cluster.id))
             .group_by(Cluster.id, Cluster.name)
             .order_by(Cluster.id))
    return execute(query)


def list_agents(cluster_id: Optional[int] = None) -> QueryResult:
    """
    Agents of one cluster, or of every cluster with the owning cluster name
    attached as `cluster_name` for grouping.
    """
    fields = [Agent.id, Agent.version, Agent.ipv4.alias("ip"), Agent.online]
    if cluster_id is not None:
        query = Agent.select(*fields).where(Agent.cluster_id == cluster_id)
    else:
        query = (Agent.select(*fields, Cluster.name.alias("cluster_name"))
                 .join(Cluster, JOIN.LEFT_OUTER, on=(Agent.cluster_id == Cluster.id)))
    return execute(query.order_by(Agent.id))


def list_nodes(cluster_id: Optional[int] = None) -> QueryResult:
    fields = [Node.id, Node.host, Node.ipv4.alias("ip"), Node.os, Node.platform,
              Node.platform_family, Node.platform_version, Node.agent_id]
    if cluster_id is not None:
        query = Node.select(*fields).where(Node.cluster_id == cluster_id)
    else:
        query = (Node.select(*fields, Cluster.name.alias("cluster_name"))
                 .join(Cluster, JOIN.LEFT_OUTER, on=(Node.cluster_id == Cluster.id)))
    return execute(query.order_by(Node.id))


def list_metric_names() -> QueryResult:
    query = (MetricName.select(MetricName.id, MetricName.name, MetricName.help,
                               MetricType.name.alias("type"))
             .join(MetricType, on=(MetricName.type_id == MetricType.id))
             .order_by(MetricName.id))
    return execute(query)
