#!/usr/bin/env python3
"""
clusterscope Database Models - Peewee bindings over the monitoring schema

Paradigm: read-only projections
- The schema is owned by the ingestion path; this service only reads it.
- Table names match the existing relational schema (clusters, nodes, metrics, ...).
- Fact rows (metrics) carry process_id/container_id sentinels: 0 means
  "not a process/container sample". They are plain integer columns, not FKs.

Notes:
- Models are bound to a DatabaseProxy; DatabaseManager.connect() initializes it
  from a playhouse.db_url URL (sqlite:///..., postgresql://...).
- Timestamps are integer Unix seconds (UTC).
"""

import logging

import peewee
from peewee import (
    Model, DatabaseProxy, SqliteDatabase, CharField, IntegerField, FloatField,
    TextField, BooleanField
)
from playhouse.db_url import connect as connect_url

logger = logging.getLogger("clusterscope.models")

# Global DB handle (initialized in DatabaseManager.connect)
database = DatabaseProxy()


class BaseModel(Model):
    class Meta:
        database = database
        legacy_table_names = False


class Cluster(BaseModel):
    name = CharField()

    class Meta:
        table_name = "clusters"


class K8sCluster(BaseModel):
    """Kubernetes cluster record; its presence marks an agent cluster as kubernetes."""
    agent_cluster_id = IntegerField(index=True)
    name = CharField(null=True)

    class Meta:
        table_name = "k8s_clusters"


class Agent(BaseModel):
    cluster_id = IntegerField(index=True)
    version = CharField(default="")
    ipv4 = CharField(default="")
    online = BooleanField(default=False)

    class Meta:
        table_name = "agents"


class Node(BaseModel):
    cluster_id = IntegerField(index=True)
    host = CharField()
    ipv4 = CharField(default="")
    os = CharField(default="")
    platform = CharField(default="")
    platform_family = CharField(default="")
    platform_version = CharField(default="")
    agent_id = IntegerField(default=0)

    class Meta:
        table_name = "nodes"


class Process(BaseModel):
    name = CharField()

    class Meta:
        table_name = "processes"


class Container(BaseModel):
    name = CharField()
    container_id = CharField(index=True)  # external runtime identifier

    class Meta:
        table_name = "containers"


class K8sNamespace(BaseModel):
    name = CharField()

    class Meta:
        table_name = "k8s_namespaces"


class K8sPod(BaseModel):
    name = CharField()
    k8s_namespace_id = IntegerField(index=True)

    class Meta:
        table_name = "k8s_pods"


class K8sContainer(BaseModel):
    """Join table: runtime container id -> pod."""
    container_id = CharField(index=True)
    k8s_pod_id = IntegerField(index=True)
    name = CharField(null=True)

    class Meta:
        table_name = "k8s_containers"


class MetricType(BaseModel):
    name = CharField(unique=True)

    class Meta:
        table_name = "metric_types"


class MetricName(BaseModel):
    name = CharField(unique=True)
    help = TextField(default="")
    type_id = IntegerField()

    class Meta:
        table_name = "metric_names"


class MetricLabel(BaseModel):
    label = CharField(unique=True)

    class Meta:
        table_name = "metric_labels"


class Metric(BaseModel):
    """
    One sample. (node|process|container, name, label, ts) identifies a sample;
    process_id=0 and container_id=0 select the node level.
    """
    cluster_id = IntegerField()
    node_id = IntegerField()
    process_id = IntegerField(default=0)
    container_id = IntegerField(default=0)
    name_id = IntegerField()
    label_id = IntegerField()
    ts = IntegerField()
    value = FloatField()

    class Meta:
        table_name = "metrics"
        indexes = (
            (("cluster_id", "ts"), False),  # range scans per cluster
            (("node_id", "name_id", "label_id", "ts"), False),
        )


ALL_MODELS = [
    Cluster, K8sCluster, Agent, Node, Process, Container,
    K8sNamespace, K8sPod, K8sContainer,
    MetricType, MetricName, MetricLabel, Metric,
]


class DatabaseManager:
    """DB lifecycle + health check."""

    def __init__(self, database_url: str = "sqlite:///clusterscope.db") -> None:
        self.database_url = database_url
        self.connected = False

    def connect(self, create_tables: bool = False) -> bool:
        try:
            db = connect_url(self.database_url)
            database.initialize(db)
            database.connect(reuse_if_open=True)

            if isinstance(db, SqliteDatabase):
                # Read-heavy workload; WAL lets readers run next to the ingester
                database.execute_sql("PRAGMA journal_mode=WAL;")
                database.execute_sql("PRAGMA synchronous=NORMAL;")
                database.execute_sql("PRAGMA cache_size=10000;")
                database.execute_sql("PRAGMA temp_store=MEMORY;")

            if create_tables:
                database.create_tables(ALL_MODELS, safe=True)
            self.connected = True
            logger.info(f"database initialized: {self.database_url}")
            return True
        except (peewee.PeeweeException, RuntimeError) as e:
            logger.error(f"database init failed: {e}")
            return False

    def close(self) -> None:
        if self.connected:
            database.close()
            self.connected = False
            logger.info("database connection closed")


def ping() -> None:
    """Round-trip a trivial statement; raises on connectivity failure."""
    Metric._meta.database.execute_sql("SELECT 1")
