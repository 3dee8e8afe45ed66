"""Pytest configuration and shared fixtures"""
import time
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from peewee import SqliteDatabase

from clusterscope.core.config import ServerConfig
from clusterscope.core.incidents import IncidentRegistry
from clusterscope.core.server import create_app
from clusterscope.core.stats import ServerStats
from clusterscope.models import (
    ALL_MODELS, Agent, Cluster, Container, K8sCluster, K8sContainer, K8sNamespace,
    K8sPod, Metric, MetricLabel, MetricName, MetricType, Node, Process
)


def utc_ts(text: str) -> int:
    """'2024-01-15 10:00:10' (UTC) -> Unix seconds"""
    return int(datetime.strptime(text, "%Y-%m-%d %H:%M:%S").replace(tzinfo=timezone.utc).timestamp())


@pytest.fixture
def test_db():
    """Create an in-memory test database"""
    # One shared connection: route handlers query from executor threads
    test_database = SqliteDatabase(':memory:', thread_safe=False, check_same_thread=False)

    test_database.bind(ALL_MODELS, bind_refs=False, bind_backrefs=False)
    test_database.connect()
    test_database.create_tables(ALL_MODELS)

    yield test_database

    # Cleanup
    test_database.drop_tables(ALL_MODELS)
    test_database.close()


@pytest.fixture
def catalog(test_db):
    """
    Two clusters; "prod" runs kubernetes.

    prod:    node-a (processes nginx/postgres, containers web/sidecar in pod web-pod), node-b
    staging: node-c
    """
    prod = Cluster.create(name="prod")
    staging = Cluster.create(name="staging")
    K8sCluster.create(agent_cluster_id=prod.id, name="prod-k8s")

    agent_a = Agent.create(cluster_id=prod.id, version="1.4.0", ipv4="10.0.0.10", online=True)
    agent_c = Agent.create(cluster_id=staging.id, version="1.3.2", ipv4="10.1.0.10", online=False)

    node_a = Node.create(cluster_id=prod.id, host="node-a", ipv4="10.0.0.11", os="linux",
                         platform="ubuntu", platform_family="debian", platform_version="22.04",
                         agent_id=agent_a.id)
    node_b = Node.create(cluster_id=prod.id, host="node-b", ipv4="10.0.0.12", os="linux",
                         platform="ubuntu", platform_family="debian", platform_version="22.04",
                         agent_id=agent_a.id)
    node_c = Node.create(cluster_id=staging.id, host="node-c", ipv4="10.1.0.11", os="linux",
                         platform="rocky", platform_family="rhel", platform_version="9.3",
                         agent_id=agent_c.id)

    nginx = Process.create(name="nginx")
    postgres = Process.create(name="postgres")

    web = Container.create(name="web", container_id="c-web")
    sidecar = Container.create(name="sidecar", container_id="c-sidecar")

    default_ns = K8sNamespace.create(name="default")
    web_pod = K8sPod.create(name="web-pod", k8s_namespace_id=default_ns.id)
    K8sContainer.create(container_id="c-web", k8s_pod_id=web_pod.id, name="web")
    K8sContainer.create(container_id="c-sidecar", k8s_pod_id=web_pod.id, name="sidecar")

    gauge = MetricType.create(name="gauge")
    cpu = MetricName.create(name="cpu_usage", help="CPU usage percent", type_id=gauge.id)
    mem = MetricName.create(name="mem_used", help="Memory used in MiB", type_id=gauge.id)

    total = MetricLabel.create(label="total")
    core0 = MetricLabel.create(label="core0")

    return {
        'clusters': {'prod': prod, 'staging': staging},
        'nodes': {'a': node_a, 'b': node_b, 'c': node_c},
        'processes': {'nginx': nginx, 'postgres': postgres},
        'containers': {'web': web, 'sidecar': sidecar},
        'namespace': default_ns,
        'pod': web_pod,
        'metric_names': {'cpu': cpu, 'mem': mem},
        'labels': {'total': total, 'core0': core0},
    }


def add_sample(catalog, node, metric, label, ts, value, process=None, container=None):
    return Metric.create(
        cluster_id=node.cluster_id,
        node_id=node.id,
        process_id=process.id if process else 0,
        container_id=container.id if container else 0,
        name_id=catalog['metric_names'][metric].id,
        label_id=catalog['labels'][label].id,
        ts=ts,
        value=value,
    )


@pytest.fixture
def snapshot_metrics(test_db, catalog):
    """Recent samples (last minute) plus stale ones outside the freshness window"""
    now = int(time.time())
    nodes = catalog['nodes']

    # node-a cpu total: older then newer sample inside the window
    add_sample(catalog, nodes['a'], 'cpu', 'total', now - 50, 10.0)
    add_sample(catalog, nodes['a'], 'cpu', 'total', now - 20, 30.0)
    add_sample(catalog, nodes['a'], 'cpu', 'total', now - 86400, 99.0)  # stale
    add_sample(catalog, nodes['a'], 'cpu', 'core0', now - 20, 12.0)
    add_sample(catalog, nodes['a'], 'mem', 'total', now - 20, 1024.0)
    add_sample(catalog, nodes['b'], 'cpu', 'total', now - 10, 50.0)
    add_sample(catalog, nodes['c'], 'cpu', 'total', now - 10, 5.0)

    procs = catalog['processes']
    add_sample(catalog, nodes['a'], 'cpu', 'total', now - 15, 2.5, process=procs['nginx'])
    add_sample(catalog, nodes['a'], 'cpu', 'total', now - 15, 4.0, process=procs['postgres'])

    ctrs = catalog['containers']
    add_sample(catalog, nodes['a'], 'cpu', 'total', now - 45, 0.5, container=ctrs['web'])
    add_sample(catalog, nodes['a'], 'cpu', 'total', now - 15, 1.5, container=ctrs['web'])
    add_sample(catalog, nodes['a'], 'cpu', 'total', now - 15, 0.25, container=ctrs['sidecar'])

    return {'now': now}


@pytest.fixture
def series_metrics(test_db, catalog):
    """Samples on 2024-01-15 between 10:00 and 10:03 UTC"""
    nodes = catalog['nodes']
    add_sample(catalog, nodes['a'], 'cpu', 'total', utc_ts("2024-01-15 10:00:10"), 10.0)
    add_sample(catalog, nodes['a'], 'cpu', 'total', utc_ts("2024-01-15 10:01:30"), 20.0)
    add_sample(catalog, nodes['a'], 'cpu', 'total', utc_ts("2024-01-15 10:02:00"), 40.0)
    add_sample(catalog, nodes['a'], 'cpu', 'core0', utc_ts("2024-01-15 10:00:40"), 4.0)
    add_sample(catalog, nodes['a'], 'mem', 'total', utc_ts("2024-01-15 10:00:20"), 512.0)
    add_sample(catalog, nodes['b'], 'cpu', 'total', utc_ts("2024-01-15 10:00:30"), 6.0)

    add_sample(catalog, nodes['a'], 'cpu', 'total', utc_ts("2024-01-15 10:00:00"), 7.0,
               process=catalog['processes']['nginx'])

    ctrs = catalog['containers']
    add_sample(catalog, nodes['a'], 'cpu', 'total', utc_ts("2024-01-15 10:00:05"), 1.0, container=ctrs['web'])
    add_sample(catalog, nodes['a'], 'cpu', 'total', utc_ts("2024-01-15 10:01:05"), 3.0, container=ctrs['web'])
    add_sample(catalog, nodes['a'], 'cpu', 'total', utc_ts("2024-01-15 10:00:15"), 0.5, container=ctrs['sidecar'])

    # 2h window -> auto granularity of 2 minutes
    return {'date_range': ["2024-01-15T09:00:00Z", "2024-01-15T11:00:00Z"]}


@pytest.fixture
def app(test_db):
    """App bound to the in-memory database (no lifespan connect)"""
    return create_app(ServerConfig(), stats=ServerStats(), incidents=IncidentRegistry(), manage_database=False)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
