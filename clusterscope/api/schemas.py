#!/usr/bin/env python3
"""
clusterscope API Schemas - Pydantic Models for Query Parameters and Records
"""

import math
from datetime import datetime, timezone as dt_timezone
from typing import List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


def _finite(v: float) -> float:
    # inf/NaN cannot be rendered as JSON; the row is skipped instead
    if not math.isfinite(v):
        raise ValueError(f"non-finite value: {v}")
    return v


class MetricQuery(BaseModel):
    """Series/snapshot query; accepted as query-string params or one JSON `query` param."""
    model_config = ConfigDict(populate_by_name=True)

    timezone: str = "UTC"
    metric_names: List[str] = Field(default_factory=list, alias="metricNames")
    date_range: List[str] = Field(default_factory=list, alias="dateRange")
    granularity: str = ""

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, v: str) -> str:
        v = v or "UTC"
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"invalid timezone: {v}")
        return v


# ---- per-row records (decoded one by one by the shaper) ----

class SnapshotRecord(BaseModel):
    ts: int
    value: float
    metric_name: str

    @field_validator("value")
    @classmethod
    def round_value(cls, v: float) -> float:
        return round(_finite(v), 2)

    @field_serializer("ts")
    def serialize_ts(self, ts: int) -> str:
        return datetime.fromtimestamp(ts, tz=dt_timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class NodeSnapshot(SnapshotRecord):
    node: str
    node_id: int
    metric_label: str


class ProcessSnapshot(SnapshotRecord):
    process: str
    process_id: int
    metric_label: str


class ContainerSnapshot(SnapshotRecord):
    container: str
    container_id: int
    metric_label: str


class PodSnapshot(SnapshotRecord):
    pod: str
    namespace: str


class SeriesRecord(BaseModel):
    value: float
    bucket: datetime
    metric_name: str

    @field_validator("value")
    @classmethod
    def round_value(cls, v: float) -> float:
        return round(_finite(v), 2)

    @field_serializer("bucket")
    def serialize_bucket(self, bucket: datetime) -> str:
        return bucket.strftime("%Y-%m-%d %H:%M:%S")


class NodeSeriesPoint(SeriesRecord):
    node: str
    node_id: int
    metric_label: str


class ProcessSeriesPoint(SeriesRecord):
    process: str
    process_id: int
    metric_label: str


class ContainerSeriesPoint(SeriesRecord):
    container: str
    container_id: int
    metric_label: str


class PodSeriesPoint(SeriesRecord):
    pod: str
    namespace: str


class ClusterSeriesPoint(SeriesRecord):
    pass


class ClusterSummaryRow(BaseModel):
    cluster_id: int
    cluster_name: str
    metric_name: str
    value: float

    @field_validator("value")
    @classmethod
    def round_value(cls, v: float) -> float:
        return float(round(_finite(v)))


class NodeSummaryRow(BaseModel):
    node_id: int
    host: str
    metric_name: str
    value: float

    @field_validator("value")
    @classmethod
    def round_value(cls, v: float) -> float:
        return round(_finite(v), 2)


# ---- catalog listings ----

class ClusterItem(BaseModel):
    id: int
    name: str
    kubernetes: bool


class AgentItem(BaseModel):
    id: int
    version: str
    ip: str
    online: bool


class NodeItem(BaseModel):
    id: int
    host: str
    ip: str
    os: str
    platform: str
    platform_family: str
    platform_version: str
    agent_id: int


class MetricNameItem(BaseModel):
    id: int
    name: str
    help: str
    type: str


class IncidentItem(BaseModel):
    event_name: str
    cluster_id: int = 0
    node_id: int = 0
    target: str = ""
    value: float = 0.0
    message: str = ""
    detected_ts: datetime
