"""
Scope resolution.

Turns raw path identifiers into a Scope: the cluster/node the query is
narrowed to, plus the entity level the fact rows must belong to. The level is
a tagged variant; the process_id=0 / container_id=0 sentinels of the store
only appear once the builder translates the level into predicates.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from ..errors import InvalidParameterError

_ID_PATTERN = re.compile(r"[1-9][0-9]*")
_SPECIAL_CHARS = ("'", '"')


@dataclass(frozen=True)
class NodeLevel:
    """Node-level samples (no process, no container)."""


@dataclass(frozen=True)
class ProcessLevel:
    """Process samples; process_id None means every process of the node."""
    process_id: Optional[int] = None


@dataclass(frozen=True)
class ContainerLevel:
    """Container samples; container_id None means every container."""
    container_id: Optional[int] = None


EntityLevel = Union[NodeLevel, ProcessLevel, ContainerLevel]


@dataclass(frozen=True)
class Scope:
    cluster_id: Optional[int] = None
    node_id: Optional[int] = None
    level: EntityLevel = field(default_factory=NodeLevel)
    namespace_id: Optional[int] = None
    pod_id: Optional[int] = None


def remove_special_chars(value: str) -> str:
    """
    Strip quote characters from free-text parameters.

    Not an injection defence (``1' OR '1'='1`` becomes ``1 OR 1=1``); every
    value reaching the store is bound as a parameter instead.
    """
    for ch in _SPECIAL_CHARS:
        value = value.replace(ch, "")
    return value


def parse_id(name: str, raw: Optional[str]) -> Optional[int]:
    """Canonical positive decimal id, or None when absent."""
    if raw is None or raw == "":
        return None
    if not _ID_PATTERN.fullmatch(raw):
        raise InvalidParameterError(f"invalid {name}: {raw!r}")
    return int(raw)


def resolve_scope(
    *,
    cluster_id: Optional[str] = None,
    node_id: Optional[str] = None,
    process_id: Optional[str] = None,
    container_id: Optional[str] = None,
    namespace_id: Optional[str] = None,
    pod_id: Optional[str] = None,
    required: Iterable[str] = ("cluster_id",),
    level: str = "node",
) -> Scope:
    """
    Validate path identifiers and build a Scope.

    Args:
        required: identifier names the endpoint family cannot do without
        level: "node", "process" or "container" (pods are container level)

    Raises:
        InvalidParameterError: missing required id or non-numeric id
    """
    raw = {
        "cluster_id": cluster_id,
        "node_id": node_id,
        "process_id": process_id,
        "container_id": container_id,
        "namespace_id": namespace_id,
        "pod_id": pod_id,
    }
    for name in required:
        if not raw.get(name):
            raise InvalidParameterError("missing parameters")

    ids = {name: parse_id(name, value) for name, value in raw.items()}

    if level == "node":
        entity = NodeLevel()
    elif level == "process":
        entity = ProcessLevel(ids["process_id"])
    elif level == "container":
        entity = ContainerLevel(ids["container_id"])
    else:
        raise ValueError(f"unknown entity level: {level}")

    return Scope(
        cluster_id=ids["cluster_id"],
        node_id=ids["node_id"],
        level=entity,
        namespace_id=ids["namespace_id"],
        pod_id=ids["pod_id"],
    )
