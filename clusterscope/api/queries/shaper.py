"""
Result shaping.

Decodes flat store rows into record models one row at a time and groups them
into the nested response layouts. A row that fails to decode is logged and
skipped; it never fails an otherwise successful response.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Type

from pydantic import BaseModel, ValidationError

logger = logging.getLogger("clusterscope.queries")


@dataclass
class DecodedRows:
    """Valid (row, record) pairs plus a side-channel count of skipped rows."""
    entries: List[Tuple[Mapping[str, Any], BaseModel]] = field(default_factory=list)
    skipped: int = 0

    @property
    def records(self) -> List[BaseModel]:
        return [record for _, record in self.entries]


@dataclass
class Shaped:
    data: Any
    count: int
    skipped: int


def decode_rows(rows: Iterable[Mapping[str, Any]], record_cls: Type[BaseModel]) -> DecodedRows:
    decoded = DecodedRows()
    for index, row in enumerate(rows):
        try:
            decoded.entries.append((row, record_cls.model_validate(row)))
        except (ValidationError, TypeError, KeyError) as e:
            decoded.skipped += 1
            logger.warning(f"skipping {record_cls.__name__} row {index}: {e}")
    if decoded.skipped:
        logger.warning(f"{decoded.skipped} {record_cls.__name__} row(s) skipped")
    return decoded


def shape_list(rows: Iterable[Mapping[str, Any]], record_cls: Type[BaseModel]) -> Shaped:
    """Flat list in store order."""
    decoded = decode_rows(rows, record_cls)
    data = [record.model_dump() for record in decoded.records]
    return Shaped(data=data, count=len(data), skipped=decoded.skipped)


def shape_grouped(rows: Iterable[Mapping[str, Any]], record_cls: Type[BaseModel], key: str) -> Shaped:
    """
    Group by entity name: {name: [record, ...]}.

    Lists keep arrival order; the store's ordering is not re-sorted.
    """
    decoded = decode_rows(rows, record_cls)
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for record in decoded.records:
        grouped.setdefault(getattr(record, key), []).append(record.model_dump())
    return Shaped(data=grouped, count=len(decoded.entries), skipped=decoded.skipped)


def shape_by_cluster(rows: Iterable[Mapping[str, Any]], record_cls: Type[BaseModel]) -> Shaped:
    """Listing grouped by owning cluster name: {cluster_name: [item, ...]}."""
    decoded = decode_rows(rows, record_cls)
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for row, record in decoded.entries:
        cluster_name = row.get("cluster_name") or ""
        grouped.setdefault(cluster_name, []).append(record.model_dump())
    return Shaped(data=grouped, count=len(decoded.entries), skipped=decoded.skipped)


def shape_nested(rows: Iterable[Mapping[str, Any]], record_cls: Type[BaseModel], outer_key: str) -> Shaped:
    """Rollup layout: {outer: {metric_name: value}}."""
    decoded = decode_rows(rows, record_cls)
    nested: Dict[Any, Dict[str, float]] = {}
    for record in decoded.records:
        nested.setdefault(getattr(record, outer_key), {})[record.metric_name] = record.value
    return Shaped(data=nested, count=len(decoded.entries), skipped=decoded.skipped)
