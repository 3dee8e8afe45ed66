"""
Metric name resolution.

Maps human-readable metric names to metric_names ids. All-or-nothing: a
request naming an unknown (or duplicated) metric is rejected as a whole.
"""

import logging
from typing import List, Sequence

import peewee

from ...models import MetricName
from ..errors import InvalidParameterError, StoreQueryError

logger = logging.getLogger("clusterscope.queries")


def resolve_metric_names(names: Sequence[str]) -> List[int]:
    """
    Resolve names by exact, case-sensitive match.

    Returns:
        ids in the order the names were requested; [] for no names (no filter)

    Raises:
        InvalidParameterError: duplicated or unknown names
        StoreQueryError: the catalog lookup itself failed
    """
    if not names:
        return []

    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise InvalidParameterError(f"duplicate metric names: {', '.join(duplicates)}")

    try:
        found = {
            row.name: row.id
            for row in MetricName.select(MetricName.id, MetricName.name)
                                 .where(MetricName.name.in_(list(names)))
        }
    except peewee.PeeweeException as e:
        raise StoreQueryError(f"failed to get metric names: {e}") from e

    # IN() may match case-insensitively on some collations; compare in Python too
    missing = [n for n in names if n not in found]
    if missing or len(found) != len(names):
        logger.debug(f"unresolved metric names: {missing}")
        raise InvalidParameterError(f"unknown metric names: {', '.join(missing)}")

    return [found[n] for n in names]
