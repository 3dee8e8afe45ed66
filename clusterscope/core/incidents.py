"""
Incident registry read model.

Detected incidents are grouped by event name by whatever detector feeds the
registry; the basic listing flattens them, newest first.
"""

import threading
from typing import Dict, List

from ..api.schemas import IncidentItem


class IncidentRegistry:
    def __init__(self):
        self._lock = threading.Lock()
        self._by_event: Dict[str, List[IncidentItem]] = {}

    def add(self, incident: IncidentItem) -> None:
        with self._lock:
            self._by_event.setdefault(incident.event_name, []).append(incident)

    def clear(self) -> None:
        with self._lock:
            self._by_event.clear()

    def list_basic(self) -> List[IncidentItem]:
        with self._lock:
            incidents = [item for items in self._by_event.values() for item in items]
        incidents.sort(key=lambda item: item.detected_ts, reverse=True)
        return incidents
