"""
Process-wide read model for the status endpoint.

The start timestamp is fixed when the model is created (process start).
The ingest counter is bumped by the ingestion path and only read here.
"""

import threading
import time
from typing import Dict, Optional


def format_uptime(seconds: float) -> str:
    """1h2m3.5s style uptime."""
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{int(hours)}h{int(minutes)}m{secs:.1f}s"
    if minutes:
        return f"{int(minutes)}m{secs:.1f}s"
    return f"{secs:.1f}s"


class ServerStats:
    def __init__(self, started_at: Optional[float] = None):
        self.started_at = time.time() if started_at is None else started_at
        self._lock = threading.Lock()
        self._ingested = 0

    def record_ingested(self, count: int = 1) -> None:
        with self._lock:
            self._ingested += count

    @property
    def ingested(self) -> int:
        with self._lock:
            return self._ingested

    def snapshot(self, now: Optional[float] = None) -> Dict[str, str]:
        now = time.time() if now is None else now
        uptime = max(now - self.started_at, 1e-9)
        total = self.ingested
        return {
            "uptime": format_uptime(uptime),
            "metricsPerSeconds": f"{total / uptime:.2f}",
            "totalMetrics": str(total),
        }
