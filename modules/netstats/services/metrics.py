from __future__ import annotations

import threading
from typing import Dict, List

from .classifier import Status
from .state import NetworkStats


class Gauge:
    kind = "gauge"

    def __init__(self, name: str, doc: str = "") -> None:
        self.name = name
        self.doc = doc
        self._value = 0.0
        self._lock = threading.Lock()

    def set(self, v: float) -> None:
        with self._lock:
            self._value = float(v)

    @property
    def value(self) -> float:
        with self._lock:
            return self._value


class Counter(Gauge):
    """Monotonic value mirrored from a sampler-side tally."""

    kind = "counter"

    def set(self, v: float) -> None:
        with self._lock:
            self._value = max(self._value, float(v))


class Registry:
    def __init__(self, prefix: str = "netstats") -> None:
        self.prefix = prefix
        self.metrics: Dict[str, Gauge] = {}

    def _get(self, cls, name: str, doc: str) -> Gauge:
        full = f"{self.prefix}_{name}"
        if full not in self.metrics:
            self.metrics[full] = cls(full, doc)
        return self.metrics[full]

    def gauge(self, name: str, doc: str = "") -> Gauge:
        return self._get(Gauge, name, doc)

    def counter(self, name: str, doc: str = "") -> Counter:
        return self._get(Counter, name, doc)  # type: ignore[return-value]

    def observe_snapshot(self, stats: NetworkStats) -> None:
        self.gauge("latency_ms", "Mean round-trip time over the probe window").set(stats.latency_ms)
        self.gauge("download_kbytes_per_second", "Download throughput").set(stats.download_kBps)
        self.gauge("upload_kbytes_per_second", "Upload throughput").set(stats.upload_kBps)
        self.gauge("packet_loss_percent", "Lost probes in the window").set(stats.packet_loss_pct)
        for s in Status:
            self.gauge(f"status_{s.value}", "1 for the current status tier").set(1 if stats.status is s else 0)

    def render_prometheus(self) -> str:
        lines: List[str] = []
        for m in self.metrics.values():
            if m.doc:
                lines.append(f"# HELP {m.name} {m.doc}")
            lines.append(f"# TYPE {m.name} {m.kind}")
            lines.append(f"{m.name} {m.value}")
        return "\n".join(lines) + "\n"
