from __future__ import annotations

import threading
from collections import deque
from dataclasses import asdict, dataclass, field
from typing import Any, Deque, Dict, Optional

from .classifier import Status

WINDOW_CAPACITY = 10


@dataclass(frozen=True)
class NetworkStats:
    latency_ms: int = 0
    download_kBps: float = 0.0
    upload_kBps: float = 0.0
    packet_loss_pct: float = 0.0
    status: Status = Status.MEASURING

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["status"] = self.status.value
        return d


@dataclass
class TelemetryState:
    """Shared sampler bookkeeping plus the published snapshot.

    Only the sampler writes here. ``published`` is replaced as a whole under
    ``lock``, never edited in place, so readers copy one consistent object.
    """

    last_bytes_received: int = 0
    last_bytes_sent: int = 0
    last_sample_time: Optional[float] = None
    published: NetworkStats = field(default_factory=NetworkStats)
    last_latency_probe_time: Optional[float] = None
    probes_completed: int = 0
    recent_latency_samples: Deque[int] = field(default_factory=lambda: deque(maxlen=WINDOW_CAPACITY))
    recent_loss_samples: Deque[bool] = field(default_factory=lambda: deque(maxlen=WINDOW_CAPACITY))
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def publish(self, stats: NetworkStats) -> None:
        with self.lock:
            self.published = stats

    def snapshot(self) -> NetworkStats:
        with self.lock:
            return self.published

    def record_probe(self, latency_ms: int, lost: bool) -> None:
        with self.lock:
            self.recent_loss_samples.append(lost)
            if not lost:
                self.recent_latency_samples.append(latency_ms)
            self.probes_completed += 1

    def average_latency(self) -> int:
        with self.lock:
            samples = list(self.recent_latency_samples)
        return sum(samples) // len(samples) if samples else 0

    def loss_percentage(self) -> float:
        with self.lock:
            samples = list(self.recent_loss_samples)
        if not samples:
            return 0.0
        return (sum(1 for lost in samples if lost) / len(samples)) * 100.0

    def windows(self) -> Dict[str, list]:
        with self.lock:
            return {
                "latency_ms": list(self.recent_latency_samples),
                "lost": list(self.recent_loss_samples),
            }


class StatsReader:
    """Read-only view for the HTTP layer; never touches I/O."""

    def __init__(self, state: TelemetryState) -> None:
        self._state = state

    def snapshot(self) -> NetworkStats:
        return self._state.snapshot()

    def get_network_stats(self) -> Dict[str, Any]:
        return self._state.snapshot().to_dict()
