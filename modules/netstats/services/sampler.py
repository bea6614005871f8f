from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional, Protocol, Tuple

from .classifier import classify
from .estimator import MIN_SAMPLE_GAP_S, counter_delta, estimate
from .probe import ProbeResult
from .state import NetworkStats, TelemetryState

logger = logging.getLogger("netstats.sampler")


class CounterSource(Protocol):
    # False when the last read() repeated a cached or last-known value
    fresh: bool

    def read(self) -> Tuple[int, int]: ...


class LatencyProbe(Protocol):
    def probe(self) -> ProbeResult: ...


class Phase(str, Enum):
    UNINITIALIZED = "uninitialized"
    STEADY = "steady"


class NetworkSampler:
    """Background loop that owns all writes to a ``TelemetryState``.

    Counters are read every ``tick_interval_s``; the gateway probe runs on the
    first steady tick and then whenever more than ``probe_interval_s`` has
    passed since the previous one.
    """

    def __init__(
        self,
        state: TelemetryState,
        source: CounterSource,
        probe: LatencyProbe,
        tick_interval_s: float = 1.0,
        probe_interval_s: float = 10.0,
        min_sample_gap_s: float = MIN_SAMPLE_GAP_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.state = state
        self.source = source
        self.prober = probe
        self.tick_interval_s = float(tick_interval_s)
        self.probe_interval_s = float(probe_interval_s)
        self.min_sample_gap_s = float(min_sample_gap_s)
        self._clock = clock
        self.phase = Phase.UNINITIALIZED
        self.ticks = 0
        self.tick_errors = 0

        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="NetworkSampler", daemon=True)
        self._thread.start()
        logger.info("sampler started (tick %.1fs, probe every %.0fs)", self.tick_interval_s, self.probe_interval_s)

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None
        logger.info("sampler stopped after %d ticks", self.ticks)

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def _loop(self) -> None:
        while not self._stop.is_set():
            started = self._clock()
            try:
                self.tick()
            except Exception:
                self.tick_errors += 1
                logger.exception("sampler tick failed")
            spent = self._clock() - started
            self._stop.wait(max(0.0, self.tick_interval_s - spent))

    def tick(self, now: Optional[float] = None) -> NetworkStats:
        now = self._clock() if now is None else now
        received, sent = self.source.read()
        st = self.state
        self.ticks += 1

        fresh = self.source.fresh

        if self.phase is Phase.UNINITIALIZED:
            if fresh:
                self._store_baseline(received, sent, now)
            stats = NetworkStats()
            st.publish(stats)
            self.phase = Phase.STEADY
            return stats

        previous = st.published
        if not fresh:
            # cached or stale readings carry no new traffic; wait for a real one
            download, upload = previous.download_kBps, previous.upload_kBps
        elif st.last_sample_time is None:
            self._store_baseline(received, sent, now)
            download, upload = previous.download_kBps, previous.upload_kBps
        elif now - st.last_sample_time >= self.min_sample_gap_s:
            elapsed = now - st.last_sample_time
            d_recv = counter_delta(st.last_bytes_received, received)
            d_sent = counter_delta(st.last_bytes_sent, sent)
            download, upload = estimate(d_recv, d_sent, elapsed)
            self._store_baseline(received, sent, now)
        else:
            download, upload = previous.download_kBps, previous.upload_kBps

        if self._probe_due(now):
            result = self.prober.probe()
            st.last_latency_probe_time = now
            st.record_probe(result.latency_ms, result.lost)
            latency = st.average_latency()
            loss = st.loss_percentage()
            logger.debug("probe: %s -> avg %d ms, loss %.1f%%", tuple(result), latency, loss)
        else:
            latency, loss = previous.latency_ms, previous.packet_loss_pct

        stats = NetworkStats(
            latency_ms=latency,
            download_kBps=download,
            upload_kBps=upload,
            packet_loss_pct=loss,
            status=classify(latency, loss, grace=st.probes_completed == 0),
        )
        st.publish(stats)
        return stats

    def _store_baseline(self, received: int, sent: int, now: float) -> None:
        st = self.state
        st.last_bytes_received = received
        st.last_bytes_sent = sent
        st.last_sample_time = now
        logger.debug("baseline stored: received=%d sent=%d", received, sent)

    def _probe_due(self, now: float) -> bool:
        last = self.state.last_latency_probe_time
        return last is None or now - last > self.probe_interval_s
