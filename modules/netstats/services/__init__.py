from __future__ import annotations

from .classifier import Status, classify  # noqa: F401
from .counters import ByteCounterSource  # noqa: F401
from .estimator import counter_delta, estimate  # noqa: F401
from .probe import GatewayProbe, ProbeResult  # noqa: F401
from .sampler import NetworkSampler  # noqa: F401
from .state import NetworkStats, StatsReader, TelemetryState  # noqa: F401
