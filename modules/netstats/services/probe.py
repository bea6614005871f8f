from __future__ import annotations

import logging
import subprocess
from typing import Callable, NamedTuple, Optional

from .parsing import ProbeOutcome, parse_gateway_output, parse_ping_output
from .platform import creation_flags, gateway_command, ping_command, resolve_platform

logger = logging.getLogger("netstats.probe")

DEFAULT_FALLBACK_HOST = "8.8.8.8"


class ProbeResult(NamedTuple):
    latency_ms: int
    lost: bool


class GatewayProbe:
    """Single-echo latency probe against the default gateway.

    Route lookup failures fall back to ``fallback_host``; every failure of the
    echo itself, including a hung or missing ``ping`` binary, comes back as a
    lost probe instead of an exception.
    """

    def __init__(
        self,
        platform: Optional[str] = None,
        timeout_s: float = 2.0,
        fallback_host: str = DEFAULT_FALLBACK_HOST,
        target: Optional[str] = None,
        route_timeout_s: float = 3.0,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self.platform = resolve_platform(platform)
        self.timeout_s = float(timeout_s)
        self.fallback_host = fallback_host or DEFAULT_FALLBACK_HOST
        self.target = target
        self.route_timeout_s = float(route_timeout_s)
        self._run = runner
        self.last_target: Optional[str] = None
        self.last_reason: Optional[ProbeOutcome] = None

    def resolve_target(self) -> str:
        if self.target:
            return self.target
        try:
            proc = self._run(
                gateway_command(self.platform),
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.route_timeout_s,
                creationflags=creation_flags(self.platform),
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.info("gateway lookup failed (%s), using %s", exc, self.fallback_host)
            return self.fallback_host
        gateway = parse_gateway_output(proc.stdout or "")
        if gateway is None:
            logger.info("no default gateway found, using %s", self.fallback_host)
            return self.fallback_host
        logger.debug("gateway: %s", gateway)
        return gateway

    def probe(self) -> ProbeResult:
        host = self.resolve_target()
        self.last_target = host
        try:
            proc = self._run(
                ping_command(self.platform, host, self.timeout_s),
                capture_output=True,
                text=True,
                errors="replace",
                # ping enforces its own timeout; this one only guards a hung process
                timeout=self.timeout_s + 2.0,
                creationflags=creation_flags(self.platform),
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.warning("ping %s failed: %s", host, exc)
            self.last_reason = ProbeOutcome.TRANSPORT_ERROR
            return ProbeResult(0, True)

        reading = parse_ping_output((proc.stdout or "") + (proc.stderr or ""))
        self.last_reason = reading.reason
        if reading.lost:
            logger.info("ping %s lost (%s)", host, reading.reason.value)
        else:
            logger.debug("ping %s: %d ms", host, reading.latency_ms)
        return ProbeResult(reading.latency_ms, reading.lost)
