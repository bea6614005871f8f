from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI

from modules.logwrapper import get_router as get_log_router

from .config_loader import load_config
from .api.router import get_router
from .services.counters import ByteCounterSource
from .services.lookups import IpLookup, WeatherLookup
from .services.metrics import Registry
from .services.probe import GatewayProbe
from .services.sampler import CounterSource, LatencyProbe, NetworkSampler
from .services.state import StatsReader, TelemetryState

logger = logging.getLogger("netstats.service")


class xNetStatsService:
    """Owns one sampler, its state and the read-side helpers built on it."""

    def __init__(
        self,
        config_overrides: Optional[Dict[str, Any]] = None,
        config_path: Optional[str] = None,
        source: Optional[CounterSource] = None,
        probe: Optional[LatencyProbe] = None,
    ) -> None:
        self.cfg = load_config(config_path, overrides=config_overrides)
        sampling = self.cfg.get("sampling", {})
        counters = self.cfg.get("counters", {})
        probe_cfg = self.cfg.get("probe", {})

        self.state = TelemetryState()
        self.source = source or ByteCounterSource(
            platform=counters.get("platform"),
            fallback_cache_s=float(counters.get("fallback_cache_s", 5.0)),
            shell_timeout_s=float(counters.get("shell_timeout_s", 5.0)),
            use_native=bool(counters.get("use_native", True)),
        )
        self.probe = probe or GatewayProbe(
            platform=counters.get("platform"),
            timeout_s=float(probe_cfg.get("timeout_s", 2.0)),
            fallback_host=str(probe_cfg.get("fallback_host") or "8.8.8.8"),
            target=probe_cfg.get("target") or None,
            route_timeout_s=float(probe_cfg.get("route_timeout_s", 3.0)),
        )
        self.sampler = NetworkSampler(
            self.state,
            self.source,
            self.probe,
            tick_interval_s=float(sampling.get("tick_interval_s", 1.0)),
            probe_interval_s=float(probe_cfg.get("interval_s", 10.0)),
            min_sample_gap_s=float(sampling.get("min_sample_gap_s", 0.5)),
        )
        logger.info(
            "netstats configured: counters=%s probe=%s",
            type(self.source).__name__,
            getattr(self.probe, "target", None) or "default gateway",
        )
        self.reader = StatsReader(self.state)
        self.metrics = Registry()

        lookups = self.cfg.get("lookups", {})
        self.ip_lookup: Optional[IpLookup] = None
        self.weather_lookup: Optional[WeatherLookup] = None
        if lookups.get("enabled", True):
            timeout = float(lookups.get("timeout_s", 4.0))
            self.ip_lookup = IpLookup(
                providers=lookups.get("ip_providers"),
                timeout_s=timeout,
                cache_s=float(lookups.get("cache_s", 600)),
            )
            self.weather_lookup = WeatherLookup(
                url_template=str(lookups.get("weather_url") or "https://wttr.in/{city}?format=j1"),
                default_city=str(lookups.get("default_city") or "New York"),
                country_defaults=lookups.get("country_defaults"),
                timeout_s=timeout,
            )

    def start(self) -> None:
        self.sampler.start()

    def stop(self) -> None:
        self.sampler.stop()

    def get_network_stats(self) -> Dict[str, Any]:
        return self.reader.get_network_stats()

    def diagnostics(self) -> Dict[str, Any]:
        reason = getattr(self.probe, "last_reason", None)
        return {
            "phase": self.sampler.phase.value,
            "running": self.sampler.running,
            "ticks": self.sampler.ticks,
            "tick_errors": self.sampler.tick_errors,
            "probes_completed": self.state.probes_completed,
            "counter_source": getattr(self.source, "last_source", None),
            "fallback_invocations": getattr(self.source, "fallback_invocations", 0),
            "probe_target": getattr(self.probe, "last_target", None),
            "probe_reason": reason.value if reason is not None else None,
            "windows": self.state.windows(),
        }

    def render_metrics(self) -> str:
        self.metrics.observe_snapshot(self.reader.snapshot())
        self.metrics.counter("ticks_total", "Sampler ticks run").set(self.sampler.ticks)
        self.metrics.counter("tick_errors_total", "Sampler ticks that raised").set(self.sampler.tick_errors)
        self.metrics.counter("probes_total", "Gateway probes run").set(self.state.probes_completed)
        self.metrics.counter("counter_fallback_total", "Shell counter queries spawned").set(
            getattr(self.source, "fallback_invocations", 0)
        )
        return self.metrics.render_prometheus()


def create_app(config_path: str | None = None, service: Optional[xNetStatsService] = None) -> FastAPI:
    svc = service or xNetStatsService(config_path=config_path)
    app = FastAPI(title="Network Stats Service")
    app.state.netstats = svc  # type: ignore[attr-defined]
    app.include_router(get_router(svc))
    app.include_router(get_log_router())

    @app.on_event("startup")
    def _startup():
        svc.start()

    @app.on_event("shutdown")
    def _shutdown():
        svc.stop()

    return app


if __name__ == "__main__":
    import uvicorn
    from modules.logwrapper import init_logging

    init_logging()
    cfg = load_config(None)
    uvicorn.run(create_app(), host=str(cfg["server"]["host"]), port=int(cfg["server"]["port"]))
