from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

from fastapi import APIRouter, Response

from ..services.estimator import format_speed

if TYPE_CHECKING:  # pragma: no cover
    from ..xNetStatsService import xNetStatsService


def get_router(svc: "xNetStatsService") -> APIRouter:
    r = APIRouter(prefix="/netstats", tags=["netstats"])

    @r.get("/healthz")
    def healthz():
        return {"ok": True, "running": svc.sampler.running}

    @r.get("/stats")
    def stats() -> Dict[str, Any]:
        out = svc.get_network_stats()
        out["download_display"] = format_speed(out["download_kBps"])
        out["upload_display"] = format_speed(out["upload_kBps"])
        return out

    @r.get("/diagnostics")
    def diagnostics():
        return svc.diagnostics()

    @r.get("/metrics")
    def metrics() -> Response:
        return Response(svc.render_metrics(), media_type="text/plain; version=0.0.4")

    @r.get("/ip")
    def ip(refresh: bool = False):
        if svc.ip_lookup is None:
            return {"ok": False, "error": "lookups disabled"}
        return {"ok": True, **svc.ip_lookup.lookup(refresh=refresh).to_dict()}

    @r.get("/weather")
    def weather(city: Optional[str] = None, timezone: str = "", country: str = ""):
        if svc.weather_lookup is None:
            return {"ok": False, "error": "lookups disabled"}
        if not city and svc.ip_lookup is not None:
            info = svc.ip_lookup.lookup()
            city, timezone, country = info.city, timezone or info.timezone, country or info.country
        return {"ok": True, **svc.weather_lookup.lookup(city, timezone, country).to_dict()}

    return r
