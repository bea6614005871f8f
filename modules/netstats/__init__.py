"""Network telemetry module: throughput, latency and packet loss of the host.

A background sampler publishes snapshots; the FastAPI router and the
Prometheus exporter only read them.
"""
from __future__ import annotations

from .xNetStatsService import create_app, xNetStatsService  # noqa: F401

__all__ = ["create_app", "xNetStatsService"]
