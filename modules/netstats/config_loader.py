from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

_DEFAULT_CFG_PATH = Path(__file__).parent / "config" / "config.yml"

DEFAULTS: Dict[str, Any] = {
    "server": {"host": "0.0.0.0", "port": 8097},
    "sampling": {"tick_interval_s": 1.0, "min_sample_gap_s": 0.5},
    "counters": {"platform": "auto", "use_native": True, "fallback_cache_s": 5.0, "shell_timeout_s": 5.0},
    "probe": {
        "interval_s": 10.0,
        "timeout_s": 2.0,
        "route_timeout_s": 3.0,
        "fallback_host": "8.8.8.8",
        "target": "",
    },
    "lookups": {"enabled": True, "timeout_s": 4.0, "cache_s": 600},
}


def _deep_update(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            base[k] = _deep_update(dict(base[k]), v)
        else:
            base[k] = v
    return base


def load_config(path: str | os.PathLike | None = None, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Defaults < config.yml (or NETSTATS_CONFIG / explicit path) < overrides < env."""
    cfg_path = Path(path) if path else Path(os.getenv("NETSTATS_CONFIG", _DEFAULT_CFG_PATH))
    if not cfg_path.exists():
        cfg_path = _DEFAULT_CFG_PATH

    cfg = copy.deepcopy(DEFAULTS)
    if cfg_path.exists():
        with open(cfg_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if isinstance(data, dict):
            cfg = _deep_update(cfg, data)
    if overrides:
        cfg = _deep_update(cfg, overrides)

    env: Dict[str, Any] = {}
    host = os.getenv("NETSTATS_HOST")
    port = os.getenv("NETSTATS_PORT")
    tick = os.getenv("NETSTATS_TICK_S")
    target = os.getenv("NETSTATS_PROBE_HOST")
    if host:
        env.setdefault("server", {})["host"] = host
    if port:
        env.setdefault("server", {})["port"] = int(port)
    if tick:
        env.setdefault("sampling", {})["tick_interval_s"] = float(tick)
    if target:
        env.setdefault("probe", {})["target"] = target
    return _deep_update(cfg, env)
