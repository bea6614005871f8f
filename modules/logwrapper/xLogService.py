from __future__ import annotations

import logging
import logging.config
import os
from typing import Any, Dict, List, Optional

from .config_loader import load_config
from .services.handlers import InMemoryLogHandler, build_formatter

_MEMORY_HANDLER: Optional[InMemoryLogHandler] = None
_ROUTER = None  # built lazily, FastAPI is only needed when served


def _ensure_log_dir(path: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)


def init_logging(overrides: Optional[Dict[str, Any]] = None, force: bool = False) -> None:
    """Configure the root logger once for the whole process.

    - existing loggers keep working (disable_existing_loggers=False)
    - console and rotating file handlers are optional
    - an in-memory ring buffer always receives DEBUG and above
    """
    global _MEMORY_HANDLER

    if not force and _MEMORY_HANDLER is not None and logging.getLogger().handlers:
        return

    cfg = load_config(overrides=overrides)

    handlers: Dict[str, Dict[str, Any]] = {
        "in_memory": {
            "()": InMemoryLogHandler,
            "maxlen": int(cfg.get("buffer_size", 500)),
            "level": "DEBUG",
        }
    }
    root_handlers: List[str] = ["in_memory"]

    if cfg.get("enable_console", True):
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "level": str(cfg.get("console_level", "INFO")).upper(),
            "stream": "ext://sys.stdout",
        }
        root_handlers.append("console")

    if cfg.get("enable_file", True):
        path = str(cfg.get("file_path", "logs/netstats.log"))
        _ensure_log_dir(path)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "filename": path,
            "maxBytes": int(cfg.get("rotate_bytes", 2 * 1024 * 1024)),
            "backupCount": int(cfg.get("backup_count", 5)),
            "encoding": "utf-8",
        }
        root_handlers.append("file")

    formatter = build_formatter(bool(cfg.get("json_format", False)))

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"()": lambda: formatter}},
            "handlers": {name: {**opts, "formatter": "default"} for name, opts in handlers.items()},
            "root": {"level": "DEBUG", "handlers": root_handlers},
        }
    )

    if cfg.get("capture_warnings", True):
        logging.captureWarnings(True)

    for h in logging.getLogger().handlers:
        if isinstance(h, InMemoryLogHandler):
            _MEMORY_HANDLER = h
            break

    for name, level in (cfg.get("module_levels") or {}).items():
        logging.getLogger(name).setLevel(str(level).upper())


def get_memory_handler() -> Optional[InMemoryLogHandler]:
    return _MEMORY_HANDLER


def get_router():
    global _ROUTER
    if _ROUTER is None:
        from .api.router import router
        _ROUTER = router
    return _ROUTER


if __name__ == "__main__":
    init_logging()
    log = logging.getLogger("logwrapper.demo")
    log.info("logwrapper ready")
    log.warning("sample warning")
