from __future__ import annotations

import logging
import subprocess
import time
from typing import Callable, Optional, Tuple

import psutil

from .parsing import parse_counter_pair
from .platform import counters_command, creation_flags, resolve_platform

logger = logging.getLogger("netstats.counters")

_LOOPBACK_NAMES = ("lo", "lo0")

SOURCE_NATIVE = "native"
SOURCE_SHELL = "shell"
SOURCE_CACHE = "cache"
SOURCE_STALE = "stale"


def _is_loopback(name: str, stats) -> bool:
    if name in _LOOPBACK_NAMES or name.lower().startswith("loopback"):
        return True
    # psutil exposes interface flags on POSIX since 5.9.3
    flags = str(getattr(stats, "flags", "") or "")
    return "loopback" in flags.split(",")


class ByteCounterSource:
    """Cumulative received/sent bytes over all up, non-loopback interfaces.

    The psutil query is tried first. Only when it is unavailable or finds no
    active interface is the platform shell query spawned, and its result is
    reused for ``fallback_cache_s`` seconds. ``read()`` never raises.
    """

    def __init__(
        self,
        platform: Optional[str] = None,
        fallback_cache_s: float = 5.0,
        shell_timeout_s: float = 5.0,
        use_native: bool = True,
        clock: Callable[[], float] = time.monotonic,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self.platform = resolve_platform(platform)
        self.fallback_cache_s = float(fallback_cache_s)
        self.shell_timeout_s = float(shell_timeout_s)
        self.use_native = use_native
        self._clock = clock
        self._run = runner
        self._last_good: Tuple[int, int] = (0, 0)
        self._cached: Optional[Tuple[int, int]] = None
        self._cache_time: Optional[float] = None
        self.fallback_invocations = 0
        self.last_source: Optional[str] = None

    @property
    def fresh(self) -> bool:
        """True when the last read() spawned or queried something new."""
        return self.last_source in (SOURCE_NATIVE, SOURCE_SHELL)

    def read(self) -> Tuple[int, int]:
        pair = self._read_native() if self.use_native else None
        if pair is not None:
            self.last_source = SOURCE_NATIVE
        else:
            pair = self._read_fallback()
        if pair is None:
            self.last_source = SOURCE_STALE
            return self._last_good
        self._last_good = pair
        return pair

    def _read_native(self) -> Optional[Tuple[int, int]]:
        try:
            if_stats = psutil.net_if_stats()
            io = psutil.net_io_counters(pernic=True)
        except (OSError, psutil.Error) as exc:
            logger.debug("psutil interface query failed: %s", exc)
            return None
        received = 0
        sent = 0
        active = 0
        for name, counters in (io or {}).items():
            st = if_stats.get(name)
            if st is None or not st.isup or _is_loopback(name, st):
                continue
            received += int(counters.bytes_recv)
            sent += int(counters.bytes_sent)
            active += 1
        if active == 0:
            logger.debug("psutil reported no active interface")
            return None
        return received, sent

    def _read_fallback(self) -> Optional[Tuple[int, int]]:
        now = self._clock()
        # failed attempts also hold off the next spawn for one cache window
        if self._cache_time is not None and now - self._cache_time < self.fallback_cache_s:
            if self._cached is not None:
                self.last_source = SOURCE_CACHE
            return self._cached

        self._cache_time = now
        self.fallback_invocations += 1
        logger.debug("reading counters via shell (%s)", self.platform)
        try:
            proc = self._run(
                counters_command(self.platform),
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.shell_timeout_s,
                creationflags=creation_flags(self.platform),
            )
        except subprocess.TimeoutExpired:
            logger.warning("counter query timed out after %.1fs", self.shell_timeout_s)
            return None
        except OSError as exc:
            logger.warning("counter query could not start: %s", exc)
            return None

        pair = parse_counter_pair(proc.stdout or "")
        if pair is None:
            logger.warning("unparseable counter output: %r", (proc.stdout or "").strip()[:200])
            return None
        self._cached = pair
        self.last_source = SOURCE_SHELL
        return pair
