from __future__ import annotations

from typing import Tuple

# Below this the 1/elapsed term is noise.
MIN_ELAPSED_S = 0.1
# Ticks closer together than this reuse the previous speeds.
MIN_SAMPLE_GAP_S = 0.5
# 100 MB/s in KB/s; anything above is a counter reset artifact.
SPEED_CEILING_KBPS = 102400.0


def counter_delta(previous: int, current: int) -> int:
    """Bytes moved between two cumulative readings.

    A reading below the previous one means the interface counters were reset
    or wrapped, and the new absolute value is taken as the whole delta.
    """
    if current >= previous:
        return current - previous
    return current


def estimate(delta_received: int, delta_sent: int, elapsed_seconds: float) -> Tuple[float, float]:
    """Return ``(download_kBps, upload_kBps)`` clamped to the ceiling."""
    if elapsed_seconds < MIN_ELAPSED_S:
        return 0.0, 0.0
    download = (delta_received / elapsed_seconds) / 1024.0
    upload = (delta_sent / elapsed_seconds) / 1024.0
    return min(download, SPEED_CEILING_KBPS), min(upload, SPEED_CEILING_KBPS)


def format_speed(kbps: float) -> str:
    if kbps < 1:
        return f"{kbps * 1024:.2f} B/s"
    if kbps < 1024:
        return f"{kbps:.2f} KB/s"
    return f"{kbps / 1024:.2f} MB/s"
