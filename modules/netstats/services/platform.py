"""Per-OS shell commands used by the counter fallback and the gateway probe.

Every builder returns an argv list for ``subprocess.run``; nothing here runs a
process itself.
"""
from __future__ import annotations

import os
import sys
from typing import List, Optional

WINDOWS = "windows"
LINUX = "linux"
MACOS = "macos"

# CREATE_NO_WINDOW, keeps console windows from flashing on Windows
NO_WINDOW_FLAG = 0x08000000

_PS_PREFIX = ["powershell", "-WindowStyle", "Hidden", "-NoProfile", "-NonInteractive", "-Command"]

_PS_COUNTERS = r"""
$ErrorActionPreference = 'SilentlyContinue'
$adapters = Get-NetAdapter | Where-Object { $_.Status -eq 'Up' }
$totalReceived = 0L
$totalSent = 0L
foreach ($adapter in $adapters) {
    $stats = Get-NetAdapterStatistics -Name $adapter.Name -ErrorAction SilentlyContinue
    if ($stats) {
        $totalReceived += $stats.ReceivedBytes
        $totalSent += $stats.SentBytes
    }
}
Write-Output "$totalReceived,$totalSent"
"""

_SH_COUNTERS = (
    "r=0; s=0; "
    "for i in /sys/class/net/*; do "
    "n=${i##*/}; [ \"$n\" = lo ] && continue; "
    "[ \"$(cat $i/operstate 2>/dev/null)\" = up ] || continue; "
    "r=$((r + $(cat $i/statistics/rx_bytes 2>/dev/null || echo 0))); "
    "s=$((s + $(cat $i/statistics/tx_bytes 2>/dev/null || echo 0))); "
    "done; echo \"$r,$s\""
)

# netstat -ibn prints one <Link#N> row per interface carrying the byte totals
_MAC_COUNTERS = (
    "netstat -ibn | awk '$1 !~ /^lo/ && $3 ~ /^<Link/ && !seen[$1]++ "
    "{ r += $7; s += $10 } END { printf \"%d,%d\\n\", r, s }'"
)


def detect_platform() -> str:
    """Return "windows" | "macos" | "linux"."""
    plat = sys.platform
    if plat.startswith("win"):
        return WINDOWS
    if plat == "darwin":
        return MACOS
    return LINUX


def counters_command(platform: str) -> List[str]:
    if platform == WINDOWS:
        return [*_PS_PREFIX, _PS_COUNTERS]
    if platform == MACOS:
        return ["sh", "-c", _MAC_COUNTERS]
    return ["sh", "-c", _SH_COUNTERS]


def gateway_command(platform: str) -> List[str]:
    if platform == WINDOWS:
        return [*_PS_PREFIX, "(Get-NetRoute -DestinationPrefix '0.0.0.0/0' | Select-Object -First 1).NextHop"]
    if platform == MACOS:
        return ["route", "-n", "get", "default"]
    return ["ip", "route", "show", "default"]


def ping_command(platform: str, host: str, timeout_s: float) -> List[str]:
    if platform == WINDOWS:
        return ["ping", "-n", "1", "-w", str(int(timeout_s * 1000)), host]
    if platform == MACOS:
        return ["ping", "-c", "1", "-W", str(int(timeout_s * 1000)), host]
    return ["ping", "-c", "1", "-W", str(max(1, int(round(timeout_s)))), host]


def creation_flags(platform: str) -> int:
    return NO_WINDOW_FLAG if platform == WINDOWS and os.name == "nt" else 0


def resolve_platform(name: Optional[str]) -> str:
    """Normalise a configured platform name, ``auto``/empty means detect."""
    key = (name or "auto").strip().lower()
    if key in (WINDOWS, LINUX, MACOS):
        return key
    if key in ("win", "win32", "nt"):
        return WINDOWS
    if key in ("darwin", "mac", "osx"):
        return MACOS
    return detect_platform()
