"""Tolerant parsers for the text printed by shell counter, route and ping queries.

Output of these tools varies by OS, locale and version, so nothing here
assumes a strict grammar. Every parser either returns a value or a named
reason; none of them raise on malformed input.
"""
from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class ProbeOutcome(str, Enum):
    REPLY = "reply"
    REPLY_NO_TIME = "reply_no_time"
    UNREACHABLE = "unreachable"
    TIMED_OUT = "timed_out"
    GENERAL_FAILURE = "general_failure"
    HOST_NOT_FOUND = "host_not_found"
    TOTAL_LOSS = "total_loss"
    NO_REPLY = "no_reply"
    TRANSPORT_ERROR = "transport_error"


# Checked in this order before any latency field is read.
FAILURE_MARKERS: Tuple[Tuple[str, ProbeOutcome], ...] = (
    ("destination host unreachable", ProbeOutcome.UNREACHABLE),
    ("destination net unreachable", ProbeOutcome.UNREACHABLE),
    ("request timed out", ProbeOutcome.TIMED_OUT),
    ("general failure", ProbeOutcome.GENERAL_FAILURE),
    ("ping request could not find", ProbeOutcome.HOST_NOT_FOUND),
    ("unknown host", ProbeOutcome.HOST_NOT_FOUND),
    ("name or service not known", ProbeOutcome.HOST_NOT_FOUND),
)

# "100% loss" (Windows), "100% packet loss" (Linux), "100.0% packet loss" (macOS)
_TOTAL_LOSS_RE = re.compile(r"(?<![\d.])100(?:\.0+)?% (?:packet )?loss")

_TIME_RE = re.compile(r"time\s*[=<]\s*([0-9]+(?:[.,][0-9]+)?)\s*ms", re.IGNORECASE)
_REPLY_RE = re.compile(r"bytes(?:=|\s+from)", re.IGNORECASE)
_TTL_RE = re.compile(r"ttl\s*=", re.IGNORECASE)

_LINUX_GW_RE = re.compile(r"default\s+via\s+(\S+)")
_MAC_GW_RE = re.compile(r"gateway:\s*(\S+)")

# Reported when a reply is seen but carries no parseable round-trip time.
FLOOR_LATENCY_MS = 1


@dataclass(frozen=True)
class PingReading:
    latency_ms: int
    lost: bool
    reason: ProbeOutcome


def parse_ping_output(text: str) -> PingReading:
    low = (text or "").lower()
    for marker, reason in FAILURE_MARKERS:
        if marker in low:
            return PingReading(0, True, reason)
    if _TOTAL_LOSS_RE.search(low):
        return PingReading(0, True, ProbeOutcome.TOTAL_LOSS)

    m = _TIME_RE.search(text or "")
    if m:
        try:
            value = float(m.group(1).replace(",", "."))
        except ValueError:
            value = 0.0
        # "time<1ms" and sub-millisecond replies both report 1
        return PingReading(max(FLOOR_LATENCY_MS, int(value)), False, ProbeOutcome.REPLY)

    if _REPLY_RE.search(text or "") and _TTL_RE.search(text or ""):
        return PingReading(FLOOR_LATENCY_MS, False, ProbeOutcome.REPLY_NO_TIME)

    return PingReading(0, True, ProbeOutcome.NO_REPLY)


def _lenient_int(field: str) -> int:
    try:
        return max(0, int(field.strip()))
    except ValueError:
        return 0


def parse_counter_pair(text: str) -> Optional[Tuple[int, int]]:
    """Parse ``received,sent`` from the last line that holds a comma.

    Unparseable fields count as 0; output without any comma is ``None``.
    """
    for line in reversed((text or "").strip().splitlines()):
        if "," not in line:
            continue
        received, _, sent = line.partition(",")
        return _lenient_int(received), _lenient_int(sent)
    return None


def usable_ipv4(candidate: str) -> Optional[str]:
    try:
        addr = ipaddress.IPv4Address(candidate.strip())
    except ValueError:
        return None
    if addr.is_unspecified or addr.is_multicast:
        return None
    return str(addr)


def parse_gateway_output(text: str) -> Optional[str]:
    """Pick the next-hop address out of ``ip route``, ``route get`` or PowerShell output."""
    text = text or ""
    for regex in (_LINUX_GW_RE, _MAC_GW_RE):
        m = regex.search(text)
        if m:
            return usable_ipv4(m.group(1))
    for line in text.splitlines():
        ip = usable_ipv4(line)
        if ip:
            return ip
    return None
