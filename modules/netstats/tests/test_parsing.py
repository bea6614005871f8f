from __future__ import annotations

from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[3]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from modules.netstats.services.parsing import (  # noqa: E402
    ProbeOutcome,
    parse_counter_pair,
    parse_gateway_output,
    parse_ping_output,
)

WIN_REPLY = """
Pinging 192.168.1.1 with 32 bytes of data:
Reply from 192.168.1.1: bytes=32 time=23ms TTL=64

Ping statistics for 192.168.1.1:
    Packets: Sent = 1, Received = 1, Lost = 0 (0% loss),
"""

WIN_FAST = "Reply from 192.168.1.1: bytes=32 time<1ms TTL=64\n    Packets: Sent = 1, Received = 1, Lost = 0 (0% loss),"

WIN_TIMEOUT = """
Pinging 10.0.0.1 with 32 bytes of data:
Request timed out.

Ping statistics for 10.0.0.1:
    Packets: Sent = 1, Received = 0, Lost = 1 (100% loss),
"""

LINUX_REPLY = """PING 1.1.1.1 (1.1.1.1) 56(84) bytes of data.
64 bytes from 1.1.1.1: icmp_seq=1 ttl=57 time=0.412 ms

--- 1.1.1.1 ping statistics ---
1 packets transmitted, 1 received, 0% packet loss, time 0ms
"""

LINUX_LOSS = """PING 10.9.9.9 (10.9.9.9) 56(84) bytes of data.

--- 10.9.9.9 ping statistics ---
1 packets transmitted, 0 received, 100% packet loss, time 0ms
"""

MAC_LOSS = """PING 10.9.9.9 (10.9.9.9): 56 data bytes
Request timeout for icmp_seq 0

--- 10.9.9.9 ping statistics ---
1 packets transmitted, 0 packets received, 100.0% packet loss
"""


def test_explicit_time_field():
    r = parse_ping_output(WIN_REPLY)
    assert (r.latency_ms, r.lost, r.reason) == (23, False, ProbeOutcome.REPLY)


def test_compact_time_field():
    r = parse_ping_output("Reply from 8.8.8.8: bytes=32 time=23ms TTL=117")
    assert (r.latency_ms, r.lost) == (23, False)


def test_sub_millisecond_reports_one():
    assert parse_ping_output(WIN_FAST).latency_ms == 1
    assert parse_ping_output(LINUX_REPLY).latency_ms == 1


def test_request_timed_out_is_loss():
    r = parse_ping_output(WIN_TIMEOUT)
    assert (r.latency_ms, r.lost, r.reason) == (0, True, ProbeOutcome.TIMED_OUT)


@pytest.mark.parametrize(
    "text, reason",
    [
        ("Reply from 192.168.1.5: Destination host unreachable.", ProbeOutcome.UNREACHABLE),
        ("PING: transmit failed. General failure.", ProbeOutcome.GENERAL_FAILURE),
        ("Ping request could not find host nowhere. Please check the name.", ProbeOutcome.HOST_NOT_FOUND),
        (LINUX_LOSS, ProbeOutcome.TOTAL_LOSS),
        (MAC_LOSS, ProbeOutcome.TOTAL_LOSS),
        ("Packets: Sent = 1, Received = 0, Lost = 1 (100% loss),", ProbeOutcome.TOTAL_LOSS),
        ("", ProbeOutcome.NO_REPLY),
        ("garbage output", ProbeOutcome.NO_REPLY),
    ],
)
def test_failure_reasons(text, reason):
    r = parse_ping_output(text)
    assert r.lost is True
    assert r.latency_ms == 0
    assert r.reason is reason


def test_failure_marker_wins_over_time_field():
    text = "Reply from 10.0.0.1: Destination host unreachable.\nReply from 10.0.0.2: bytes=32 time=5ms TTL=64"
    assert parse_ping_output(text).lost is True


def test_reply_without_time_gets_floor_latency():
    r = parse_ping_output("Reply from 10.0.0.1: bytes=32 TTL=64")
    assert (r.latency_ms, r.lost, r.reason) == (1, False, ProbeOutcome.REPLY_NO_TIME)


def test_counter_pair_lenient():
    assert parse_counter_pair("123456,7890\r\n") == (123456, 7890)
    assert parse_counter_pair("WARNING: something\n42,abc\n") == (42, 0)
    assert parse_counter_pair(" , ") == (0, 0)
    assert parse_counter_pair("no comma here") is None
    assert parse_counter_pair("") is None


def test_gateway_output_variants():
    assert parse_gateway_output("default via 192.168.1.1 dev wlan0 proto dhcp metric 600") == "192.168.1.1"
    assert parse_gateway_output("   route to: default\ngateway: 10.0.0.1\n  interface: en0") == "10.0.0.1"
    assert parse_gateway_output("192.168.0.254\r\n") == "192.168.0.254"
    assert parse_gateway_output("") is None
    assert parse_gateway_output("fe80::1") is None
    assert parse_gateway_output("0.0.0.0") is None


def test_partial_loss_is_not_total_loss():
    text = "2 packets transmitted, 1 received, 50.0% packet loss\n64 bytes from 1.1.1.1: icmp_seq=1 ttl=57 time=12.1 ms"
    r = parse_ping_output(text)
    assert (r.latency_ms, r.lost) == (12, False)
    assert parse_ping_output("Lost = 0 (0% loss) time=3ms").lost is False
