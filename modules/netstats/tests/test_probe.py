from __future__ import annotations

from pathlib import Path
import subprocess
import sys

ROOT = Path(__file__).resolve().parents[3]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from modules.netstats.services.parsing import ProbeOutcome  # noqa: E402
from modules.netstats.services.probe import GatewayProbe, ProbeResult  # noqa: E402


class ScriptedRunner:
    """Answers route queries and pings from canned outputs."""

    def __init__(self, route="default via 192.168.1.1 dev eth0", ping="", route_exc=None, ping_exc=None):
        self.route = route
        self.ping = ping
        self.route_exc = route_exc
        self.ping_exc = ping_exc
        self.pings = []

    def __call__(self, cmd, **kwargs):
        if cmd[0] == "ping":
            self.pings.append((cmd, kwargs))
            if self.ping_exc:
                raise self.ping_exc
            return subprocess.CompletedProcess(cmd, 0, stdout=self.ping, stderr="")
        if self.route_exc:
            raise self.route_exc
        return subprocess.CompletedProcess(cmd, 0, stdout=self.route, stderr="")


def test_probe_gateway_latency():
    runner = ScriptedRunner(ping="64 bytes from 192.168.1.1: icmp_seq=1 ttl=64 time=23 ms")
    probe = GatewayProbe(platform="linux", runner=runner)
    assert probe.probe() == ProbeResult(23, False)
    cmd, kwargs = runner.pings[0]
    assert cmd == ["ping", "-c", "1", "-W", "2", "192.168.1.1"]
    assert kwargs["timeout"] > 2.0
    assert probe.last_target == "192.168.1.1"
    assert probe.last_reason is ProbeOutcome.REPLY


def test_probe_windows_command_and_timeout_text():
    runner = ScriptedRunner(route="192.168.0.1\r\n", ping="Request timed out.")
    probe = GatewayProbe(platform="windows", runner=runner)
    latency, lost = probe.probe()
    assert (latency, lost) == (0, True)
    assert runner.pings[0][0] == ["ping", "-n", "1", "-w", "2000", "192.168.0.1"]


def test_unusable_gateway_uses_fallback_host():
    runner = ScriptedRunner(route="", ping="Reply from 8.8.8.8: bytes=32 time=15ms TTL=117")
    probe = GatewayProbe(platform="windows", runner=runner)
    assert probe.probe() == ProbeResult(15, False)
    assert probe.last_target == "8.8.8.8"


def test_route_query_failure_uses_fallback_host():
    runner = ScriptedRunner(route_exc=FileNotFoundError("ip"), ping="time=9ms bytes=32 TTL=50")
    probe = GatewayProbe(platform="linux", fallback_host="1.1.1.1", runner=runner)
    probe.probe()
    assert probe.last_target == "1.1.1.1"


def test_fixed_target_skips_route_query():
    runner = ScriptedRunner(route_exc=AssertionError("route queried"), ping="time=4ms")
    probe = GatewayProbe(platform="linux", target="10.1.1.1", runner=runner)
    assert probe.probe() == ProbeResult(4, False)


def test_transport_errors_are_misses():
    for exc in (OSError("spawn failed"), subprocess.TimeoutExpired("ping", 4.0)):
        probe = GatewayProbe(platform="linux", runner=ScriptedRunner(ping_exc=exc))
        assert probe.probe() == ProbeResult(0, True)
        assert probe.last_reason is ProbeOutcome.TRANSPORT_ERROR
