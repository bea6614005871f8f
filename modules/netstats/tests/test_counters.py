from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
import subprocess
import sys

ROOT = Path(__file__).resolve().parents[3]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from modules.netstats.services import counters  # noqa: E402
from modules.netstats.services.counters import ByteCounterSource  # noqa: E402


class FakeClock:
    def __init__(self, t: float = 0.0) -> None:
        self.t = t

    def __call__(self) -> float:
        return self.t


class FakeShell:
    def __init__(self, outputs):
        self.outputs = list(outputs)
        self.calls = []

    def __call__(self, cmd, **kwargs):
        self.calls.append((cmd, kwargs))
        out = self.outputs.pop(0) if self.outputs else ""
        if isinstance(out, BaseException):
            raise out
        return subprocess.CompletedProcess(cmd, 0, stdout=out, stderr="")


def _nic(up: bool = True, flags: str = "up,broadcast,running,multicast"):
    return SimpleNamespace(isup=up, flags=flags)


def _io(recv: int, sent: int):
    return SimpleNamespace(bytes_recv=recv, bytes_sent=sent)


def test_native_sums_up_non_loopback(monkeypatch):
    monkeypatch.setattr(
        counters.psutil,
        "net_if_stats",
        lambda: {
            "eth0": _nic(),
            "wlan0": _nic(),
            "docker0": _nic(up=False),
            "lo": _nic(flags="up,loopback,running"),
            "Loopback Pseudo-Interface 1": _nic(flags=""),
        },
    )
    monkeypatch.setattr(
        counters.psutil,
        "net_io_counters",
        lambda pernic: {
            "eth0": _io(1000, 100),
            "wlan0": _io(500, 50),
            "docker0": _io(99999, 99999),
            "lo": _io(77777, 77777),
            "Loopback Pseudo-Interface 1": _io(5555, 5555),
        },
    )
    shell = FakeShell([])
    src = ByteCounterSource(platform="linux", runner=shell)
    assert src.read() == (1500, 150)
    assert src.last_source == "native"
    assert shell.calls == []


def test_fallback_only_when_native_has_no_active_interface(monkeypatch):
    monkeypatch.setattr(counters.psutil, "net_if_stats", lambda: {"lo": _nic(flags="up,loopback")})
    monkeypatch.setattr(counters.psutil, "net_io_counters", lambda pernic: {"lo": _io(1, 1)})
    shell = FakeShell(["4096,2048\n"])
    src = ByteCounterSource(platform="linux", runner=shell)
    assert src.read() == (4096, 2048)
    assert src.last_source == "shell"
    assert src.fallback_invocations == 1
    cmd, kwargs = shell.calls[0]
    assert cmd[0] == "sh"
    assert kwargs["timeout"] == 5.0


def test_fallback_cached_within_window():
    clock = FakeClock()
    shell = FakeShell(["100,10", "200,20"])
    src = ByteCounterSource(platform="linux", use_native=False, fallback_cache_s=5.0, clock=clock, runner=shell)
    assert src.read() == (100, 10)
    clock.t = 4.9
    assert src.read() == (100, 10)
    assert src.last_source == "cache"
    assert len(shell.calls) == 1
    clock.t = 5.0
    assert src.read() == (200, 20)
    assert len(shell.calls) == 2


def test_native_error_falls_back(monkeypatch):
    def boom():
        raise OSError("ioctl not supported")

    monkeypatch.setattr(counters.psutil, "net_if_stats", boom)
    shell = FakeShell(["7,8"])
    src = ByteCounterSource(platform="windows", runner=shell)
    assert src.read() == (7, 8)
    assert shell.calls[0][0][0] == "powershell"


def test_total_failure_returns_last_good():
    clock = FakeClock()
    shell = FakeShell(["300,30", subprocess.TimeoutExpired("sh", 5.0), OSError("no sh"), "nonsense"])
    src = ByteCounterSource(platform="linux", use_native=False, fallback_cache_s=1.0, clock=clock, runner=shell)
    assert src.read() == (300, 30)
    for step in (1, 2, 3):
        clock.t = float(step)
        assert src.read() == (300, 30)
    assert src.fallback_invocations == 4


def test_first_call_failure_returns_zero():
    shell = FakeShell([OSError("missing")])
    src = ByteCounterSource(platform="linux", use_native=False, runner=shell)
    assert src.read() == (0, 0)
    assert src.last_source == "stale"
