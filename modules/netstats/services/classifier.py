from __future__ import annotations

from enum import Enum


class Status(str, Enum):
    MEASURING = "measuring"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


POOR_LATENCY_MS = 100
POOR_LOSS_PCT = 5.0
FAIR_LATENCY_MS = 50
FAIR_LOSS_PCT = 2.0


def classify(latency_ms: int, packet_loss_pct: float, grace: bool = True) -> Status:
    """Map latency and loss to a health tier; thresholds are strict ``>``.

    ``grace`` is True until the first probe completes. While it holds, a zero
    latency always means "not measured yet". Afterwards zero latency with
    nonzero loss is a real (failing) measurement and is graded by loss.
    """
    if latency_ms == 0 and (grace or packet_loss_pct == 0):
        return Status.MEASURING
    if latency_ms > POOR_LATENCY_MS or packet_loss_pct > POOR_LOSS_PCT:
        return Status.POOR
    if latency_ms > FAIR_LATENCY_MS or packet_loss_pct > FAIR_LOSS_PCT:
        return Status.FAIR
    return Status.GOOD
