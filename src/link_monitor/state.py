from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .probe import CheckResult


@dataclass
class MonitorState:
    # Assume reachable at boot so the first outage, not the first success, is logged.
    is_online: bool = True
    consecutive_failures: int = 0
    outage_started_at: Optional[float] = None


@dataclass
class MonitorStats:
    ticks: int = 0
    failed_ticks: int = 0
    outages: int = 0
    longest_outage: float = 0.0
    longest_outage_ts: Optional[float] = None  # when it ended

    def record_outage_end(self, duration: float, ts: float) -> None:
        if duration > self.longest_outage:
            self.longest_outage = duration
            self.longest_outage_ts = ts


@dataclass(frozen=True)
class TickOutcome:
    any_success: bool
    last_failed_target: Optional[str] = None
    last_failure: Optional[CheckResult] = None
