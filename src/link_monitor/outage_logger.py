from __future__ import annotations

import logging
from typing import Optional

from .probe import CheckResult
from .ui import format_duration, format_ts


class OutageLogger:
    """Formats the two transition events onto a logging sink."""

    def __init__(self, sink: Optional[logging.Logger] = None):
        self.sink = sink or logging.getLogger("link_monitor.outages")

    def log_outage(self, ts: float, target: str, result: CheckResult) -> None:
        self.sink.error(
            "Internet outage detected at %s: target=%s reason=%s",
            format_ts(ts),
            target,
            result.describe(),
        )

    def log_restored(self, ts: float, downtime: Optional[float] = None) -> None:
        if downtime is None:
            self.sink.info("Internet connection restored at %s", format_ts(ts))
        else:
            self.sink.info(
                "Internet connection restored at %s (down for %s)",
                format_ts(ts),
                format_duration(downtime),
            )
