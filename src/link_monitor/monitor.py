from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

import httpx

from .cancel import Stopped, sleep_or_stop, until_stopped
from .config import AppConfig
from .errors import MonitorError
from .outage_logger import OutageLogger
from .probe import Success, probe_target
from .state import MonitorState, MonitorStats, TickOutcome

logger = logging.getLogger(__name__)

OUTAGE = "outage"
RESTORED = "restored"


async def check_targets(
    client: httpx.AsyncClient,
    config: AppConfig,
    sleep=asyncio.sleep,
) -> TickOutcome:
    """Probe targets in order until one answers."""
    last_target = None
    last_failure = None
    for target in config.targets:
        result = await probe_target(
            client,
            target,
            config.max_retries,
            config.retry_delay_seconds,
            timeout=config.request_timeout_seconds,
            sleep=sleep,
        )
        if isinstance(result, Success):
            return TickOutcome(any_success=True)
        last_target, last_failure = target, result
    return TickOutcome(False, last_target, last_failure)


def apply_outcome(
    state: MonitorState,
    stats: MonitorStats,
    outcome: TickOutcome,
    failure_threshold: int,
    outage_logger: OutageLogger,
    now: float,
) -> Optional[str]:
    """Update the state with one tick's verdict and log on transitions only."""
    stats.ticks += 1
    if outcome.any_success:
        state.consecutive_failures = 0
        if state.is_online:
            return None
        state.is_online = True
        downtime = None
        if state.outage_started_at is not None:
            downtime = now - state.outage_started_at
            stats.record_outage_end(downtime, now)
        state.outage_started_at = None
        outage_logger.log_restored(now, downtime)
        return RESTORED

    stats.failed_ticks += 1
    state.consecutive_failures += 1
    if state.consecutive_failures >= failure_threshold and state.is_online:
        state.is_online = False
        state.outage_started_at = now
        stats.outages += 1
        outage_logger.log_outage(now, outcome.last_failed_target, outcome.last_failure)
        return OUTAGE
    return None


class OutageMonitor:
    def __init__(
        self,
        config: AppConfig,
        client: httpx.AsyncClient,
        outage_logger: Optional[OutageLogger] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self.client = client
        self.outage_logger = outage_logger or OutageLogger()
        self.clock = clock
        self.state = MonitorState()
        self.stats = MonitorStats()

    async def tick(self) -> Optional[str]:
        outcome = await check_targets(self.client, self.config)
        return apply_outcome(
            self.state,
            self.stats,
            outcome,
            self.config.failure_threshold,
            self.outage_logger,
            self.clock(),
        )

    def close_open_outage(self) -> None:
        """Count an outage still in progress at exit towards the stats."""
        if self.state.is_online or self.state.outage_started_at is None:
            return
        now = self.clock()
        self.stats.record_outage_end(now - self.state.outage_started_at, now)

    async def run(self, stop_event: asyncio.Event, once: bool = False) -> None:
        """Tick until ``stop_event`` is set (or once, with ``once``)."""
        interval = self.config.check_interval_seconds
        while not stop_event.is_set():
            try:
                await until_stopped(self.tick(), stop_event)
            except Stopped:
                break
            if once:
                break
            if await sleep_or_stop(stop_event, interval):
                break
        self.close_open_outage()
        if stop_event.is_set():
            logger.info("Shutdown signal received, stopping monitoring loop.")


def build_client(config: AppConfig) -> httpx.AsyncClient:
    try:
        return httpx.AsyncClient(
            timeout=config.request_timeout_seconds,
            follow_redirects=True,
        )
    except Exception as e:
        raise MonitorError(f"Failed to build HTTP client: {e}") from e


async def run_monitor_loop(
    config: AppConfig,
    stop_event: asyncio.Event,
    client: Optional[httpx.AsyncClient] = None,
    outage_logger: Optional[OutageLogger] = None,
    once: bool = False,
) -> OutageMonitor:
    """Run the monitor until stopped and return it for summary reporting.

    A caller supplied client is used as-is and left open.
    """
    owns_client = client is None
    if client is None:
        client = build_client(config)
    monitor = OutageMonitor(config, client, outage_logger)
    try:
        await monitor.run(stop_event, once=once)
    finally:
        if owns_client:
            await client.aclose()
    return monitor
