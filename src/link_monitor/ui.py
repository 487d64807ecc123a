from __future__ import annotations

from datetime import datetime

from rich import box
from rich.table import Table

from . import config
from .state import MonitorState, MonitorStats


def format_duration(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.0f}s"
    elif seconds < 3600:
        return f"{seconds / 60:.1f}m"
    elif seconds < 86400:
        return f"{seconds / 3600:.1f}h"
    else:
        return f"{seconds / 86400:.1f}d"


def format_ts(ts: float) -> str:
    return datetime.fromtimestamp(ts).strftime(config.LOG_TIME_FORMAT)


def build_summary_table(state: MonitorState, stats: MonitorStats) -> Table:
    table = Table(
        title="Link Monitor Summary",
        box=box.MINIMAL_DOUBLE_HEAD,
        show_header=False,
    )
    table.add_column("Metric", style="bold")
    table.add_column("Value")

    if stats.longest_outage_ts is not None:
        longest = (
            f"{format_duration(stats.longest_outage)} "
            f"(ended on {format_ts(stats.longest_outage_ts)})"
        )
    else:
        longest = "-"

    table.add_row("Checks", str(stats.ticks))
    table.add_row("Failed checks", str(stats.failed_ticks))
    table.add_row("Outages", str(stats.outages))
    table.add_row("Longest outage", longest)
    table.add_row(
        "State",
        "[green]ONLINE[/green]" if state.is_online else "[red]OFFLINE[/red]",
    )
    table.add_row("Consec fail", str(state.consecutive_failures))
    return table
