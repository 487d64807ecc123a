from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler

from . import config
from .errors import LinkMonitorError
from .monitor import run_monitor_loop
from .ui import build_summary_table

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger("link_monitor")


def setup_logging(log_path: Path) -> None:
    """Log to the terminal through rich and append to ``log_path``."""
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s %(message)s", datefmt=config.LOG_TIME_FORMAT
        )
    )
    handlers: list[logging.Handler] = [
        RichHandler(console=console, show_path=False, log_time_format=config.LOG_TIME_FORMAT),
        file_handler,
    ]
    logging.basicConfig(
        level=logging.INFO,
        format="%(message)s",
        handlers=handlers,
        force=True,
    )


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Log internet outages by periodically probing HTTP(S) targets."
    )
    parser.add_argument(
        "--config",
        default=config.DEFAULT_CONFIG_FILE,
        help=f"Path to config TOML (default: {config.DEFAULT_CONFIG_FILE})",
    )
    parser.add_argument("--once", action="store_true", help="Run one round of checks and exit.")
    return parser.parse_args(argv)


def install_signal_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()

    def _signal_handler():
        loop.call_soon_threadsafe(stop_event.set)

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:  # Windows
            signal.signal(sig, lambda s, f: _signal_handler())


async def main_async(app_config: config.AppConfig, once: bool = False) -> None:
    stop_event = asyncio.Event()
    install_signal_handlers(stop_event)

    logger.info("Internet monitoring script started.")
    logger.info("Check targets: %s", ", ".join(app_config.targets))
    logger.info("Check interval: %.0f seconds.", app_config.check_interval_seconds)
    logger.info("Outage log file: %s", app_config.log_file)

    monitor = await run_monitor_loop(app_config, stop_event, once=once)

    logger.info("Internet monitoring script stopped.")
    console.print(build_summary_table(monitor.state, monitor.stats))


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        app_config = config.load_config(args.config)
    except LinkMonitorError as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}")
        return 1

    try:
        setup_logging(Path(app_config.log_file))
    except OSError as e:
        err_console.print(
            f"[bold red]Error:[/bold red] Failed to open log file '{app_config.log_file}': {e}"
        )
        return 1

    try:
        asyncio.run(main_async(app_config, once=args.once))
    except KeyboardInterrupt:
        pass
    except LinkMonitorError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
