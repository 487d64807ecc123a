from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import httpx

from .errors import ConfigError

DEFAULT_CONFIG_FILE = "config.toml"

# Defaults for keys missing from config.toml
LOG_FILE = "link_monitor.log"
CHECK_INTERVAL_SECONDS = 60.0
MAX_RETRIES = 3
FAILURE_THRESHOLD = 2
REQUEST_TIMEOUT_SECONDS = 5.0
RETRY_DELAY_SECONDS = 2.0

# Logging
LOG_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

ALLOWED_SCHEMES = ("http", "https")


@dataclass(frozen=True)
class AppConfig:
    targets: tuple[str, ...]
    log_file: str = LOG_FILE
    check_interval_seconds: float = CHECK_INTERVAL_SECONDS
    max_retries: int = MAX_RETRIES
    failure_threshold: int = FAILURE_THRESHOLD
    request_timeout_seconds: float = REQUEST_TIMEOUT_SECONDS
    retry_delay_seconds: float = RETRY_DELAY_SECONDS


def load_config(path: str | Path = DEFAULT_CONFIG_FILE) -> AppConfig:
    """Read and validate config.toml.

    Every problem is reported as ConfigError; the returned AppConfig is
    trusted as-is by the monitor.
    """
    data = _read_toml(Path(path))
    return parse_config(data, source=str(path))


def parse_config(data: dict[str, Any], source: str = "<config>") -> AppConfig:
    if "ping_target" not in data:
        raise ConfigError(f"{source}: missing required key 'ping_target'")
    targets = parse_targets(data["ping_target"], source)

    log_file = data.get("log_file", LOG_FILE)
    if not isinstance(log_file, str) or not log_file.strip():
        raise ConfigError(f"{source}: 'log_file' must be a non-empty string")

    return AppConfig(
        targets=targets,
        log_file=log_file,
        check_interval_seconds=_number(
            data, "check_interval_seconds", CHECK_INTERVAL_SECONDS, source, minimum=0, strict=True
        ),
        max_retries=_integer(data, "max_retries", MAX_RETRIES, source),
        failure_threshold=_integer(data, "failure_threshold", FAILURE_THRESHOLD, source),
        request_timeout_seconds=_number(
            data, "request_timeout_seconds", REQUEST_TIMEOUT_SECONDS, source, minimum=0, strict=True
        ),
        retry_delay_seconds=_number(
            data, "retry_delay_seconds", RETRY_DELAY_SECONDS, source, minimum=0
        ),
    )


def parse_targets(raw: Any, source: str = "<config>") -> tuple[str, ...]:
    """Accept a comma separated string or a list of URLs."""
    if isinstance(raw, str):
        entries = raw.split(",")
    elif isinstance(raw, list) and all(isinstance(e, str) for e in raw):
        entries = raw
    else:
        raise ConfigError(f"{source}: 'ping_target' must be a string or a list of strings")

    targets = tuple(e.strip() for e in entries if e.strip())
    if not targets:
        raise ConfigError(f"{source}: 'ping_target' does not contain any URL")
    for target in targets:
        validate_target(target)
    return targets


def validate_target(target: str) -> None:
    try:
        parts = urlsplit(target)
        # port is parsed lazily by urlsplit
        parts.port
        httpx.URL(target)
    except (ValueError, httpx.InvalidURL) as e:
        raise ConfigError(f"Invalid URL in ping_target: '{target}'") from e
    if parts.scheme not in ALLOWED_SCHEMES:
        raise ConfigError(f"ping_target must use http or https scheme: '{target}'")
    if not parts.hostname:
        raise ConfigError(f"Invalid URL in ping_target: '{target}'")


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(
            f"Failed to read {path}: file not found. Make sure the file exists."
        ) from e
    except OSError as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse {path}: {e}. Check the file syntax.") from e


def _integer(data: dict[str, Any], key: str, default: int, source: str) -> int:
    value = data.get(key, default)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{source}: '{key}' must be an integer")
    if value < 1:
        raise ConfigError(f"{source}: '{key}' must be at least 1")
    return value


def _number(
    data: dict[str, Any],
    key: str,
    default: float,
    source: str,
    minimum: float,
    strict: bool = False,
) -> float:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{source}: '{key}' must be a number")
    if value < minimum or (strict and value == minimum):
        bound = "greater than" if strict else "at least"
        raise ConfigError(f"{source}: '{key}' must be {bound} {minimum}")
    return float(value)
