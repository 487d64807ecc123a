from __future__ import annotations


class LinkMonitorError(Exception):
    """Base class for fatal link monitor errors."""


class ConfigError(LinkMonitorError):
    """Configuration file is missing, unreadable or invalid."""


class MonitorError(LinkMonitorError):
    """The monitor could not be started (e.g. HTTP client construction)."""
