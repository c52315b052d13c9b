"""Exceptions raised inside the monitor."""


class MonitorError(Exception):
    """Base exception for the gateway monitor."""


class ConfigError(MonitorError):
    """Invalid or incomplete configuration file."""


class TransportFailure(MonitorError):
    """Gateway unreachable or answered with a non-success status."""


class MalformedPayload(MonitorError):
    """Gateway response could not be parsed as the expected shape."""
