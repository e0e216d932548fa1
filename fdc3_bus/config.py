"""
FDC3 Bus Configuration
======================

Single source of truth for engine settings.
Reads from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass

from .errors import ConfigurationError

LOG_FORMATS = ("json", "text")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class BusConfig:
    """Settings shared by the bus factory and the routing engine."""

    connect_retry_interval: float = 5.0  # seconds between connection attempts
    method_prefix: str = "Fdc3"  # "<prefix>.<platform>.<Method>"
    log_level: str = "INFO"
    log_format: str = "json"

    def __post_init__(self):
        if self.connect_retry_interval <= 0:
            raise ConfigurationError(
                f"Connection retry interval must be positive, got {self.connect_retry_interval}"
            )
        if not self.method_prefix:
            raise ConfigurationError("Method prefix must not be empty")
        if self.log_format not in LOG_FORMATS:
            raise ConfigurationError(
                f"Log format must be one of {', '.join(LOG_FORMATS)}, got {self.log_format!r}"
            )
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level {self.log_level!r}")

    @classmethod
    def from_env(cls) -> "BusConfig":
        """Load configuration from environment variables."""
        raw_interval = os.environ.get("FDC3_CONNECT_RETRY_INTERVAL", "5.0")
        try:
            interval = float(raw_interval)
        except ValueError:
            raise ConfigurationError(f"Invalid FDC3_CONNECT_RETRY_INTERVAL: {raw_interval!r}")

        return cls(
            connect_retry_interval=interval,
            method_prefix=os.environ.get("FDC3_METHOD_PREFIX", "Fdc3"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            log_format=os.environ.get("LOG_FORMAT", "json"),
        )
