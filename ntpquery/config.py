"""
ntpquery Client Configuration
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field, asdict
from typing import Any, List, Optional

from ntpquery.constants import (
    DEFAULT_SERVER,
    DEFAULT_TIMEOUT_MS,
    NTP_PORT,
)
from ntpquery.network.resolver import (
    ADDRESS_FAMILIES,
    ADDRESS_SELECTORS,
    AddressSelector,
    SocketResolver,
    get_address_family,
    get_address_selector,
)

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "WARNING"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class ClientConfig:
    """
    Complete client configuration.

    Everything a query needs besides the collaborators themselves.
    Values loaded from JSON are not type-coerced; validate() reports
    wrongly typed fields.
    """
    server: str = DEFAULT_SERVER
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    port: int = NTP_PORT
    address_family: str = "any"
    address_selection: str = "first"

    log: LogConfig = field(default_factory=LogConfig)

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not isinstance(self.server, str) or not self.server:
            errors.append(f"server must be a non-empty string: {self.server!r}")

        if not _is_int(self.timeout_ms):
            errors.append(f"timeout_ms must be an integer: {self.timeout_ms!r}")
        elif self.timeout_ms <= 0:
            errors.append(f"timeout_ms must be positive: {self.timeout_ms}")

        if not _is_int(self.port):
            errors.append(f"port must be an integer: {self.port!r}")
        elif self.port < 1 or self.port > 65535:
            errors.append(f"Invalid port: {self.port}")

        if not isinstance(self.address_family, str) or \
                self.address_family not in ADDRESS_FAMILIES:
            errors.append(f"Unknown address_family: {self.address_family!r}")

        if not isinstance(self.address_selection, str) or \
                self.address_selection not in ADDRESS_SELECTORS:
            errors.append(f"Unknown address_selection: {self.address_selection!r}")

        if not isinstance(self.log.level, str) or self.log.level.upper() not in LOG_LEVELS:
            errors.append(f"Unknown log level: {self.log.level!r}")

        if self.log.file is not None and not isinstance(self.log.file, str):
            errors.append(f"log file must be a path string: {self.log.file!r}")

        if not isinstance(self.log.format, str):
            errors.append(f"log format must be a string: {self.log.format!r}")

        return errors

    def resolver(self) -> SocketResolver:
        """Build the resolver for the configured address family."""
        return SocketResolver(get_address_family(self.address_family))

    def selector(self) -> AddressSelector:
        """Get the configured address selection strategy."""
        return get_address_selector(self.address_selection)

    def save(self, path: str) -> None:
        """Save configuration to file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info(f"Configuration saved to {path}")

    @classmethod
    def load(cls, path: str) -> "ClientConfig":
        """Load configuration from file."""
        with open(path, 'r') as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Configuration in {path} must be a JSON object")

        config = cls(
            server=data.get("server", DEFAULT_SERVER),
            timeout_ms=data.get("timeout_ms", DEFAULT_TIMEOUT_MS),
            port=data.get("port", NTP_PORT),
            address_family=data.get("address_family", "any"),
            address_selection=data.get("address_selection", "first"),
        )

        if "log" in data:
            config.log = LogConfig(**data["log"])

        logger.info(f"Configuration loaded from {path}")
        return config

    def to_dict(self) -> dict:
        """Export configuration as dictionary."""
        return {
            "server": self.server,
            "timeout_ms": self.timeout_ms,
            "port": self.port,
            "address_family": self.address_family,
            "address_selection": self.address_selection,
            "log": asdict(self.log),
        }


def setup_logging(config: LogConfig) -> None:
    """Send log records to stderr and, if configured, a log file."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if config.file:
        handlers.append(logging.FileHandler(config.file))

    logging.basicConfig(
        level=getattr(logging, config.level.upper(), logging.WARNING),
        format=config.format,
        handlers=handlers,
        force=True,
    )
