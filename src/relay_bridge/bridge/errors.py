"""Error types for the bridge.

Every error raised inside a supervisor attempt, a registry poll or a bridge
task is one of these. Only ConfigError escapes to the process boundary.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class BridgeError(Exception):
    """Base error class for bridge errors."""

    message: str
    retryable: bool = True
    data: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


@dataclass
class ConnectError(BridgeError):
    """Connecting to a relay network failed."""

    message: str = "Relay connection failed"


@dataclass
class RegistryFetchError(BridgeError):
    """Registry could not be fetched or decoded."""

    message: str = "Failed to fetch stream registry"


@dataclass
class BridgeNotFoundError(BridgeError):
    """Source broadcast is missing on the third-party network."""

    message: str = "Broadcast not found"


@dataclass
class SessionUnavailableError(BridgeError):
    """No live third-party session to announce on."""

    message: str = "Third-party session not connected"


@dataclass
class ConfigError(BridgeError):
    """Startup configuration is invalid. Fatal."""

    message: str = "Invalid configuration"
    retryable: bool = False


def map_connection_error(error: Exception, url: str) -> ConnectError:
    """Wrap an exception raised by the relay client during connect.

    Args:
        error: Exception from the relay client
        url: URL that was being connected to

    Returns:
        ConnectError naming the host
    """
    from urllib.parse import urlparse

    parsed = urlparse(url)
    host_port = f"{parsed.hostname}:{parsed.port}" if parsed.port else parsed.hostname

    return ConnectError(
        message=f"Cannot reach relay at {host_port}: {error}",
        data={"url": redact_url(url), "original_error": str(error)},
    )


def redact_url(url: str) -> str:
    """Strip the query string so tokens never reach the logs."""
    return url.split("?", 1)[0]
