"""Interfaces of the relay client library.

The session handshake, stream multiplexing and pub/sub wire protocol live in
an external relay client. The bridge only depends on the structural types
below; the concrete client is loaded at startup from an import path.
"""

import importlib
from typing import Any, Optional, Protocol

from .errors import ConfigError


class Broadcast(Protocol):
    """One named, continuously-updating stream."""

    async def closed(self) -> None:
        """Resolve when the stream ends."""
        ...


class OriginProducer(Protocol):
    """Write side of an origin: broadcasts published here become visible
    to every consumer of the same origin."""

    def publish_broadcast(self, path: str, broadcast: Broadcast) -> None: ...


class OriginConsumer(Protocol):
    """Read side of an origin."""

    def consume_broadcast(self, name: str) -> Optional[Broadcast]: ...

    def consume(self) -> "OriginConsumer": ...


class Origin(Protocol):
    """Producer/consumer pair sharing one set of broadcasts."""

    producer: OriginProducer
    consumer: OriginConsumer


class Session(Protocol):
    """One established duplex connection to a relay network."""

    async def closed(self) -> None:
        """Resolve when the peer disconnects."""
        ...

    def close(self) -> None:
        """Close the connection; closed() resolves afterwards."""
        ...

    async def announce_remote(self, namespace: str) -> Any:
        """Announce a namespace so the remote side starts routing it.

        Clients whose protocol acknowledges announcements return an
        ``asyncio.Event`` that is set on acknowledgment.
        """
        ...


class RelayClient(Protocol):
    """Factory for sessions and origins."""

    async def connect(
        self,
        url: str,
        publish: Optional[OriginConsumer],
        subscribe: Optional[OriginProducer],
    ) -> Session: ...

    def create_origin(self) -> Origin: ...


def load_relay_client(import_path: str | None, **kwargs: Any) -> RelayClient:
    """Build the relay client named by a ``module:attribute`` path.

    The attribute is called with ``kwargs`` when callable, used as-is otherwise.

    Raises:
        ConfigError: If the path is missing, malformed or cannot be imported
    """
    if not import_path:
        raise ConfigError(message="No relay client configured (set --relay-client or RELAY_CLIENT)")

    module_name, _, attr = import_path.partition(":")
    if not module_name or not attr:
        raise ConfigError(
            message=f"Invalid relay client path: {import_path} (expected 'module:attribute')"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(message=f"Cannot import relay client module {module_name}: {e}") from e

    try:
        target = getattr(module, attr)
    except AttributeError as e:
        raise ConfigError(message=f"Module {module_name} has no attribute {attr}") from e

    return target(**kwargs) if callable(target) else target
