"""ConnectionSupervisor - Keeps one relay session alive.

Handles:
- Connecting with the configured publish source / subscribe sink
- Installing the live session into a SessionReference (third-party side)
- Waiting for closure, then reconnecting after a fixed delay, forever
"""

import asyncio
from typing import Optional

from ..shared.logging import get_logger
from .errors import map_connection_error, redact_url
from .relay import OriginConsumer, OriginProducer, RelayClient, Session
from .state import SessionReference

logger = get_logger(__name__)

DEFAULT_RECONNECT_DELAY = 5.0


class ConnectionSupervisor:
    """Reconnect loop for one relay network endpoint.

    The home-network instance publishes the bridged broadcasts and subscribes
    to nothing. The third-party instance subscribes into a local origin,
    publishes nothing, and shares its session through ``session_ref``.
    """

    def __init__(
        self,
        client: RelayClient,
        url: str,
        name: str,
        publish: Optional[OriginConsumer] = None,
        subscribe: Optional[OriginProducer] = None,
        session_ref: Optional[SessionReference[Session]] = None,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
    ):
        """Initialize ConnectionSupervisor.

        Args:
            client: Relay client used to open sessions
            url: Endpoint URL, credential already embedded
            name: Network name used in log events
            publish: Origin whose broadcasts are offered to the peer
            subscribe: Origin that receives the peer's broadcasts
            session_ref: Shared slot to expose the live session in
            reconnect_delay: Seconds to wait before each reconnect
        """
        self.client = client
        self.url = url
        self.name = name
        self.publish = publish
        self.subscribe = subscribe
        self.session_ref = session_ref
        self.reconnect_delay = reconnect_delay

        self._running = False
        self._connect_attempts = 0
        self._connected = False

    @property
    def connect_attempts(self) -> int:
        """Number of connection attempts so far."""
        return self._connect_attempts

    @property
    def connected(self) -> bool:
        """Whether a session is currently open."""
        return self._connected

    async def run(self) -> None:
        """Connect and reconnect until stopped."""
        self._running = True

        while self._running:
            await self.run_once()
            if not self._running:
                break
            await asyncio.sleep(self.reconnect_delay)

    def stop(self) -> None:
        """Stop after the current attempt."""
        self._running = False

    async def run_once(self) -> None:
        """Run one connection attempt through to closure.

        Connect errors are logged and swallowed.
        """
        self._connect_attempts += 1
        log = logger.bind(network=self.name, url=redact_url(self.url))
        log.info("connecting to relay", attempt=self._connect_attempts)

        # Each attempt gets its own consumer of the publish origin
        publish = self.publish.consume() if self.publish is not None else None

        try:
            session = await self.client.connect(self.url, publish, self.subscribe)
        except Exception as e:
            error = map_connection_error(e, self.url)
            log.error("failed to connect to relay", error=error.message)
            return

        self._connected = True
        log.info("connected to relay")

        try:
            if self.session_ref is not None:
                await self.session_ref.set(session)
                await self._wait_closed_or_cleared(session)
            else:
                await session.closed()
        except Exception as e:
            log.warning("relay session failed", error=str(e))
        finally:
            self._connected = False
            if self.session_ref is not None:
                await self.session_ref.clear(session)

        log.warning("relay connection closed")

    async def _wait_closed_or_cleared(self, session: Session) -> None:
        """Wait until the peer closes or the reference is invalidated."""
        assert self.session_ref is not None
        closed = asyncio.ensure_future(session.closed())
        cleared = asyncio.ensure_future(self.session_ref.wait_cleared())
        try:
            done, _ = await asyncio.wait({closed, cleared}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for fut in (closed, cleared):
                if not fut.done():
                    fut.cancel()
        if closed in done and not closed.cancelled():
            # Surface errors raised by closed()
            closed.result()
        else:
            log = logger.bind(network=self.name, url=redact_url(self.url))
            log.info("session invalidated, closing it before reconnecting")
            session.close()
