"""Source acquisition strategies.

A strategy turns a stream id into the third-party broadcast to republish.
Which one applies depends on whether the third-party network advertises
namespaces by itself:

- announce: the network never sends namespace announcements, so the bridge
  announces ``<home_domain>/<stream_id>`` on the live session first
- direct: the network accepts direct subscriptions by stream id
"""

import asyncio
from typing import Optional, Protocol

from ..shared.logging import get_logger
from .errors import BridgeError, BridgeNotFoundError, ConfigError, SessionUnavailableError
from .relay import Broadcast, OriginConsumer, Session
from .state import SessionReference

logger = get_logger(__name__)

SOURCE_MODES = ("announce", "direct")
DEFAULT_SETTLE_DELAY = 0.1


class SourceStrategy(Protocol):
    async def acquire(self, stream_id: str) -> Broadcast:
        """Return the source broadcast for ``stream_id``.

        Raises:
            BridgeNotFoundError: If the broadcast cannot be found
            SessionUnavailableError: If a required session is not connected
        """
        ...


class DirectSubscribeSource:
    """Look the broadcast up by stream id."""

    def __init__(self, consumer: OriginConsumer):
        self.consumer = consumer

    async def acquire(self, stream_id: str) -> Broadcast:
        broadcast = self.consumer.consume_broadcast(stream_id)
        if broadcast is None:
            raise BridgeNotFoundError(
                message=f"Broadcast not found: {stream_id}",
                data={"stream_id": stream_id},
            )
        return broadcast


class AnnounceFirstSource:
    """Announce the namespace on the live session, then look it up."""

    def __init__(
        self,
        session_ref: SessionReference[Session],
        consumer: OriginConsumer,
        home_domain: str,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
    ):
        """Initialize AnnounceFirstSource.

        Args:
            session_ref: Shared third-party session slot
            consumer: Origin the third-party session subscribes into
            home_domain: Namespace prefix (e.g. earthseed.live)
            settle_delay: Seconds to give the subscription after announcing.
                Also bounds the wait on an announce acknowledgment.
        """
        self.session_ref = session_ref
        self.consumer = consumer
        self.home_domain = home_domain.rstrip("/")
        self.settle_delay = settle_delay

    def namespace_for(self, stream_id: str) -> str:
        return f"{self.home_domain}/{stream_id}"

    async def acquire(self, stream_id: str) -> Broadcast:
        namespace = self.namespace_for(stream_id)

        session = await self.session_ref.get()
        if session is None:
            raise SessionUnavailableError(
                message="Third-party session not connected",
                data={"stream_id": stream_id, "namespace": namespace},
            )

        try:
            ack = await session.announce_remote(namespace)
        except Exception as e:
            raise BridgeError(
                message=f"Failed to announce remote namespace {namespace}: {e}",
                data={"stream_id": stream_id, "namespace": namespace},
            ) from e

        logger.info("announced remote broadcast", namespace=namespace)
        await self._settle(ack)

        broadcast = self.consumer.consume_broadcast(namespace)
        if broadcast is None:
            raise BridgeNotFoundError(
                message=f"Broadcast not found after announce: {namespace}",
                data={"stream_id": stream_id, "namespace": namespace},
            )
        return broadcast

    async def _settle(self, ack: Optional[object]) -> None:
        """Wait for the announce acknowledgment, or a fixed delay without one."""
        if isinstance(ack, asyncio.Event):
            try:
                await asyncio.wait_for(ack.wait(), timeout=self.settle_delay)
            except asyncio.TimeoutError:
                logger.debug("announce not acknowledged in time", timeout=self.settle_delay)
            return
        await asyncio.sleep(self.settle_delay)


def build_source(
    mode: str,
    consumer: OriginConsumer,
    session_ref: SessionReference[Session],
    home_domain: str,
    settle_delay: float = DEFAULT_SETTLE_DELAY,
) -> SourceStrategy:
    """Select the source strategy for ``mode``.

    Raises:
        ConfigError: If mode is unknown
    """
    if mode == "announce":
        return AnnounceFirstSource(session_ref, consumer, home_domain, settle_delay)
    if mode == "direct":
        return DirectSubscribeSource(consumer)
    raise ConfigError(
        message=f"Unknown source mode: {mode} (expected one of {', '.join(SOURCE_MODES)})"
    )
