"""BridgeTask - Moves one stream from the third-party network home."""

import structlog

from ..shared.logging import get_logger
from .relay import OriginProducer
from .sources import SourceStrategy

logger = get_logger(__name__)


class BridgeTask:
    """Republish one third-party broadcast into the home network.

    The task owns no shared state; the orchestrator releases the stream's
    reservation once ``run()`` returns or raises.
    """

    def __init__(self, stream_id: str, source: SourceStrategy, producer: OriginProducer):
        """Initialize BridgeTask.

        Args:
            stream_id: Registry stream id, also the home publish path
            source: Strategy that finds the third-party broadcast
            producer: Home-network origin the broadcast is published into
        """
        self.stream_id = stream_id
        self.source = source
        self.producer = producer

    async def run(self) -> None:
        """Bridge until the source broadcast closes.

        Raises:
            BridgeNotFoundError: If the source broadcast was never found
            SessionUnavailableError: If announcing needed a session and none was live
        """
        with structlog.contextvars.bound_contextvars(stream_id=self.stream_id):
            logger.info("starting bridge")

            broadcast = await self.source.acquire(self.stream_id)

            self.producer.publish_broadcast(self.stream_id, broadcast)
            logger.info("bridge active")

            await broadcast.closed()
            logger.info("bridge closed")
