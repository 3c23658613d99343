"""BridgeOrchestrator - Polls the registry and runs one bridge per stream.

Each tick:
- Fetch candidate streams (a failed fetch counts as no candidates)
- Reserve every candidate not already bridging, one lock acquisition each
- Spawn a BridgeTask per reservation; the reservation is released when
  the task ends, whatever the outcome
"""

import asyncio

from ..shared.logging import get_logger
from .errors import RegistryFetchError
from .registry import RegistryClient, StreamDescriptor
from .relay import OriginProducer
from .sources import SourceStrategy
from .state import ActiveBridgeSet
from .task import BridgeTask

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL = 5.0


class BridgeOrchestrator:
    """Registry poll loop plus per-stream bridge task bookkeeping."""

    def __init__(
        self,
        registry: RegistryClient,
        active: ActiveBridgeSet,
        source: SourceStrategy,
        producer: OriginProducer,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        """Initialize BridgeOrchestrator.

        Args:
            registry: Registry client returning candidate streams
            active: Shared set of stream ids being bridged
            source: Strategy bridge tasks use to find source broadcasts
            producer: Home-network origin bridge tasks publish into
            poll_interval: Seconds between registry polls
        """
        self.registry = registry
        self.active = active
        self.source = source
        self.producer = producer
        self.poll_interval = poll_interval

        self._running = False
        self._tasks: dict[str, asyncio.Task] = {}
        self._bridges_started = 0
        self._bridges_failed = 0

    @property
    def tasks(self) -> dict[str, asyncio.Task]:
        """Running bridge tasks by stream id."""
        return dict(self._tasks)

    @property
    def bridges_started(self) -> int:
        return self._bridges_started

    @property
    def bridges_failed(self) -> int:
        return self._bridges_failed

    async def run(self) -> None:
        """Poll until stopped."""
        self._running = True
        logger.info("starting bridge manager", poll_interval=self.poll_interval)

        while self._running:
            try:
                await self.poll_once()
            except Exception as e:
                logger.exception("unexpected error in registry poll", error=str(e))

            await asyncio.sleep(self.poll_interval)

    def stop(self) -> None:
        """Stop polling. Running bridge tasks are left alone."""
        self._running = False
        logger.info("bridge manager stopped")

    async def poll_once(self) -> list[str]:
        """Run one tick.

        Returns:
            Stream ids whose bridge task was started by this tick
        """
        try:
            candidates = await self.registry.fetch_candidates()
        except RegistryFetchError as e:
            logger.warning("failed to fetch stream registry", error=e.message)
            return []

        started: list[str] = []
        for stream in candidates:
            if not await self.active.reserve(stream.stream_id):
                continue
            self._spawn(stream)
            started.append(stream.stream_id)

        return started

    def _spawn(self, stream: StreamDescriptor) -> None:
        logger.info(
            "bridging new stream",
            stream_id=stream.stream_id,
            viewer_count=stream.viewer_count,
        )
        task = BridgeTask(stream.stream_id, self.source, self.producer)
        self._bridges_started += 1
        self._tasks[stream.stream_id] = asyncio.create_task(
            self._run_bridge(task), name=f"bridge:{stream.stream_id}"
        )

    async def _run_bridge(self, task: BridgeTask) -> None:
        """Run a bridge task, log its failure, release its reservation."""
        try:
            await task.run()
        except Exception as e:
            self._bridges_failed += 1
            logger.warning("bridge failed", stream_id=task.stream_id, error=str(e))
        finally:
            self._tasks.pop(task.stream_id, None)
            await self.active.release(task.stream_id)
