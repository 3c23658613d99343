"""BridgeService - Wires the bridge together and runs it.

Handles:
- Creating the home and third-party origins and the shared state
- Running both connection supervisors and the bridge manager concurrently
- Graceful shutdown on SIGINT/SIGTERM
"""

import asyncio
import signal
from typing import TYPE_CHECKING, Optional

from ..shared.logging import get_logger
from .errors import redact_url
from .orchestrator import BridgeOrchestrator
from .registry import RegistryClient
from .relay import RelayClient, Session
from .sources import build_source
from .state import ActiveBridgeSet, SessionReference
from .supervisor import ConnectionSupervisor

if TYPE_CHECKING:
    from ..config import BridgeConfig

logger = get_logger(__name__)


class BridgeService:
    """Owns every long-running component of one bridge process."""

    def __init__(
        self,
        config: "BridgeConfig",
        client: RelayClient,
        registry: Optional[RegistryClient] = None,
    ):
        """Initialize BridgeService.

        Args:
            config: Validated bridge configuration
            client: Relay client used for both networks
            registry: Registry client override (tests)

        Raises:
            ConfigError: If an endpoint URL cannot be built
        """
        self.config = config
        self.client = client

        # Broadcasts published to the home relay
        self.home_origin = client.create_origin()
        # Broadcasts received from the third-party relay
        self.third_party_origin = client.create_origin()

        self.active = ActiveBridgeSet()
        self.session_ref: SessionReference[Session] = SessionReference()

        self.home = ConnectionSupervisor(
            client,
            config.home_connect_url(),
            name="home",
            publish=self.home_origin.consumer,
            reconnect_delay=config.reconnect_delay,
        )
        self.third_party = ConnectionSupervisor(
            client,
            config.third_party_connect_url(),
            name="third-party",
            subscribe=self.third_party_origin.producer,
            session_ref=self.session_ref,
            reconnect_delay=config.reconnect_delay,
        )

        self.registry = registry or RegistryClient(config.registry_url, origin_tag=config.origin_tag)
        source = build_source(
            config.source_mode,
            consumer=self.third_party_origin.consumer,
            session_ref=self.session_ref,
            home_domain=config.home_domain,
            settle_delay=config.settle_delay,
        )
        self.orchestrator = BridgeOrchestrator(
            self.registry,
            self.active,
            source,
            self.home_origin.producer,
            poll_interval=config.poll_interval,
        )

        self._shutdown_event = asyncio.Event()

    def request_shutdown(self) -> None:
        """Ask ``run()`` to stop."""
        self._shutdown_event.set()

    def _install_signal_handlers(self) -> None:
        def signal_handler() -> None:
            logger.info("received shutdown signal")
            self.request_shutdown()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, signal_handler)
            except (NotImplementedError, RuntimeError):
                # Not in the main thread, or unsupported platform
                pass

    async def run(self, install_signal_handlers: bool = True) -> None:
        """Run until shutdown is requested or a loop crashes.

        Raises:
            Exception: Whatever a supervisor or the bridge manager raised
        """
        logger.info(
            "starting relay bridge",
            home_url=redact_url(self.config.home_url),
            third_party_url=redact_url(self.config.third_party_url),
            registry_url=self.config.registry_url,
            poll_interval=self.config.poll_interval,
            source_mode=self.config.source_mode,
        )

        if install_signal_handlers:
            self._install_signal_handlers()

        loops = [
            asyncio.create_task(self.home.run(), name="home-connection"),
            asyncio.create_task(self.third_party.run(), name="third-party-connection"),
            asyncio.create_task(self.orchestrator.run(), name="bridge-manager"),
        ]
        shutdown = asyncio.create_task(self._shutdown_event.wait(), name="shutdown")

        try:
            done, _ = await asyncio.wait([*loops, shutdown], return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                if task is not shutdown and not task.cancelled() and task.exception():
                    logger.error(
                        "bridge component failed",
                        component=task.get_name(),
                        error=str(task.exception()),
                    )
                    raise task.exception()
        finally:
            await self.shutdown(loops + [shutdown])

    async def shutdown(self, tasks: list[asyncio.Task]) -> None:
        """Stop the loops and release the registry client.

        Bridge tasks still running are abandoned to the event loop.
        """
        logger.info("shutting down", active_bridges=len(self.active))

        self.home.stop()
        self.third_party.stop()
        self.orchestrator.stop()

        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        await self.registry.close()
        logger.info("relay bridge shutdown complete")
