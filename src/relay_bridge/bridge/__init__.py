"""Bridge module - third-party relay to home relay stream bridging.

Provides the connection supervisors, registry poller, bridge manager and
per-stream bridge tasks behind `relay-bridge run`.
"""

from .errors import (
    BridgeError,
    BridgeNotFoundError,
    ConfigError,
    ConnectError,
    RegistryFetchError,
    SessionUnavailableError,
)
from .orchestrator import BridgeOrchestrator
from .registry import RegistryClient, StreamDescriptor, parse_registry_response
from .relay import load_relay_client
from .service import BridgeService
from .sources import AnnounceFirstSource, DirectSubscribeSource, build_source
from .state import ActiveBridgeSet, SessionReference
from .supervisor import ConnectionSupervisor
from .task import BridgeTask

__all__ = [
    "ActiveBridgeSet",
    "AnnounceFirstSource",
    "BridgeError",
    "BridgeNotFoundError",
    "BridgeOrchestrator",
    "BridgeService",
    "BridgeTask",
    "ConfigError",
    "ConnectError",
    "ConnectionSupervisor",
    "DirectSubscribeSource",
    "RegistryClient",
    "RegistryFetchError",
    "SessionReference",
    "SessionUnavailableError",
    "StreamDescriptor",
    "build_source",
    "load_relay_client",
    "parse_registry_response",
]
