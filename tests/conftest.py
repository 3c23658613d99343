"""Shared test fixtures for relay-bridge tests.

This module provides fixtures for testing the bridge:
- relay doubles (client, origins, sessions, broadcasts)
- shared state objects
- a registry served through httpx.MockTransport
"""

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest

from relay_bridge.bridge.registry import RegistryClient
from relay_bridge.bridge.state import ActiveBridgeSet, SessionReference
from relay_bridge.config import BridgeConfig
from tests.mocks.relay import FakeOrigin, FakeRelayClient

REGISTRY_URL = "http://registry.test/api/streams"

# =============================================================================
# Mock registry - Serves GET <registry_url> through httpx.MockTransport
# =============================================================================


@dataclass
class MockRegistryState:
    """State for the mock registry to track requests and configure responses."""

    requests: list[httpx.Request] = field(default_factory=list)
    payload: Any = field(default_factory=lambda: {"broadcasts": []})
    status_code: int = 200
    raw_body: str | None = None
    error: Exception | None = None

    def set_streams(self, *entries: dict[str, Any]) -> None:
        self.payload = {"broadcasts": list(entries)}


def create_registry_transport(state: MockRegistryState) -> httpx.MockTransport:
    """Create a transport answering every request from ``state``."""

    def handler(request: httpx.Request) -> httpx.Response:
        state.requests.append(request)
        if state.error is not None:
            raise state.error
        if state.raw_body is not None:
            return httpx.Response(state.status_code, text=state.raw_body)
        return httpx.Response(state.status_code, content=json.dumps(state.payload).encode())

    return httpx.MockTransport(handler)


@pytest.fixture
def registry_state() -> MockRegistryState:
    """Fixture providing mock registry state for configuration."""
    return MockRegistryState()


@pytest.fixture
def registry(registry_state: MockRegistryState) -> RegistryClient:
    """Fixture providing a RegistryClient backed by the mock registry."""
    return RegistryClient(
        REGISTRY_URL,
        origin_tag="cloudflare",
        transport=create_registry_transport(registry_state),
    )


# =============================================================================
# Relay doubles and shared state
# =============================================================================


@pytest.fixture
def relay_client() -> FakeRelayClient:
    return FakeRelayClient()


@pytest.fixture
def home_origin() -> FakeOrigin:
    """Origin the bridge publishes into."""
    return FakeOrigin()


@pytest.fixture
def third_party_origin() -> FakeOrigin:
    """Origin the third-party session subscribes into."""
    return FakeOrigin()


@pytest.fixture
def active() -> ActiveBridgeSet:
    return ActiveBridgeSet()


@pytest.fixture
def session_ref() -> SessionReference:
    return SessionReference()


@pytest.fixture
def make_config() -> Callable[..., BridgeConfig]:
    """Fixture building a BridgeConfig with fast timings."""

    def _make(**overrides: Any) -> BridgeConfig:
        values: dict[str, Any] = {
            "home_url": "https://home.test",
            "registry_url": REGISTRY_URL,
            "third_party_url": "https://third-party.test",
            "poll_interval": 0.02,
            "reconnect_delay": 0.02,
            "settle_delay": 0.0,
        }
        values.update(overrides)
        return BridgeConfig(**values)

    return _make
