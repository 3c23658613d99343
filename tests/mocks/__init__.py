"""Test mocks for relay-bridge.

Provides in-memory implementations of the relay client library:
- FakeRelayClient: scripted connect outcomes
- FakeSession / FakeBroadcast / FakeOrigin: session, stream and origin doubles
"""

from .relay import (
    FakeBroadcast,
    FakeOrigin,
    FakeRelayClient,
    FakeSession,
    wait_until,
)

__all__ = ["FakeBroadcast", "FakeOrigin", "FakeRelayClient", "FakeSession", "wait_until"]
