"""Unit tests for the shared bridge state.

Tests UT-S001 to UT-S011: ActiveBridgeSet reservations and SessionReference.
"""

import asyncio

import pytest

from relay_bridge.bridge.state import ActiveBridgeSet, SessionReference

pytestmark = [pytest.mark.bridge, pytest.mark.bridge_unit]


class TestActiveBridgeSet:
    """Tests for reservation bookkeeping."""

    @pytest.mark.asyncio
    async def test_ut_s001_reserve_new_id(self):
        """UT-S001: First reservation of an id succeeds."""
        active = ActiveBridgeSet()

        assert await active.reserve("s1") is True
        assert "s1" in active
        assert active.contains("s1")
        assert len(active) == 1

    @pytest.mark.asyncio
    async def test_ut_s002_reserve_twice_fails(self):
        """UT-S002: A reserved id cannot be reserved again."""
        active = ActiveBridgeSet()
        await active.reserve("s1")

        assert await active.reserve("s1") is False
        assert len(active) == 1

    @pytest.mark.asyncio
    async def test_ut_s003_release_allows_reserve(self):
        """UT-S003: Released ids can be reserved again."""
        active = ActiveBridgeSet()
        await active.reserve("s1")
        await active.release("s1")

        assert "s1" not in active
        assert await active.reserve("s1") is True

    @pytest.mark.asyncio
    async def test_ut_s004_release_unknown_is_noop(self):
        """UT-S004: Releasing an id that was never reserved does nothing."""
        active = ActiveBridgeSet()

        await active.release("missing")

        assert len(active) == 0

    @pytest.mark.asyncio
    async def test_ut_s005_concurrent_reserve_single_winner(self):
        """UT-S005: Concurrent reservations of one id have exactly one winner."""
        active = ActiveBridgeSet()

        results = await asyncio.gather(*(active.reserve("s1") for _ in range(20)))

        assert results.count(True) == 1
        assert active.snapshot() == frozenset({"s1"})


class TestSessionReference:
    """Tests for the shared third-party session slot."""

    @pytest.mark.asyncio
    async def test_ut_s006_starts_empty(self):
        """UT-S006: A new reference holds no session."""
        ref = SessionReference()

        assert await ref.get() is None
        assert ref.is_connected is False

    @pytest.mark.asyncio
    async def test_ut_s007_set_and_clear(self):
        """UT-S007: set() stores the session, clear() removes it."""
        ref = SessionReference()
        session = object()

        await ref.set(session)
        assert await ref.get() is session

        assert await ref.clear() is True
        assert await ref.get() is None
        assert await ref.clear() is False

    @pytest.mark.asyncio
    async def test_ut_s008_clear_expected_ignores_stale_holder(self):
        """UT-S008: clear(expected) leaves a newer session in place."""
        ref = SessionReference()
        old, new = object(), object()
        await ref.set(old)
        await ref.set(new)

        assert await ref.clear(old) is False
        assert await ref.get() is new

    @pytest.mark.asyncio
    async def test_ut_s009_wait_cleared_fires_once_on_clear(self):
        """UT-S009: wait_cleared() resolves when the session is cleared."""
        ref = SessionReference()
        await ref.set(object())

        waiter = asyncio.create_task(ref.wait_cleared())
        await asyncio.sleep(0.01)
        assert not waiter.done()

        await ref.clear()
        await asyncio.wait_for(waiter, timeout=1.0)

    @pytest.mark.asyncio
    async def test_ut_s010_wait_cleared_without_session_returns(self):
        """UT-S010: wait_cleared() returns at once when nothing is stored."""
        ref = SessionReference()

        await asyncio.wait_for(ref.wait_cleared(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_ut_s011_replacing_session_fires_previous_waiters(self):
        """UT-S011: Installing a new session releases waiters on the old one."""
        ref = SessionReference()
        await ref.set(object())
        waiter = asyncio.create_task(ref.wait_cleared())
        await asyncio.sleep(0)

        await ref.set(object())

        await asyncio.wait_for(waiter, timeout=1.0)
        assert ref.is_connected is True
