"""Shared mutable state for the bridge.

Both objects are created once by the service and passed by reference to the
components that need them. Their locks are only held for the check or
mutation itself, never across an await on the network.
"""

import asyncio
from typing import Generic, Optional, TypeVar

S = TypeVar("S")


class ActiveBridgeSet:
    """Stream ids with a running bridge task.

    An id is present exactly while its bridge task runs.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._ids: set[str] = set()

    async def reserve(self, stream_id: str) -> bool:
        """Insert ``stream_id`` unless present.

        Returns:
            True if the caller now owns the reservation, False if it was
            already being bridged.
        """
        async with self._lock:
            if stream_id in self._ids:
                return False
            self._ids.add(stream_id)
            return True

    async def release(self, stream_id: str) -> None:
        async with self._lock:
            self._ids.discard(stream_id)

    def contains(self, stream_id: str) -> bool:
        return stream_id in self._ids

    def snapshot(self) -> frozenset[str]:
        return frozenset(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, stream_id: object) -> bool:
        return stream_id in self._ids


class SessionReference(Generic[S]):
    """The currently-live third-party session, if any.

    Readers must treat a returned session as a snapshot: it may be cleared
    as soon as they yield. Each installed session gets its own cleared
    event, set exactly once when that session is removed.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._session: Optional[S] = None
        self._cleared = asyncio.Event()
        self._cleared.set()

    async def set(self, session: S) -> None:
        async with self._lock:
            if self._session is not None:
                self._cleared.set()
            self._session = session
            self._cleared = asyncio.Event()

    async def get(self) -> Optional[S]:
        async with self._lock:
            return self._session

    async def clear(self, expected: Optional[S] = None) -> bool:
        """Remove the stored session.

        Args:
            expected: Only clear if this is the stored session. Guards a
                stale holder from clearing a newer session.

        Returns:
            True if a session was removed.
        """
        async with self._lock:
            if self._session is None:
                return False
            if expected is not None and self._session is not expected:
                return False
            self._session = None
            self._cleared.set()
            return True

    async def wait_cleared(self) -> None:
        """Wait until the session stored at call time is cleared.

        Returns immediately when no session is stored.
        """
        async with self._lock:
            cleared = self._cleared
        await cleared.wait()

    @property
    def is_connected(self) -> bool:
        return self._session is not None
