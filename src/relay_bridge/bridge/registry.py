"""RegistryClient - Discovers streams to bridge.

Polls the stream registry over HTTP:
- GET <registry_url> returning {"broadcasts": [{"stream_id", "origin"?, "viewer_count"?}]}
- Entries without an origin default to the bridged network's tag
"""

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

import httpx

from ..shared.logging import get_logger
from .errors import RegistryFetchError

logger = get_logger(__name__)

DEFAULT_ORIGIN_TAG = "cloudflare"
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class StreamDescriptor:
    """One registry entry."""

    stream_id: str
    origin: str = DEFAULT_ORIGIN_TAG
    viewer_count: int = 0


def parse_registry_response(
    payload: Any, default_origin: str = DEFAULT_ORIGIN_TAG
) -> list[StreamDescriptor]:
    """Decode a registry document.

    Args:
        payload: Parsed JSON body
        default_origin: Origin assumed for entries without one

    Returns:
        All entries, in registry order

    Raises:
        RegistryFetchError: If the document does not match the schema
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("broadcasts"), list):
        raise RegistryFetchError(message="Registry response has no 'broadcasts' list")

    streams: list[StreamDescriptor] = []
    for index, entry in enumerate(payload["broadcasts"]):
        if not isinstance(entry, dict):
            raise RegistryFetchError(message=f"Registry entry {index} is not an object")

        stream_id = entry.get("stream_id")
        if not isinstance(stream_id, str):
            raise RegistryFetchError(message=f"Registry entry {index} has no string 'stream_id'")

        origin = entry.get("origin", default_origin)
        if not isinstance(origin, str):
            raise RegistryFetchError(message=f"Registry entry {index} has a non-string 'origin'")

        viewer_count = entry.get("viewer_count", 0)
        if not isinstance(viewer_count, int) or isinstance(viewer_count, bool):
            viewer_count = 0

        streams.append(
            StreamDescriptor(stream_id=stream_id, origin=origin, viewer_count=viewer_count)
        )

    return streams


class RegistryClient:
    """HTTP client for the stream registry."""

    def __init__(
        self,
        url: str,
        origin_tag: str = DEFAULT_ORIGIN_TAG,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize RegistryClient.

        Args:
            url: Registry URL
            origin_tag: Origin of the network being bridged
            timeout: Request timeout in seconds (default: 10)
            transport: Optional httpx transport (tests)

        Raises:
            ValueError: If URL is invalid
        """
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"Invalid URL: {url}")

        self.url = url
        self.origin_tag = origin_tag
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._closed = False

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._closed:
            raise RegistryFetchError(message="RegistryClient is closed", retryable=False)
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={"Accept": "application/json"},
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def fetch_streams(self) -> list[StreamDescriptor]:
        """Fetch every stream listed in the registry.

        Raises:
            RegistryFetchError: On connection, HTTP or decoding error
        """
        client = await self._ensure_client()

        try:
            response = await client.get(self.url)
        except httpx.TimeoutException as e:
            raise RegistryFetchError(
                message=f"Registry request timed out: {e}", data={"url": self.url}
            ) from e
        except httpx.HTTPError as e:
            raise RegistryFetchError(
                message=f"Cannot reach registry at {self.url}: {e}", data={"url": self.url}
            ) from e

        if response.status_code >= 400:
            raise RegistryFetchError(
                message=f"Registry returned HTTP {response.status_code}",
                data={"url": self.url, "http_status": response.status_code},
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise RegistryFetchError(message=f"Registry returned invalid JSON: {e}") from e

        return parse_registry_response(payload, default_origin=self.origin_tag)

    async def fetch_candidates(self) -> list[StreamDescriptor]:
        """Fetch the streams originating from the bridged network."""
        streams = await self.fetch_streams()
        candidates = [s for s in streams if s.origin == self.origin_tag]
        logger.debug(
            "registry polled",
            total=len(streams),
            candidates=len(candidates),
            origin=self.origin_tag,
        )
        return candidates

    async def close(self) -> None:
        """Close HTTP client and release resources."""
        self._closed = True
        if self._client:
            await self._client.aclose()
            self._client = None
