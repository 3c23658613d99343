"""Unit tests for RegistryClient - stream discovery over HTTP.

Test IDs: UT-R001 to UT-R014
"""

import httpx
import pytest

from relay_bridge.bridge.errors import RegistryFetchError
from relay_bridge.bridge.registry import (
    RegistryClient,
    StreamDescriptor,
    parse_registry_response,
)
from tests.conftest import REGISTRY_URL, MockRegistryState, create_registry_transport

pytestmark = [pytest.mark.bridge, pytest.mark.bridge_unit]


class TestParseRegistryResponse:
    """Tests for decoding registry documents."""

    def test_ut_r001_decodes_entries_with_defaults(self):
        """UT-R001: Missing origin and viewer_count take their defaults."""
        streams = parse_registry_response({"broadcasts": [{"stream_id": "s1"}]})

        assert streams == [StreamDescriptor(stream_id="s1", origin="cloudflare", viewer_count=0)]

    def test_ut_r002_default_origin_is_configurable(self):
        """UT-R002: Entries without origin get the caller's default."""
        streams = parse_registry_response(
            {"broadcasts": [{"stream_id": "s1"}]}, default_origin="partner"
        )

        assert streams[0].origin == "partner"

    def test_ut_r003_keeps_viewer_count(self):
        """UT-R003: viewer_count is carried through."""
        streams = parse_registry_response(
            {"broadcasts": [{"stream_id": "s1", "origin": "cloudflare", "viewer_count": 12}]}
        )

        assert streams[0].viewer_count == 12

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {},
            {"broadcasts": None},
            {"broadcasts": ["s1"]},
            {"broadcasts": [{"origin": "cloudflare"}]},
            {"broadcasts": [{"stream_id": 7}]},
            {"broadcasts": [{"stream_id": "s1", "origin": 3}]},
        ],
    )
    def test_ut_r004_schema_violations_raise(self, payload):
        """UT-R004: Documents not matching the schema raise RegistryFetchError."""
        with pytest.raises(RegistryFetchError):
            parse_registry_response(payload)


class TestRegistryClientInitialization:
    def test_ut_r005_validates_url(self):
        """UT-R005: RegistryClient rejects malformed URLs."""
        with pytest.raises(ValueError, match="Invalid URL"):
            RegistryClient("not-a-url")


class TestFetchCandidates:
    """Tests for origin filtering."""

    @pytest.mark.asyncio
    async def test_ut_r006_filters_by_origin(self, registry, registry_state):
        """UT-R006: Absent and matching origins are candidates, others are not."""
        registry_state.set_streams(
            {"stream_id": "no-origin"},
            {"stream_id": "matching", "origin": "cloudflare"},
            {"stream_id": "foreign", "origin": "other"},
        )

        candidates = await registry.fetch_candidates()

        assert [s.stream_id for s in candidates] == ["no-origin", "matching"]
        await registry.close()

    @pytest.mark.asyncio
    async def test_ut_r007_fetch_streams_returns_everything(self, registry, registry_state):
        """UT-R007: fetch_streams() does not filter."""
        registry_state.set_streams(
            {"stream_id": "a", "origin": "cloudflare"},
            {"stream_id": "b", "origin": "other"},
        )

        streams = await registry.fetch_streams()

        assert [s.stream_id for s in streams] == ["a", "b"]
        await registry.close()

    @pytest.mark.asyncio
    async def test_ut_r008_sends_get_to_registry_url(self, registry, registry_state):
        """UT-R008: The registry is fetched with GET on the configured URL."""
        await registry.fetch_candidates()

        assert len(registry_state.requests) == 1
        assert registry_state.requests[0].method == "GET"
        assert str(registry_state.requests[0].url) == REGISTRY_URL
        await registry.close()


class TestFetchErrors:
    """Tests for registry failures."""

    @pytest.mark.asyncio
    async def test_ut_r009_http_error_status(self, registry, registry_state):
        """UT-R009: HTTP 5xx raises RegistryFetchError."""
        registry_state.status_code = 503

        with pytest.raises(RegistryFetchError) as exc_info:
            await registry.fetch_candidates()

        assert exc_info.value.data["http_status"] == 503
        assert exc_info.value.retryable is True
        await registry.close()

    @pytest.mark.asyncio
    async def test_ut_r010_invalid_json(self, registry, registry_state):
        """UT-R010: A body that is not JSON raises RegistryFetchError."""
        registry_state.raw_body = "<html>oops</html>"

        with pytest.raises(RegistryFetchError, match="invalid JSON"):
            await registry.fetch_candidates()
        await registry.close()

    @pytest.mark.asyncio
    async def test_ut_r011_connection_error(self, registry, registry_state):
        """UT-R011: Transport failures raise RegistryFetchError."""
        registry_state.error = httpx.ConnectError("Connection refused")

        with pytest.raises(RegistryFetchError, match="Cannot reach registry"):
            await registry.fetch_candidates()
        await registry.close()

    @pytest.mark.asyncio
    async def test_ut_r012_timeout(self, registry, registry_state):
        """UT-R012: Timeouts raise RegistryFetchError."""
        registry_state.error = httpx.ReadTimeout("timed out")

        with pytest.raises(RegistryFetchError, match="timed out"):
            await registry.fetch_candidates()
        await registry.close()

    @pytest.mark.asyncio
    async def test_ut_r013_closed_client_refuses(self):
        """UT-R013: A closed client raises instead of reopening."""
        client = RegistryClient(
            REGISTRY_URL, transport=create_registry_transport(MockRegistryState())
        )
        await client.close()

        with pytest.raises(RegistryFetchError, match="closed"):
            await client.fetch_streams()

    @pytest.mark.asyncio
    async def test_ut_r014_follows_redirects(self):
        """UT-R014: A redirected registry URL is followed to the document."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.path == "/api/streams":
                return httpx.Response(301, headers={"Location": REGISTRY_URL + "/"})
            return httpx.Response(200, json={"broadcasts": [{"stream_id": "s1"}]})

        client = RegistryClient(REGISTRY_URL, transport=httpx.MockTransport(handler))

        assert await client.fetch_candidates() == ["s1"]
        assert [r.url.path for r in requests] == ["/api/streams", "/api/streams/"]
        await client.close()
