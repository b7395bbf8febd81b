"""
Tests for run map snapshots.

The static maps API is replaced with httpx.MockTransport.
"""

import asyncio

import httpx
import pytest

from runtracker.features.runs.snapshot import (
    MapCaptureError,
    NullMapRenderer,
    SnapshotStorage,
    StaticMapRenderer,
    downsample_route,
)
from runtracker.features.tracking.models import GeoPoint


MAPS_URL = "https://maps.example.com/staticmap"
ROUTE = [GeoPoint(43.2 + i * 0.001, 76.9) for i in range(5)]


def renderer_with(handler, api_key="test-key") -> StaticMapRenderer:
    return StaticMapRenderer(
        api_key=api_key,
        url=MAPS_URL,
        transport=httpx.MockTransport(handler),
    )


# =============================================================================
# Test Route Downsampling
# =============================================================================

class TestDownsampleRoute:
    """Tests for downsample_route function."""

    def test_short_route_unchanged(self):
        assert downsample_route(ROUTE, 10) == ROUTE

    def test_keeps_both_ends(self):
        route = [GeoPoint(float(i), 0.0) for i in range(1000)]
        thinned = downsample_route(route, 50)

        assert len(thinned) == 50
        assert thinned[0] == route[0]
        assert thinned[-1] == route[-1]

    def test_order_preserved(self):
        route = [GeoPoint(float(i), 0.0) for i in range(300)]
        thinned = downsample_route(route, 20)
        assert [p.latitude for p in thinned] == sorted(p.latitude for p in thinned)


# =============================================================================
# Test Static Map Renderer
# =============================================================================

class TestStaticMapRenderer:
    """Tests for StaticMapRenderer."""

    def test_params(self):
        renderer = StaticMapRenderer(api_key="test-key", url=MAPS_URL)
        params = renderer.build_params(ROUTE)
        keys = [key for key, _ in params]
        values = dict(params)

        assert keys.count("markers") == 2
        assert values["format"] == "jpg"
        assert values["key"] == "test-key"
        assert "43.200000,76.900000" in values["path"]
        assert values["path"].startswith(StaticMapRenderer.PATH_STYLE)

    def test_capture_writes_image(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200, content=b"\xff\xd8map", headers={"content-type": "image/jpeg"}
            )

        path = asyncio.run(renderer_with(handler).capture(ROUTE))
        try:
            assert path.read_bytes() == b"\xff\xd8map"
            assert path.suffix == ".jpg"
        finally:
            path.unlink()

        assert requests[0].url.params["key"] == "test-key"
        assert requests[0].url.params["size"] == "640x400"

    def test_http_error(self):
        def handler(request):
            return httpx.Response(403, json={"error": "bad key"})

        with pytest.raises(MapCaptureError):
            asyncio.run(renderer_with(handler).capture(ROUTE))

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(MapCaptureError):
            asyncio.run(renderer_with(handler).capture(ROUTE))

    def test_non_image_response(self):
        def handler(request):
            return httpx.Response(200, text="<html>quota</html>", headers={"content-type": "text/html"})

        with pytest.raises(MapCaptureError, match="Unexpected map response"):
            asyncio.run(renderer_with(handler).capture(ROUTE))

    def test_unavailable_without_key(self):
        renderer = renderer_with(lambda request: httpx.Response(200), api_key=None)

        assert not renderer.available
        with pytest.raises(MapCaptureError):
            asyncio.run(renderer.capture(ROUTE))

    def test_empty_route(self):
        renderer = renderer_with(lambda request: httpx.Response(200))
        with pytest.raises(MapCaptureError):
            asyncio.run(renderer.capture([]))


class TestNullMapRenderer:

    def test_never_available(self):
        renderer = NullMapRenderer()
        assert not renderer.available
        with pytest.raises(MapCaptureError):
            asyncio.run(renderer.capture(ROUTE))


# =============================================================================
# Test Snapshot Storage
# =============================================================================

class TestSnapshotStorage:
    """Tests for SnapshotStorage."""

    def test_moves_into_directory(self, tmp_path):
        temp = tmp_path / "tmp-capture.jpg"
        temp.write_bytes(b"img")
        storage = SnapshotStorage(tmp_path / "nested" / "snapshots")

        uri = storage.store(temp, 1_700_000_123_456)

        target = tmp_path / "nested" / "snapshots" / "run-map-1700000123456.jpg"
        assert uri == target.resolve().as_uri()
        assert uri.startswith("file://")
        assert target.read_bytes() == b"img"
        assert not temp.exists()

    def test_missing_source(self, tmp_path):
        storage = SnapshotStorage(tmp_path)
        with pytest.raises(MapCaptureError):
            storage.store(tmp_path / "gone.jpg", 1)
