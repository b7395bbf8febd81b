"""
Run map snapshots.

Renders a finished run's route as a static map image and moves it into
persistent storage. Snapshots are optional: without a maps API key the
NullMapRenderer reports itself unavailable and runs save without an image.
"""

import logging
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence

import httpx

from runtracker.features.tracking.models import GeoPoint

logger = logging.getLogger(__name__)


class MapCaptureError(Exception):
    """Rendering or storing a map snapshot failed."""
    pass


class MapRenderer(ABC):
    """Renders a route to an image file."""

    @property
    @abstractmethod
    def available(self) -> bool:
        """Whether capture can be attempted at all."""
        pass

    @abstractmethod
    async def capture(self, route: Sequence[GeoPoint]) -> Path:
        """
        Render the route to a temporary image file.

        Raises:
            MapCaptureError: If rendering failed
        """
        pass


class NullMapRenderer(MapRenderer):
    """Renderer used when no map provider is configured."""

    @property
    def available(self) -> bool:
        return False

    async def capture(self, route: Sequence[GeoPoint]) -> Path:
        raise MapCaptureError("No map provider configured")


def downsample_route(route: Sequence[GeoPoint], max_points: int) -> list[GeoPoint]:
    """
    Thin a route to at most max_points, always keeping both ends.

    Static map URLs have a length limit, so long runs are drawn from an
    evenly spaced subset of their points.
    """
    points = list(route)
    if len(points) <= max_points or max_points < 2:
        return points

    step = (len(points) - 1) / (max_points - 1)
    return [points[round(i * step)] for i in range(max_points)]


class StaticMapRenderer(MapRenderer):
    """
    Renderer backed by a static maps HTTP API.

    The route is drawn as a path with start/finish markers; the map viewport
    is fitted to the path by the API.
    """

    PATH_STYLE = "color:0xf97316ff|weight:5"
    MAX_PATH_POINTS = 200

    def __init__(
        self,
        api_key: Optional[str],
        url: str,
        timeout_s: float = 10.0,
        size: str = "640x400",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.url = url
        self.timeout_s = timeout_s
        self.size = size
        self._transport = transport

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def build_params(self, route: Sequence[GeoPoint]) -> list[tuple[str, str]]:
        """Query parameters for a route image."""
        points = downsample_route(route, self.MAX_PATH_POINTS)
        path = "|".join(f"{p.latitude:.6f},{p.longitude:.6f}" for p in points)
        start, finish = points[0], points[-1]
        return [
            ("size", self.size),
            ("format", "jpg"),
            ("scale", "2"),
            ("path", f"{self.PATH_STYLE}|{path}"),
            ("markers", f"color:green|label:S|{start.latitude:.6f},{start.longitude:.6f}"),
            ("markers", f"color:red|label:F|{finish.latitude:.6f},{finish.longitude:.6f}"),
            ("key", self.api_key or ""),
        ]

    async def capture(self, route: Sequence[GeoPoint]) -> Path:
        if not self.available:
            raise MapCaptureError("Maps API key is not configured")
        if not route:
            raise MapCaptureError("Route is empty")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_s,
                transport=self._transport
            ) as client:
                response = await client.get(self.url, params=self.build_params(route))
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise MapCaptureError(f"Static map request failed: {e}") from e

        content_type = response.headers.get("content-type", "")
        if not content_type.startswith("image/"):
            raise MapCaptureError(f"Unexpected map response type: {content_type!r}")

        try:
            with tempfile.NamedTemporaryFile(
                prefix="run-map-", suffix=".jpg", delete=False
            ) as tmp:
                tmp.write(response.content)
                return Path(tmp.name)
        except OSError as e:
            raise MapCaptureError(f"Failed to write map image: {e}") from e


class SnapshotStorage:
    """Moves captured images into the app's persistent snapshot directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def store(self, temp_path: Path, timestamp_ms: int) -> str:
        """
        Move a captured image into storage.

        Args:
            temp_path: Temporary file produced by a renderer
            timestamp_ms: Epoch ms used to name the stored file

        Returns:
            Stable file:// URI of the stored image

        Raises:
            MapCaptureError: On filesystem errors
        """
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            target = self.directory / f"run-map-{timestamp_ms}.jpg"
            shutil.move(str(temp_path), str(target))
        except OSError as e:
            raise MapCaptureError(f"Failed to store map image: {e}") from e
        return target.resolve().as_uri()


def build_map_renderer(settings) -> MapRenderer:
    """Pick the renderer for the configured map provider."""
    if settings.maps_api_key:
        return StaticMapRenderer(
            api_key=settings.maps_api_key,
            url=settings.static_maps_url,
            timeout_s=settings.snapshot_timeout_s,
        )
    logger.info("Map snapshots disabled (MAPS_API_KEY not set)")
    return NullMapRenderer()
