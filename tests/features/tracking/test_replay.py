"""
Tests for GPX replay.
"""

import asyncio

import pytest

from runtracker.features.runs.pipeline import RunPersistencePipeline, SaveOutcome
from runtracker.features.tracking.replay import (
    GPXReplayLocationProvider,
    ReplayError,
    parse_gpx_fixes,
)
from runtracker.features.tracking.session import RunSessionController
from runtracker.shared.geo import offset_north

from tests.helpers import FAST_CONFIG, START_LAT, START_LON, T0, MemoryRunStore


def track_gpx(points: int = 7, step_km: float = 0.02, step_s: int = 10, timed: bool = True) -> str:
    """A straight northbound track, one point every step_s seconds."""
    rows = []
    for i in range(points):
        lat, lon = offset_north(START_LAT, START_LON, i * step_km)
        minutes, seconds = divmod(20 + i * step_s, 60)
        time_tag = f"<time>2023-11-14T22:{13 + minutes:02d}:{seconds:02d}Z</time>" if timed else ""
        rows.append(
            f'<trkpt lat="{lat:.8f}" lon="{lon:.8f}"><ele>{800 + i}</ele>{time_tag}</trkpt>'
        )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">'
        f'<trk><name>Morning run</name><trkseg>{"".join(rows)}</trkseg></trk>'
        '</gpx>'
    )


ROUTE_GPX = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">'
    '<rte><rtept lat="43.2" lon="76.9"></rtept><rtept lat="43.201" lon="76.9"></rtept></rte>'
    '</gpx>'
)


# =============================================================================
# Test Parsing
# =============================================================================

class TestParseGpxFixes:
    """Tests for parse_gpx_fixes function."""

    def test_track_points(self):
        fixes = parse_gpx_fixes(track_gpx(points=3))

        assert len(fixes) == 3
        assert fixes[0].timestamp_ms == T0
        assert fixes[1].timestamp_ms == T0 + 10_000
        assert fixes[2].altitude_m == 802
        assert fixes[0].accuracy_m == 5.0
        assert fixes[0].latitude == pytest.approx(START_LAT)

    def test_bytes_input(self):
        assert len(parse_gpx_fixes(track_gpx(points=2).encode("utf-8"))) == 2

    def test_route_points_fallback(self):
        fixes = parse_gpx_fixes(ROUTE_GPX)

        assert len(fixes) == 2
        assert fixes[0].timestamp_ms is None

    def test_untimed_points(self):
        fixes = parse_gpx_fixes(track_gpx(points=2, timed=False))
        assert all(fix.timestamp_ms is None for fix in fixes)

    def test_invalid_gpx(self):
        with pytest.raises(ReplayError):
            parse_gpx_fixes("not a gpx file")

    def test_empty_gpx(self):
        empty = '<?xml version="1.0"?><gpx version="1.1" creator="test"></gpx>'
        with pytest.raises(ReplayError):
            parse_gpx_fixes(empty)


# =============================================================================
# Test Replay Provider
# =============================================================================

class TestReplayProvider:
    """Replaying a recorded track through a run session."""

    def test_requires_fixes(self):
        with pytest.raises(ReplayError):
            GPXReplayLocationProvider([])

    def test_requires_positive_speedup(self):
        with pytest.raises(ValueError):
            GPXReplayLocationProvider(parse_gpx_fixes(ROUTE_GPX), speedup=0)

    def test_clock_follows_track_time(self):
        provider = GPXReplayLocationProvider.from_gpx(track_gpx(points=4), speedup=1000)
        seen = []

        async def scenario():
            assert provider.now_ms() == T0
            await provider.watch(lambda fix: seen.append((fix, provider.now_ms())))
            await provider.wait_finished()

        asyncio.run(scenario())

        assert len(seen) == 3
        assert [now for _, now in seen] == [T0 + 10_000, T0 + 20_000, T0 + 30_000]
        assert provider.now_ms() == T0 + 30_000

    def test_cancel_stops_playback(self):
        provider = GPXReplayLocationProvider.from_gpx(track_gpx(points=4), speedup=1)
        seen = []

        async def scenario():
            subscription = await provider.watch(seen.append)
            subscription.cancel()
            await provider.wait_finished()

        asyncio.run(scenario())
        assert seen == []

    def test_replayed_run_is_saved(self):
        """A 60 s, 120 m track replayed fast still records 60 s."""
        store = MemoryRunStore(weight_kg=60)
        provider = GPXReplayLocationProvider.from_gpx(track_gpx(points=7), speedup=1000)
        controller = RunSessionController(
            "runner-1",
            provider,
            RunPersistencePipeline(store, config=FAST_CONFIG),
            config=FAST_CONFIG,
            clock=provider.now_ms,
        )

        async def scenario():
            assert await controller.start()
            await provider.wait_finished()
            return await controller.stop()

        result = asyncio.run(scenario())

        assert result.outcome == SaveOutcome.SAVED
        record = store.records[0][1]
        assert record.time == 60
        assert record.distance == 0.12
        assert record.elevation_gain_m == 6.0
        assert len(record.route) == 7
        assert record.started_at == T0
