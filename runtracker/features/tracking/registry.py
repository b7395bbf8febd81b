"""
Live session registry.

Keeps one run session per user for the HTTP API. Each session gets push
providers that the device feeds with its own location fixes and pedometer
counts.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from runtracker.features.runs.pipeline import RunPersistencePipeline

from .config import TrackingConfig
from .providers import PushLocationProvider, PushStepSensor
from .schemas import StartRequest
from .session import RunSessionController, epoch_ms

logger = logging.getLogger(__name__)


@dataclass
class LiveRun:
    """A user's session and the providers feeding it."""
    controller: RunSessionController
    location: PushLocationProvider
    steps: PushStepSensor
    start_task: Optional[asyncio.Task] = None


class SessionRegistry:
    """
    One live session per user.

    Usage:
        registry = SessionRegistry(pipeline, config)
        live = registry.start(user_id, StartRequest())
        live.location.push(fix)
        result = await live.controller.stop()
    """

    def __init__(
        self,
        pipeline: RunPersistencePipeline,
        config: Optional[TrackingConfig] = None,
        clock: Callable[[], int] = epoch_ms,
    ):
        self.pipeline = pipeline
        self.config = config or TrackingConfig()
        self.clock = clock
        self._runs: dict[str, LiveRun] = {}

    def get(self, user_id: str) -> Optional[LiveRun]:
        return self._runs.get(user_id)

    def start(self, user_id: str, request: StartRequest) -> LiveRun:
        """
        Begin preparing a run in the background.

        Preparing waits for the device to push an initial fix, so it can't
        block the request that started it.
        """
        live = self._runs.get(user_id)
        if live is None:
            location = PushLocationProvider()
            steps = PushStepSensor()
            controller = RunSessionController(
                user_id,
                location,
                self.pipeline,
                steps=steps,
                config=self.config,
                clock=self.clock,
            )
            live = LiveRun(controller=controller, location=location, steps=steps)
            self._runs[user_id] = live

        if live.controller.is_busy or live.controller.is_running:
            return live

        live.location.permission_granted = request.location_permission
        live.location.services_enabled = request.location_services_enabled
        live.steps.available = request.step_sensor_available
        live.steps.permission_granted = request.step_permission

        live.start_task = asyncio.create_task(live.controller.start())
        return live

    def close(self, user_id: str) -> bool:
        """
        Drop a user's session without saving.

        Returns:
            True if there was a session to close
        """
        live = self._runs.pop(user_id, None)
        if live is None:
            return False

        live.controller.dispose()
        logger.info(f"Closed live session for {user_id}")
        return True

    def close_all(self) -> None:
        for user_id in list(self._runs):
            self.close(user_id)

    @property
    def active_count(self) -> int:
        return sum(1 for live in self._runs.values() if live.controller.is_running)
