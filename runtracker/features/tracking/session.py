"""
Run session state machine.

Owns one run from start to save:

    Idle -> Preparing -> Tracking -> Stopping -> Idle

- Preparing: permissions, location services, step sensor, best initial fix
- Tracking: wall-clock timer, location watch -> signal filter, step watch
- Stopping: freeze time, cancel watches, hand off to the persistence pipeline

All events (fixes, step ticks, timer ticks) are handled on one asyncio
event loop, so the read-modify-write of the session accumulators in the
filter never interleaves with another event.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from runtracker.features.runs.pipeline import RunPersistencePipeline, SaveOutcome, SaveResult
from runtracker.shared.constants import RunStatus, StepSource
from runtracker.shared.formatters import format_clock, format_pace
from runtracker.shared.formulas import (
    average_speed_kmh,
    cadence_spm,
    calories_burned,
    estimate_steps,
)

from .config import TrackingConfig
from .errors import (
    LocationServicesDisabledError,
    NoUserError,
    PermissionDeniedError,
    SessionClosedError,
    TrackingError,
)
from .filter import FilterResult, SignalFilter, finite_or_none
from .models import LocationFix, RunSession
from .providers import LocationProvider, NoStepSensor, StepSensorProvider, Subscription
from .schemas import LiveSessionState, PointOut

logger = logging.getLogger(__name__)


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class RunSessionController:
    """
    Controller for a single run session.

    Usage:
        controller = RunSessionController(user_id, location, steps, pipeline)
        await controller.start()
        ...  # fixes and step ticks arrive through the provider watches
        result = await controller.stop()
    """

    def __init__(
        self,
        user_id: Optional[str],
        location: LocationProvider,
        pipeline: RunPersistencePipeline,
        steps: Optional[StepSensorProvider] = None,
        config: Optional[TrackingConfig] = None,
        clock: Callable[[], int] = epoch_ms,
    ):
        self.user_id = user_id
        self.location = location
        self.steps = steps or NoStepSensor()
        self.pipeline = pipeline
        self.config = config or TrackingConfig()
        self.filter = SignalFilter(self.config)
        self._clock = clock

        self.session = RunSession()
        self.is_busy = False
        self.is_running = False
        self.location_permission: Optional[bool] = None
        self.message: Optional[str] = None
        self.last_result: Optional[SaveResult] = None
        self.weight_kg = self.config.default_weight_kg

        self._location_sub: Optional[Subscription] = None
        self._step_sub: Optional[Subscription] = None
        self._timer_task: Optional[asyncio.Task] = None
        self._prepare_task: Optional[asyncio.Task] = None
        self._generation = 0

    # -------------------------------------------------------------------------
    # Start
    # -------------------------------------------------------------------------

    async def start(self) -> bool:
        """
        Start tracking.

        No-op while another request is in flight or a run is already going.

        Returns:
            True if the session is now tracking
        """
        if self.is_busy or self.is_running:
            return False

        if not self.user_id:
            self.message = NoUserError.user_message
            return False

        self.is_busy = True
        self.message = None
        self.session.reset()
        self.session.status = RunStatus.PREPARING
        generation = self._generation
        self._prepare_task = asyncio.create_task(self._prepare(generation))

        try:
            await self._prepare_task
        except asyncio.CancelledError:
            if generation == self._generation:
                self._abort_start()
                raise
            logger.info(f"Run for {self.user_id} closed while preparing")
            return False
        except Exception as e:
            # After dispose() the session may already belong to a newer start
            if generation != self._generation:
                logger.info(f"Run for {self.user_id} closed while preparing")
                return False
            if isinstance(e, TrackingError):
                logger.warning(f"Run for {self.user_id} not started: {e.user_message}")
                self._abort_start(e.user_message)
            else:
                logger.exception(f"Unable to start tracking for {self.user_id}: {e}")
                self._abort_start(TrackingError.user_message)
            return False

        if generation != self._generation:
            return False

        self._prepare_task = None
        self.is_busy = False
        logger.info(f"Run started for {self.user_id}")
        return True

    def _abort_start(self, message: Optional[str] = None) -> None:
        self._prepare_task = None
        self._release_resources()
        self.session.reset()
        self.is_busy = False
        self.message = message

    async def _prepare(self, generation: int) -> None:
        granted = await self.location.request_permission()
        self.location_permission = granted
        if not granted:
            raise PermissionDeniedError()

        if not await self.location.has_services_enabled():
            raise LocationServicesDisabledError()

        await self._enable_high_accuracy()
        self.weight_kg = await self._load_weight()
        self._ensure_open(generation)

        await self._start_step_tracking()
        self._ensure_open(generation)

        initial = await self._acquire_initial_fix()
        self._ensure_open(generation)

        self.session.started_at = self._clock()
        self.session.status = RunStatus.TRACKING
        if initial is not None:
            self._handle_fix(initial)

        self._location_sub = await self.location.watch(self._handle_fix)
        self._ensure_open(generation)

        self._start_timer()
        self.is_running = True

    def _ensure_open(self, generation: int) -> None:
        if generation != self._generation:
            raise SessionClosedError()

    async def _enable_high_accuracy(self) -> None:
        try:
            await self.location.enable_high_accuracy()
        except Exception as e:
            # The user can decline the system dialog; keep current provider settings
            logger.debug(f"High-accuracy provider not enabled: {e}")

    async def _load_weight(self) -> float:
        try:
            weight = await self.pipeline.store.read_user_weight(self.user_id)
        except Exception as e:
            logger.warning(f"Using default weight for {self.user_id}: {e}")
            return self.config.default_weight_kg

        weight = finite_or_none(weight)
        if weight is None or weight <= 0:
            return self.config.default_weight_kg
        return weight

    async def _start_step_tracking(self) -> None:
        self.session.step_count = 0
        self.session.step_source = StepSource.ESTIMATED

        try:
            if not await self.steps.is_available():
                return
            if not await self.steps.request_permission():
                return

            self._cancel_step_subscription()
            self._step_sub = await self.steps.watch(self._handle_step_count)
            self.session.step_source = StepSource.SENSOR
        except Exception as e:
            logger.warning(f"Step sensor unavailable, estimating steps: {e}")
            self._cancel_step_subscription()
            self.session.step_source = StepSource.ESTIMATED

    async def _acquire_initial_fix(self) -> Optional[LocationFix]:
        """
        Best of a bounded number of single-shot fixes.

        Stops early once a fix meets the target accuracy. A fix without a
        reported accuracy is kept only if nothing better has been seen.
        """
        best: Optional[LocationFix] = None
        best_accuracy: Optional[float] = None

        for attempt in range(1, self.config.initial_fix_attempts + 1):
            try:
                candidate = await asyncio.wait_for(
                    self.location.get_current_fix(),
                    timeout=self.config.initial_fix_timeout_s,
                )
            except Exception as e:
                # Some devices need several attempts for a first GPS lock
                logger.debug(f"Initial fix attempt {attempt} failed: {e!r}")
                continue

            accuracy = finite_or_none(candidate.accuracy_m)
            if best is None or (
                accuracy is not None
                and (best_accuracy is None or accuracy < best_accuracy)
            ):
                best, best_accuracy = candidate, accuracy

            if accuracy is not None and accuracy <= self.config.target_initial_accuracy_m:
                break

        if best is None:
            logger.info("No initial GPS fix; tracking continues on the live watch")
        elif best_accuracy is not None and best_accuracy > self.config.max_location_accuracy_m:
            logger.info(f"Initial fix too inaccurate ({best_accuracy:.0f} m); discarded")
            return None
        return best

    # -------------------------------------------------------------------------
    # Event handling
    # -------------------------------------------------------------------------

    def _handle_fix(self, fix: LocationFix) -> Optional[FilterResult]:
        if self.session.status != RunStatus.TRACKING:
            return None
        return self.filter.apply(self.session, fix)

    def _handle_step_count(self, steps) -> None:
        if self.session.status != RunStatus.TRACKING:
            return
        self.filter.apply_step_count(self.session, steps)

    def _elapsed_seconds(self) -> int:
        started_at = self.session.started_at
        if started_at is None:
            return 0
        elapsed = max(0, (self._clock() - started_at) // 1000)
        return max(self.session.elapsed_seconds, int(elapsed))

    def _tick(self) -> None:
        self.session.elapsed_seconds = self._elapsed_seconds()

    def _start_timer(self) -> None:
        self._stop_timer()
        self._timer_task = asyncio.create_task(self._run_timer())

    async def _run_timer(self) -> None:
        while True:
            self._tick()
            await asyncio.sleep(self.config.timer_interval_s)

    def _stop_timer(self) -> None:
        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None

    # -------------------------------------------------------------------------
    # Stop / dispose
    # -------------------------------------------------------------------------

    async def stop(self) -> Optional[SaveResult]:
        """
        Stop tracking and save the run.

        No-op (returns None) while another request is in flight or when no
        run is going, so a double tap saves exactly once.

        Returns:
            SaveResult with the message to show the user
        """
        if self.is_busy or not self.is_running:
            return None

        self.is_busy = True
        self.is_running = False
        self.session.status = RunStatus.STOPPING

        self._cancel_subscriptions()
        self._tick()
        self._stop_timer()
        ended_at = self._clock()
        logger.info(
            f"Run stopped for {self.user_id}: {self.session.elapsed_seconds}s, "
            f"{self.session.distance_km:.3f}km, {len(self.session.trajectory)} points"
        )

        try:
            result = await self.pipeline.persist(
                self.user_id, self.session, self.weight_kg, ended_at
            )
        except Exception as e:
            logger.exception(f"Run persistence crashed for {self.user_id}: {e}")
            result = SaveResult(outcome=SaveOutcome.FAILED, message="Failed to save run")
        finally:
            self.session.reset()
            self.is_busy = False

        self.message = result.message
        self.last_result = result
        return result

    def dispose(self) -> None:
        """
        Release watches and the timer without saving.

        Called when the tracking screen goes away. A start still preparing
        is abandoned, including any pending initial-fix request; a save
        already in progress is left to finish.
        """
        self._generation += 1
        if self._prepare_task is not None:
            self._prepare_task.cancel()
            self._prepare_task = None
        self._release_resources()
        if self.session.status == RunStatus.STOPPING:
            return
        self.is_busy = False
        self.is_running = False
        self.session.reset()

    def _cancel_location_subscription(self) -> None:
        if self._location_sub is not None:
            self._location_sub.cancel()
            self._location_sub = None

    def _cancel_step_subscription(self) -> None:
        if self._step_sub is not None:
            self._step_sub.cancel()
            self._step_sub = None

    def _cancel_subscriptions(self) -> None:
        self._cancel_location_subscription()
        self._cancel_step_subscription()

    def _release_resources(self) -> None:
        self._cancel_subscriptions()
        self._stop_timer()

    # -------------------------------------------------------------------------
    # Live state
    # -------------------------------------------------------------------------

    @property
    def status_text(self) -> str:
        if self.session.status == RunStatus.STOPPING:
            return "Saving run..."
        if self.is_busy:
            return "Preparing session..."
        if self.is_running:
            return "Tracking live"
        if self.location_permission is False:
            return "Location permission required"
        return "Ready to run"

    @property
    def total_steps(self) -> int:
        if self.session.step_source == StepSource.SENSOR:
            return self.session.step_count
        return estimate_steps(self.session.distance_km, self.config.stride_m)

    def state(self) -> LiveSessionState:
        """Live metrics, derived from the current accumulators on every call."""
        if self.session.status == RunStatus.TRACKING:
            self._tick()

        session = self.session
        seconds = session.elapsed_seconds
        distance = session.distance_km
        average = average_speed_kmh(distance, seconds)
        steps = self.total_steps

        return LiveSessionState(
            status=session.status,
            status_text=self.status_text,
            is_running=self.is_running,
            is_busy=self.is_busy,
            elapsed_seconds=seconds,
            clock=format_clock(seconds),
            distance_km=round(distance, 3),
            pace=format_pace(seconds, distance),
            speed_kmh=round(session.instant_speed_kmh if session.instant_speed_kmh > 0 else average, 1),
            average_speed_kmh=round(average, 2),
            cadence_spm=cadence_spm(steps, seconds),
            calories=calories_burned(distance, self.weight_kg),
            elevation_gain_m=round(session.elevation_gain_m, 1),
            steps=steps,
            step_source=session.step_source,
            current_point=(
                PointOut(**session.current_point.to_dict()) if session.current_point else None
            ),
            trajectory=[PointOut(**point.to_dict()) for point in session.trajectory],
            message=self.message,
        )
