"""
Sensor provider interfaces.

The session controller depends only on these abstractions:
- LocationProvider: permissions, single-shot fixes and a continuous watch
- StepSensorProvider: pedometer availability, permission and a watch
- Subscription: a cancellable push stream handle

Push-driven implementations are fed by the HTTP API, where the device
forwards its own sensor readings.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .models import LocationFix

FixCallback = Callable[[LocationFix], None]
StepCallback = Callable[[int], None]


class Subscription:
    """
    Handle to an active sensor stream.

    cancel() is idempotent: cancelling an already-removed subscription is a
    no-op, never an error.
    """

    def __init__(self, on_cancel: Optional[Callable[[], None]] = None):
        self._on_cancel = on_cancel
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._on_cancel is not None:
            self._on_cancel()


class LocationProvider(ABC):
    """Abstract positioning provider."""

    @abstractmethod
    async def request_permission(self) -> bool:
        """Ask for location permission. Returns True if granted."""
        pass

    async def has_services_enabled(self) -> bool:
        """Whether device location services are switched on."""
        return True

    async def enable_high_accuracy(self) -> None:
        """Best-effort switch to a higher-accuracy provider."""
        return None

    @abstractmethod
    async def get_current_fix(self) -> LocationFix:
        """
        Single-shot fix.

        May raise or hang; callers bound it with their own timeout.
        """
        pass

    @abstractmethod
    async def watch(self, on_fix: FixCallback) -> Subscription:
        """Start continuous updates delivered to on_fix."""
        pass


class StepSensorProvider(ABC):
    """Abstract pedometer."""

    @abstractmethod
    async def is_available(self) -> bool:
        pass

    @abstractmethod
    async def request_permission(self) -> bool:
        pass

    @abstractmethod
    async def watch(self, on_step_count: StepCallback) -> Subscription:
        """Start cumulative step-count updates delivered to on_step_count."""
        pass


class NoStepSensor(StepSensorProvider):
    """Device without a pedometer; steps are estimated from distance."""

    async def is_available(self) -> bool:
        return False

    async def request_permission(self) -> bool:
        return False

    async def watch(self, on_step_count: StepCallback) -> Subscription:
        return Subscription()


# =============================================================================
# Push-driven providers
# =============================================================================

class PushLocationProvider(LocationProvider):
    """
    Location provider fed from outside, one fix at a time.

    Usage:
        provider = PushLocationProvider()
        subscription = await provider.watch(handle_fix)
        provider.push(fix)  # delivered to pending get_current_fix() and watchers
    """

    def __init__(self, permission_granted: bool = True, services_enabled: bool = True):
        self.permission_granted = permission_granted
        self.services_enabled = services_enabled
        self._listeners: list[FixCallback] = []
        self._waiters: list[asyncio.Future] = []

    async def request_permission(self) -> bool:
        return self.permission_granted

    async def has_services_enabled(self) -> bool:
        return self.services_enabled

    async def get_current_fix(self) -> LocationFix:
        future = asyncio.get_running_loop().create_future()
        self._waiters.append(future)
        try:
            return await future
        finally:
            if future in self._waiters:
                self._waiters.remove(future)

    async def watch(self, on_fix: FixCallback) -> Subscription:
        self._listeners.append(on_fix)
        return Subscription(lambda: self._remove_listener(on_fix))

    def push(self, fix: LocationFix) -> None:
        """Deliver a fix to waiters and watchers, in that order."""
        waiters, self._waiters = self._waiters, []
        for future in waiters:
            if not future.done():
                future.set_result(fix)

        for listener in list(self._listeners):
            listener(fix)

    @property
    def watcher_count(self) -> int:
        return len(self._listeners)

    @property
    def pending_fix_requests(self) -> int:
        """get_current_fix() calls waiting for the next push."""
        return len(self._waiters)

    def _remove_listener(self, on_fix: FixCallback) -> None:
        if on_fix in self._listeners:
            self._listeners.remove(on_fix)


class PushStepSensor(StepSensorProvider):
    """Pedometer fed from outside with cumulative step counts."""

    def __init__(self, available: bool = True, permission_granted: bool = True):
        self.available = available
        self.permission_granted = permission_granted
        self._listeners: list[StepCallback] = []

    async def is_available(self) -> bool:
        return self.available

    async def request_permission(self) -> bool:
        return self.permission_granted

    async def watch(self, on_step_count: StepCallback) -> Subscription:
        self._listeners.append(on_step_count)
        return Subscription(lambda: self._remove_listener(on_step_count))

    def push(self, steps: int) -> None:
        for listener in list(self._listeners):
            listener(steps)

    @property
    def watcher_count(self) -> int:
        return len(self._listeners)

    def _remove_listener(self, on_step_count: StepCallback) -> None:
        if on_step_count in self._listeners:
            self._listeners.remove(on_step_count)
