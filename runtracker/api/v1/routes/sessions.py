"""
Live Session Routes

Endpoints that drive a run session from the device: start and stop, and
push the device's own location fixes and pedometer counts.
"""

import asyncio
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from runtracker.features.tracking import (
    LiveSessionState,
    LocationFixIn,
    StartRequest,
    StepCountIn,
    StopResponse,
)
from runtracker.features.tracking.registry import LiveRun, SessionRegistry

router = APIRouter()


def get_registry(request: Request) -> SessionRegistry:
    """Session registry created at startup."""
    return request.app.state.sessions


def _get_live(registry: SessionRegistry, user_id: str) -> LiveRun:
    live = registry.get(user_id)
    if live is None:
        raise HTTPException(status_code=404, detail="No session for this user")
    return live


# === Endpoints ===

@router.post("/{user_id}/start", response_model=LiveSessionState, status_code=202)
async def start_session(
    user_id: str,
    request: Optional[StartRequest] = None,
    registry: SessionRegistry = Depends(get_registry)
):
    """
    Start preparing a run.

    Preparing continues in the background until the first location fix
    arrives (or the initial fix attempts run out); poll GET for progress.
    """
    live = registry.get(user_id)
    if live is not None and (live.controller.is_busy or live.controller.is_running):
        raise HTTPException(status_code=409, detail="A run is already in progress")

    live = registry.start(user_id, request or StartRequest())
    # Let preparing reach its first await so the returned state shows it
    await asyncio.sleep(0)
    return live.controller.state()


@router.post("/{user_id}/fixes", response_model=LiveSessionState)
async def push_fixes(
    user_id: str,
    fixes: List[LocationFixIn],
    registry: SessionRegistry = Depends(get_registry)
):
    """
    Push location fixes in the order the device observed them.

    While preparing, the first fix answers the pending initial-fix request.
    """
    live = _get_live(registry, user_id)
    for fix in fixes:
        live.location.push(fix.to_fix())
    await asyncio.sleep(0)
    return live.controller.state()


@router.post("/{user_id}/steps", response_model=LiveSessionState)
async def push_steps(
    user_id: str,
    body: StepCountIn,
    registry: SessionRegistry = Depends(get_registry)
):
    """Push the pedometer's cumulative step count since the run started."""
    live = _get_live(registry, user_id)
    live.steps.push(body.steps)
    return live.controller.state()


@router.get("/{user_id}", response_model=LiveSessionState)
async def get_session(user_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Live metrics for the run screen."""
    return _get_live(registry, user_id).controller.state()


@router.post("/{user_id}/stop", response_model=StopResponse)
async def stop_session(user_id: str, registry: SessionRegistry = Depends(get_registry)):
    """
    Stop the run and save it.

    A stop while nothing is running (or while a start or another stop is
    still in flight) is ignored, so a double tap saves once.
    """
    live = _get_live(registry, user_id)
    result = await live.controller.stop()

    if result is None:
        return StopResponse(
            outcome="ignored",
            message=live.controller.message or "No run in progress",
        )

    return StopResponse(
        outcome=result.outcome.value,
        message=result.message,
        record_id=result.record_id,
    )


@router.delete("/{user_id}", status_code=204)
async def close_session(user_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Leave the run screen: release sensors and drop the session without saving."""
    if not registry.close(user_id):
        raise HTTPException(status_code=404, detail="No session for this user")
    return Response(status_code=204)
