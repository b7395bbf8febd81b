"""
API Router v1

Combines all route modules.
"""

from fastapi import APIRouter

from runtracker.api.v1.routes import runs, sessions, users

api_router = APIRouter()

api_router.include_router(sessions.router, prefix="/sessions", tags=["Sessions"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(runs.router, prefix="/users", tags=["Runs"])
