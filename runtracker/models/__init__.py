"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy.

Note: Feature models are imported lazily to avoid circular imports.
Use direct imports from features/ modules when possible.
"""

from runtracker.models.base import Base


def _get_user_models():
    """Lazy import of User model."""
    from runtracker.features.users.models import User
    return User


def _get_run_models():
    """Lazy import of run record model."""
    from runtracker.features.runs.models import RunRecordModel
    return RunRecordModel


def __getattr__(name):
    if name == "User":
        return _get_user_models()
    if name == "RunRecordModel":
        return _get_run_models()

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "Base",
    "User",
    "RunRecordModel",
]
