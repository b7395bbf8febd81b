"""
Feature modules for runtracker.

Each feature is a self-contained module with:
- models.py - Domain or SQLAlchemy models
- schemas.py - Pydantic schemas
- repository.py - Data access (optional)
- service-style modules - Business logic (filter, session, pipeline)
"""
