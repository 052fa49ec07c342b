"""
MoodTrack Backend — Application Package
=========================================

What: Mood-tracking REST API (accounts, check-ins, meditation music).
Who:  Imported by uvicorn (`moodtrack.main:app`), Alembic and pytest.

Architecture Note:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Dependencies (auth, pagination)    │  ← per-request guards
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← hashing, tokens, workflows
    ├─────────────────────────────────────┤
    │   Models (ModelStore) & Schemas     │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
