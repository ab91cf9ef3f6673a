"""
TimeBank Backend — Application Package
======================================

What: REST backend for a skill/time-exchange marketplace.
How:  Members register, log in, publish the services they offer, share
      learning resources and profile pictures, and contact each other.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, session identity
    ├─────────────────────────────────────┤
    │   Services (Business Logic)         │  ← ownership guard, catalogs,
    │                                     │    identity store, asset store
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Every update or delete of a member-owned row goes through the ownership
    guard in `timebank.services.ownership` before anything is written.
"""

__version__ = "1.0.0"
