"""
BoxIT Backend — Application Package Initializer
================================================

What: Household inventory API. Users organize storage as
      StorageRoom → Box → Item, tag items with per-user labels, and print
      QR codes that open a read-only view of a box without signing in.

Architecture Note:
    The backend follows a layered layout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (ownership, labels, I/O)  │  ← Business rules
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    External collaborators (object storage, email, QR rendering) are built
    once in `create_app()` and reached through `app.state`.
"""

__version__ = "1.0.0"
