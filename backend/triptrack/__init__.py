"""
Trip Track Backend — Application Package Initializer
====================================================

What: Marks the `triptrack` directory as a Python package.
Why:  Enables module imports like `from triptrack.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │        HTTP shell (FastAPI app)     │  ← error translation, logging
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← social graph + content rules
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Services call straight into the ORM; there is no repository layer.
    Cross-entity rules (follow symmetry, one like per user, one
    conversation per participant set) live in the service methods.
"""

__version__ = "1.0.0"
