"""
MET API — Application Package Initializer
==========================================

What: Marks the `met_api` directory as a Python package.
Who:  Imported by uvicorn (`uvicorn met_api.main:app`), Alembic and pytest.

Architecture Note:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, error mapping
    ├─────────────────────────────────────┤
    │     Services (Ledger, Budget, File) │  ← cross-entity business rules
    ├─────────────────────────────────────┤
    │   Repositories (memory/file/db)     │  ← paginated generic persistence
    ├─────────────────────────────────────┤
    │        Models (immutable entities)  │  ← validation + JSON round trip
    └─────────────────────────────────────┘

    Every entity type gets the same repository contract; the storage
    backend is chosen per domain through configuration.
"""

__version__ = "1.0.0"
