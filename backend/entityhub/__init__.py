"""
EntityHub Backend — Application Package Initializer
====================================================

What: Marks the `entityhub` directory as a Python package.
Why:  Enables module imports like `from entityhub.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    Every entity (Blog, Task, ...) is served by ONE generic pipeline:

    ┌─────────────────────────────────────┐
    │      Routes (generated per entity)  │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   EntityService (controller logic)  │  ← preconditions, validation, actor stamping
    ├─────────────────────────────────────┤
    │  Validation  │  Query normalizer    │  ← declarative schemas, filter shapes
    ├─────────────────────────────────────┤
    │     Data-access facade (store)      │  ← create / paginate / update / delete
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Adding an entity means adding a model, a schema, and one descriptor in
    `entityhub.entities`; no controller code is copied.
"""

__version__ = "1.0.0"
