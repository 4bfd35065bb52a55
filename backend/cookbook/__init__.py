"""
Cookbook Backend — Application Package Initializer
====================================================

What: The `cookbook` package: a recipe catalog REST API.
Who:  Imported by uvicorn (cookbook.main:app), `python -m cookbook`, and pytest.

Architecture Note:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← uploads, validation, orchestration
    ├─────────────────────────────────────┤
    │            Schemas (Data)           │  ← pydantic entity/payload models
    ├─────────────────────────────────────┤
    │       Record Store (in-memory)      │  ← accounts + recipes tables
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
