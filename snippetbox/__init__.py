"""
Snippetbox — Application Package Initializer
=============================================

What: Marks the `snippetbox` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The application follows the same layered shape on every request:

    ┌─────────────────────────────────────┐
    │   Middleware (recover, log, headers)│  ← cross-cutting HTTP concerns
    ├─────────────────────────────────────┤
    │   Routes + dependencies             │  ← CSRF, auth gate, form handling
    ├─────────────────────────────────────┤
    │   Services (data access)            │  ← snippets, users
    ├─────────────────────────────────────┤
    │   Models (SQLAlchemy ORM)           │  ← snippets, users tables
    └─────────────────────────────────────┘

    Routes never touch SQL directly; services never see a Request.
"""

__version__ = "1.0.0"
