"""
Snippetbox - Application Package Initializer
=============================================

What: Marks the `snippetbox` directory as a Python package.
Why:  Enables module imports like `from snippetbox.config import Settings`.
Who:  Used by uvicorn (factory mode), Alembic and pytest.

Architecture Note:
    Every request travels through an explicit, ordered pipeline:

    ┌─────────────────────────────────────────────┐
    │  Server (uvicorn)                           │
    ├─────────────────────────────────────────────┤
    │  Outer chain: recover → log → headers       │  ← process-wide middleware
    ├─────────────────────────────────────────────┤
    │  Router (method + path)                     │
    ├─────────────────────────────────────────────┤
    │  Route chain: session → csrf → auth (guard) │  ← per-route middleware
    ├─────────────────────────────────────────────┤
    │  Handler → services → database              │
    └─────────────────────────────────────────────┘

    Dependencies (services, session manager, renderer) are built once in
    `create_app()` and handed to handlers and middleware through their
    constructors; request-time code never reaches for module singletons.
"""

__version__ = "1.0.0"
