"""
Snippetbox - HTTP Handlers
===========================

Handler groups are plain classes built from `Dependencies`; each bound
method is an async `Request -> Response` handler that main.py wraps in the
dynamic or protected chain. The liveness check is a FastAPI APIRouter.
"""
