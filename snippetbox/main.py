"""
Snippetbox - FastAPI Application Factory
=========================================

What:  Creates and configures the application instance.
Why:   Centralizes dependency construction, chain assembly, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn in factory mode
       (uvicorn snippetbox.main:create_app --factory) or by tests.
When:  Once at server startup; the returned app handles all requests.

Application Architecture:
    ┌───────────────────────────────────────────────────────────┐
    │  Standard chain (ChainMiddleware, every request)          │
    │  ┌─────────┐ ┌──────────┐ ┌──────────────────┐            │
    │  │ Recover │→│ Log      │→│ Security headers │→ Router    │
    │  └─────────┘ └──────────┘ └──────────────────┘            │
    │                                                           │
    │  Router:                                                  │
    │    /static/*, /ping                  (standard only)      │
    │    /, /about, /snippet/view, /user/* (dynamic chain)      │
    │    /snippet/create, /account/*       (protected chain)    │
    │                                                           │
    │  dynamic   = Session → CSRF → Authenticate                │
    │  protected = dynamic → Require authentication             │
    └───────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Verify the database is reachable (retried)
    3. Start the expired-session cleanup task

    Shutdown:
    1. Stop the cleanup task
    2. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException

from snippetbox import __version__
from snippetbox.config import Settings
from snippetbox.database import dispose_engine, verify_connection
from snippetbox.dependencies import Dependencies, build_dependencies
from snippetbox.middleware import authenticate, require_authentication, standard_chain
from snippetbox.pipeline import Chain, ChainMiddleware, Router
from snippetbox.responders import client_error
from snippetbox.routes import health
from snippetbox.routes.snippets import SnippetHandlers
from snippetbox.routes.users import UserHandlers

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s

    The access log ("snippetbox.access") is written by the log_request
    middleware, so uvicorn's own access logger is quietened.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    deps: Dependencies = app.state.deps
    settings = deps.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    logger.info("Snippetbox %s starting up...", __version__)

    # Fail fast: an unreachable database is a startup error, not a 500 later
    await verify_connection(deps.engine, attempts=settings.db_connect_attempts)
    deps.sessions.start_cleanup(settings.session_cleanup_interval)

    scheme = "https" if settings.tls_enabled else "http"
    logger.info("Server ready at %s://%s:%d", scheme, settings.host, settings.port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Snippetbox shutting down...")
    await deps.sessions.stop_cleanup()
    await dispose_engine(deps.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Route-level failures raised by the framework itself.

    Handlers report their own failures through `snippetbox.responders`;
    anything they let escape is recovered by the standard chain. What is
    left are the router's 404/405 and static-file 404s, which get the same
    plain-text body as every other client error.
    """

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return client_error(exc.status_code, headers=exc.headers)


# ══════════════════════════════════════════════════════════════════════════
# Routes
# ══════════════════════════════════════════════════════════════════════════

def build_router(deps: Dependencies) -> Router:
    """Bind every page handler to its path behind the right chain."""
    dynamic = Chain(
        deps.sessions.load_and_save,
        deps.csrf.protect,
        authenticate(deps.sessions, deps.users),
    )
    protected = dynamic.append(require_authentication)

    snippets = SnippetHandlers(deps)
    users = UserHandlers(deps)

    router = Router()
    router.mount_static("/static", deps.settings.static_dir)

    router.handle("GET", "/", dynamic.then(snippets.home), name="home")
    router.handle("GET", "/about", dynamic.then(snippets.about), name="about")
    router.handle("GET", "/snippet/view/{id}", dynamic.then(snippets.view), name="snippet_view")
    router.handle("GET", "/user/signup", dynamic.then(users.signup_form), name="user_signup")
    router.handle("POST", "/user/signup", dynamic.then(users.signup), name="user_signup_post")
    router.handle("GET", "/user/login", dynamic.then(users.login_form), name="user_login")
    router.handle("POST", "/user/login", dynamic.then(users.login), name="user_login_post")

    router.handle("GET", "/snippet/create", protected.then(snippets.create_form), name="snippet_create")
    router.handle("POST", "/snippet/create", protected.then(snippets.create), name="snippet_create_post")
    router.handle("GET", "/account/view", protected.then(users.account_view), name="account_view")
    router.handle(
        "GET", "/account/password/update", protected.then(users.password_update_form), name="password_update"
    )
    router.handle(
        "POST", "/account/password/update", protected.then(users.password_update), name="password_update_post"
    )
    router.handle("POST", "/user/logout", protected.then(users.logout), name="user_logout")
    return router


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None, deps: Optional[Dependencies] = None) -> FastAPI:
    """
    Create and configure the application.

    Args:
        settings: configuration; read from the environment when omitted
        deps:     pre-built collaborators (tests); built from `settings`
                  when omitted
    """
    if deps is None:
        deps = build_dependencies(settings or Settings())

    app = FastAPI(
        title="Snippetbox",
        version=__version__,
        # HTML application: no generated API docs
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.deps = deps

    # ── Standard chain around the whole router ────────────────────────────
    app.add_middleware(ChainMiddleware, chain=standard_chain())

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.router.routes.extend(build_router(deps).routes)
    app.include_router(health.router)

    return app
