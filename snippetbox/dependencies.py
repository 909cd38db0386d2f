"""
Snippetbox - Application Dependencies
======================================

What:  The set of collaborators handlers and middleware are built with.
Why:   Everything request-time code needs is constructed once at startup and
       handed over explicitly, so tests can assemble the same graph against
       a throwaway database and nothing depends on import-time singletons.
"""

from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncEngine

from snippetbox.config import Settings
from snippetbox.database import create_engine_from_settings, create_session_factory
from snippetbox.middleware.csrf import CsrfProtect
from snippetbox.services import SnippetService, SqlSessionStore, UserService
from snippetbox.sessions import SessionManager
from snippetbox.templating import TemplateRenderer


@dataclass
class Dependencies:
    settings: Settings
    engine: AsyncEngine
    snippets: SnippetService
    users: UserService
    sessions: SessionManager
    csrf: CsrfProtect
    templates: TemplateRenderer


def build_dependencies(settings: Settings) -> Dependencies:
    engine = create_engine_from_settings(settings)
    session_factory = create_session_factory(engine)
    timeout = settings.db_query_timeout

    sessions = SessionManager(
        SqlSessionStore(session_factory, query_timeout=timeout),
        lifetime=timedelta(seconds=settings.session_lifetime),
        cookie_name=settings.session_cookie_name,
        secure=settings.cookie_secure,
    )

    return Dependencies(
        settings=settings,
        engine=engine,
        snippets=SnippetService(session_factory, query_timeout=timeout),
        users=UserService(session_factory, query_timeout=timeout),
        sessions=sessions,
        csrf=CsrfProtect(secure=settings.cookie_secure),
        templates=TemplateRenderer(settings.templates_dir),
    )
