# Services package init
"""
Snippetbox - Services Layer
============================

What:  Persistence collaborators sitting between handlers and the database.
Why:   Handlers deal with HTTP; services deal with rows and turn driver
       failures into the typed conditions in `snippetbox.exceptions`.

Service Inventory:
    - SnippetService: insert / get / latest snippets
    - UserService: insert / authenticate / exists / get / update_password
    - SqlSessionStore: find / commit / delete session rows

Each service is constructed once in `create_app()` with the shared
`async_sessionmaker`, so tests can build them against a throwaway database.
"""

from snippetbox.services.session_store import SqlSessionStore
from snippetbox.services.snippet_service import SnippetService
from snippetbox.services.user_service import UserService

__all__ = ["SnippetService", "SqlSessionStore", "UserService"]
