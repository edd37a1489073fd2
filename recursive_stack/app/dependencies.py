"""
Dependency Injection Wiring (Composition Root).

This module acts as the central "container" for the application's services.
It is responsible for:
1. Instantiating the State Store and the Workspace Service.
2. Loading (and migrating) the stored state once, when the service is first built.
3. Managing the lifecycle of these objects using @lru_cache so there is a
   single writer per application process.

Tests override `get_workspace_service` with a service built on an
in-memory store.
"""


from functools import lru_cache
from fastapi import Depends

from ..repositories.state_store import StateStore, SqlStateStore
from ..services.workspace import WorkspaceService

from ..infrastructure.database.connection import init_db

# State Store (Singleton)
@lru_cache()
def get_state_store() -> StateStore:
    init_db()
    return SqlStateStore()

# The Workspace Service (Singleton Service)
# Note: it holds the live registry, so it must be a singleton!
@lru_cache()
def get_workspace_service(
    store: StateStore = Depends(get_state_store)
) -> WorkspaceService:
    service = WorkspaceService(store=store)
    service.start()
    return service
