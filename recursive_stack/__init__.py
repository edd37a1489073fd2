"""
Recursive Stack

Decomposes an open-ended question into an arbitrarily deep tree of
sub-questions. Answers are split into tokens; choosing a token opens a child
question one level deeper, and a navigation stack tracks the way back.
Several independent sessions coexist in a registry that is persisted as a
versioned record and migrated forward from older generations on startup.
"""

from recursive_stack.domain import extract_tokens
from recursive_stack.state import (
    Node,
    SessionRegistry,
    SessionState,
)
from recursive_stack.execution import NavigationTransition, SessionIdFactory
from recursive_stack.persistence import Generation, LoadOutcome, load_registry, save_registry
from recursive_stack.services.workspace import Draft, WorkspaceService

__all__ = [
    # Domain Layer
    "extract_tokens",
    # State Layer
    "Node",
    "SessionRegistry",
    "SessionState",
    # Execution Layer
    "NavigationTransition",
    "SessionIdFactory",
    # Persistence Layer
    "Generation",
    "LoadOutcome",
    "load_registry",
    "save_registry",
    # Services
    "Draft",
    "WorkspaceService",
]
