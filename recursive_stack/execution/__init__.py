"""
Execution Layer - Tree, Navigation and Registry Operations

Plain functions that mutate (or read) the state models while keeping the
path and registry invariants intact.
"""

from recursive_stack.execution.navigation import (
    NavigationTransition,
    check_invariants,
    create_child,
    create_root,
    descend_into,
    jump_to,
    pop,
    update_current,
)
from recursive_stack.execution.registry import (
    SessionIdFactory,
    SessionSummary,
    create_session,
    delete_session,
    initialize_registry,
    list_sessions,
    load_session,
    new_session,
    reset_session,
)


__all__ = [
    # Navigation
    "NavigationTransition",
    "check_invariants",
    "create_child",
    "create_root",
    "descend_into",
    "jump_to",
    "pop",
    "update_current",
    # Registry
    "SessionIdFactory",
    "SessionSummary",
    "create_session",
    "delete_session",
    "initialize_registry",
    "list_sessions",
    "load_session",
    "new_session",
    "reset_session",
]
