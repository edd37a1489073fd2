"""
Service Layer Exceptions

Exceptions raised by the tree, registry and persistence layers.
Navigation moves that are merely disallowed (popping the root, jumping out of
range) are not exceptions; they are reported as NavigationTransition.DISALLOWED.
"""


class RecursiveStackError(Exception):
    """Base class for all errors raised by the package."""
    pass


class NotFoundError(RecursiveStackError):
    """Raised when a session or node id is absent from the registry/store."""
    pass


class SessionNotFoundError(NotFoundError):
    def __init__(self, session_id: str):
        super().__init__(f"Session '{session_id}' not found.")
        self.session_id = session_id


class NodeNotFoundError(NotFoundError):
    def __init__(self, node_id: int):
        super().__init__(f"Node {node_id} not found.")
        self.node_id = node_id


class NotAChildError(RecursiveStackError):
    """Raised when descending into a node that is not a child of the current node."""

    def __init__(self, parent_id: int, child_id: int):
        super().__init__(f"Node {child_id} is not a child of node {parent_id}.")
        self.parent_id = parent_id
        self.child_id = child_id


class PersistenceFailure(RecursiveStackError):
    """
    Raised when the durable store rejects a write.
    The in-memory registry stays valid but is ahead of the stored snapshot.
    """
    pass


class CorruptRecordError(RecursiveStackError):
    """Raised when a stored record fails to parse or validate."""
    pass
