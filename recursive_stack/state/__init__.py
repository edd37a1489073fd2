"""
State Layer - Runtime Data Models

Defines the node tree, the per-session navigation stack and the
session registry.
"""

from recursive_stack.state.models import (
    Node,
    SessionRegistry,
    SessionState,
)

__all__ = [
    "Node",
    "SessionRegistry",
    "SessionState",
]
