"""
Navigation - Node Tree and Navigation Stack Operations

Every mutation of a session's tree goes through this module. The tree and the
navigation stack are mutated together so the path invariant holds after each
call:

    path[i] is the parent of path[i + 1], and path[-1] is the current node.

Node creation and navigation are coupled on purpose. A spawned sub-question is
always opened for editing immediately, so `create_child` both creates the node
and pushes it. There is no "create without navigating".

Moves that are not allowed (popping the root, jumping outside the path) are
not errors. They leave the session untouched and report
NavigationTransition.DISALLOWED so the caller can grey out the control.
"""

import logging
from enum import Enum, auto
from typing import Optional

from ..config import settings
from ..state.models import Node, SessionState
from ..services.exceptions import (
    CorruptRecordError,
    NodeNotFoundError,
    NotAChildError,
)

logger = logging.getLogger(__name__)


class NavigationTransition(Enum):
    """What happened to the navigation stack."""

    HOLD = auto()  # Stack unchanged (edit in place, jump to the current node)
    PUSH = auto()  # A node was pushed and is now current
    POP = auto()  # The current node was popped; its parent is current
    TRUNCATE = auto()  # One or more frames were discarded by a breadcrumb jump
    DISALLOWED = auto()  # The move was rejected; nothing changed


# ==========================================================================
# Tree Mutation
# ==========================================================================


def create_root(session: SessionState, question: Optional[str] = None) -> Node:
    """
    Allocate a root node and make it the whole path.
    """
    root = Node(
        id=session.node_id_counter,
        question=question or settings.ROOT_QUESTION,
        depth=0,
    )
    session.nodes[root.id] = root
    session.path = [root.id]
    session.node_id_counter = root.id + 1
    return root


def create_child(session: SessionState, token: str) -> NavigationTransition:
    """
    Spawn a child question from `token` under the current node and descend into it.
    """
    parent = _require_current(session)
    child = Node(
        id=session.node_id_counter,
        question=token,
        depth=parent.depth + 1,
    )
    session.node_id_counter += 1
    session.nodes[child.id] = child
    parent.children.append(child.id)
    session.path.append(child.id)

    if child.depth > session.max_depth_reached:
        session.max_depth_reached = child.depth

    logger.debug(f"Session {session.id}: node {child.id} '{token}' at depth {child.depth}")
    return NavigationTransition.PUSH


def update_current(session: SessionState, question: str, answer: str) -> NavigationTransition:
    """
    Save the editor contents into the current node.
    A blank question keeps the existing one; the answer is always overwritten.
    """
    node = _require_current(session)
    question = (question or "").strip()
    if question:
        node.question = question
    node.answer = (answer or "").strip()
    return NavigationTransition.HOLD


# ==========================================================================
# Stack Navigation
# ==========================================================================


def pop(session: SessionState) -> NavigationTransition:
    """Return to the parent. The popped node stays in the store."""
    if len(session.path) <= 1:
        logger.info(f"Session {session.id}: pop refused, already at the root")
        return NavigationTransition.DISALLOWED
    session.path.pop()
    return NavigationTransition.POP


def jump_to(session: SessionState, index: int) -> NavigationTransition:
    """
    Truncate the path to `path[:index + 1]` (breadcrumb navigation).

    Discarded frames are not restored by the engine; their nodes remain in
    the store and can be re-entered with `descend_into`.
    """
    if index < 0 or index >= len(session.path):
        logger.info(
            f"Session {session.id}: jump to {index} refused, path length is {len(session.path)}"
        )
        return NavigationTransition.DISALLOWED
    if index == len(session.path) - 1:
        return NavigationTransition.HOLD
    del session.path[index + 1:]
    return NavigationTransition.TRUNCATE


def descend_into(session: SessionState, child_id: int) -> NavigationTransition:
    """
    Open an existing child of the current node without creating anything.
    Offering only real children is the caller's job; anything else raises.
    """
    parent = _require_current(session)
    if child_id not in session.nodes:
        raise NodeNotFoundError(child_id)
    if child_id not in parent.children:
        raise NotAChildError(parent.id, child_id)
    session.path.append(child_id)
    return NavigationTransition.PUSH


# ==========================================================================
# Invariants
# ==========================================================================


def check_invariants(session: SessionState) -> None:
    """
    Validate the tree/path invariants of a session.
    Raises CorruptRecordError describing the first violation found.
    """
    if not session.path:
        raise CorruptRecordError(f"Session {session.id}: navigation path is empty")

    for key, node in session.nodes.items():
        if node.id != key:
            raise CorruptRecordError(f"Session {session.id}: node stored under {key} has id {node.id}")
        if node.id >= session.node_id_counter:
            raise CorruptRecordError(
                f"Session {session.id}: node {node.id} is not below the id counter {session.node_id_counter}"
            )
        if node.depth > session.max_depth_reached:
            raise CorruptRecordError(
                f"Session {session.id}: node {node.id} is deeper than maxDepthReached"
            )
        for child_id in node.children:
            child = session.nodes.get(child_id)
            if child is None:
                raise CorruptRecordError(f"Session {session.id}: node {node.id} lists missing child {child_id}")
            if child.depth != node.depth + 1:
                raise CorruptRecordError(f"Session {session.id}: child {child_id} has inconsistent depth")

    for index, node_id in enumerate(session.path):
        node = session.nodes.get(node_id)
        if node is None:
            raise CorruptRecordError(f"Session {session.id}: path references missing node {node_id}")
        if node.depth != index:
            raise CorruptRecordError(f"Session {session.id}: node {node_id} has depth {node.depth} at path index {index}")
        if index > 0 and node_id not in session.nodes[session.path[index - 1]].children:
            raise CorruptRecordError(f"Session {session.id}: path is not connected at node {node_id}")


# ==========================================================================
# Standard Helpers
# ==========================================================================


def _require_current(session: SessionState) -> Node:
    node_id = session.current_node_id
    if node_id is None:
        raise ValueError(f"Session {session.id} has an empty navigation path.")
    node = session.nodes.get(node_id)
    if node is None:
        raise NodeNotFoundError(node_id)
    return node
