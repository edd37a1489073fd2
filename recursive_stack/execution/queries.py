"""
Read models over a session, consumed by renderers, the outline exporter and
the graph view. Nothing here mutates state.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from ..config import settings
from ..state.models import Node, SessionState
from ..services.exceptions import NodeNotFoundError

ELLIPSIS = "..."


@dataclass(frozen=True)
class Breadcrumb:
    """A single element of the navigation path."""

    index: int
    node_id: int
    label: str
    active: bool


@dataclass(frozen=True)
class SessionStats:
    node_count: int
    current_depth: int
    max_depth_reached: int
    path_length: int


@dataclass(frozen=True)
class OutlineEntry:
    """A node visited by the depth-first walk."""

    node_id: int
    depth: int
    question: str
    answer: str


def current_node(session: SessionState) -> Node:
    node = session.current_node
    if node is None:
        raise NodeNotFoundError(session.current_node_id)
    return node


def truncate_label(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max(max_length - len(ELLIPSIS), 0)] + ELLIPSIS


def breadcrumbs(session: SessionState, max_length: Optional[int] = None) -> List[Breadcrumb]:
    if max_length is None:
        max_length = settings.BREADCRUMB_MAX_LENGTH
    last = len(session.path) - 1
    return [
        Breadcrumb(
            index=index,
            node_id=node_id,
            label=truncate_label(session.nodes[node_id].question, max_length),
            active=index == last,
        )
        for index, node_id in enumerate(session.path)
    ]


def resolved_children(session: SessionState) -> List[Node]:
    """Children of the current node that already carry an answer, in creation order."""
    parent = current_node(session)
    return [
        session.nodes[child_id]
        for child_id in parent.children
        if child_id in session.nodes and session.nodes[child_id].answer
    ]


def session_stats(session: SessionState) -> SessionStats:
    return SessionStats(
        node_count=len(session.nodes),
        current_depth=current_node(session).depth,
        max_depth_reached=session.max_depth_reached,
        path_length=len(session.path),
    )


def walk_depth_first(session: SessionState) -> Iterator[OutlineEntry]:
    """
    Pre-order walk from the root, following `children` in stored order.
    Each node is yielded once.
    """
    root = session.root_node
    if root is None:
        return
    seen = set()
    pending = [root.id]
    while pending:
        node_id = pending.pop()
        node = session.nodes.get(node_id)
        if node is None or node_id in seen:
            continue
        seen.add(node_id)
        yield OutlineEntry(node_id=node.id, depth=node.depth, question=node.question, answer=node.answer)
        # Reversed so the first child is visited first.
        pending.extend(reversed(node.children))


def edge_list(session: SessionState) -> List[Tuple[int, int]]:
    """(parent_id, child_id) pairs, ordered by parent id then child order."""
    return [
        (node_id, child_id)
        for node_id in sorted(session.nodes)
        for child_id in session.nodes[node_id].children
    ]
