"""
State Layer - Runtime Data Models

This module defines the runtime state of the decomposition tool: the node tree
of each session, the navigation stack (path) through it, and the registry that
lets several independent sessions coexist. The models serialize to the current
persisted record format (camelCase keys) via `model_dump(by_alias=True)`.
"""

from typing import List, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


class Node(BaseModel):
    """
    One question/answer pair in a session tree.
    """
    id: int = Field(ge=0)
    question: str = ""
    answer: str = ""

    # Creation order; never reordered or deduplicated.
    children: List[int] = Field(default_factory=list)

    # 0 for the root, parent.depth + 1 otherwise. Immutable once set.
    depth: int = Field(default=0, ge=0)


class SessionState(BaseModel):
    """
    One independent tree: node store, navigation stack and counters.

    `path` runs root-first, current-last. Element i is the parent of
    element i + 1, and the last element is the only editable node.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    created: int  # epoch millis
    nodes: Dict[int, Node] = Field(default_factory=dict)
    path: List[int] = Field(default_factory=list)
    node_id_counter: int = Field(default=0, ge=0, alias="nodeIdCounter")
    max_depth_reached: int = Field(default=0, ge=0, alias="maxDepthReached")

    @property
    def current_node_id(self) -> Optional[int]:
        if not self.path:
            return None
        return self.path[-1]

    @property
    def current_node(self) -> Optional[Node]:
        if not self.path:
            return None
        return self.nodes.get(self.path[-1])

    @property
    def root_node(self) -> Optional[Node]:
        if not self.path:
            return None
        return self.nodes.get(self.path[0])


class SessionRegistry(BaseModel):
    """
    All sessions of the workspace plus the one that is currently active.
    """
    model_config = ConfigDict(populate_by_name=True)

    current_session_id: str = Field(alias="currentSessionId")
    sessions: Dict[str, SessionState] = Field(default_factory=dict)

    @property
    def current_session(self) -> Optional[SessionState]:
        return self.sessions.get(self.current_session_id)
