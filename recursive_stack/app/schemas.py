"""
API Layer - Request/Response Schemas

Pydantic models for API request and response validation.
"""

from typing import Optional, List

from pydantic import BaseModel


class DraftIn(BaseModel):
    """Editor contents of the node being left; saved before navigating."""
    question: str = ""
    answer: str = ""


class NodeEdit(BaseModel):
    question: str = ""
    answer: str = ""


class SwitchSession(BaseModel):
    session_id: str


class DiveRequest(BaseModel):
    token: str
    draft: Optional[DraftIn] = None


class BackRequest(BaseModel):
    draft: Optional[DraftIn] = None


class JumpRequest(BaseModel):
    index: int
    draft: Optional[DraftIn] = None


class OpenChildRequest(BaseModel):
    child_id: int
    draft: Optional[DraftIn] = None


class NodeRead(BaseModel):
    id: int
    question: str
    answer: str
    children: List[int]
    depth: int


class BreadcrumbRead(BaseModel):
    index: int
    node_id: int
    label: str
    active: bool


class StatsRead(BaseModel):
    node_count: int
    current_depth: int
    max_depth_reached: int
    path_length: int


class SessionSummaryRead(BaseModel):
    session_id: str
    created: int
    root_question: str
    node_count: int
    max_depth_reached: int
    is_current: bool


class WorkspaceRead(BaseModel):
    """Everything a renderer needs after a mutation."""
    session_id: str
    node: NodeRead
    path: List[int]
    breadcrumbs: List[BreadcrumbRead]
    tokens: List[str]
    resolved_children: List[NodeRead]
    stats: StatsRead
    can_go_back: bool


class NavigationResponse(BaseModel):
    transition: str
    workspace: WorkspaceRead


class GraphRead(BaseModel):
    nodes: List[NodeRead]
    edges: List[List[int]]
