"""
Persisted Record Formats

Three schema generations of the stored state have existed. Each one lives under
its own storage key and has its own decoder model here:

- Generation 3 (current): the whole SessionRegistry, see state.models.
- Generation 2: a single implicit session `{nodes, path, nodeIdCounter, maxDepthReached}`.
- Generation 1: only the open path, `{stack: [{id, question, answer, depth}], ...}`.
  Every node the user had backed out of was deleted outright, so siblings and
  abandoned branches were never stored.
"""

from enum import IntEnum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..state.models import Node


class Generation(IntEnum):
    GENERATION_1 = 1
    GENERATION_2 = 2
    GENERATION_3 = 3


CURRENT_GENERATION = Generation.GENERATION_3

STORAGE_KEYS: Dict[Generation, str] = {
    Generation.GENERATION_3: "recursiveStackSessions",
    Generation.GENERATION_2: "recursiveStackTree",
    Generation.GENERATION_1: "recursiveStack",
}


class Generation2Record(BaseModel):
    """A single tree without a session wrapper."""
    model_config = ConfigDict(populate_by_name=True)

    nodes: Dict[int, Node]
    path: List[int]

    # Older writers sometimes omitted these; they are derived when missing.
    node_id_counter: Optional[int] = Field(default=None, ge=0, alias="nodeIdCounter")
    max_depth_reached: Optional[int] = Field(default=None, ge=0, alias="maxDepthReached")


class Generation1Entry(BaseModel):
    """One frame of the legacy stack. Stored `children` ids are ignored."""
    id: int = Field(ge=0)
    question: str = ""
    answer: str = ""
    depth: int = Field(default=0, ge=0)


class Generation1Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    stack: List[Generation1Entry]
    node_id_counter: Optional[int] = Field(default=None, ge=0, alias="nodeIdCounter")
    max_depth_reached: Optional[int] = Field(default=None, ge=0, alias="maxDepthReached")
