"""
Outline Export

Renders a session as an indented question/answer outline: a depth-first walk
from the root, children in creation order, each node indented by its depth.
"""

from dataclasses import dataclass
from typing import List

from ..execution.queries import walk_depth_first
from ..state.models import SessionState
from .loader import render
from .templates import Template

INDENT = "  "


@dataclass
class OutlineLine:
    indent: str
    question: str
    answer_lines: List[str]


def render_outline(session: SessionState) -> str:
    entries = [
        OutlineLine(
            indent=INDENT * entry.depth,
            question=entry.question,
            answer_lines=[line for line in entry.answer.splitlines() if line.strip()],
        )
        for entry in walk_depth_first(session)
    ]
    return render(Template.SESSION_OUTLINE, entries=entries)
