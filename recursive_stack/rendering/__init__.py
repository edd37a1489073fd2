"""
Rendering Layer - Exports

Turns a session tree into text for collaborators (outline export).
"""

from recursive_stack.rendering.outline import render_outline

__all__ = [
    "render_outline",
]
