"""
Domain Layer - Pure Text Functions

Stateless helpers over user text, independent of sessions and storage.
"""

from recursive_stack.domain.tokenizer import extract_tokens

__all__ = [
    "extract_tokens",
]
