"""
Tokenizer - Candidate Sub-Topic Extraction

Splits an answer into the distinct word-like tokens that can be offered as
new child questions. A token is a run of Unicode letters, ASCII digits and
apostrophes; everything else (whitespace, hyphens, punctuation) separates.
"""

from typing import Any, List

import regex

TOKEN_PATTERN = regex.compile(r"[\p{L}0-9']+")


def extract_tokens(text: Any) -> List[str]:
    """
    Return the distinct tokens in `text`, sorted.

    Case is preserved, duplicates are collapsed. Input that is empty, not text,
    or contains no token yields an empty list; this function never raises.
    """
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("utf-8", errors="replace")
    if not isinstance(text, str) or not text:
        return []
    return sorted(set(TOKEN_PATTERN.findall(text)))
