"""
Persistence Layer - Stored Record Formats and Migrations

Serializes the session registry under a durable key and migrates older
stored generations forward on startup.
"""

from recursive_stack.persistence.records import (
    CURRENT_GENERATION,
    STORAGE_KEYS,
    Generation,
)
from recursive_stack.persistence.migrations import (
    LoadOutcome,
    RecoveredTree,
    load_registry,
    recover_generation1,
    save_registry,
    serialize_registry,
)

__all__ = [
    "CURRENT_GENERATION",
    "STORAGE_KEYS",
    "Generation",
    "LoadOutcome",
    "RecoveredTree",
    "load_registry",
    "recover_generation1",
    "save_registry",
    "serialize_registry",
]
