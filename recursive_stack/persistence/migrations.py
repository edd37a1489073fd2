"""
Migration Engine - Startup Detection and Forward Migration

On startup the engine looks for a stored record in strictly descending
generation order (3, then 2, then 1) and stops at the first one that decodes:

    detect -> decode -> upgrade (repeat until generation 3) -> install

- Generation 3 is installed as-is.
- Generation 2 is wrapped into one new session (lossless).
- Generation 1 goes through `recover_generation1`, a best-effort reconstruction
  of the open path only, and then continues as Generation 2.

A record that cannot be read, or fails to parse or validate, is treated as
absent and the engine falls through to the next older generation. After a migration the registry is
written as Generation 3 and only then is the source key deleted, so a migration
runs at most once. If nothing usable is stored, a fresh registry is created.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from pydantic import BaseModel, ValidationError

from ..execution.navigation import check_invariants
from ..execution.registry import SessionIdFactory, initialize_registry
from ..repositories.state_store import StateStore
from ..services.exceptions import CorruptRecordError, PersistenceFailure
from ..state.models import Node, SessionRegistry, SessionState
from .records import (
    CURRENT_GENERATION,
    STORAGE_KEYS,
    Generation,
    Generation1Record,
    Generation2Record,
)

logger = logging.getLogger(__name__)

UNRECOVERABLE_BRANCHES_NOTE = (
    "Recovered from the legacy stack format: only the open path was stored, "
    "so sibling questions and abandoned branches cannot be restored."
)


@dataclass(frozen=True)
class RecoveredTree:
    """
    Result of the lossy Generation 1 reconstruction.
    Never equivalent to a full load: `lossy` is always True for this path.
    """

    record: Generation2Record
    lossy: bool
    note: str


@dataclass(frozen=True)
class LoadOutcome:
    registry: SessionRegistry
    source_generation: Optional[Generation]  # None when nothing usable was stored
    migrated: bool
    lossy: bool
    persisted: bool


# ==========================================================================
# Decoders
# ==========================================================================


def _parse(model: type, raw: str, generation: Generation) -> BaseModel:
    try:
        return model.model_validate_json(raw)
    except ValidationError as e:
        raise CorruptRecordError(
            f"Generation {int(generation)} record does not parse: {e.error_count()} error(s)"
        ) from e


def decode_generation3(raw: str) -> SessionRegistry:
    registry = _parse(SessionRegistry, raw, Generation.GENERATION_3)
    if not registry.sessions:
        raise CorruptRecordError("Generation 3 record holds no sessions")

    for key, session in registry.sessions.items():
        if session.id != key:
            raise CorruptRecordError(f"Session stored under '{key}' has id '{session.id}'")
        _repair_counters(session)
        check_invariants(session)

    if registry.current_session_id not in registry.sessions:
        oldest = min(registry.sessions.values(), key=lambda s: (s.created, s.id))
        logger.warning(
            f"Stored current session '{registry.current_session_id}' is missing, selecting {oldest.id}"
        )
        registry.current_session_id = oldest.id
    return registry


def decode_generation2(raw: str) -> Generation2Record:
    return _parse(Generation2Record, raw, Generation.GENERATION_2)


def decode_generation1(raw: str) -> Generation1Record:
    return _parse(Generation1Record, raw, Generation.GENERATION_1)


# ==========================================================================
# Upgrades
# ==========================================================================


def recover_generation1(record: Generation1Record) -> RecoveredTree:
    """
    Best-effort reconstruction of a tree from the legacy stack.

    The node store gets only the stacked nodes, each linked to the next one on
    the stack, and the navigation path is the whole stack. Depth is the stack
    position. Everything that was not on the stack is gone.
    """
    if not record.stack:
        raise CorruptRecordError("Generation 1 stack is empty")

    ids = [entry.id for entry in record.stack]
    if len(set(ids)) != len(ids):
        raise CorruptRecordError("Generation 1 stack repeats a node id")

    nodes: Dict[int, Node] = {}
    for index, entry in enumerate(record.stack):
        if entry.depth != index:
            logger.warning(f"Legacy node {entry.id} stored depth {entry.depth} at stack position {index}")
        next_ids = ids[index + 1:index + 2]
        nodes[entry.id] = Node(
            id=entry.id,
            question=entry.question,
            answer=entry.answer,
            children=next_ids,
            depth=index,
        )

    logger.warning(UNRECOVERABLE_BRANCHES_NOTE)
    return RecoveredTree(
        record=Generation2Record(
            nodes=nodes,
            path=ids,
            node_id_counter=record.node_id_counter,
            max_depth_reached=record.max_depth_reached,
        ),
        lossy=True,
        note=UNRECOVERABLE_BRANCHES_NOTE,
    )


def upgrade_generation2(record: Generation2Record, id_factory: SessionIdFactory) -> SessionRegistry:
    """Wrap the single implicit tree into a fresh session of a new registry."""
    session_id, created = id_factory.issue()
    session = SessionState(
        id=session_id,
        created=created,
        nodes=record.nodes,
        path=record.path,
        node_id_counter=record.node_id_counter or 0,
        max_depth_reached=record.max_depth_reached or 0,
    )
    _repair_counters(session)
    check_invariants(session)
    return SessionRegistry(current_session_id=session.id, sessions={session.id: session})


def _read_generation3(raw: str, id_factory: SessionIdFactory) -> Tuple[SessionRegistry, bool]:
    return decode_generation3(raw), False


def _read_generation2(raw: str, id_factory: SessionIdFactory) -> Tuple[SessionRegistry, bool]:
    return upgrade_generation2(decode_generation2(raw), id_factory), False


def _read_generation1(raw: str, id_factory: SessionIdFactory) -> Tuple[SessionRegistry, bool]:
    recovered = recover_generation1(decode_generation1(raw))
    return upgrade_generation2(recovered.record, id_factory), recovered.lossy


READERS: Dict[Generation, Callable[[str, SessionIdFactory], Tuple[SessionRegistry, bool]]] = {
    Generation.GENERATION_3: _read_generation3,
    Generation.GENERATION_2: _read_generation2,
    Generation.GENERATION_1: _read_generation1,
}


# ==========================================================================
# Load / Save
# ==========================================================================


def serialize_registry(registry: SessionRegistry) -> str:
    return registry.model_dump_json(by_alias=True)


def save_registry(store: StateStore, registry: SessionRegistry):
    """
    Write the whole registry as the current generation.
    The store raises PersistenceFailure if it rejects it; memory is left as is.
    """
    store.set(STORAGE_KEYS[CURRENT_GENERATION], serialize_registry(registry))


def load_registry(store: StateStore, id_factory: SessionIdFactory) -> LoadOutcome:
    for generation in sorted(READERS, reverse=True):
        key = STORAGE_KEYS[generation]
        try:
            raw = store.get(key)
        except PersistenceFailure as e:
            logger.warning(f"Ignoring unreadable '{key}': {e}")
            continue
        if raw is None:
            continue

        try:
            registry, lossy = READERS[generation](raw, id_factory)
        except CorruptRecordError as e:
            logger.warning(f"Ignoring stored '{key}': {e}")
            continue

        if generation == CURRENT_GENERATION:
            logger.info(f"Loaded {len(registry.sessions)} session(s) from '{key}'")
            return LoadOutcome(registry, generation, migrated=False, lossy=False, persisted=True)

        logger.info(f"Migrating '{key}' (generation {int(generation)}) to generation {int(CURRENT_GENERATION)}")
        try:
            save_registry(store, registry)
        except PersistenceFailure as e:
            # Source record is kept so the migration is retried next startup.
            logger.error(f"Migrated registry could not be saved: {e}")
            return LoadOutcome(registry, generation, migrated=True, lossy=lossy, persisted=False)

        try:
            store.delete(key)
        except PersistenceFailure as e:
            # Harmless: the generation 3 record now shadows it on every startup.
            logger.warning(f"Could not delete migrated '{key}': {e}")
        return LoadOutcome(registry, generation, migrated=True, lossy=lossy, persisted=True)

    logger.info("No usable stored state, starting a fresh registry")
    return LoadOutcome(initialize_registry(id_factory), None, migrated=False, lossy=False, persisted=False)


# ==========================================================================
# Standard Helpers
# ==========================================================================


def _repair_counters(session: SessionState):
    """Raise counters that lag behind the stored nodes (never lowers them)."""
    if not session.nodes:
        return
    next_id = max(session.nodes) + 1
    deepest = max(node.depth for node in session.nodes.values())
    if session.node_id_counter < next_id or session.max_depth_reached < deepest:
        logger.warning(f"Session {session.id}: repairing stored counters")
        session.node_id_counter = max(session.node_id_counter, next_id)
        session.max_depth_reached = max(session.max_depth_reached, deepest)
