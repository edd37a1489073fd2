"""
Registry - Session Lifecycle Operations

Creates, switches, deletes and resets the independent sessions held by a
SessionRegistry. Once initialized a registry is never empty and its
`current_session_id` always names one of its sessions.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..state.models import SessionRegistry, SessionState
from ..services.exceptions import SessionNotFoundError
from .navigation import create_root

logger = logging.getLogger(__name__)

SESSION_ID_PREFIX = "session-"


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


class SessionIdFactory:
    """
    Issues (session_id, created) pairs derived from the clock.

    Two calls within the same millisecond, or a clock that steps backwards,
    still get distinct, increasing timestamps: a reading that is not greater
    than the last issued one is bumped to last + 1.
    """

    def __init__(self, clock: Callable[[], int] = _epoch_millis):
        self._clock = clock
        self._last_issued = 0

    def now(self) -> int:
        return self._clock()

    def issue(self, registry: Optional[SessionRegistry] = None) -> Tuple[str, int]:
        created = max(self._clock(), self._last_issued + 1)
        session_id = f"{SESSION_ID_PREFIX}{created}"

        # Ids loaded from storage were not issued by this factory.
        while registry is not None and session_id in registry.sessions:
            created += 1
            session_id = f"{SESSION_ID_PREFIX}{created}"

        self._last_issued = created
        return session_id, created


@dataclass(frozen=True)
class SessionSummary:
    """One row of the session list."""

    session_id: str
    created: int
    root_question: str
    node_count: int
    max_depth_reached: int
    is_current: bool


# ==========================================================================
# Construction
# ==========================================================================


def new_session(id_factory: SessionIdFactory, registry: Optional[SessionRegistry] = None) -> SessionState:
    """Build a session with a fresh root node. Does not register it."""
    session_id, created = id_factory.issue(registry)
    session = SessionState(id=session_id, created=created)
    create_root(session)
    return session


def initialize_registry(id_factory: SessionIdFactory) -> SessionRegistry:
    """Build a registry holding a single, current, fresh session."""
    session = new_session(id_factory)
    logger.info(f"Initialized registry with session {session.id}")
    return SessionRegistry(current_session_id=session.id, sessions={session.id: session})


# ==========================================================================
# Lifecycle
# ==========================================================================


def create_session(registry: SessionRegistry, id_factory: SessionIdFactory) -> str:
    session = new_session(id_factory, registry)
    registry.sessions[session.id] = session
    registry.current_session_id = session.id
    logger.info(f"Created session {session.id}")
    return session.id


def load_session(registry: SessionRegistry, session_id: str) -> SessionState:
    """Make `session_id` the current session."""
    session = registry.sessions.get(session_id)
    if session is None:
        raise SessionNotFoundError(session_id)
    registry.current_session_id = session_id
    return session


def delete_session(registry: SessionRegistry, session_id: str, id_factory: SessionIdFactory) -> str:
    """
    Remove a session and return the id of the session that is current afterwards.

    Deleting the last session replaces it with a fresh one. Deleting the current
    session among others selects the oldest remaining one (lowest created, then id).
    """
    if session_id not in registry.sessions:
        raise SessionNotFoundError(session_id)
    del registry.sessions[session_id]
    logger.info(f"Deleted session {session_id}")

    if not registry.sessions:
        return create_session(registry, id_factory)

    if registry.current_session_id == session_id:
        oldest = min(registry.sessions.values(), key=lambda s: (s.created, s.id))
        registry.current_session_id = oldest.id
    return registry.current_session_id


def reset_session(registry: SessionRegistry, session_id: str) -> SessionState:
    """
    Throw away a session's whole tree and start it over from a fresh root.
    The session keeps its id, creation time and counters: the new root takes
    the next unused node id and `max_depth_reached` is left as it was.
    """
    session = registry.sessions.get(session_id)
    if session is None:
        raise SessionNotFoundError(session_id)
    session.nodes = {}
    create_root(session)
    logger.info(f"Reset session {session_id}")
    return session


# ==========================================================================
# Listing
# ==========================================================================


def list_sessions(registry: SessionRegistry) -> List[SessionSummary]:
    """Sessions most-recent-first; ties keep insertion order."""
    ordered = sorted(registry.sessions.values(), key=lambda s: s.created, reverse=True)
    return [
        SessionSummary(
            session_id=session.id,
            created=session.created,
            root_question=session.root_node.question if session.root_node else "",
            node_count=len(session.nodes),
            max_depth_reached=session.max_depth_reached,
            is_current=session.id == registry.current_session_id,
        )
        for session in ordered
    ]
