"""
Workspace Service - Application Orchestration Layer

This service owns the live SessionRegistry for the running process. It loads
(and migrates) the stored state once at startup, runs the tree, navigation and
registry operations against it, and writes the whole registry after every
mutation. The write is the commit point: if it fails, PersistenceFailure is
raised and memory stays ahead of the stored snapshot until the next write.

Leaving a node never discards edits. Navigation methods accept the caller's
pending `Draft` for the node being left and save it before moving, inside the
same commit, including when the move itself is refused with an error.

Mutations and their commit run under one lock, so concurrent request threads
see the registry as a single writer would leave it.
"""

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..domain.tokenizer import extract_tokens
from ..execution import navigation, registry as registry_ops
from ..execution.navigation import NavigationTransition
from ..execution.queries import edge_list
from ..execution.registry import SessionIdFactory, SessionSummary
from ..persistence.migrations import LoadOutcome, load_registry, save_registry
from ..rendering.outline import render_outline
from ..repositories.state_store import StateStore
from ..services.exceptions import RecursiveStackError
from ..state.models import Node, SessionRegistry, SessionState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Draft:
    """Editor contents for the current node that may not be saved yet."""

    question: str
    answer: str


class WorkspaceService:
    def __init__(self, store: StateStore, id_factory: Optional[SessionIdFactory] = None):
        self.store = store
        self.id_factory = id_factory or SessionIdFactory()
        self._registry: Optional[SessionRegistry] = None
        self.load_outcome: Optional[LoadOutcome] = None
        self._lock = threading.RLock()

    def start(self) -> LoadOutcome:
        """Load stored state, migrating older generations. Runs once."""
        with self._lock:
            if self.load_outcome is None:
                self.load_outcome = load_registry(self.store, self.id_factory)
                self._registry = self.load_outcome.registry
                if self.load_outcome.lossy:
                    logger.warning("Workspace restored from a lossy legacy record")
            return self.load_outcome

    @property
    def registry(self) -> SessionRegistry:
        if self._registry is None:
            raise RuntimeError("WorkspaceService.start() has not been called.")
        return self._registry

    @property
    def current_session(self) -> SessionState:
        return self.registry.sessions[self.registry.current_session_id]

    # ==========================================================================
    # Sessions
    # ==========================================================================

    def list_sessions(self) -> List[SessionSummary]:
        with self._lock:
            return registry_ops.list_sessions(self.registry)

    def create_session(self) -> SessionState:
        with self._lock:
            session_id = registry_ops.create_session(self.registry, self.id_factory)
            self._commit()
            return self.registry.sessions[session_id]

    def switch_session(self, session_id: str) -> SessionState:
        with self._lock:
            session = registry_ops.load_session(self.registry, session_id)
            self._commit()
            return session

    def delete_session(self, session_id: str) -> SessionState:
        """Delete a session and return the one that is current afterwards."""
        with self._lock:
            current_id = registry_ops.delete_session(self.registry, session_id, self.id_factory)
            self._commit()
            return self.registry.sessions[current_id]

    def reset_session(self, session_id: str) -> SessionState:
        with self._lock:
            session = registry_ops.reset_session(self.registry, session_id)
            self._commit()
            return session

    # ==========================================================================
    # Current Node
    # ==========================================================================

    def save_node(self, question: str, answer: str) -> List[str]:
        """Save the editor contents and return the tokens offered as sub-questions."""
        with self._lock:
            session = self.current_session
            navigation.update_current(session, question, answer)
            self._commit()
            return extract_tokens(session.current_node.answer)

    def tokens(self) -> List[str]:
        node = self.current_session.current_node
        return extract_tokens(node.answer) if node else []

    # ==========================================================================
    # Navigation
    # ==========================================================================

    def dive(self, token: str, draft: Optional[Draft] = None) -> NavigationTransition:
        """Spawn a child question from `token` and open it."""
        return self._navigate(navigation.create_child, token, draft=draft)

    def back(self, draft: Optional[Draft] = None) -> NavigationTransition:
        return self._navigate(navigation.pop, draft=draft)

    def jump(self, index: int, draft: Optional[Draft] = None) -> NavigationTransition:
        return self._navigate(navigation.jump_to, index, draft=draft)

    def open_child(self, child_id: int, draft: Optional[Draft] = None) -> NavigationTransition:
        return self._navigate(navigation.descend_into, child_id, draft=draft)

    # ==========================================================================
    # Collaborator Reads
    # ==========================================================================

    def outline(self) -> str:
        with self._lock:
            return render_outline(self.current_session)

    def graph(self) -> Tuple[List[Node], List[Tuple[int, int]]]:
        with self._lock:
            session = self.current_session
            nodes = [session.nodes[node_id] for node_id in sorted(session.nodes)]
            return nodes, edge_list(session)

    # ==========================================================================
    # Standard Helpers
    # ==========================================================================

    def _navigate(self, operation, *args, draft: Optional[Draft] = None) -> NavigationTransition:
        with self._lock:
            session = self.current_session
            if draft is not None:
                navigation.update_current(session, draft.question, draft.answer)

            try:
                transition = operation(session, *args)
            except RecursiveStackError:
                # Store the applied draft before the refusal propagates.
                if draft is not None:
                    self._commit()
                raise

            if draft is not None or transition != NavigationTransition.DISALLOWED:
                self._commit()
            return transition

    def _commit(self):
        save_registry(self.store, self.registry)
