from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from recursive_stack.execution.registry import SessionIdFactory, new_session  # noqa: E402
from recursive_stack.repositories.state_store import InMemoryStateStore  # noqa: E402
from recursive_stack.services.exceptions import PersistenceFailure  # noqa: E402
from recursive_stack.services.workspace import WorkspaceService  # noqa: E402
from recursive_stack.state.models import SessionState  # noqa: E402


class FakeClock:
    """Epoch-millis clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.value = start

    def __call__(self) -> int:
        return self.value

    def advance(self, millis: int = 1) -> None:
        self.value += millis


class FailingStateStore(InMemoryStateStore):
    """In-memory store whose writes can be switched off, like a full quota."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__(initial)
        self.reject_writes = False
        self.writes = 0

    def set(self, key: str, value: str) -> None:
        if self.reject_writes:
            raise PersistenceFailure("quota exceeded")
        self.writes += 1
        super().set(key, value)


def assert_path_invariant(session: SessionState) -> None:
    assert len(session.path) >= 1
    for parent_id, child_id in zip(session.path, session.path[1:]):
        assert child_id in session.nodes[parent_id].children
    for index, node_id in enumerate(session.path):
        assert session.nodes[node_id].depth == index


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def id_factory(clock: FakeClock) -> SessionIdFactory:
    return SessionIdFactory(clock=clock)


@pytest.fixture
def session(id_factory: SessionIdFactory) -> SessionState:
    return new_session(id_factory)


@pytest.fixture
def store() -> FailingStateStore:
    return FailingStateStore()


@pytest.fixture
def service(store: FailingStateStore, id_factory: SessionIdFactory) -> WorkspaceService:
    workspace = WorkspaceService(store=store, id_factory=id_factory)
    workspace.start()
    return workspace
