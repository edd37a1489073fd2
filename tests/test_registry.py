import pytest

from recursive_stack.execution.navigation import create_child
from recursive_stack.execution.registry import (
    SessionIdFactory,
    create_session,
    delete_session,
    initialize_registry,
    list_sessions,
    load_session,
    reset_session,
)
from recursive_stack.services.exceptions import SessionNotFoundError

from conftest import FakeClock


def test_id_factory_is_unique_within_the_same_millisecond(clock: FakeClock) -> None:
    factory = SessionIdFactory(clock=clock)
    first = factory.issue()
    second = factory.issue()

    assert first != second
    assert first == (f"session-{clock.value}", clock.value)
    assert second[1] == clock.value + 1


def test_id_factory_survives_clock_going_backwards(clock: FakeClock) -> None:
    factory = SessionIdFactory(clock=clock)
    _, first_created = factory.issue()
    clock.advance(-500)
    _, second_created = factory.issue()
    assert second_created > first_created


def test_id_factory_skips_ids_already_in_registry(clock: FakeClock) -> None:
    registry = initialize_registry(SessionIdFactory(clock=clock))
    fresh_factory = SessionIdFactory(clock=clock)

    session_id, _ = fresh_factory.issue(registry)
    assert session_id not in registry.sessions


def test_initialized_registry_has_one_current_session(id_factory: SessionIdFactory) -> None:
    registry = initialize_registry(id_factory)
    assert len(registry.sessions) == 1
    assert registry.current_session is not None
    assert registry.current_session.path == [0]


def test_create_session_becomes_current(id_factory: SessionIdFactory) -> None:
    registry = initialize_registry(id_factory)
    first_id = registry.current_session_id

    new_id = create_session(registry, id_factory)

    assert new_id != first_id
    assert registry.current_session_id == new_id
    assert registry.sessions[new_id].path == [0]


def test_list_sessions_is_most_recent_first(id_factory: SessionIdFactory, clock: FakeClock) -> None:
    registry = initialize_registry(id_factory)
    oldest = registry.current_session_id
    clock.advance(1000)
    middle = create_session(registry, id_factory)
    clock.advance(1000)
    newest = create_session(registry, id_factory)
    load_session(registry, middle)

    summaries = list_sessions(registry)

    assert [s.session_id for s in summaries] == [newest, middle, oldest]
    assert [s.is_current for s in summaries] == [False, True, False]
    assert summaries[0].root_question == "Root"
    assert summaries[0].node_count == 1


def test_load_session_switches_current(id_factory: SessionIdFactory) -> None:
    registry = initialize_registry(id_factory)
    first_id = registry.current_session_id
    create_session(registry, id_factory)

    session = load_session(registry, first_id)

    assert session.id == first_id
    assert registry.current_session_id == first_id


def test_load_unknown_session_raises(id_factory: SessionIdFactory) -> None:
    registry = initialize_registry(id_factory)
    current = registry.current_session_id
    with pytest.raises(SessionNotFoundError):
        load_session(registry, "session-0")
    assert registry.current_session_id == current


def test_deleting_only_session_recreates_a_fresh_one(id_factory: SessionIdFactory) -> None:
    registry = initialize_registry(id_factory)
    only_id = registry.current_session_id
    create_child(registry.current_session, "token")

    current_id = delete_session(registry, only_id, id_factory)

    assert list(registry.sessions) == [current_id]
    assert current_id != only_id
    fresh = registry.sessions[current_id]
    assert fresh.path == [0]
    assert list(fresh.nodes) == [0]
    assert registry.current_session_id == current_id


def test_deleting_current_selects_oldest_remaining(id_factory: SessionIdFactory, clock: FakeClock) -> None:
    registry = initialize_registry(id_factory)
    oldest = registry.current_session_id
    clock.advance(10)
    middle = create_session(registry, id_factory)
    clock.advance(10)
    newest = create_session(registry, id_factory)

    assert delete_session(registry, newest, id_factory) == oldest
    assert set(registry.sessions) == {oldest, middle}


def test_deleting_other_session_keeps_current(id_factory: SessionIdFactory) -> None:
    registry = initialize_registry(id_factory)
    other = registry.current_session_id
    current = create_session(registry, id_factory)

    assert delete_session(registry, other, id_factory) == current
    assert registry.current_session_id == current


def test_delete_unknown_session_raises(id_factory: SessionIdFactory) -> None:
    registry = initialize_registry(id_factory)
    with pytest.raises(SessionNotFoundError):
        delete_session(registry, "nope", id_factory)
    assert len(registry.sessions) == 1


def test_reset_session_starts_tree_over(id_factory: SessionIdFactory) -> None:
    registry = initialize_registry(id_factory)
    session = registry.current_session
    created = session.created
    create_child(session, "a")
    create_child(session, "b")

    counter_before = session.node_id_counter
    depth_before = session.max_depth_reached

    reset_session(registry, session.id)

    assert session.path == [counter_before]
    assert list(session.nodes) == [counter_before]
    assert session.root_node.depth == 0
    assert session.node_id_counter == counter_before + 1
    assert session.max_depth_reached == depth_before == 2
    assert session.created == created
