import json
from datetime import datetime

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine, select

from recursive_stack.execution.registry import SessionIdFactory
from recursive_stack.infrastructure.database.connection import init_db
from recursive_stack.infrastructure.database.tables import StoredRecordDBModel
from recursive_stack.persistence.migrations import load_registry
from recursive_stack.persistence.records import STORAGE_KEYS, Generation
from recursive_stack.repositories.state_store import SqlStateStore


@pytest.fixture
def sql_store() -> SqlStateStore:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return SqlStateStore(engine)


def test_missing_key_reads_as_none(sql_store: SqlStateStore) -> None:
    assert sql_store.get("absent") is None
    assert sql_store.delete("absent") is False


def test_set_overwrites_and_delete_removes(sql_store: SqlStateStore) -> None:
    sql_store.set("k", "one")
    sql_store.set("k", "two")
    assert sql_store.get("k") == "two"

    assert sql_store.delete("k") is True
    assert sql_store.get("k") is None


def test_unparseable_text_is_stored_verbatim(sql_store: SqlStateStore) -> None:
    sql_store.set("broken", "{not json")
    assert sql_store.get("broken") == "{not json"


def test_generation2_migration_on_sql_store(sql_store: SqlStateStore, id_factory: SessionIdFactory) -> None:
    record = {
        "nodes": {"0": {"id": 0, "question": "Root", "answer": "x", "children": [], "depth": 0}},
        "path": [0],
        "nodeIdCounter": 1,
        "maxDepthReached": 0,
    }
    sql_store.set(STORAGE_KEYS[Generation.GENERATION_2], json.dumps(record))

    outcome = load_registry(sql_store, id_factory)

    assert outcome.migrated is True
    assert sql_store.get(STORAGE_KEYS[Generation.GENERATION_2]) is None
    stored = json.loads(sql_store.get(STORAGE_KEYS[Generation.GENERATION_3]))
    assert stored["currentSessionId"] == outcome.registry.current_session_id


def _updated_at(store: SqlStateStore, key: str) -> datetime:
    with Session(store.engine) as db:
        row = db.exec(select(StoredRecordDBModel).where(StoredRecordDBModel.key == key)).one()
        return row.updated_at


def test_updated_at_is_written_on_insert_and_overwrite(sql_store: SqlStateStore) -> None:
    sql_store.set("k", "one")
    inserted = _updated_at(sql_store, "k")

    sql_store.set("k", "two")
    overwritten = _updated_at(sql_store, "k")

    assert isinstance(inserted, datetime)
    assert isinstance(overwritten, datetime)
    assert overwritten.replace(tzinfo=None) >= inserted.replace(tzinfo=None)
    assert sql_store.get("k") == "two"
