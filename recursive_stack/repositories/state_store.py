from abc import ABC, abstractmethod
from typing import Optional, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..infrastructure.database.tables import StoredRecordDBModel, utc_now
from ..infrastructure.database.connection import engine as default_engine
from ..services.exceptions import PersistenceFailure


class StateStore(ABC):
    """
    Durable key/value storage for serialized records.
    Values are raw text so unparseable records can still be detected and skipped.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Returns the stored text, or None if the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str):
        """Stores `value` under `key`. Raises PersistenceFailure if rejected."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Deletes a key. Returns True if found and deleted."""
        pass


class InMemoryStateStore(StateStore):
    """
    Uses an in-memory dictionary for testing/dev purposes.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._store: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._store.get(key)

    def set(self, key: str, value: str):
        self._store[key] = value

    def delete(self, key: str) -> bool:
        if key in self._store:
            del self._store[key]
            return True
        return False

    def keys(self):
        return sorted(self._store)


class SqlStateStore(StateStore):
    """
    SQL storage (SQLite by default) via the 'stored_records' table.
    """

    def __init__(self, engine=None):
        self.engine = engine or default_engine

    def get(self, key: str) -> Optional[str]:
        try:
            with Session(self.engine) as db:
                result = db.exec(
                    select(StoredRecordDBModel).where(StoredRecordDBModel.key == key)
                ).first()
                return result.value if result else None
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Could not read '{key}': {e}") from e

    def set(self, key: str, value: str):
        try:
            with Session(self.engine) as db:
                result = db.exec(
                    select(StoredRecordDBModel).where(StoredRecordDBModel.key == key)
                ).first()

                if result:
                    result.value = value
                    result.updated_at = utc_now()
                else:
                    result = StoredRecordDBModel(key=key, value=value)
                db.add(result)
                db.commit()
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Could not write '{key}': {e}") from e

    def delete(self, key: str) -> bool:
        try:
            with Session(self.engine) as db:
                result = db.exec(
                    select(StoredRecordDBModel).where(StoredRecordDBModel.key == key)
                ).first()

                if result:
                    db.delete(result)
                    db.commit()
                    return True
                return False
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Could not delete '{key}': {e}") from e
