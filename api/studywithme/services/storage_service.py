"""
Snapshot storage: whole-collection load/save keyed by a fixed identifier.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from pydantic import TypeAdapter, ValidationError as PydanticValidationError
from sqlmodel import Session

from studywithme.core.exceptions import PersistenceError
from studywithme.models.snapshot import Snapshot

logger = logging.getLogger(__name__)


# Storage keys, one per collection
FLASHCARDS_KEY = "flashcards"
QUIZZES_KEY = "quizzes"
QUIZ_ATTEMPTS_KEY = "quiz_attempts"
XP_LEDGER_KEY = "xp_ledger"


class SnapshotStorage:
    """Stores one JSON document per key in the snapshot table."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def load(self, key: str) -> Optional[Any]:
        """
        Load the stored document for a key.

        Returns:
            Decoded JSON, or None if nothing has been stored yet

        Raises:
            PersistenceError: If the row cannot be read or does not hold valid JSON
        """
        try:
            with Session(self.engine) as session:
                snapshot = session.get(Snapshot, key)
                if snapshot is None:
                    return None
                payload = snapshot.payload
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read snapshot '{key}': {e}") from e

        try:
            return json.loads(payload)
        except ValueError as e:
            raise PersistenceError(f"Snapshot '{key}' is not valid JSON: {e}") from e

    def save(self, key: str, data: Any) -> None:
        """
        Replace the stored document for a key in a single transaction.

        Raises:
            PersistenceError: If serialization or the write fails; the previous
                snapshot stays in place
        """
        try:
            payload = json.dumps(data)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Snapshot '{key}' is not serializable: {e}") from e

        with Session(self.engine) as session:
            try:
                snapshot = session.get(Snapshot, key)
                if snapshot is None:
                    snapshot = Snapshot(key=key, payload=payload)
                else:
                    snapshot.payload = payload
                    snapshot.updated_at = datetime.now(timezone.utc)
                session.add(snapshot)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceError(f"Failed to write snapshot '{key}': {e}") from e

        logger.debug(f"Saved snapshot '{key}' ({len(payload)} bytes)")

    def delete(self, key: str) -> bool:
        """Remove the stored document for a key. Returns whether one existed."""
        with Session(self.engine) as session:
            try:
                snapshot = session.get(Snapshot, key)
                if snapshot is None:
                    return False
                session.delete(snapshot)
                session.commit()
                return True
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceError(f"Failed to delete snapshot '{key}': {e}") from e


def load_collection(
    storage: SnapshotStorage,
    key: str,
    adapter: TypeAdapter,
    default_factory: Callable[[], Any]
) -> Any:
    """
    Load and validate a collection, falling back to an empty one.

    Absent, unreadable or invalid snapshots never stop an engine from starting.
    """
    try:
        data = storage.load(key)
    except PersistenceError as e:
        logger.warning(f"{e}; starting with an empty collection")
        return default_factory()

    if data is None:
        return default_factory()

    try:
        return adapter.validate_python(data)
    except PydanticValidationError as e:
        logger.warning(f"Snapshot '{key}' failed validation, starting with an empty collection: {e}")
        return default_factory()


def save_collection(storage: SnapshotStorage, key: str, adapter: TypeAdapter, value: Any) -> bool:
    """
    Persist a whole collection. A failure is logged and reported as False;
    the caller's in-memory state is left as it is.
    """
    try:
        storage.save(key, adapter.dump_python(value, mode="json"))
        return True
    except PersistenceError as e:
        logger.error(f"Could not persist '{key}': {e}", exc_info=True)
        return False
