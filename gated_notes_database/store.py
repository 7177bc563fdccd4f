from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gated_notes_database.models import KVEntry

# PUBLIC_INTERFACE
class KeyValueStore:
    """
    Get/put/delete access to the single shared storage partition.

    Each write commits immediately so a later read in any session sees it.
    A failed commit is rolled back before the error propagates, leaving the
    session usable.
    """

    def __init__(self, session: Session):
        self.session = session

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def get(self, key: str) -> Optional[dict]:
        entry = self.session.get(KVEntry, key)
        if entry is None:
            return None
        return dict(entry.value)

    def insert(self, key: str, value: dict) -> None:
        """Adds a new entry; raises IntegrityError if the key is already stored."""
        self.session.add(KVEntry(key=key, value=dict(value)))
        self._commit()

    def put(self, key: str, value: dict) -> None:
        entry = self.session.get(KVEntry, key)
        if entry is None:
            self.session.add(KVEntry(key=key, value=dict(value)))
        else:
            # assign a fresh dict so the JSON column is flagged dirty
            entry.value = dict(value)
        self._commit()

    def delete(self, key: str) -> bool:
        entry = self.session.get(KVEntry, key)
        if entry is None:
            return False
        self.session.delete(entry)
        self._commit()
        return True

    def keys(self, prefix: str) -> List[str]:
        stmt = (
            select(KVEntry.key)
            .where(KVEntry.key.startswith(prefix, autoescape=True))
            .order_by(KVEntry.key)
        )
        return list(self.session.execute(stmt).scalars())
