"""
Generic indexed-record storage on top of the key-value partition.

A record kind is described by an ``EntityType``: a namespace, the name of the
index that tracks its keys, and a pydantic model used to encode and decode the
stored JSON. ``EntityStore`` implements the operations once for every kind.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError

from gated_notes_database.errors import AlreadyExists, NotFound
from gated_notes_database.store import KeyValueStore

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class EntityType:
    name: str
    index_name: str
    model: Type[BaseModel]
    key_field: str = "id"

    def record_key(self, key: str) -> str:
        return f"{self.name}:{key}"

    def index_key(self, key: str) -> str:
        return f"index:{self.index_name}:{key}"

    def key_of(self, value: BaseModel) -> str:
        return getattr(value, self.key_field)

    def encode(self, value: BaseModel) -> dict:
        return value.model_dump(by_alias=True)

    def decode(self, raw: dict) -> BaseModel:
        return self.model.model_validate(raw)


# PUBLIC_INTERFACE
class EntityStore:
    """CRUD over every record kind, sharing one ``KeyValueStore``."""

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    def exists(self, entity_type: EntityType, key: str) -> bool:
        return self.kv.get(entity_type.record_key(key)) is not None

    def create(self, entity_type: EntityType, value: M) -> M:
        """Stores a new record; raises AlreadyExists if the key is taken."""
        key = entity_type.key_of(value)
        if self.exists(entity_type, key):
            raise AlreadyExists(f"{entity_type.name} '{key}' already exists.")
        try:
            self.kv.insert(entity_type.record_key(key), entity_type.encode(value))
        except IntegrityError:
            # another request created the same key after the exists() check
            raise AlreadyExists(f"{entity_type.name} '{key}' already exists.")
        self.kv.put(entity_type.index_key(key), {"key": key})
        return value

    def get_state(self, entity_type: EntityType, key: str):
        raw = self.kv.get(entity_type.record_key(key))
        if raw is None:
            raise NotFound(f"{entity_type.name} '{key}' not found.")
        return entity_type.decode(raw)

    def mutate(self, entity_type: EntityType, key: str, transform: Callable[[Any], Any]):
        """
        Read-modify-write of a single record.

        There is no concurrency token: two overlapping mutations on the same
        key resolve as last write wins.
        """
        current = self.get_state(entity_type, key)
        updated = transform(current)
        self.kv.put(entity_type.record_key(key), entity_type.encode(updated))
        return updated

    def patch(self, entity_type: EntityType, key: str, fields: Dict[str, Any]):
        """Shallow-merges ``fields`` into the record; ``None`` values are skipped."""
        changes = {name: value for name, value in fields.items() if value is not None}
        return self.mutate(entity_type, key, lambda state: state.model_copy(update=changes))

    def delete(self, entity_type: EntityType, key: str) -> bool:
        existed = self.kv.delete(entity_type.record_key(key))
        self.kv.delete(entity_type.index_key(key))
        return existed

    def list_keys(self, entity_type: EntityType) -> List[str]:
        prefix = entity_type.index_key("")
        return [index_key[len(prefix):] for index_key in self.kv.keys(prefix)]
