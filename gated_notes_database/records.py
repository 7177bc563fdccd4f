"""
User and note records plus the free functions that operate on them.
"""

import uuid
from datetime import datetime, timezone
from typing import List

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from gated_notes_database.entities import EntityStore, EntityType
from gated_notes_database.errors import NotFound

DEFAULT_NOTE_TITLE = "İsimsiz Not"
DEFAULT_NOTE_CONTENT = "Yeni notunuzu buraya yazın..."


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# PUBLIC_INTERFACE
class UserRecord(_Record):
    """A registered user; ``id`` is the lowercased username."""

    id: str
    username: str
    password_digest: str
    note_ids: List[str] = Field(default_factory=list)


# PUBLIC_INTERFACE
class NoteRecord(_Record):
    """A single note, addressable by its own id."""

    id: str
    title: str = DEFAULT_NOTE_TITLE
    content: str = DEFAULT_NOTE_CONTENT
    user_id: str
    created_at: str
    updated_at: str


USER = EntityType(name="user", index_name="users", model=UserRecord)
NOTE = EntityType(name="note", index_name="notes", model=NoteRecord)


def time_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def user_id_for(username: str) -> str:
    return username.lower()


def new_note(user_id: str) -> NoteRecord:
    now = time_now()
    return NoteRecord(id=str(uuid.uuid4()), user_id=user_id, created_at=now, updated_at=now)


def next_updated_at(previous: str) -> str:
    # never move backwards, even if the wall clock does
    return max(time_now(), previous)


def add_note_id(store: EntityStore, user_id: str, note_id: str) -> UserRecord:
    def transform(user: UserRecord) -> UserRecord:
        if note_id in user.note_ids:
            return user
        return user.model_copy(update={"note_ids": [*user.note_ids, note_id]})

    return store.mutate(USER, user_id, transform)


def remove_note_id(store: EntityStore, user_id: str, note_id: str) -> UserRecord:
    return store.mutate(
        USER,
        user_id,
        lambda user: user.model_copy(
            update={"note_ids": [nid for nid in user.note_ids if nid != note_id]}
        ),
    )


def update_password_digest(store: EntityStore, user_id: str, digest: str) -> UserRecord:
    return store.patch(USER, user_id, {"password_digest": digest})


def hydrate_notes(store: EntityStore, user: UserRecord) -> List[NoteRecord]:
    """Resolves the user's note ids, skipping ids whose note no longer exists."""
    notes = []
    for note_id in user.note_ids:
        try:
            notes.append(store.get_state(NOTE, note_id))
        except NotFound:
            logger.debug(f"Dropping dangling note id {note_id} for user {user.id}")
    return notes
