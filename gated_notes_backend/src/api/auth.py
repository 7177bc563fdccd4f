from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Body, Depends
from loguru import logger

from gated_notes_database.db import SessionLocal
from gated_notes_database.entities import EntityStore
from gated_notes_database.errors import InvalidCredentials, NotFound, ValidationError
from gated_notes_database.records import USER, UserRecord, user_id_for
from gated_notes_database.store import KeyValueStore

from .security import verify_password

# Same text for unknown user and wrong password.
CREDENTIALS_MESSAGE = "User not found or password is incorrect."


# DATABASE Dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_store(db=Depends(get_db)) -> EntityStore:
    return EntityStore(KeyValueStore(db))


@dataclass
class AuthContext:
    """Resolved identity plus the request body, parsed exactly once."""

    user_id: str
    user: UserRecord
    body: Dict[str, Any]


def verify_credentials(store: EntityStore, username: Any, password: Any) -> UserRecord:
    """Resolves a user by lowercased username and checks the password digest."""
    if not isinstance(username, str) or not isinstance(password, str):
        raise ValidationError("Username and password are required.")
    user_id = user_id_for(username)
    if not store.exists(USER, user_id):
        logger.warning(f"Authentication failed for unknown user {user_id}")
        raise NotFound(CREDENTIALS_MESSAGE)
    user = store.get_state(USER, user_id)
    if not verify_password(password, user.password_digest):
        logger.warning(f"Authentication failed for user {user_id}")
        raise InvalidCredentials(CREDENTIALS_MESSAGE)
    return user


# PUBLIC_INTERFACE
def authenticate_user(
    body: Optional[Dict[str, Any]] = Body(default=None),
    store: EntityStore = Depends(get_store),
) -> AuthContext:
    """
    Guards note and user-management routes.

    Credentials travel in the JSON body on every call; there is no session.
    """
    payload = body or {}
    user = verify_credentials(store, payload.get("username"), payload.get("password"))
    return AuthContext(user_id=user.id, user=user, body=payload)
