from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import List, Optional
from loguru import logger

from gated_notes_database.entities import EntityStore
from gated_notes_database.errors import AlreadyExists, Forbidden, NotFound, NotesError, ValidationError
from gated_notes_database.records import (
    NOTE,
    USER,
    NoteRecord,
    UserRecord,
    add_note_id,
    hydrate_notes,
    new_note,
    next_updated_at,
    remove_note_id,
    update_password_digest,
    user_id_for,
)

from .auth import AuthContext, authenticate_user, get_store, verify_credentials
from .config import get_settings
from .logging_config import configure_logging
from .security import get_password_hash

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6


# Pydantic models for serialization and validation

class Credentials(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None

class SuccessOut(BaseModel):
    success: bool = True

class LoginOut(BaseModel):
    username: str
    notes: List[NoteRecord]

# FastAPI app config
settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(
    title="Gated Notes API",
    description="Password-gated note storage: every note call re-authenticates with username and password.",
    version="1.0.0",
    openapi_tags=[
        {"name": "Authentication", "description": "User registration and login"},
        {"name": "Notes", "description": "Create, update and delete notes"},
        {"name": "User", "description": "Account management"},
    ]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Root Health Check
@app.get("/", summary="Health Check", tags=["General"])
def health_check():
    """Simple health check endpoint."""
    return {"message": "Healthy"}


#####################
# AUTH ENDPOINTS
#####################

# PUBLIC_INTERFACE
@app.post("/api/auth/register", response_model=SuccessOut, summary="Register a new user", tags=["Authentication"])
def register(creds: Credentials, store: EntityStore = Depends(get_store)):
    """
    Register a new user.
    No session is created; the client logs in right after.
    """
    if creds.username is None or creds.password is None:
        raise ValidationError("Username and password are required.")
    if len(creds.username) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters.")
    if len(creds.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    user_id = user_id_for(creds.username)
    if store.exists(USER, user_id):
        raise AlreadyExists("This username is already taken.")
    store.create(USER, UserRecord(
        id=user_id,
        username=creds.username,
        password_digest=get_password_hash(creds.password),
        note_ids=[],
    ))
    logger.info(f"Registered user {user_id}")
    return SuccessOut()

# PUBLIC_INTERFACE
@app.post("/api/auth/login", response_model=LoginOut, summary="Login and fetch notes", tags=["Authentication"])
def login(creds: Credentials, store: EntityStore = Depends(get_store)):
    """
    User login.
    Returns the display username and every note the user still owns.
    """
    user = verify_credentials(store, creds.username, creds.password)
    return LoginOut(username=user.username, notes=hydrate_notes(store, user))


#####################
# NOTES ENDPOINTS
#####################

def _owned_note(store: EntityStore, note_id: str, user_id: str) -> NoteRecord:
    if not store.exists(NOTE, note_id):
        raise NotFound("Note not found.")
    note = store.get_state(NOTE, note_id)
    # checked on every call; the user's noteIds may be stale
    if note.user_id != user_id:
        raise Forbidden("Unauthorized operation.")
    return note

# PUBLIC_INTERFACE
@app.post("/api/notes", response_model=NoteRecord, summary="Create a new note", tags=["Notes"])
def create_note(ctx: AuthContext = Depends(authenticate_user), store: EntityStore = Depends(get_store)):
    """
    Create an untitled note for the authenticated user.
    """
    note = store.create(NOTE, new_note(ctx.user_id))
    add_note_id(store, ctx.user_id, note.id)
    logger.info(f"Created note {note.id} for user {ctx.user_id}")
    return note

# PUBLIC_INTERFACE
@app.put("/api/notes/{note_id}", response_model=NoteRecord, summary="Update a note", tags=["Notes"])
def update_note(note_id: str, ctx: AuthContext = Depends(authenticate_user), store: EntityStore = Depends(get_store)):
    """
    Update title and/or content of a note owned by the authenticated user.
    """
    note = _owned_note(store, note_id, ctx.user_id)
    title = ctx.body.get("title")
    content = ctx.body.get("content")
    return store.patch(NOTE, note_id, {
        "title": title if isinstance(title, str) else None,
        "content": content if isinstance(content, str) else None,
        "updated_at": next_updated_at(note.updated_at),
    })

# PUBLIC_INTERFACE
@app.delete("/api/notes/{note_id}", response_model=SuccessOut, summary="Delete a note", tags=["Notes"])
def delete_note(note_id: str, ctx: AuthContext = Depends(authenticate_user), store: EntityStore = Depends(get_store)):
    """
    Delete a note owned by the authenticated user.
    """
    _owned_note(store, note_id, ctx.user_id)
    store.delete(NOTE, note_id)
    remove_note_id(store, ctx.user_id, note_id)
    logger.info(f"Deleted note {note_id} for user {ctx.user_id}")
    return SuccessOut()


#####################
# USER ENDPOINTS
#####################

# PUBLIC_INTERFACE
@app.put("/api/user/password", response_model=SuccessOut, summary="Change password", tags=["User"])
def change_password(ctx: AuthContext = Depends(authenticate_user), store: EntityStore = Depends(get_store)):
    """
    Replace the password digest. The client must use the new password from now on.
    """
    new_password = ctx.body.get("newPassword")
    if not isinstance(new_password, str) or len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters.")
    update_password_digest(store, ctx.user_id, get_password_hash(new_password))
    logger.info(f"Password changed for user {ctx.user_id}")
    return SuccessOut()


# Error handlers
@app.exception_handler(NotesError)
def notes_error_handler(request: Request, exc: NotesError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )

@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request body.") if errors else "Invalid request body."
    logger.warning(f"Rejected request body on {request.url.path}: {message}")
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": message},
    )
