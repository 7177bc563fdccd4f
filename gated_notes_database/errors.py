"""
Error kinds raised by the storage and route layers.

Each kind carries the HTTP status it is reported with; the API layer renders
every one of them as ``{"success": false, "error": message}``.
"""


class NotesError(Exception):
    """Base class for every failure surfaced to a caller."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(NotesError):
    """Malformed or too-short input, rejected before touching storage."""

    status_code = 400


class AlreadyExists(NotesError):
    status_code = 400


class InvalidCredentials(NotesError):
    status_code = 400


class NotFound(NotesError):
    status_code = 404


class Forbidden(NotesError):
    status_code = 403
