"""Exceptions raised by the note store, version log, encryption gate and AI proxy.

Each class carries the HTTP status the API answers with, so route handlers
can let them propagate to the exception handlers registered in main.py.
"""


class NotesError(Exception):
    status_code = 500
    default_message = "Unexpected error."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(NotesError):
    status_code = 404
    default_message = "Note not found."


class InvalidCredentials(NotesError):
    status_code = 401
    default_message = "Invalid password."


class NoteLocked(NotesError):
    status_code = 409
    default_message = "Note is encrypted."


class NoteNotEncrypted(NotesError):
    status_code = 409
    default_message = "Note is not encrypted."


class StoreIOError(NotesError):
    status_code = 500
    default_message = "Failed to access the notes store."


# AI proxy errors are answered with {"error": ...} instead of {"detail": ...}

class AIProxyError(NotesError):
    default_message = "AI gateway error"


class ConfigurationError(AIProxyError):
    default_message = "AI_API_KEY is not configured"


class RateLimited(AIProxyError):
    status_code = 429
    default_message = "Rate limits exceeded, please try again later."


class QuotaExceeded(AIProxyError):
    status_code = 402
    default_message = "Payment required, please add funds to your AI workspace."


class UpstreamError(AIProxyError):
    default_message = "AI gateway error"


class InvalidAction(AIProxyError):
    default_message = "Invalid action"
