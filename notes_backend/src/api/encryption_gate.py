"""
Password gate for notes.

Locking moves the text out of `content` into `encrypted_content` and keeps a
bcrypt hash of the chosen password. `unlock` only reveals the text to the
caller; `decrypt` is the explicit way back to an ordinary note.
"""
import logging

from . import note_store
from .errors import InvalidCredentials, NoteLocked, NoteNotEncrypted
from .security import get_password_hash, verify_password

logger = logging.getLogger(__name__)


def _check_password(note, password):
    if not note.is_encrypted:
        raise NoteNotEncrypted()
    if not verify_password(password, note.password_hash):
        logger.info("Rejected password for note %s", note.id)
        raise InvalidCredentials()

# PUBLIC_INTERFACE
def encrypt(db, user_id, note_id, password, content=None):
    """
    Locks the note behind `password`.

    `content` is the editor's current text; when omitted the stored content
    is the one that gets locked away.
    """
    if not password:
        raise ValueError("Password must not be empty")
    note = note_store.get_note(db, user_id, note_id)
    if note.is_encrypted:
        raise NoteLocked("Note is already encrypted.")
    gated = note.content if content is None else content
    note = note_store.set_encryption(
        db,
        note,
        is_encrypted=True,
        encrypted_content=gated,
        password_hash=get_password_hash(password),
        content="",
    )
    logger.info("Encrypted note %s", note.id)
    return note

# PUBLIC_INTERFACE
def unlock(db, user_id, note_id, password):
    """Returns the gated text for viewing. The note itself stays locked."""
    note = note_store.get_note(db, user_id, note_id)
    _check_password(note, password)
    return {
        "id": note.id,
        "title": note.title,
        "content": note.encrypted_content or "",
        "tags": note.tags,
    }

# PUBLIC_INTERFACE
def decrypt(db, user_id, note_id, password):
    """Turns a locked note back into a plain one after checking the password."""
    note = note_store.get_note(db, user_id, note_id)
    _check_password(note, password)
    note = note_store.set_encryption(
        db,
        note,
        is_encrypted=False,
        encrypted_content=None,
        password_hash=None,
        content=note.encrypted_content or "",
    )
    logger.info("Decrypted note %s", note.id)
    return note
