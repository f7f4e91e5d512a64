"""
CRUD over the notes table, scoped to the owning user.

Every function takes the request's SQLAlchemy session and the current
user's id explicitly; nothing here keeps session state between calls.
"""
import logging
from contextlib import contextmanager

from sqlalchemy import String, cast, not_, or_
from sqlalchemy.exc import SQLAlchemyError

from notes_database.models import Note

from .errors import NoteLocked, NotFound, StoreIOError

logger = logging.getLogger(__name__)

UNTITLED_NOTE = "Untitled Note"


# PUBLIC_INTERFACE
@contextmanager
def store_access(db):
    """Rolls back and re-raises driver failures inside the block as StoreIOError."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Notes store access failed: %s", exc)
        raise StoreIOError() from exc

# PUBLIC_INTERFACE
def commit(db):
    with store_access(db):
        db.commit()

# PUBLIC_INTERFACE
def refresh(db, instance):
    with store_access(db):
        db.refresh(instance)

def _user_notes(db, user_id):
    return db.query(Note).filter(Note.user_id == user_id)

# PUBLIC_INTERFACE
def ensure_unlocked(note):
    if note.is_encrypted:
        raise NoteLocked()

def _matches(note, needle):
    if needle in (note.title or "").lower() or needle in (note.content or "").lower():
        return True
    return any(needle in str(tag).lower() for tag in note.tags or [])

# PUBLIC_INTERFACE
def list_notes(db, user_id, q=None):
    """
    Returns the user's notes, pinned ones first, most recently updated first
    within each group. `q` filters case-insensitively on title, content and
    individual tags.

    The database narrows the candidates (the tag column is matched as its JSON
    text); the final check runs per tag so JSON punctuation never matches.
    """
    query = _user_notes(db, user_id)
    if q:
        search = f"%{q}%"
        query = query.filter(
            or_(
                Note.title.ilike(search),
                Note.content.ilike(search),
                cast(Note.tags, String).ilike(search),
            )
        )
    with store_access(db):
        notes = query.order_by(Note.is_pinned.desc(), Note.updated_at.desc()).all()
    if q:
        needle = q.lower()
        notes = [note for note in notes if _matches(note, needle)]
    return notes

# PUBLIC_INTERFACE
def get_note(db, user_id, note_id, for_update=False):
    query = _user_notes(db, user_id).filter(Note.id == note_id)
    if for_update:
        query = query.with_for_update()
    with store_access(db):
        note = query.first()
    if note is None:
        raise NotFound()
    return note

# PUBLIC_INTERFACE
def create_note(db, user_id):
    """Inserts a placeholder note with no content and no tags."""
    note = Note(user_id=user_id, title=UNTITLED_NOTE, content="", tags=None)
    db.add(note)
    commit(db)
    refresh(db, note)
    logger.info("Created note %s for user %s", note.id, user_id)
    return note

# PUBLIC_INTERFACE
def apply_edit(note, title, content, tags):
    note.title = title
    note.content = content
    note.tags = list(tags) if tags is not None else None

# PUBLIC_INTERFACE
def update_note(db, user_id, note_id, title, content, tags):
    """Replaces title, content and tags. Pin and encryption state are left alone."""
    note = get_note(db, user_id, note_id)
    ensure_unlocked(note)
    apply_edit(note, title, content, tags)
    commit(db)
    refresh(db, note)
    return note

# PUBLIC_INTERFACE
def delete_note(db, user_id, note_id):
    """Deletes the note; its versions go with it."""
    note = get_note(db, user_id, note_id)
    db.delete(note)
    commit(db)
    logger.info("Deleted note %s for user %s", note_id, user_id)

# PUBLIC_INTERFACE
def toggle_pin(db, user_id, note_id):
    # Single UPDATE so concurrent toggles cannot lose each other.
    with store_access(db):
        updated = _user_notes(db, user_id).filter(Note.id == note_id).update(
            {Note.is_pinned: not_(Note.is_pinned)},
            synchronize_session=False,
        )
    if not updated:
        db.rollback()
        raise NotFound()
    commit(db)
    return get_note(db, user_id, note_id)

# PUBLIC_INTERFACE
def set_encryption(db, note, is_encrypted, encrypted_content, password_hash, content):
    """Writes the four encryption fields together in one UPDATE."""
    note.is_encrypted = is_encrypted
    note.encrypted_content = encrypted_content
    note.password_hash = password_hash
    note.content = content
    commit(db)
    refresh(db, note)
    return note
