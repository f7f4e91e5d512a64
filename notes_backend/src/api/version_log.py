"""
Append-only history of note snapshots.

A version holds what was stored *before* a save, so restoring version N
brings back the note as it was prior to the N-th save.
"""
import logging
import uuid
from datetime import datetime

from sqlalchemy import func, insert, select

from notes_database.models import NoteVersion

from . import note_store
from .errors import NotFound

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def record_version(db, note_id, content, tags):
    """
    Appends a snapshot numbered one past the note's current highest version.

    The number is computed inside the INSERT itself, and the
    (note_id, version_number) unique constraint rejects any duplicate, so two
    writers can never share a number. Runs in the caller's transaction.
    """
    version_id = str(uuid.uuid4())
    next_number = (
        select(func.coalesce(func.max(NoteVersion.version_number), 0) + 1)
        .where(NoteVersion.note_id == note_id)
        .correlate(None)
        .scalar_subquery()
    )
    stmt = insert(NoteVersion).values(
        id=version_id,
        note_id=note_id,
        content=content or "",
        tags=tags,
        version_number=next_number,
        created_at=datetime.utcnow(),
    )
    with note_store.store_access(db):
        db.execute(stmt)
        return db.get(NoteVersion, version_id)

# PUBLIC_INTERFACE
def save_note(db, user_id, note_id, title, content, tags):
    """
    The editor's save: snapshot the stored content and tags, then replace
    title, content and tags. Both writes share one transaction, with the
    note row locked on backends that support SELECT ... FOR UPDATE.
    """
    note = note_store.get_note(db, user_id, note_id, for_update=True)
    note_store.ensure_unlocked(note)
    version = record_version(db, note.id, note.content, note.tags)
    note_store.apply_edit(note, title, content, tags)
    note_store.commit(db)
    note_store.refresh(db, note)
    logger.info("Saved note %s, previous state kept as version %d", note.id, version.version_number)
    return note

# PUBLIC_INTERFACE
def list_versions(db, user_id, note_id):
    """Newest version first. Locked notes keep their history hidden."""
    note = note_store.get_note(db, user_id, note_id)
    note_store.ensure_unlocked(note)
    with note_store.store_access(db):
        return (
            db.query(NoteVersion)
            .filter(NoteVersion.note_id == note.id)
            .order_by(NoteVersion.version_number.desc())
            .all()
        )

# PUBLIC_INTERFACE
def restore_version(db, user_id, note_id, version_id):
    """
    Copies a snapshot's content and tags back onto the note.
    The title is kept and no new version is recorded for the restore.
    """
    note = note_store.get_note(db, user_id, note_id)
    note_store.ensure_unlocked(note)
    with note_store.store_access(db):
        version = (
            db.query(NoteVersion)
            .filter(NoteVersion.id == version_id, NoteVersion.note_id == note.id)
            .first()
        )
    if version is None:
        raise NotFound("Version not found.")
    note.content = version.content
    note.tags = list(version.tags) if version.tags is not None else None
    note_store.commit(db)
    note_store.refresh(db, note)
    logger.info("Restored note %s to version %d", note.id, version.version_number)
    return note
