import uuid
from sqlalchemy import Column, String, DateTime, Text, Boolean, Integer, JSON, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime

Base = declarative_base()

def _new_id():
    return str(uuid.uuid4())

# PUBLIC_INTERFACE
class Note(Base):
    """
    SQLAlchemy model for a note.

    While is_encrypted is set, content is empty and the real text lives in
    encrypted_content, readable only after the password check.
    """
    __tablename__ = "notes"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(64), index=True, nullable=False)
    title = Column(String(255), nullable=False, default="Untitled Note")
    content = Column(Text, nullable=False, default="")
    is_pinned = Column(Boolean, nullable=False, default=False)
    is_encrypted = Column(Boolean, nullable=False, default=False)
    encrypted_content = Column(Text, nullable=True)
    password_hash = Column(String(255), nullable=True)
    tags = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    versions = relationship(
        "NoteVersion",
        back_populates="note",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_notes_user_pinned_updated", "user_id", "is_pinned", "updated_at"),
    )

# PUBLIC_INTERFACE
class NoteVersion(Base):
    """
    SQLAlchemy model for a snapshot of a note taken before a save.
    """
    __tablename__ = "note_versions"

    id = Column(String(36), primary_key=True, default=_new_id)
    note_id = Column(String(36), ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False, default="")
    tags = Column(JSON, nullable=True)
    version_number = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    note = relationship("Note", back_populates="versions")

    __table_args__ = (
        UniqueConstraint("note_id", "version_number", name="uq_note_versions_note_number"),
    )
