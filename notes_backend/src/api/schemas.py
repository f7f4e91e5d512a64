from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


# Pydantic models for serialization and validation

class NoteUpdate(BaseModel):
    title: str = Field(..., max_length=255)
    content: str = Field(default="", description="Note content (rich text markup)")
    tags: Optional[List[str]] = Field(default=None, description="Tag set, order irrelevant")

class NoteOut(BaseModel):
    """Public note shape. Gated text and the password hash are never included."""
    id: str
    user_id: str
    title: str
    content: str
    is_pinned: bool
    is_encrypted: bool
    tags: Optional[List[str]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class NoteVersionOut(BaseModel):
    id: str
    note_id: str
    content: str
    tags: Optional[List[str]] = None
    version_number: int
    created_at: datetime

    class Config:
        from_attributes = True

class EncryptRequest(BaseModel):
    password: str = Field(..., min_length=1, max_length=72)
    content: Optional[str] = Field(default=None, description="Editor content to lock away; defaults to the stored content")

class PasswordRequest(BaseModel):
    password: str = Field(..., min_length=1, max_length=72)

class UnlockedNoteOut(BaseModel):
    id: str
    title: str
    content: str
    tags: Optional[List[str]] = None

class AIRequest(BaseModel):
    text: str
    action: str
    target_language: Optional[str] = Field(default=None, alias="targetLanguage")

    class Config:
        populate_by_name = True

class AIResult(BaseModel):
    result: Any
