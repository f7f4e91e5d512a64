import logging
from typing import List, Optional

from fastapi import FastAPI, Depends, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notes_database.db import SessionLocal

from . import config, encryption_gate, note_store, version_log
from .ai_proxy import AIProxy, get_ai_proxy
from .errors import AIProxyError, NotesError
from .schemas import (
    AIRequest,
    AIResult,
    EncryptRequest,
    NoteOut,
    NoteUpdate,
    NoteVersionOut,
    PasswordRequest,
    UnlockedNoteOut,
)
from .security import get_current_user_id

logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
logger = logging.getLogger(__name__)

# FastAPI app config
app = FastAPI(
    title="Smart Notes Backend API",
    description="Notes with pinning, tags, version history, password gating and AI-assisted enrichment.",
    version="1.0.0",
    openapi_tags=[
        {"name": "Notes", "description": "Create, update, view, delete, pin and search notes"},
        {"name": "Versions", "description": "Browse and restore earlier versions of a note"},
        {"name": "Encryption", "description": "Lock a note behind a password, unlock or decrypt it"},
        {"name": "AI", "description": "Summaries, glossaries, tags, grammar, translation and insights"},
    ]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# DATABASE Dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Root Health Check
@app.get("/", summary="Health Check", tags=["General"])
def health_check():
    """Simple health check endpoint."""
    return {"message": "Healthy"}


#####################
# NOTES ENDPOINTS
#####################

# PUBLIC_INTERFACE
@app.get("/notes/", response_model=List[NoteOut], summary="List all user notes", tags=["Notes"])
def list_notes(
    q: Optional[str] = Query(None, description="Search term for note title, content or tags"),
    db=Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Get all notes for the authenticated user, pinned first, then most recently updated.
    """
    return note_store.list_notes(db, user_id, q=q)

# PUBLIC_INTERFACE
@app.post("/notes/", response_model=NoteOut, status_code=201, summary="Create a new note", tags=["Notes"])
def create_note(db=Depends(get_db), user_id: str = Depends(get_current_user_id)):
    """
    Create an empty "Untitled Note" for the authenticated user.
    """
    return note_store.create_note(db, user_id)

# PUBLIC_INTERFACE
@app.get("/notes/{note_id}", response_model=NoteOut, summary="Get a single note", tags=["Notes"])
def get_note(note_id: str, db=Depends(get_db), user_id: str = Depends(get_current_user_id)):
    """
    Retrieve a single note belonging to the authenticated user.
    Locked notes come back with empty content; use the unlock endpoint to read them.
    """
    return note_store.get_note(db, user_id, note_id)

# PUBLIC_INTERFACE
@app.put("/notes/{note_id}", response_model=NoteOut, summary="Save a note", tags=["Notes"])
def save_note(note_id: str, note_update: NoteUpdate, db=Depends(get_db), user_id: str = Depends(get_current_user_id)):
    """
    Save title, content and tags. The previously stored content and tags are
    kept as a new version first.
    """
    return version_log.save_note(
        db, user_id, note_id,
        title=note_update.title,
        content=note_update.content,
        tags=note_update.tags,
    )

# PUBLIC_INTERFACE
@app.delete("/notes/{note_id}", status_code=204, summary="Delete a note", tags=["Notes"])
def delete_note(note_id: str, db=Depends(get_db), user_id: str = Depends(get_current_user_id)):
    """
    Delete a note belonging to the authenticated user, together with its versions.
    """
    note_store.delete_note(db, user_id, note_id)
    return Response(status_code=204)

# PUBLIC_INTERFACE
@app.post("/notes/{note_id}/pin", response_model=NoteOut, summary="Toggle pinned flag", tags=["Notes"])
def toggle_pin(note_id: str, db=Depends(get_db), user_id: str = Depends(get_current_user_id)):
    return note_store.toggle_pin(db, user_id, note_id)


#####################
# VERSION ENDPOINTS
#####################

# PUBLIC_INTERFACE
@app.get("/notes/{note_id}/versions", response_model=List[NoteVersionOut], summary="List versions", tags=["Versions"])
def list_versions(note_id: str, db=Depends(get_db), user_id: str = Depends(get_current_user_id)):
    """
    Versions of a note, newest first.
    """
    return version_log.list_versions(db, user_id, note_id)

# PUBLIC_INTERFACE
@app.post(
    "/notes/{note_id}/versions/{version_id}/restore",
    response_model=NoteOut,
    summary="Restore a version",
    tags=["Versions"],
)
def restore_version(note_id: str, version_id: str, db=Depends(get_db), user_id: str = Depends(get_current_user_id)):
    """
    Put a version's content and tags back on the note. The title is unchanged.
    """
    return version_log.restore_version(db, user_id, note_id, version_id)


#####################
# ENCRYPTION ENDPOINTS
#####################

# PUBLIC_INTERFACE
@app.post("/notes/{note_id}/encrypt", response_model=NoteOut, summary="Lock a note", tags=["Encryption"])
def encrypt_note(note_id: str, body: EncryptRequest, db=Depends(get_db), user_id: str = Depends(get_current_user_id)):
    """
    Lock the note behind a password. The text moves out of `content`.
    """
    return encryption_gate.encrypt(db, user_id, note_id, body.password, content=body.content)

# PUBLIC_INTERFACE
@app.post("/notes/{note_id}/unlock", response_model=UnlockedNoteOut, summary="Reveal a locked note", tags=["Encryption"])
def unlock_note(note_id: str, body: PasswordRequest, db=Depends(get_db), user_id: str = Depends(get_current_user_id)):
    """
    Check the password and return the locked text. The note stays locked.
    """
    return encryption_gate.unlock(db, user_id, note_id, body.password)

# PUBLIC_INTERFACE
@app.post("/notes/{note_id}/decrypt", response_model=NoteOut, summary="Remove the lock", tags=["Encryption"])
def decrypt_note(note_id: str, body: PasswordRequest, db=Depends(get_db), user_id: str = Depends(get_current_user_id)):
    """
    Check the password and turn the note back into a plain note.
    """
    return encryption_gate.decrypt(db, user_id, note_id, body.password)


#####################
# AI ENDPOINTS
#####################

# PUBLIC_INTERFACE
@app.post("/ai-features", response_model=AIResult, summary="Run an AI action on text", tags=["AI"])
def ai_features(
    request: AIRequest,
    proxy: AIProxy = Depends(get_ai_proxy),
    user_id: str = Depends(get_current_user_id),
):
    """
    Actions: glossary, summarize, tags, grammar, translate (needs targetLanguage), insights.
    Glossary, tags and grammar return parsed JSON when the model produced it,
    otherwise its raw text.
    """
    return {"result": proxy.invoke(request.text, request.action, request.target_language)}

@app.options("/ai-features", include_in_schema=False)
def ai_features_preflight():
    return Response(status_code=200)


# Error handlers
@app.exception_handler(AIProxyError)
def ai_proxy_exception_handler(request, exc):
    logger.warning("AI request failed: %s", exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

@app.exception_handler(NotesError)
def notes_exception_handler(request, exc):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

@app.exception_handler(HTTPException)
def custom_http_exception_handler(request, exc):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
