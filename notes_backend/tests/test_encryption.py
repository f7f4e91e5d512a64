import pytest

from notes_backend.src.api import encryption_gate, security
from notes_backend.src.api.errors import InvalidCredentials
from notes_database.models import Note

GATED_FIELDS = ("encrypted_content", "password_hash")


@pytest.fixture
def written_note(client, auth_header, new_note):
    note_id = new_note["id"]
    r = client.put(
        f"/notes/{note_id}",
        json={"title": "Diary", "content": "<p>dear diary</p>", "tags": ["private"]},
        headers=auth_header,
    )
    assert r.status_code == 200
    return r.json()

def test_encrypt_then_unlock_returns_original_content(client, auth_header, written_note):
    note_id = written_note["id"]
    r = client.post(f"/notes/{note_id}/encrypt", json={"password": "hunter2"}, headers=auth_header)
    assert r.status_code == 200
    locked = r.json()
    assert locked["is_encrypted"] is True
    assert locked["content"] == ""

    r2 = client.post(f"/notes/{note_id}/unlock", json={"password": "hunter2"}, headers=auth_header)
    assert r2.status_code == 200
    assert r2.json() == {
        "id": note_id,
        "title": "Diary",
        "content": "<p>dear diary</p>",
        "tags": ["private"],
    }

    # unlocking is a read-only reveal
    assert client.get(f"/notes/{note_id}", headers=auth_header).json()["is_encrypted"] is True

def test_encrypt_uses_editor_content_when_given(client, auth_header, written_note):
    note_id = written_note["id"]
    client.post(
        f"/notes/{note_id}/encrypt",
        json={"password": "pw", "content": "<p>unsaved edit</p>"},
        headers=auth_header,
    )
    r = client.post(f"/notes/{note_id}/unlock", json={"password": "pw"}, headers=auth_header)
    assert r.json()["content"] == "<p>unsaved edit</p>"

def test_wrong_password_reveals_nothing(client, auth_header, written_note):
    note_id = written_note["id"]
    client.post(f"/notes/{note_id}/encrypt", json={"password": "right"}, headers=auth_header)

    r = client.post(f"/notes/{note_id}/unlock", json={"password": "wrong"}, headers=auth_header)
    assert r.status_code == 401
    assert "dear diary" not in r.text

    r2 = client.post(f"/notes/{note_id}/decrypt", json={"password": "wrong"}, headers=auth_header)
    assert r2.status_code == 401
    assert client.get(f"/notes/{note_id}", headers=auth_header).json()["is_encrypted"] is True

def test_gated_fields_never_exposed(client, auth_header, written_note):
    note_id = written_note["id"]
    responses = [client.post(f"/notes/{note_id}/encrypt", json={"password": "pw"}, headers=auth_header)]
    responses.append(client.get(f"/notes/{note_id}", headers=auth_header))
    responses.append(client.get("/notes/", headers=auth_header))
    responses.append(client.post(f"/notes/{note_id}/pin", headers=auth_header))

    for r in responses:
        assert r.status_code == 200
        assert "dear diary" not in r.text
        for field in GATED_FIELDS:
            assert field not in r.text

def test_stored_hash_is_salted_bcrypt(client, auth_header, written_note, db_session):
    client.post(f"/notes/{written_note['id']}/encrypt", json={"password": "pw"}, headers=auth_header)
    note = db_session.get(Note, written_note["id"])
    db_session.refresh(note)
    assert note.password_hash.startswith("$2b$10$")
    assert note.encrypted_content == "<p>dear diary</p>"
    assert note.content == ""

def test_empty_password_rejected(client, auth_header, written_note):
    r = client.post(f"/notes/{written_note['id']}/encrypt", json={"password": ""}, headers=auth_header)
    assert r.status_code == 422
    assert client.get(f"/notes/{written_note['id']}", headers=auth_header).json()["is_encrypted"] is False

def test_encrypt_twice_conflicts(client, auth_header, written_note):
    note_id = written_note["id"]
    client.post(f"/notes/{note_id}/encrypt", json={"password": "one"}, headers=auth_header)
    r = client.post(f"/notes/{note_id}/encrypt", json={"password": "two"}, headers=auth_header)
    assert r.status_code == 409
    # the original password still works
    assert client.post(f"/notes/{note_id}/unlock", json={"password": "one"}, headers=auth_header).status_code == 200

def test_unlock_plain_note_conflicts(client, auth_header, written_note):
    r = client.post(f"/notes/{written_note['id']}/unlock", json={"password": "pw"}, headers=auth_header)
    assert r.status_code == 409

def test_locked_note_rejects_save_restore_and_history(client, auth_header, written_note):
    note_id = written_note["id"]
    version = client.get(f"/notes/{note_id}/versions", headers=auth_header).json()[0]
    client.post(f"/notes/{note_id}/encrypt", json={"password": "pw"}, headers=auth_header)

    r = client.put(f"/notes/{note_id}", json={"title": "x", "content": "leak"}, headers=auth_header)
    assert r.status_code == 409
    r2 = client.get(f"/notes/{note_id}/versions", headers=auth_header)
    assert r2.status_code == 409
    r3 = client.post(f"/notes/{note_id}/versions/{version['id']}/restore", headers=auth_header)
    assert r3.status_code == 409

def test_decrypt_returns_note_to_plain_state(client, auth_header, written_note):
    note_id = written_note["id"]
    client.post(f"/notes/{note_id}/encrypt", json={"password": "pw"}, headers=auth_header)

    r = client.post(f"/notes/{note_id}/decrypt", json={"password": "pw"}, headers=auth_header)
    assert r.status_code == 200
    assert r.json()["is_encrypted"] is False
    assert r.json()["content"] == "<p>dear diary</p>"

    # editable again, and can be locked with a new password
    assert client.put(f"/notes/{note_id}", json={"title": "Diary", "content": "new"}, headers=auth_header).status_code == 200
    assert client.post(f"/notes/{note_id}/encrypt", json={"password": "pw2"}, headers=auth_header).status_code == 200

def test_encryption_is_private(client, auth_header, second_auth_header, written_note):
    note_id = written_note["id"]
    client.post(f"/notes/{note_id}/encrypt", json={"password": "pw"}, headers=auth_header)
    r = client.post(f"/notes/{note_id}/unlock", json={"password": "pw"}, headers=second_auth_header)
    assert r.status_code == 404

def test_gate_functions_directly(db_session):
    note = Note(user_id="u1", title="T", content="plain text")
    db_session.add(note)
    db_session.commit()

    encryption_gate.encrypt(db_session, "u1", note.id, "s3cret")
    with pytest.raises(InvalidCredentials):
        encryption_gate.unlock(db_session, "u1", note.id, "nope")
    assert encryption_gate.unlock(db_session, "u1", note.id, "s3cret")["content"] == "plain text"

    with pytest.raises(ValueError):
        encryption_gate.encrypt(db_session, "u1", note.id, "")

def test_password_hashes_differ_for_same_password():
    h1 = security.get_password_hash("repeatable")
    h2 = security.get_password_hash("repeatable")
    assert h1 != h2
    assert security.verify_password("repeatable", h1)
    assert security.verify_password("repeatable", h2)
    assert security.verify_password("other", h1) is False
    assert security.verify_password("repeatable", None) is False
