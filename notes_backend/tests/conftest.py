import json

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from notes_backend.src.api import config
from notes_backend.src.api.ai_proxy import AIProxy, get_ai_proxy
from notes_backend.src.api.main import app, get_db
from notes_database.db import make_engine
from notes_database.models import Base


@pytest.fixture(scope="session")
def engine():
    """Fixture for a persistent in-memory SQLite engine for the test session."""
    return make_engine("sqlite://", poolclass=StaticPool)

@pytest.fixture
def tables(engine):
    """Create tables for each test and drop them afterwards."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(engine, tables):
    """Provide a SQLAlchemy session for isolated test usage."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

@pytest.fixture
def client(db_session):
    """Fixture for FastAPI TestClient with test DB dependency override."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()

def make_token(user_id, **claims):
    """Mint a bearer token the way the auth provider does; extra claims such as `aud` are merged in."""
    return jwt.encode(dict(claims, sub=user_id), config.SECRET_KEY, algorithm=config.ALGORITHM)

@pytest.fixture
def auth_header():
    """Returns {'Authorization': 'Bearer <token>'} for the default user."""
    return {"Authorization": f"Bearer {make_token('user-alice')}"}

@pytest.fixture
def second_auth_header():
    """Returns auth header for a second user."""
    return {"Authorization": f"Bearer {make_token('user-bob')}"}

@pytest.fixture
def new_note(client, auth_header):
    """Creates a note and returns its JSON body."""
    r = client.post("/notes/", headers=auth_header)
    assert r.status_code == 201
    return r.json()


class FakeGateway:
    """Stands in for the completion endpoint; records every request it gets."""

    def __init__(self, content="", status_code=200, body=None):
        self.content = content
        self.status_code = status_code
        self.body = body
        self.requests = []

    def handler(self, request):
        self.requests.append(request)
        if self.body is not None:
            return httpx.Response(self.status_code, json=self.body)
        if self.status_code != 200:
            return httpx.Response(self.status_code, text="upstream says no")
        return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": self.content}}]})

    @property
    def last_payload(self):
        return json.loads(self.requests[-1].content)

    def proxy(self, api_key="test-key"):
        client = httpx.Client(transport=httpx.MockTransport(self.handler))
        return AIProxy(api_key=api_key, gateway_url="https://gateway.test/v1/chat/completions", client=client)

@pytest.fixture
def gateway():
    return FakeGateway()

@pytest.fixture
def ai_client(client, gateway):
    """TestClient whose AI proxy talks to the fake gateway."""
    app.dependency_overrides[get_ai_proxy] = lambda: gateway.proxy()
    yield client
