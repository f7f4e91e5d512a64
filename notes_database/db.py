import json
import os
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///./notes.db"

# PUBLIC_INTERFACE
def get_database_url():
    """
    Retrieves the database URL from the environment variable DATABASE_URL.
    Falls back to a local SQLite file for development.
    """
    load_dotenv()
    return os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL

# PUBLIC_INTERFACE
def make_engine(url, **kwargs):
    """
    Creates an engine; SQLite connections get foreign key enforcement turned on.
    JSON columns are written with non-ASCII characters kept as-is, so tags such
    as "café" stay searchable as text.
    """
    kwargs.setdefault("json_serializer", _dump_json)
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(url, future=True, echo=False, connect_args=connect_args, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine

def _dump_json(value):
    return json.dumps(value, ensure_ascii=False)

def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

DATABASE_URL = get_database_url()

engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
