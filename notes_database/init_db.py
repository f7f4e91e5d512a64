"""
Creates the `notes` and `note_versions` tables.

Run `python -m notes_database.init_db` against the database named by
DATABASE_URL before first start. Existing tables are left untouched.
"""
from notes_database.db import engine
from notes_database.models import Base

# PUBLIC_INTERFACE
def init_db(bind=None):
    """Creates every table of the notes schema that does not exist yet."""
    Base.metadata.create_all(bind=bind or engine)

if __name__ == "__main__":
    init_db()
    print("Notes tables are ready.")
