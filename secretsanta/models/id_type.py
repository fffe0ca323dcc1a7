import uuid

from sqlalchemy import String

# The hosted backend keys every table with UUIDs; store them as text so the
# same schema works on SQLite and PostgreSQL.
ID_TYPE = String(36)


def generate_id() -> str:
    """Return a new random UUID4 string suitable for a primary key."""
    return str(uuid.uuid4())
