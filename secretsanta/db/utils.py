from pathlib import Path
from datetime import date, datetime
from typing import Callable, Optional, Union

from sqlalchemy import MetaData, inspect
from sqlalchemy.engine import Connection, Engine


def resolve_sqlite_url(url: str, project_root: Path) -> str:
    """Resolve 'sqlite:///./relative/path' to an absolute sqlite:/// URL.

    Keeps other URL forms unchanged.
    """
    prefix = "sqlite:///./"
    if not url.startswith(prefix):
        return url
    rel = url[len(prefix) :]
    return f"sqlite:///{(project_root / rel).resolve()}"


def dt_iso(dt: Optional[datetime]) -> Optional[str]:
    """Convert a datetime to an ISO 8601 string in UTC, or return None.

    Naive datetimes (as returned by SQLite) are assumed to already be UTC.
    """
    from datetime import timezone

    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def parse_dt(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp coming back from the REST backend."""
    if value is None or isinstance(value, datetime):
        return value
    # Python < 3.11 does not accept a trailing "Z".
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` date string; ``date`` objects pass through."""
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def owned_tables_filter(metadata: MetaData) -> Callable[[Optional[str], str, dict], bool]:
    """Build an Alembic ``include_name`` hook limited to ``metadata``'s tables.

    The hosted backend database also holds tables this project does not own
    (auth and storage bookkeeping, for example). Without the hook autogenerate
    proposes dropping them.
    """

    def include_name(name: Optional[str], type_: str, parent_names: dict) -> bool:
        if type_ == "table":
            return name in metadata.tables
        return True

    return include_name


def missing_tables(bind: Union[Engine, Connection], metadata: MetaData) -> list[str]:
    """Return the sorted names of ``metadata`` tables absent from ``bind``."""
    present = set(inspect(bind).get_table_names())
    return sorted(set(metadata.tables) - present)
