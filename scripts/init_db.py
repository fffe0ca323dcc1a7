from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import func, select
from sqlalchemy.engine import Engine

from secretsanta.db.engine import make_engine
from secretsanta.db.utils import missing_tables
from secretsanta.models import Base, DrawResult, Group, GroupMember


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to ``target_revision`` on the ``DB_URL`` database."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def report(engine: Engine) -> int:
    """Print the draw bookkeeping of the migrated database.

    Returns a process exit code: 1 if any application table is missing.
    """
    url_display = engine.url.render_as_string(hide_password=True)
    missing = missing_tables(engine, Base.metadata)
    if missing:
        print(f"Schema check: FAILED for {url_display}. Missing tables: {', '.join(missing)}")
        return 1

    with engine.connect() as connection:
        groups = connection.scalar(select(func.count()).select_from(Group))
        drawn = connection.scalar(
            select(func.count()).select_from(Group).where(Group.is_drawn.is_(True))
        )
        members = connection.scalar(select(func.count()).select_from(GroupMember))
        results = connection.scalar(select(func.count()).select_from(DrawResult))

    print(f"Schema check: OK for {url_display}.")
    print(f"Groups: {groups} ({drawn} drawn), members: {members}, draw results: {results}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Migrate to head (or the revision given as first argument) and report."""
    args = sys.argv[1:] if argv is None else argv
    target = args[0] if args else "head"
    upgrade_db(target)
    engine = make_engine()
    try:
        return report(engine)
    finally:
        engine.dispose()


if __name__ == "__main__":
    raise SystemExit(main())
