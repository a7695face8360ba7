from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import func, inspect, select
from sqlalchemy.orm import sessionmaker

from prizekiosk.db.engine import make_engine
from prizekiosk.models import PersistedRecord


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def print_state() -> None:
    """Report the tables and how many kiosk records are stored."""
    engine = make_engine()
    print("Current tables:", ", ".join(sorted(inspect(engine).get_table_names())))
    Session = sessionmaker(bind=engine)
    with Session() as session:
        count = session.scalar(select(func.count()).select_from(PersistedRecord))
        keys = session.scalars(select(PersistedRecord.key).order_by(PersistedRecord.key)).all()
    print(f"Kiosk records ({count}):", ", ".join(keys) or "-")


def main() -> None:
    """Apply migrations (default to head) and report the resulting state."""
    upgrade_db()
    print_state()


if __name__ == "__main__":
    main()
