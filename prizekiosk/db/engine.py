import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from .utils import resolve_sqlite_url

# Get DB url
load_dotenv()
# Project root directory (repo root)
ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_SQLITE_URL = resolve_sqlite_url(
    os.getenv("DB_URL", "sqlite:///./dev.db"), ROOT_DIR
)


def make_engine(database_url: Optional[str] = None, echo: bool = False):
    url = database_url or DEFAULT_SQLITE_URL
    return create_engine(url, echo=echo, future=True)


def get_sessionmaker(engine):
    return sessionmaker(
        bind=engine,
        # Store reads hand back plain values, so expiring ORM state buys nothing.
        expire_on_commit=False,
        future=True,
    )


def make_kiosk_sessionmaker(database_url: Optional[str] = None, *, create: bool = True):
    """Return a session factory for the kiosk database.

    When ``create`` is true, missing tables are created so that a kiosk can
    start against an empty SQLite file without running migrations first.
    """
    from ..models import Base

    engine = make_engine(database_url)
    if create:
        Base.metadata.create_all(engine)
    return get_sessionmaker(engine)
