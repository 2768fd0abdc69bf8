"""Database session management.

The engine is built on first use so importing the API does not require a
reachable database (tests override get_db).
"""

from functools import lru_cache
from typing import Generator

from sqlalchemy.orm import Session, sessionmaker

from bhub_api.config.env import get_database_url
from bhub_api.db.engine import build_engine, build_sessionmaker


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker[Session]:
    """Build the process-wide session factory from DATABASE_URL."""
    return build_sessionmaker(build_engine(get_database_url()))


def get_db() -> Generator[Session, None, None]:
    """
    Get database session.

    Yields:
        Session: SQLAlchemy session
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
