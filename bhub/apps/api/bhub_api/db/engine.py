"""Database engine builder.

- Default: NullPool (Supabase pooler transaction mode does the pooling)
- pool_pre_ping=True always
- Supabase host: sslmode=require unless BHUB_DB_SSLMODE says otherwise
- ENV: BHUB_DB_POOL=nullpool|queuepool (default: nullpool)
- ENV: BHUB_DB_APPLICATION_NAME (connection tagging, default "beneficiary-hub-api")
"""

import logging
import os
import re
from typing import Any

from sqlalchemy import Engine, NullPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)

SAFE_SSL_MODES = frozenset({"require", "verify-ca", "verify-full"})


def is_supabase_host(url: str) -> bool:
    """Return True if the URL points to a Supabase-managed host."""
    return ".supabase.co" in url or ".pooler.supabase.com" in url


def _mask_password(url: str) -> str:
    """Mask password in database URL for safe logging."""
    return re.sub(r"://([^:]+):([^@]+)@", r"://\1:***@", url)


def normalize_driver(url: str) -> str:
    """Pin bare postgres URLs to the psycopg2 driver.

    SQLAlchemy 2.1 resolves ``postgresql://`` to psycopg 3, which is not a
    dependency; ``postgres://`` (Supabase/Heroku style) is not accepted at all.
    """
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return "postgresql+psycopg2://" + url[len(prefix):]
    return url


def _supabase_connect_args() -> dict[str, Any]:
    sslmode = os.getenv("BHUB_DB_SSLMODE", "require").strip().lower()
    if sslmode not in SAFE_SSL_MODES:
        raise RuntimeError(
            f"Invalid BHUB_DB_SSLMODE for Supabase host: {sslmode!r}. "
            f"Must be one of: {', '.join(sorted(SAFE_SSL_MODES))}."
        )
    connect_args: dict[str, Any] = {"sslmode": sslmode}
    rootcert = os.getenv("BHUB_DB_SSLROOTCERT")
    if rootcert:
        connect_args["sslrootcert"] = rootcert
    return connect_args


def build_engine(database_url: str | None = None) -> Engine:
    """
    Build SQLAlchemy engine.

    Args:
        database_url: Database URL. If None, reads from env DATABASE_URL.

    Returns:
        SQLAlchemy Engine instance.

    Raises:
        ValueError: If DATABASE_URL not provided and not in environment,
            or BHUB_DB_POOL is not a known pool mode.
    """
    raw_url = database_url or os.getenv("DATABASE_URL")
    if not raw_url:
        raise ValueError(
            "DATABASE_URL is required. "
            "Pass as argument or set DATABASE_URL environment variable."
        )
    url = normalize_driver(raw_url)

    connect_args: dict[str, Any] = {}
    if url.startswith("postgres"):
        if is_supabase_host(url):
            connect_args = _supabase_connect_args()
        app_name = os.getenv("BHUB_DB_APPLICATION_NAME", "beneficiary-hub-api")
        if app_name:
            connect_args["application_name"] = app_name

    pool_mode = (os.getenv("BHUB_DB_POOL") or "nullpool").lower()

    if pool_mode == "nullpool":
        engine = create_engine(
            url,
            poolclass=NullPool,
            pool_pre_ping=True,
            connect_args=connect_args,
        )
    elif pool_mode == "queuepool":
        pool_size = int(os.getenv("BHUB_DB_POOL_SIZE", "5"))
        max_overflow = int(os.getenv("BHUB_DB_MAX_OVERFLOW", "10"))
        engine = create_engine(
            url,
            pool_pre_ping=True,
            pool_size=pool_size,
            max_overflow=max_overflow,
            connect_args=connect_args,
        )
    else:
        raise ValueError(
            f"Invalid BHUB_DB_POOL value: {pool_mode}. "
            "Must be 'nullpool' or 'queuepool'."
        )

    logger.debug(
        "Database engine created: pool=%s, url=%s",
        engine.pool.__class__.__name__,
        _mask_password(url),
    )
    return engine


def build_sessionmaker(engine: Engine) -> sessionmaker[Session]:
    """Build sessionmaker with autocommit=False, autoflush=False."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
