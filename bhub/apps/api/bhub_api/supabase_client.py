"""Supabase client configuration for identity operations.

Supabase Auth is the system of record for credentials and sessions.
Profiles and role records live in Postgres and are reached through
SQLAlchemy, not through this client.

SECURITY NOTICE:
- SB_SECRET_KEY is server-only (NEVER exposed to clients)
- SB_PUBLISHABLE_KEY is used for JWT validation and self sign-up (respects RLS)
- The admin client (SECRET_KEY) is used only to enroll staff users

KEY NAMING:
- SB_PUBLISHABLE_KEY / SB_SECRET_KEY (current Supabase UI)
- SUPABASE_ANON_KEY / SUPABASE_SERVICE_ROLE_KEY (legacy fallback)
"""

import logging
import os
from functools import lru_cache

from supabase import Client, create_client

logger = logging.getLogger(__name__)


def get_supabase_url() -> str:
    """Get Supabase project URL from environment.

    Raises:
        RuntimeError: If SUPABASE_URL not set
    """
    url = os.getenv("SUPABASE_URL")
    if not url:
        raise RuntimeError(
            "SUPABASE_URL environment variable not set. "
            "Required for session validation and onboarding."
        )
    return url


def _first_env(canonical: str, legacy: str) -> str | None:
    value = os.getenv(canonical)
    if value:
        return value

    value = os.getenv(legacy)
    if value:
        logger.info(f"Using legacy {legacy} (consider migrating to {canonical})")
    return value


def get_supabase_api_key() -> str:
    """Get Supabase publishable (anon) key from environment.

    Priority:
    1. SB_PUBLISHABLE_KEY
    2. SUPABASE_ANON_KEY (legacy)

    Raises:
        RuntimeError: If neither key is set
    """
    key = _first_env("SB_PUBLISHABLE_KEY", "SUPABASE_ANON_KEY")
    if not key:
        raise RuntimeError(
            "Neither SB_PUBLISHABLE_KEY nor SUPABASE_ANON_KEY environment variable is set. "
            "Set SB_PUBLISHABLE_KEY (recommended) or SUPABASE_ANON_KEY (legacy)."
        )
    return key


def get_supabase_secret_key() -> str:
    """Get Supabase secret (service role) key from environment.

    Priority:
    1. SB_SECRET_KEY
    2. SUPABASE_SERVICE_ROLE_KEY (legacy)

    Raises:
        RuntimeError: If neither key is set
    """
    key = _first_env("SB_SECRET_KEY", "SUPABASE_SERVICE_ROLE_KEY")
    if not key:
        raise RuntimeError(
            "Neither SB_SECRET_KEY nor SUPABASE_SERVICE_ROLE_KEY environment variable is set. "
            "Required for staff enrollment. "
            "Set SB_SECRET_KEY (recommended) or SUPABASE_SERVICE_ROLE_KEY (legacy)."
        )
    return key


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """Get Supabase client for session validation and sign-up.

    Raises:
        RuntimeError: If environment variables not set
    """
    url = get_supabase_url()
    api_key = get_supabase_api_key()

    logger.info(
        "Initializing Supabase client",
        extra={"supabase_url": url, "key_type": "publishable"},
    )

    return create_client(url, api_key)


@lru_cache(maxsize=1)
def get_supabase_admin_client() -> Client:
    """Get Supabase admin client (bypasses RLS). Staff enrollment only.

    Raises:
        RuntimeError: If environment variables not set
    """
    url = get_supabase_url()
    secret_key = get_supabase_secret_key()

    logger.info(
        "Initializing Supabase admin client",
        extra={"supabase_url": url, "key_type": "secret"},
    )

    return create_client(url, secret_key)
