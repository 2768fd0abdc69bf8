"""PII / secret / stack-trace sanitizer for log output.

Donor onboarding stores KYC data (identity numbers, tax ids, dates of birth)
and every session carries a Supabase JWT. None of it may reach a log line.

Strings are handled by size:
 1. longer than MAX_STR_LOG: replaced by a length + sha256 marker
 2. longer than MAX_STR_FOR_REGEX: only a leading bearer token is redacted
 3. otherwise: every secret/PII pattern is redacted
"""

import hashlib
import re
import traceback
from typing import Any

MAX_STR_LOG: int = 2048
MAX_STR_FOR_REGEX: int = 512
MAX_DEPTH: int = 6

REDACTED = "[REDACTED]"

# Compared lower-cased
_SENSITIVE_KEYS: frozenset[str] = frozenset({
    "authorization", "token", "access_token", "refresh_token", "password",
    "api_key", "secret", "email", "phone", "phone_number",
    "id_number", "tax_id", "date_of_birth", "head_teacher_phone",
    "head_teacher_email",
})

_SECRET_RE = re.compile(
    r"Bearer \S+"
    r"|(?:access|refresh)_token=\S+"
    r"|eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+"
    r"|[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"
)


def _fingerprint(s: str) -> str:
    digest = hashlib.sha256(s.encode("utf-8", errors="replace")).hexdigest()[:16]
    return f"[TRUNCATED len={len(s)} sha256={digest}]"


def sanitize_str(s: str) -> str:
    """Redact secrets and PII from a single string."""
    if not isinstance(s, str):
        return s  # type: ignore[return-value]

    if len(s) > MAX_STR_LOG:
        return _fingerprint(s)
    if len(s) > MAX_STR_FOR_REGEX:
        return REDACTED if s.startswith("Bearer ") else s
    return _SECRET_RE.sub(REDACTED, s)


def _is_sensitive_key(key: Any) -> bool:
    return isinstance(key, str) and key.lower() in _SENSITIVE_KEYS


def sanitize_obj(obj: Any, depth: int = 0) -> Any:
    """Recursively sanitize a log extra value.

    Sensitive dict keys are redacted outright; containers are walked up to
    MAX_DEPTH; anything that is not a string or container passes through.
    """
    if depth >= MAX_DEPTH:
        return "[DEPTH_LIMIT]"

    if isinstance(obj, dict):
        return {
            key: REDACTED if _is_sensitive_key(key) else sanitize_obj(value, depth + 1)
            for key, value in obj.items()
        }
    if isinstance(obj, (list, tuple)):
        return [sanitize_obj(item, depth + 1) for item in obj]
    if isinstance(obj, str):
        return sanitize_str(obj)
    return obj


def sanitize_exc(exc_info: tuple) -> str:
    """Render an exc_info tuple as a sanitized traceback (no locals)."""
    value = exc_info[1]
    if value is None:
        return ""
    try:
        rendered = "".join(
            traceback.TracebackException.from_exception(value, capture_locals=False).format()
        )
    except Exception:
        return "[TRACEBACK_FORMAT_ERROR]"
    return sanitize_str(rendered)


def mask_email(email: str | None) -> str:
    """Mask an email for log fields that must stay correlatable (a***@example.org)."""
    if not email or "@" not in email:
        return "unknown"
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"
