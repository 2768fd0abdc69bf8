"""Precedence ordering for a donation's candidate matches.

Lower priority_rank wins; within a rank the higher match_score wins; an
unranked match (priority_rank None) comes after every ranked one. Older
matches break remaining ties, then id, so the order is total.
"""

from datetime import datetime, timezone
from typing import Iterable, TypeVar

from bhub_api.db.models import DonationMatch

_NO_TIME = datetime.min.replace(tzinfo=timezone.utc)

M = TypeVar("M", bound=DonationMatch)


def _as_aware(value: datetime | None) -> datetime:
    # SQLite hands back naive datetimes
    if value is None:
        return _NO_TIME
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def match_precedence_key(match: DonationMatch) -> tuple:
    """Sort key implementing (rank asc, nulls last; score desc; created_at asc; id)."""
    rank = match.priority_rank
    return (
        rank is None,
        rank if rank is not None else 0,
        -float(match.match_score),
        _as_aware(match.created_at),
        match.id or "",
    )


def order_matches(matches: Iterable[M]) -> list[M]:
    return sorted(matches, key=match_precedence_key)
