"""Donation match repository with optimistic locking."""

from typing import Any, Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from bhub_api.db._conditions import build_conditions
from bhub_api.db.models import DonationMatch, MatchStatus


class MatchRepository:
    """Data access for donation matches."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, match_id: str) -> Optional[DonationMatch]:
        return self.db.get(DonationMatch, match_id, populate_existing=True)

    def create_many(self, matches: list[DonationMatch]) -> list[DonationMatch]:
        self.db.add_all(matches)
        self.db.flush()
        return matches

    def update_with_version_check(
        self,
        match_id: str,
        expected_version: int,
        updates: dict[str, Any],
        extra_conditions: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Conditionally update a match and bump its version (see DonationRepository)."""
        stmt = (
            update(DonationMatch)
            .where(
                DonationMatch.id == match_id,
                DonationMatch.version == expected_version,
                *build_conditions(DonationMatch, extra_conditions or {}),
            )
            .values(**updates, version=DonationMatch.version + 1)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount == 1

    def supersede_pending(self, donation_id: str) -> int:
        """Mark every unallocated match for a donation as superseded."""
        stmt = (
            update(DonationMatch)
            .where(
                DonationMatch.donation_id == donation_id,
                DonationMatch.status == MatchStatus.PENDING_ADMIN_ALLOCATION,
            )
            .values(status=MatchStatus.SUPERSEDED, version=DonationMatch.version + 1)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def list_by_donation(
        self, donation_id: str, statuses: Optional[Iterable[MatchStatus]] = None
    ) -> list[DonationMatch]:
        stmt = select(DonationMatch).where(DonationMatch.donation_id == donation_id)
        if statuses is not None:
            stmt = stmt.where(DonationMatch.status.in_(list(statuses)))
        return list(self.db.scalars(stmt))

    def list_by_status(self, statuses: Iterable[MatchStatus]) -> list[DonationMatch]:
        stmt = select(DonationMatch).where(DonationMatch.status.in_(list(statuses)))
        return list(self.db.scalars(stmt))

    def list_reviewed(self, limit: int = 50) -> list[DonationMatch]:
        """Approver decisions, most recent first."""
        stmt = (
            select(DonationMatch)
            .where(
                DonationMatch.status.in_(
                    [MatchStatus.APPROVED_BY_APPROVER, MatchStatus.REJECTED_BY_APPROVER]
                )
            )
            .order_by(DonationMatch.reviewed_at.desc())
            .limit(limit)
        )
        return list(self.db.scalars(stmt))
