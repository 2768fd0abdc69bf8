"""Donation repository with optimistic locking."""

from typing import Any, Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from bhub_api.db._conditions import build_conditions
from bhub_api.db.models import Donation, DonationApprovalStatus


class DonationRepository:
    """Data access for donations.

    State transitions go through update_with_version_check so two reviewers
    acting on the same donation cannot both win.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, donation_id: str) -> Optional[Donation]:
        return self.db.get(Donation, donation_id, populate_existing=True)

    def create(self, donation: Donation) -> Donation:
        self.db.add(donation)
        self.db.flush()
        return donation

    def update_with_version_check(
        self,
        donation_id: str,
        expected_version: int,
        updates: dict[str, Any],
        extra_conditions: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Conditionally update a donation and bump its version.

        Args:
            donation_id: Donation ID
            expected_version: Version read before the decision was made
            updates: Columns to set
            extra_conditions: Additional WHERE equality/IN/IS NULL conditions

        Returns:
            True if exactly one row changed, False if the row moved on
        """
        stmt = (
            update(Donation)
            .where(
                Donation.id == donation_id,
                Donation.version == expected_version,
                *build_conditions(Donation, extra_conditions or {}),
            )
            .values(**updates, version=Donation.version + 1)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount == 1

    def list_by_approval_status(
        self, statuses: Iterable[DonationApprovalStatus]
    ) -> list[Donation]:
        stmt = (
            select(Donation)
            .where(Donation.approval_status.in_(list(statuses)))
            .order_by(Donation.created_at.asc())
        )
        return list(self.db.scalars(stmt))

    def list_by_donor(self, donor_id: str) -> list[Donation]:
        stmt = (
            select(Donation)
            .where(Donation.donor_id == donor_id)
            .order_by(Donation.created_at.desc())
        )
        return list(self.db.scalars(stmt))
