"""Repositories for the profile ledger and the role detail records."""

from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from bhub_api.db._conditions import build_conditions
from bhub_api.db.models import Donor, Profile, School, UserRole, VerificationStatus


class ProfileRepository:
    """Data access for profiles."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, profile_id: str) -> Optional[Profile]:
        return self.db.get(Profile, profile_id, populate_existing=True)

    def create(self, profile: Profile) -> Profile:
        self.db.add(profile)
        self.db.flush()
        return profile

    def update_fields(
        self,
        profile_id: str,
        updates: dict[str, Any],
        conditions: Optional[dict[str, Any]] = None,
    ) -> int:
        """Update columns on one profile. Returns affected row count.

        Raises:
            ValueError: if updates include role (bulk updates skip the ORM validator)
        """
        if "role" in updates:
            raise ValueError("Profile role is immutable")
        stmt = (
            update(Profile)
            .where(Profile.id == profile_id, *build_conditions(Profile, conditions or {}))
            .values(**updates)
            .execution_options(synchronize_session="fetch")
        )
        return self.db.execute(stmt).rowcount

    def list_by_role(self, role: UserRole, active: Optional[bool] = None) -> list[Profile]:
        stmt = select(Profile).where(Profile.role == role)
        if active is not None:
            stmt = stmt.where(Profile.is_active == active)
        return list(self.db.scalars(stmt.order_by(Profile.created_at.desc())))


class DonorRepository:
    """Data access for donor KYC records."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, donor_id: str) -> Optional[Donor]:
        return self.db.get(Donor, donor_id, populate_existing=True)

    def create(self, donor: Donor) -> Donor:
        self.db.add(donor)
        self.db.flush()
        return donor

    def update_fields(self, donor_id: str, updates: dict[str, Any]) -> int:
        stmt = (
            update(Donor)
            .where(Donor.id == donor_id)
            .values(**updates)
            .execution_options(synchronize_session="fetch")
        )
        return self.db.execute(stmt).rowcount

    def list_by_status(self, status: VerificationStatus) -> list[Donor]:
        stmt = (
            select(Donor)
            .where(Donor.verification_status == status)
            .order_by(Donor.created_at.asc())
        )
        return list(self.db.scalars(stmt))

    def list_all(self) -> list[Donor]:
        return list(self.db.scalars(select(Donor)))


class SchoolRepository:
    """Data access for school registration records."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, school_id: str) -> Optional[School]:
        return self.db.get(School, school_id, populate_existing=True)

    def create(self, school: School) -> School:
        self.db.add(school)
        self.db.flush()
        return school

    def update_fields(self, school_id: str, updates: dict[str, Any]) -> int:
        stmt = (
            update(School)
            .where(School.id == school_id)
            .values(**updates)
            .execution_options(synchronize_session="fetch")
        )
        return self.db.execute(stmt).rowcount

    def list_by_status(self, status: VerificationStatus) -> list[School]:
        stmt = (
            select(School)
            .where(School.approval_status == status)
            .order_by(School.created_at.asc())
        )
        return list(self.db.scalars(stmt))

    def list_all(self) -> list[School]:
        return list(self.db.scalars(select(School)))
