"""Donor and school verification.

The role record (donors / schools) and the profile for the same user are
written in one transaction. If the profile write matches no row, the
transaction is rolled back and the operation fails with PartialUpdate, so
the two never disagree through this path.
"""

import logging
from typing import Any, Optional

from bhub_api.approvals.base import OrchestratorBase, not_found, require_reason
from bhub_api.approvals.errors import PartialUpdate
from bhub_api.approvals.results import OperationResult, operation
from bhub_api.auth.identity import SessionContext
from bhub_api.db.models import Donor, Profile, School, UserRole, VerificationStatus, utcnow
from bhub_api.db.repo_profiles import DonorRepository, SchoolRepository
from bhub_api.notifications import notify

logger = logging.getLogger(__name__)

DEFAULT_SCHOOL_REJECTION_REASON = "Registration did not meet verification requirements"


class VerificationApprovals(OrchestratorBase):

    def _mirror_to_profile(self, user_id: str, updates: dict[str, Any], entity: str) -> None:
        rows = self.profiles.update_fields(user_id, updates)
        if rows != 1:
            self.db.rollback()
            logger.error(
                f"{entity} verification not saved: profile mirror write matched {rows} rows",
                extra={"event": f"approval.{entity}.partial_update", "user_id": user_id},
            )
            raise PartialUpdate(
                f"{entity.capitalize()} record could not be mirrored to the user profile; "
                "no changes were saved"
            )

    def _decision_fields(
        self, actor_id: str, status: VerificationStatus
    ) -> dict[str, Any]:
        now = utcnow()
        return {
            "is_verified": status == VerificationStatus.APPROVED,
            "verified_by": actor_id,
            "verified_at": now,
            "updated_at": now,
        }

    # ------------------------------------------------------------------
    # Donors
    # ------------------------------------------------------------------

    def _decide_donor(
        self,
        actor: Profile,
        donor_id: str,
        status: VerificationStatus,
        reason: Optional[str],
    ) -> Donor:
        donors = DonorRepository(self.db)
        donor = donors.get_by_id(donor_id)
        if donor is None:
            raise not_found("Donor")

        fields = self._decision_fields(actor.id, status)
        donors.update_fields(
            donor_id,
            {**fields, "verification_status": status, "rejection_reason": reason},
        )
        self._mirror_to_profile(
            donor_id,
            {
                **fields,
                "verification_status": status,
                "is_active": status == VerificationStatus.APPROVED,
            },
            "donor",
        )
        self.db.commit()

        logger.info(
            f"Donor {status.value}",
            extra={"event": f"approval.donor.{status.value}", "donor_id": donor_id},
        )
        return donor

    @operation("approve_donor")
    def approve_donor(self, donor_id: str, session: SessionContext) -> OperationResult:
        actor = self._require_actor(session, UserRole.ADMIN)
        donor = self._decide_donor(actor, donor_id, VerificationStatus.APPROVED, None)
        email, _ = self._contact(donor_id)
        notify.notify_donor_approved(self.dispatcher, email, donor.full_name)
        return OperationResult.ok(donor_id=donor_id, verification_status="approved")

    @operation("reject_donor")
    def reject_donor(self, donor_id: str, reason: str, session: SessionContext) -> OperationResult:
        actor = self._require_actor(session, UserRole.ADMIN)
        reason = require_reason(reason)
        donor = self._decide_donor(actor, donor_id, VerificationStatus.REJECTED, reason)
        email, _ = self._contact(donor_id)
        notify.notify_donor_rejected(self.dispatcher, email, donor.full_name, reason)
        return OperationResult.ok(donor_id=donor_id, verification_status="rejected")

    # ------------------------------------------------------------------
    # Schools
    # ------------------------------------------------------------------

    def _decide_school(
        self,
        actor: Profile,
        school_id: str,
        status: VerificationStatus,
        reason: Optional[str],
    ) -> School:
        schools = SchoolRepository(self.db)
        school = schools.get_by_id(school_id)
        if school is None:
            raise not_found("School")

        fields = self._decision_fields(actor.id, status)
        schools.update_fields(
            school_id,
            {**fields, "approval_status": status, "rejection_reason": reason},
        )
        self._mirror_to_profile(
            school_id,
            {
                **fields,
                "verification_status": status,
                "is_active": status == VerificationStatus.APPROVED,
            },
            "school",
        )
        self.db.commit()

        logger.info(
            f"School {status.value}",
            extra={"event": f"approval.school.{status.value}", "school_id": school_id},
        )
        return school

    @operation("approve_school")
    def approve_school(self, school_id: str, session: SessionContext) -> OperationResult:
        actor = self._require_actor(session, UserRole.ADMIN)
        school = self._decide_school(actor, school_id, VerificationStatus.APPROVED, None)
        email, _ = self._contact(school_id)
        notify.notify_school_approved(self.dispatcher, email, school.school_name)
        return OperationResult.ok(school_id=school_id, approval_status="approved")

    @operation("reject_school")
    def reject_school(
        self, school_id: str, session: SessionContext, reason: Optional[str] = None
    ) -> OperationResult:
        actor = self._require_actor(session, UserRole.ADMIN)
        reason = (reason or "").strip() or DEFAULT_SCHOOL_REJECTION_REASON
        school = self._decide_school(actor, school_id, VerificationStatus.REJECTED, reason)
        email, _ = self._contact(school_id)
        notify.notify_school_rejected(self.dispatcher, email, school.school_name, reason)
        return OperationResult.ok(school_id=school_id, approval_status="rejected")

    # ------------------------------------------------------------------
    # Review queues
    # ------------------------------------------------------------------

    @operation("list_pending_registrations")
    def list_pending_registrations(self, session: SessionContext) -> OperationResult:
        self._require_actor(session, UserRole.ADMIN)
        donors = DonorRepository(self.db).list_by_status(VerificationStatus.PENDING)
        schools = SchoolRepository(self.db).list_by_status(VerificationStatus.PENDING)
        return OperationResult.ok(
            donors=[
                {"id": d.id, "full_name": d.full_name, "city": d.city, "country": d.country}
                for d in donors
            ],
            schools=[
                {"id": s.id, "school_name": s.school_name, "province": s.province}
                for s in schools
            ],
        )
