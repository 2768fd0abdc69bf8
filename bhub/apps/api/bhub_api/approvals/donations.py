"""Donation creation and two-stage content approval."""

import logging
from typing import Any, Optional

from bhub_api.approvals.base import OrchestratorBase, not_found, require_reason
from bhub_api.approvals.errors import InvalidState, Unauthorized
from bhub_api.approvals.results import OperationResult, operation
from bhub_api.approvals.state_machine import (
    ADMIN_REJECT,
    FINAL_APPROVE,
    FINAL_REJECT,
    DonationTransition,
    is_donation_consistent,
    screening_transition,
)
from bhub_api.auth.identity import SessionContext
from bhub_api.config.env import DonationApprovalMode
from bhub_api.db.models import (
    Donation,
    DonationApprovalStatus,
    DonationStatus,
    UserRole,
    VerificationStatus,
    utcnow,
)
from bhub_api.db.repo_donations import DonationRepository
from bhub_api.db.repo_profiles import DonorRepository
from bhub_api.notifications import notify
from bhub_api.schemas import DonationCreate, DonationOut

logger = logging.getLogger(__name__)


class DonationApprovals(OrchestratorBase):
    approval_mode: DonationApprovalMode

    @property
    def donations(self) -> DonationRepository:
        return DonationRepository(self.db)

    def _load_donation(self, donation_id: str) -> Donation:
        donation = self.donations.get_by_id(donation_id)
        if donation is None:
            raise not_found("Donation")
        return donation

    def _transition_donation(
        self,
        donation: Donation,
        transition: DonationTransition,
        updates: dict[str, Any],
    ) -> None:
        """Apply a content-review transition as a compare-and-swap update.

        Raises:
            InvalidState: current approval_status is not the expected one, or
                another reviewer changed the row after it was read
        """
        if donation.approval_status != transition.expected:
            raise InvalidState(
                f"Donation is {DonationApprovalStatus(donation.approval_status).value}, "
                f"expected {transition.expected.value}"
            )
        if not is_donation_consistent(transition.status, transition.approval_status):
            raise InvalidState(
                f"Refusing inconsistent donation state "
                f"{transition.status.value}/{transition.approval_status.value}"
            )

        changed = self.donations.update_with_version_check(
            donation_id=donation.id,
            expected_version=donation.version,
            updates={
                "approval_status": transition.approval_status,
                "status": transition.status,
                "updated_at": utcnow(),
                **updates,
            },
            extra_conditions={"approval_status": transition.expected},
        )
        if not changed:
            raise InvalidState("Donation was modified concurrently; reload and try again")

    def _donor_contact(self, donation: Donation) -> tuple[Optional[str], str]:
        email, name = self._contact(donation.donor_id)
        return email, name or "Donor"

    # ------------------------------------------------------------------
    # Donor side
    # ------------------------------------------------------------------

    @operation("create_donation")
    def create_donation(self, data: DonationCreate, session: SessionContext) -> OperationResult:
        actor = self._require_actor(session, UserRole.DONOR)

        donor = DonorRepository(self.db).get_by_id(actor.id)
        if (
            donor is None
            or not donor.is_verified
            or donor.verification_status != VerificationStatus.APPROVED
        ):
            raise Unauthorized("Your donor account must be verified before creating donations")

        donation = self.donations.create(
            Donation(
                donor_id=actor.id,
                title=data.title,
                description=data.description,
                donation_type=data.donation_type,
                condition=data.condition,
                items=[item.model_dump() for item in data.items],
                available_quantity=data.available_quantity,
                city=data.city,
                province=data.province,
                delivery_available=data.delivery_available,
                status=DonationStatus.PENDING,
                approval_status=DonationApprovalStatus.PENDING,
            )
        )
        self.db.commit()

        logger.info(
            "Donation created",
            extra={"event": "approval.donation.created", "donation_id": donation.id},
        )
        return OperationResult.ok(donation_id=donation.id)

    @operation("list_my_donations")
    def list_my_donations(self, session: SessionContext) -> OperationResult:
        actor = self._require_actor(session, UserRole.DONOR)
        donations = self.donations.list_by_donor(actor.id)
        return OperationResult.ok(
            donations=[DonationOut.model_validate(d).model_dump(mode="json") for d in donations]
        )

    # ------------------------------------------------------------------
    # Stage 1: admin screening
    # ------------------------------------------------------------------

    @operation("approve_donation")
    def approve_donation(self, donation_id: str, session: SessionContext) -> OperationResult:
        actor = self._require_actor(session, UserRole.ADMIN)
        donation = self._load_donation(donation_id)

        transition = screening_transition(self.approval_mode)
        now = utcnow()
        updates: dict[str, Any] = {"screened_by": actor.id, "screened_at": now}
        if transition.approval_status == DonationApprovalStatus.APPROVED:
            # Single-stage: the admin's approval is the final one
            updates.update(approved_by=actor.id, approved_at=now)

        self._transition_donation(donation, transition, updates)
        self.db.commit()

        logger.info(
            "Donation screened",
            extra={
                "event": "approval.donation.screened",
                "donation_id": donation_id,
                "approval_status": transition.approval_status.value,
                "mode": self.approval_mode.value,
            },
        )

        email, name = self._donor_contact(donation)
        if transition.approval_status == DonationApprovalStatus.APPROVED:
            notify.notify_donation_approved(self.dispatcher, email, name, donation.title)
        else:
            notify.notify_donation_screened(self.dispatcher, email, name, donation.title)

        return OperationResult.ok(
            donation_id=donation_id, approval_status=transition.approval_status.value
        )

    @operation("reject_donation")
    def reject_donation(
        self, donation_id: str, reason: str, session: SessionContext
    ) -> OperationResult:
        actor = self._require_actor(session, UserRole.ADMIN)
        reason = require_reason(reason)
        donation = self._load_donation(donation_id)

        self._transition_donation(
            donation,
            ADMIN_REJECT,
            {"rejection_reason": reason, "screened_by": actor.id, "screened_at": utcnow()},
        )
        self.db.commit()

        logger.info(
            "Donation rejected at screening",
            extra={"event": "approval.donation.rejected", "donation_id": donation_id, "stage": 1},
        )

        email, name = self._donor_contact(donation)
        notify.notify_donation_rejected(self.dispatcher, email, name, donation.title, reason)
        return OperationResult.ok(donation_id=donation_id, approval_status="rejected")

    # ------------------------------------------------------------------
    # Stage 2: approver sign-off
    # ------------------------------------------------------------------

    @operation("final_approve_donation")
    def final_approve_donation(self, donation_id: str, session: SessionContext) -> OperationResult:
        actor = self._require_actor(session, UserRole.APPROVER)
        donation = self._load_donation(donation_id)

        self._transition_donation(
            donation, FINAL_APPROVE, {"approved_by": actor.id, "approved_at": utcnow()}
        )
        self.db.commit()

        logger.info(
            "Donation approved",
            extra={"event": "approval.donation.approved", "donation_id": donation_id},
        )

        email, name = self._donor_contact(donation)
        notify.notify_donation_approved(self.dispatcher, email, name, donation.title)
        return OperationResult.ok(donation_id=donation_id, approval_status="approved")

    @operation("final_reject_donation")
    def final_reject_donation(
        self, donation_id: str, reason: str, session: SessionContext
    ) -> OperationResult:
        actor = self._require_actor(session, UserRole.APPROVER)
        reason = require_reason(reason)
        donation = self._load_donation(donation_id)

        self._transition_donation(
            donation,
            FINAL_REJECT,
            {"rejection_reason": reason, "approved_by": actor.id, "approved_at": utcnow()},
        )
        self.db.commit()

        logger.info(
            "Donation rejected at final approval",
            extra={"event": "approval.donation.rejected", "donation_id": donation_id, "stage": 2},
        )

        email, name = self._donor_contact(donation)
        notify.notify_donation_rejected(self.dispatcher, email, name, donation.title, reason)
        return OperationResult.ok(donation_id=donation_id, approval_status="rejected")

    @operation("list_donations_for_review")
    def list_donations_for_review(self, session: SessionContext) -> OperationResult:
        """Admins see the screening queue, approvers the final-approval queue."""
        actor = self._require_actor(session, UserRole.ADMIN, UserRole.APPROVER)

        if actor.role == UserRole.ADMIN:
            stage = DonationApprovalStatus.PENDING
        else:
            stage = DonationApprovalStatus.PENDING_FINAL_APPROVAL

        donations = self.donations.list_by_approval_status([stage])
        return OperationResult.ok(
            stage=stage.value,
            donations=[DonationOut.model_validate(d).model_dump(mode="json") for d in donations],
        )
