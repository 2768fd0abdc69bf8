"""Matching and allocation workflow over donation_matches.

    pending_admin_allocation --admin allocate--> allocated_by_admin
    allocated_by_admin --approver approve--> approved_by_approver
    allocated_by_admin --approver reject--> rejected_by_approver
    pending_admin_allocation --new recommendation run--> superseded

Allocating moves the donation to allocated; rejecting the allocation puts
it back to approved so it can be allocated again.
"""

import logging
from typing import Any, Optional

from bhub_api.approvals.base import OrchestratorBase, not_found, require_reason
from bhub_api.approvals.errors import InvalidState, UpstreamFailure
from bhub_api.approvals.results import OperationResult, operation
from bhub_api.approvals.state_machine import APPLICATION_MATCHABLE, can_transition_match
from bhub_api.auth.identity import SessionContext
from bhub_api.db.models import (
    Donation,
    DonationApprovalStatus,
    DonationMatch,
    DonationStatus,
    MatchStatus,
    UserRole,
    VerificationStatus,
    utcnow,
)
from bhub_api.db.repo_applications import ApplicationRepository
from bhub_api.db.repo_donations import DonationRepository
from bhub_api.db.repo_matches import MatchRepository
from bhub_api.db.repo_profiles import SchoolRepository
from bhub_api.matching.ordering import order_matches
from bhub_api.matching.recommender import (
    MatchRecommender,
    RecommendationError,
    get_default_recommender,
)
from bhub_api.notifications import notify
from bhub_api.schemas import MatchOut

logger = logging.getLogger(__name__)

REVIEWER_ROLES = (UserRole.APPROVER, UserRole.ADMIN)


def _match_payload(matches: list[DonationMatch]) -> list[dict[str, Any]]:
    return [MatchOut.model_validate(m).model_dump(mode="json") for m in order_matches(matches)]


class MatchWorkflow(OrchestratorBase):
    recommender: Optional[MatchRecommender]

    @property
    def matches(self) -> MatchRepository:
        return MatchRepository(self.db)

    def _load_match(self, match_id: str) -> DonationMatch:
        match = self.matches.get_by_id(match_id)
        if match is None:
            raise not_found("Match")
        return match

    def _load_donation_for(self, donation_id: str) -> Donation:
        donation = DonationRepository(self.db).get_by_id(donation_id)
        if donation is None:
            raise not_found("Donation")
        return donation

    def _check_transition(self, match: DonationMatch, target: MatchStatus) -> None:
        current = MatchStatus(match.status)
        if not can_transition_match(current, target):
            raise InvalidState(f"Match is {current.value}; cannot move to {target.value}")

    def _cas_match(
        self, match: DonationMatch, target: MatchStatus, updates: dict[str, Any]
    ) -> None:
        """Move the match to target if it is still in the status and version it was read at."""
        changed = self.matches.update_with_version_check(
            match_id=match.id,
            expected_version=match.version,
            updates={**updates, "status": target, "updated_at": utcnow()},
            extra_conditions={"status": MatchStatus(match.status)},
        )
        if not changed:
            raise InvalidState("Match was modified concurrently; reload and try again")

    def _candidates(self) -> list[dict[str, Any]]:
        """Matchable applications from approved schools, in recommender shape."""
        schools = SchoolRepository(self.db)
        candidates: list[dict[str, Any]] = []

        for app in ApplicationRepository(self.db).list_by_status(APPLICATION_MATCHABLE):
            school = schools.get_by_id(app.school_id)
            if school is None or school.approval_status != VerificationStatus.APPROVED:
                continue
            candidates.append(
                {
                    "id": app.id,
                    "application_title": app.application_title,
                    "application_type": app.application_type,
                    "priority_level": app.priority_level,
                    "resources_needed": app.resources_needed,
                    "current_situation": app.current_situation,
                    "expected_impact": app.expected_impact,
                    "beneficiaries_count": app.beneficiaries_count,
                    "needed_by_date": app.needed_by_date,
                    "school": {
                        "id": school.id,
                        "school_name": school.school_name,
                        "province": school.province,
                        "district": school.district,
                        "total_students": school.total_students,
                        "total_teachers": school.total_teachers,
                        "has_electricity": school.has_electricity,
                        "has_running_water": school.has_running_water,
                        "has_library": school.has_library,
                    },
                }
            )
        return candidates

    # ------------------------------------------------------------------
    # Admin: recommend and allocate
    # ------------------------------------------------------------------

    @operation("generate_match_recommendations")
    def generate_match_recommendations(
        self, donation_id: str, session: SessionContext
    ) -> OperationResult:
        self._require_actor(session, UserRole.ADMIN)
        donation = self._load_donation_for(donation_id)

        if (
            donation.approval_status != DonationApprovalStatus.APPROVED
            or donation.status != DonationStatus.APPROVED
        ):
            raise InvalidState("Donation must be approved and unallocated before matching")

        candidates = self._candidates()
        if not candidates:
            raise InvalidState("No eligible applications to match")

        donation_view = {
            "id": donation.id,
            "title": donation.title,
            "description": donation.description,
            "donation_type": donation.donation_type,
            "condition": donation.condition,
            "items": donation.items,
            "available_quantity": donation.available_quantity,
            "city": donation.city,
            "province": donation.province,
            "delivery_available": donation.delivery_available,
        }

        recommender = self.recommender or get_default_recommender()
        try:
            recommendations = recommender.recommend(donation_view, candidates)
        except RecommendationError as e:
            raise UpstreamFailure(f"Match recommendation failed: {e}") from e

        superseded = self.matches.supersede_pending(donation_id)
        created = self.matches.create_many(
            [
                DonationMatch(
                    donation_id=donation_id,
                    application_id=rec.application_id,
                    school_id=rec.school_id,
                    match_score=rec.match_score,
                    match_justification=rec.match_justification,
                    priority_rank=rec.priority_rank,
                    status=MatchStatus.PENDING_ADMIN_ALLOCATION,
                )
                for rec in recommendations
            ]
        )
        self.db.commit()

        logger.info(
            "Match recommendations stored",
            extra={
                "event": "matching.recommendations.stored",
                "donation_id": donation_id,
                "created": len(created),
                "superseded": superseded,
            },
        )
        return OperationResult.ok(donation_id=donation_id, matches=_match_payload(created))

    @operation("get_match_recommendations")
    def get_match_recommendations(
        self, donation_id: str, session: SessionContext
    ) -> OperationResult:
        self._require_actor(session, UserRole.ADMIN)
        self._load_donation_for(donation_id)

        live = [
            m for m in self.matches.list_by_donation(donation_id)
            if m.status != MatchStatus.SUPERSEDED
        ]
        return OperationResult.ok(donation_id=donation_id, matches=_match_payload(live))

    @operation("allocate_match")
    def allocate_match(
        self, match_id: str, session: SessionContext, admin_notes: Optional[str] = None
    ) -> OperationResult:
        actor = self._require_actor(session, UserRole.ADMIN)
        match = self._load_match(match_id)
        self._check_transition(match, MatchStatus.ALLOCATED_BY_ADMIN)

        donation = self._load_donation_for(match.donation_id)
        if (
            donation.approval_status != DonationApprovalStatus.APPROVED
            or donation.status != DonationStatus.APPROVED
        ):
            raise InvalidState("Donation is not available for allocation")

        now = utcnow()
        self._cas_match(
            match,
            MatchStatus.ALLOCATED_BY_ADMIN,
            {
                "allocated_by": actor.id,
                "allocated_at": now,
                "admin_notes": admin_notes,
            },
        )
        donation_changed = DonationRepository(self.db).update_with_version_check(
            donation_id=donation.id,
            expected_version=donation.version,
            updates={
                "status": DonationStatus.ALLOCATED,
                "allocated_to": match.school_id,
                "allocated_at": now,
                "updated_at": now,
            },
            extra_conditions={
                "status": DonationStatus.APPROVED,
                "approval_status": DonationApprovalStatus.APPROVED,
            },
        )
        if not donation_changed:
            raise InvalidState("Donation was modified concurrently; reload and try again")
        self.db.commit()

        logger.info(
            "Donation allocated",
            extra={
                "event": "matching.match.allocated",
                "match_id": match_id,
                "donation_id": donation.id,
                "school_id": match.school_id,
            },
        )

        school = SchoolRepository(self.db).get_by_id(match.school_id)
        email, name = self._contact(match.school_id)
        notify.notify_donation_allocated(
            self.dispatcher,
            email,
            school.school_name if school else (name or "School"),
            donation.title,
            match.match_score,
        )
        return OperationResult.ok(match_id=match_id, donation_id=donation.id)

    @operation("mark_donation_delivered")
    def mark_donation_delivered(self, donation_id: str, session: SessionContext) -> OperationResult:
        self._require_actor(session, UserRole.ADMIN)
        donation = self._load_donation_for(donation_id)

        if donation.status != DonationStatus.ALLOCATED:
            raise InvalidState(
                f"Donation is {DonationStatus(donation.status).value}, expected allocated"
            )

        approved = [
            m for m in self.matches.list_by_donation(
                donation_id, [MatchStatus.APPROVED_BY_APPROVER]
            )
            if m.school_id == donation.allocated_to
        ]
        if not approved:
            raise InvalidState("Allocation has not been approved")

        now = utcnow()
        changed = DonationRepository(self.db).update_with_version_check(
            donation_id=donation_id,
            expected_version=donation.version,
            updates={"status": DonationStatus.DELIVERED, "delivered_at": now, "updated_at": now},
            extra_conditions={"status": DonationStatus.ALLOCATED},
        )
        if not changed:
            raise InvalidState("Donation was modified concurrently; reload and try again")
        self.db.commit()

        logger.info(
            "Donation delivered",
            extra={"event": "matching.donation.delivered", "donation_id": donation_id},
        )
        return OperationResult.ok(donation_id=donation_id, status="delivered")

    # ------------------------------------------------------------------
    # Approver: review allocations
    # ------------------------------------------------------------------

    @operation("approve_match")
    def approve_match(
        self, match_id: str, session: SessionContext, approver_notes: Optional[str] = None
    ) -> OperationResult:
        actor = self._require_actor(session, *REVIEWER_ROLES)
        match = self._load_match(match_id)
        self._check_transition(match, MatchStatus.APPROVED_BY_APPROVER)

        self._cas_match(
            match,
            MatchStatus.APPROVED_BY_APPROVER,
            {
                "reviewed_by": actor.id,
                "reviewed_at": utcnow(),
                "approver_notes": approver_notes,
            },
        )
        self.db.commit()

        logger.info(
            "Allocation approved",
            extra={"event": "matching.match.approved", "match_id": match_id},
        )
        return OperationResult.ok(match_id=match_id, status=MatchStatus.APPROVED_BY_APPROVER.value)

    @operation("reject_match")
    def reject_match(
        self,
        match_id: str,
        reason: str,
        session: SessionContext,
        approver_notes: Optional[str] = None,
    ) -> OperationResult:
        actor = self._require_actor(session, *REVIEWER_ROLES)
        reason = require_reason(reason)
        match = self._load_match(match_id)
        self._check_transition(match, MatchStatus.REJECTED_BY_APPROVER)
        donation = self._load_donation_for(match.donation_id)

        now = utcnow()
        self._cas_match(
            match,
            MatchStatus.REJECTED_BY_APPROVER,
            {
                "reviewed_by": actor.id,
                "reviewed_at": now,
                "approver_notes": approver_notes,
                "rejection_reason": reason,
            },
        )
        released = DonationRepository(self.db).update_with_version_check(
            donation_id=donation.id,
            expected_version=donation.version,
            updates={
                "status": DonationStatus.APPROVED,
                "allocated_to": None,
                "allocated_at": None,
                "updated_at": now,
            },
            extra_conditions={
                "status": DonationStatus.ALLOCATED,
                "allocated_to": match.school_id,
            },
        )
        if not released:
            raise InvalidState("Donation allocation does not match this match; reload and try again")
        self.db.commit()

        logger.info(
            "Allocation rejected",
            extra={
                "event": "matching.match.rejected",
                "match_id": match_id,
                "donation_id": donation.id,
            },
        )
        return OperationResult.ok(match_id=match_id, status=MatchStatus.REJECTED_BY_APPROVER.value)

    @operation("get_pending_matches")
    def get_pending_matches(self, session: SessionContext) -> OperationResult:
        self._require_actor(session, *REVIEWER_ROLES)
        pending = self.matches.list_by_status([MatchStatus.ALLOCATED_BY_ADMIN])
        return OperationResult.ok(matches=_match_payload(pending))

    @operation("get_match_history")
    def get_match_history(self, session: SessionContext, limit: int = 50) -> OperationResult:
        self._require_actor(session, *REVIEWER_ROLES)
        reviewed = self.matches.list_reviewed(limit=limit)
        return OperationResult.ok(
            matches=[MatchOut.model_validate(m).model_dump(mode="json") for m in reviewed]
        )
