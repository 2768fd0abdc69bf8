"""Allowed state transitions for donations, matches and applications.

Donation approval_status:

    pending --admin approve--> pending_final_approval --approver approve--> approved
       |                               |
       +--admin reject--> rejected <---+--approver reject

In single-stage mode the admin approval goes straight to approved.
Donation status follows approval_status until approval, then advances
approved -> allocated -> delivered (allocated -> approved when an
allocation is rejected).
"""

from dataclasses import dataclass

from bhub_api.config.env import DonationApprovalMode
from bhub_api.db.models import (
    ApplicationStatus,
    DonationApprovalStatus,
    DonationStatus,
    MatchStatus,
)


@dataclass(frozen=True)
class DonationTransition:
    expected: DonationApprovalStatus
    approval_status: DonationApprovalStatus
    status: DonationStatus


SCREEN_TWO_STAGE = DonationTransition(
    expected=DonationApprovalStatus.PENDING,
    approval_status=DonationApprovalStatus.PENDING_FINAL_APPROVAL,
    status=DonationStatus.PENDING,
)
SCREEN_SINGLE_STAGE = DonationTransition(
    expected=DonationApprovalStatus.PENDING,
    approval_status=DonationApprovalStatus.APPROVED,
    status=DonationStatus.APPROVED,
)
ADMIN_REJECT = DonationTransition(
    expected=DonationApprovalStatus.PENDING,
    approval_status=DonationApprovalStatus.REJECTED,
    status=DonationStatus.REJECTED,
)
FINAL_APPROVE = DonationTransition(
    expected=DonationApprovalStatus.PENDING_FINAL_APPROVAL,
    approval_status=DonationApprovalStatus.APPROVED,
    status=DonationStatus.APPROVED,
)
FINAL_REJECT = DonationTransition(
    expected=DonationApprovalStatus.PENDING_FINAL_APPROVAL,
    approval_status=DonationApprovalStatus.REJECTED,
    status=DonationStatus.REJECTED,
)


def screening_transition(mode: DonationApprovalMode) -> DonationTransition:
    if mode == DonationApprovalMode.SINGLE_STAGE:
        return SCREEN_SINGLE_STAGE
    return SCREEN_TWO_STAGE


POST_APPROVAL_STATUSES = frozenset(
    {DonationStatus.APPROVED, DonationStatus.ALLOCATED, DonationStatus.DELIVERED}
)


def is_donation_consistent(status: DonationStatus, approval_status: DonationApprovalStatus) -> bool:
    """Check the status / approval_status pairing.

    approved/allocated/delivered require approval_status approved; rejected
    pairs only with rejected; pending pairs with pending or
    pending_final_approval.
    """
    status = DonationStatus(status)
    approval_status = DonationApprovalStatus(approval_status)

    if status in POST_APPROVAL_STATUSES:
        return approval_status == DonationApprovalStatus.APPROVED
    if status == DonationStatus.REJECTED:
        return approval_status == DonationApprovalStatus.REJECTED
    return approval_status in (
        DonationApprovalStatus.PENDING,
        DonationApprovalStatus.PENDING_FINAL_APPROVAL,
    )


MATCH_TRANSITIONS: dict[MatchStatus, frozenset[MatchStatus]] = {
    MatchStatus.PENDING_ADMIN_ALLOCATION: frozenset(
        {MatchStatus.ALLOCATED_BY_ADMIN, MatchStatus.SUPERSEDED}
    ),
    MatchStatus.ALLOCATED_BY_ADMIN: frozenset(
        {MatchStatus.APPROVED_BY_APPROVER, MatchStatus.REJECTED_BY_APPROVER}
    ),
    MatchStatus.APPROVED_BY_APPROVER: frozenset(),
    MatchStatus.REJECTED_BY_APPROVER: frozenset(),
    MatchStatus.SUPERSEDED: frozenset(),
}


def can_transition_match(current: MatchStatus, target: MatchStatus) -> bool:
    return MatchStatus(target) in MATCH_TRANSITIONS[MatchStatus(current)]


# Statuses a school may still edit (rejected applications can be reworked)
APPLICATION_EDITABLE = frozenset({ApplicationStatus.DRAFT, ApplicationStatus.REJECTED})

# Statuses that make an application a matching candidate
APPLICATION_MATCHABLE = frozenset(
    {ApplicationStatus.SUBMITTED, ApplicationStatus.UNDER_REVIEW, ApplicationStatus.APPROVED}
)

APPLICATION_REVIEW_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.SUBMITTED: frozenset(
        {ApplicationStatus.UNDER_REVIEW, ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}
    ),
    ApplicationStatus.UNDER_REVIEW: frozenset(
        {ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}
    ),
}


def can_review_application(current: ApplicationStatus, decision: ApplicationStatus) -> bool:
    allowed = APPLICATION_REVIEW_TRANSITIONS.get(ApplicationStatus(current), frozenset())
    return ApplicationStatus(decision) in allowed
