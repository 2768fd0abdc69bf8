"""Tests for donor and school verification.

Test Coverage:
1. Approve/reject write the role record and the profile mirror together
2. Rejections: donor needs a reason, school falls back to a default
3. Missing profile -> partial_update and nothing is saved
4. Only admins verify (approvers included)
5. Pending registration queue
"""

import pytest

from bhub_api.approvals.verification import DEFAULT_SCHOOL_REJECTION_REASON
from bhub_api.db.models import Donor, Profile, School, VerificationStatus


def _profile(db, user_id) -> Profile:
    return db.get(Profile, user_id, populate_existing=True)


# ============================================================================
# Donors
# ============================================================================


def test_approve_donor_mirrors_into_profile(orchestrator, db_session, admin, pending_donor, dispatcher):
    result = orchestrator.approve_donor(pending_donor.id, admin.session)

    assert result.success, result.error
    donor = db_session.get(Donor, pending_donor.id, populate_existing=True)
    profile = _profile(db_session, pending_donor.id)

    assert donor.verification_status == VerificationStatus.APPROVED
    assert donor.is_verified is True
    assert donor.verified_by == admin.id
    assert profile.verification_status == VerificationStatus.APPROVED
    assert profile.is_verified is True
    assert profile.is_active is True
    assert profile.verified_by == admin.id
    assert dispatcher.subjects == ["Donor Registration Approved"]


def test_reject_donor_requires_reason(orchestrator, db_session, admin, pending_donor):
    result = orchestrator.reject_donor(pending_donor.id, "  ", admin.session)

    assert result.error_kind == "validation_error"
    assert (
        db_session.get(Donor, pending_donor.id, populate_existing=True).verification_status
        == VerificationStatus.PENDING
    )


def test_reject_donor(orchestrator, db_session, admin, pending_donor, dispatcher):
    result = orchestrator.reject_donor(pending_donor.id, "ID document unreadable", admin.session)

    assert result.success
    donor = db_session.get(Donor, pending_donor.id, populate_existing=True)
    profile = _profile(db_session, pending_donor.id)
    assert donor.verification_status == VerificationStatus.REJECTED
    assert donor.rejection_reason == "ID document unreadable"
    assert profile.verification_status == VerificationStatus.REJECTED
    assert profile.is_active is False
    assert "ID document unreadable" in dispatcher.sent[0].text


def test_approver_cannot_verify_donor(orchestrator, db_session, approver, pending_donor):
    result = orchestrator.approve_donor(pending_donor.id, approver.session)

    assert result.error_kind == "unauthorized"
    assert _profile(db_session, pending_donor.id).is_active is False


def test_unknown_donor_not_found(orchestrator, admin):
    assert orchestrator.approve_donor("nobody", admin.session).error_kind == "not_found"


def test_donor_without_profile_is_partial_update(orchestrator, db_session, admin):
    db_session.add(Donor(id="orphan-donor", full_name="Orphan"))
    db_session.commit()

    result = orchestrator.approve_donor("orphan-donor", admin.session)

    assert result.error_kind == "partial_update"
    donor = db_session.get(Donor, "orphan-donor", populate_existing=True)
    assert donor.verification_status == VerificationStatus.PENDING
    assert donor.is_verified is False


# ============================================================================
# Schools
# ============================================================================


def test_approve_school(orchestrator, db_session, admin, pending_school, dispatcher):
    result = orchestrator.approve_school(pending_school.id, admin.session)

    assert result.success, result.error
    school = db_session.get(School, pending_school.id, populate_existing=True)
    profile = _profile(db_session, pending_school.id)
    assert school.approval_status == VerificationStatus.APPROVED
    assert school.is_verified is True
    assert profile.verification_status == VerificationStatus.APPROVED
    assert profile.is_active is True
    assert dispatcher.sent[0].subject == "School Registration Approved"
    assert "Kabwata Secondary" in dispatcher.sent[0].text


@pytest.mark.parametrize("reason", [None, "", "   "])
def test_reject_school_uses_default_reason(orchestrator, db_session, admin, pending_school, reason):
    result = orchestrator.reject_school(pending_school.id, admin.session, reason=reason)

    assert result.success
    school = db_session.get(School, pending_school.id, populate_existing=True)
    assert school.approval_status == VerificationStatus.REJECTED
    assert school.rejection_reason == DEFAULT_SCHOOL_REJECTION_REASON


def test_reject_school_with_reason(orchestrator, db_session, admin, pending_school):
    orchestrator.reject_school(pending_school.id, admin.session, reason="Not a registered school")

    school = db_session.get(School, pending_school.id, populate_existing=True)
    profile = _profile(db_session, pending_school.id)
    assert school.rejection_reason == "Not a registered school"
    assert profile.verification_status == VerificationStatus.REJECTED
    assert profile.is_verified is False


def test_school_without_profile_is_partial_update(orchestrator, db_session, admin):
    db_session.add(School(id="orphan-school", school_name="Ghost Academy"))
    db_session.commit()

    result = orchestrator.approve_school("orphan-school", admin.session)

    assert result.error_kind == "partial_update"
    school = db_session.get(School, "orphan-school", populate_existing=True)
    assert school.approval_status == VerificationStatus.PENDING


def test_school_cannot_verify_schools(orchestrator, approved_school, pending_school):
    result = orchestrator.approve_school(pending_school.id, approved_school.session)
    assert result.error_kind == "unauthorized"


# ============================================================================
# Pending queue
# ============================================================================


def test_pending_registrations(orchestrator, admin, pending_donor, pending_school, approved_school):
    result = orchestrator.list_pending_registrations(admin.session)

    assert result.success
    assert [d["id"] for d in result.extra["donors"]] == [pending_donor.id]
    assert [s["id"] for s in result.extra["schools"]] == [pending_school.id]


def test_pending_registrations_admin_only(orchestrator, approver):
    assert orchestrator.list_pending_registrations(approver.session).error_kind == "unauthorized"
