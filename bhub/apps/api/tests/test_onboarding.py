"""Tests for registration and staff enrollment.

Test Coverage:
1. Donor registration: consents required, profile + donor start pending/inactive
2. School registration: profile + school start pending/inactive
3. Identity provider errors surface as validation_error
4. Profile created by a database trigger is completed, not duplicated
5. Staff enrollment: admin only, active and verified immediately
6. Activation toggling and user listing
"""

import pytest

from bhub_api.db.models import Donor, Profile, School, UserRole, VerificationStatus
from bhub_api.schemas import DonorRegistration, SchoolRegistration, StaffEnrollment


def _donor_body(**overrides) -> DonorRegistration:
    data = {
        "email": "thandi@example.org",
        "password": "correct-horse",
        "full_name": "Thandi Banda",
        "phone_number": "+260 97 000 0000",
        "city": "Ndola",
        "country": "Zambia",
        "id_type": "nrc",
        "id_number": "123456/10/1",
        "terms_accepted": True,
        "privacy_policy_accepted": True,
        "aml_acknowledgment": True,
    }
    data.update(overrides)
    return DonorRegistration(**data)


SCHOOL_BODY = SchoolRegistration(
    email="head@chilenje.example.org",
    password="correct-horse",
    school_name="Chilenje Primary",
    province="Lusaka",
    head_teacher_name="Mrs Phiri",
    head_teacher_phone="+260 96 000 0000",
    total_students=640,
    has_electricity=True,
)


# ============================================================================
# Donor registration
# ============================================================================


def test_register_donor_starts_pending(onboarding, db_session):
    result = onboarding.register_donor(_donor_body())

    assert result.success, result.error
    user_id = result.extra["user_id"]
    profile = db_session.get(Profile, user_id)
    donor = db_session.get(Donor, user_id)

    assert profile.role == UserRole.DONOR
    assert profile.is_active is False
    assert profile.verification_status == VerificationStatus.PENDING
    assert donor.verification_status == VerificationStatus.PENDING
    assert donor.id_number == "123456/10/1"
    assert donor.terms_accepted is True
    assert donor.aml_acknowledged_at is not None


@pytest.mark.parametrize(
    "missing", ["terms_accepted", "privacy_policy_accepted", "aml_acknowledgment"]
)
def test_register_donor_requires_every_consent(onboarding, db_session, identity, missing):
    result = onboarding.register_donor(_donor_body(**{missing: False}))

    assert result.error_kind == "validation_error"
    assert identity.users_by_email == {}
    assert db_session.query(Donor).count() == 0


def test_duplicate_email_is_validation_error(onboarding):
    assert onboarding.register_donor(_donor_body()).success
    result = onboarding.register_donor(_donor_body())

    assert result.error_kind == "validation_error"
    assert result.error == "User already registered"


def test_trigger_created_profile_is_completed(onboarding, db_session, identity):
    # Simulate an auth trigger that inserted a bare profile at sign-up time
    original_sign_up = identity.sign_up

    def sign_up_with_trigger(email, password, metadata):
        user = original_sign_up(email, password, metadata)
        db_session.add(Profile(id=user.id, email=email, role=UserRole.DONOR))
        db_session.flush()
        return user

    identity.sign_up = sign_up_with_trigger

    result = onboarding.register_donor(_donor_body())

    assert result.success, result.error
    profile = db_session.get(Profile, result.extra["user_id"])
    assert profile.full_name == "Thandi Banda"
    assert db_session.query(Profile).count() == 1


# ============================================================================
# School registration
# ============================================================================


def test_register_school_starts_pending(onboarding, db_session):
    result = onboarding.register_school(SCHOOL_BODY)

    assert result.success, result.error
    user_id = result.extra["user_id"]
    school = db_session.get(School, user_id)
    profile = db_session.get(Profile, user_id)

    assert school.approval_status == VerificationStatus.PENDING
    assert school.total_students == 640
    assert school.has_electricity is True
    assert profile.role == UserRole.SCHOOL
    assert profile.organization_name == "Chilenje Primary"
    assert profile.is_active is False


def test_identity_failure_is_validation_error(onboarding, identity, db_session):
    identity.fail_next = "Password should be at least 10 characters"

    result = onboarding.register_school(SCHOOL_BODY)

    assert result.error_kind == "validation_error"
    assert db_session.query(School).count() == 0


# ============================================================================
# Staff enrollment
# ============================================================================


def test_admin_enrolls_approver(onboarding, db_session, admin):
    body = StaffEnrollment(
        email="reviewer@example.org",
        password="correct-horse",
        full_name="Grace Mwale",
        role="approver",
    )

    result = onboarding.enroll_staff_user(body, admin.session)

    assert result.success, result.error
    profile = db_session.get(Profile, result.extra["user_id"])
    assert profile.role == UserRole.APPROVER
    assert profile.is_active is True
    assert profile.is_verified is True
    assert profile.created_by == admin.id


def test_approver_cannot_enroll_staff(onboarding, approver):
    body = StaffEnrollment(
        email="x@example.org", password="correct-horse", full_name="X", role="admin"
    )
    assert onboarding.enroll_staff_user(body, approver.session).error_kind == "unauthorized"


def test_enrollment_identity_failure_is_unexpected(onboarding, identity, admin):
    identity.fail_next = "Service unavailable"
    body = StaffEnrollment(
        email="x@example.org", password="correct-horse", full_name="X", role="admin"
    )

    result = onboarding.enroll_staff_user(body, admin.session)

    assert result.error_kind == "unexpected"


# ============================================================================
# User management
# ============================================================================


def test_deactivate_user(onboarding, db_session, admin, verified_donor):
    result = onboarding.set_user_active(verified_donor.id, False, admin.session)

    assert result.success
    assert db_session.get(Profile, verified_donor.id, populate_existing=True).is_active is False


def test_admin_cannot_deactivate_self(onboarding, admin):
    result = onboarding.set_user_active(admin.id, False, admin.session)
    assert result.error_kind == "validation_error"


def test_set_active_unknown_user(onboarding, admin):
    assert onboarding.set_user_active("ghost", True, admin.session).error_kind == "not_found"


def test_list_users_by_role(onboarding, admin, approver, verified_donor):
    everyone = onboarding.list_users(admin.session)
    donors = onboarding.list_users(admin.session, role="donor")

    assert {u["id"] for u in everyone.extra["users"]} == {admin.id, approver.id, verified_donor.id}
    assert [u["id"] for u in donors.extra["users"]] == [verified_donor.id]
    assert onboarding.list_users(admin.session, role="superuser").error_kind == "validation_error"
