"""Tests for HTTP routes and RFC 9457 problem mapping.

Test Coverage:
1. Health and root endpoints
2. X-Request-ID echo and trace instance
3. Missing bearer -> 401 problem with WWW-Authenticate
4. Role failure -> 403, unknown entity -> 404, invalid state -> 409
5. Request validation -> 422 problem naming the field
6. Registration, donation, review and matching routes end to end over HTTP
7. School settings routes; approval fields in the body are refused
"""

from bhub_api.db.models import (
    Donation,
    DonationApprovalStatus,
    DonationStatus,
    Profile,
    UserRole,
)
from bhub_api.matching.recommender import MatchRecommendation

from tests.helpers import auth_headers, seed_application, seed_donation

PROBLEM_BASE = "https://api.beneficiaryhub.org/problems"


# ============================================================================
# Service endpoints
# ============================================================================


def test_root(test_client):
    response = test_client.get("/")
    assert response.status_code == 200
    assert response.json()["service"] == "beneficiary-hub-api"


def test_health_reports_database_up(test_client):
    response = test_client.get("/health")
    assert response.status_code == 200
    assert response.json()["services"]["database"] == "up"


def test_request_id_is_echoed(test_client):
    response = test_client.get("/", headers={"X-Request-ID": "req-abc"})
    assert response.headers["X-Request-ID"] == "req-abc"


# ============================================================================
# Problem mapping
# ============================================================================


def test_missing_bearer_is_401(test_client):
    response = test_client.get("/v1/admin/donations/review", headers={"X-Request-ID": "req-401"})

    assert response.status_code == 401
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.headers["WWW-Authenticate"] == "Bearer"
    body = response.json()
    assert body["type"] == f"{PROBLEM_BASE}/unauthenticated"
    assert body["status"] == 401
    assert body["instance"] == "urn:beneficiaryhub:trace:req-401"


def test_wrong_role_is_403(test_client, approver):
    response = test_client.get("/v1/admin/registrations/pending", headers=auth_headers(approver))

    assert response.status_code == 403
    assert response.json()["detail"] == "Only admins can perform this action"


def test_unknown_donation_is_404(test_client, admin):
    response = test_client.post("/v1/admin/donations/nope/approve", headers=auth_headers(admin))
    assert response.status_code == 404
    assert response.json()["type"] == f"{PROBLEM_BASE}/not-found"


def test_invalid_state_is_409(test_client, db_session, approver, verified_donor):
    donation = seed_donation(db_session, verified_donor.id)

    response = test_client.post(
        f"/v1/approver/donations/{donation.id}/approve", headers=auth_headers(approver)
    )

    assert response.status_code == 409
    assert response.json()["type"] == f"{PROBLEM_BASE}/invalid-state"


def test_blank_reason_is_422(test_client, db_session, admin, verified_donor):
    donation = seed_donation(db_session, verified_donor.id)

    response = test_client.post(
        f"/v1/admin/donations/{donation.id}/reject",
        json={"reason": "  "},
        headers=auth_headers(admin),
    )

    assert response.status_code == 422
    assert response.json()["detail"] == "Rejection reason is required"


def test_request_validation_is_422(test_client, verified_donor):
    response = test_client.post(
        "/v1/donor/donations",
        json={"title": "", "description": "x", "donation_type": "books"},
        headers=auth_headers(verified_donor),
    )

    assert response.status_code == 422
    body = response.json()
    assert body["type"] == f"{PROBLEM_BASE}/validation-error"
    assert "body.title" in body["detail"]


def test_unknown_route_is_problem(test_client):
    response = test_client.get("/v1/nowhere")
    assert response.status_code == 404
    assert response.json()["type"] == f"{PROBLEM_BASE}/http-404"


# ============================================================================
# Routes
# ============================================================================


def test_register_donor_route(test_client, db_session):
    response = test_client.post(
        "/v1/auth/register/donor",
        json={
            "email": "thandi@example.org",
            "password": "correct-horse",
            "full_name": "Thandi Banda",
            "phone_number": "+260 97 000 0000",
            "terms_accepted": True,
            "privacy_policy_accepted": True,
            "aml_acknowledgment": True,
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["verification_status"] == "pending"
    assert db_session.get(Profile, body["user_id"]).role == UserRole.DONOR


def test_register_with_bad_email_is_422(test_client):
    response = test_client.post(
        "/v1/auth/register/school",
        json={"email": "not-an-email", "password": "correct-horse", "school_name": "X"},
    )
    assert response.status_code == 422


def test_donor_creates_and_lists_donations(test_client, verified_donor):
    created = test_client.post(
        "/v1/donor/donations",
        json={
            "title": "Football kits",
            "description": "Eleven full kits.",
            "donation_type": "sports",
            "items": [{"name": "Kit", "quantity": 11}],
        },
        headers=auth_headers(verified_donor),
    )
    assert created.status_code == 201

    listed = test_client.get("/v1/donor/donations", headers=auth_headers(verified_donor))
    assert [d["title"] for d in listed.json()["donations"]] == ["Football kits"]


def test_two_stage_review_over_http(
    test_client, db_session, admin, approver, verified_donor, dispatcher
):
    donation = seed_donation(db_session, verified_donor.id)

    screened = test_client.post(
        f"/v1/admin/donations/{donation.id}/approve", headers=auth_headers(admin)
    )
    assert screened.json()["approval_status"] == "pending_final_approval"

    queue = test_client.get("/v1/approver/donations/review", headers=auth_headers(approver))
    assert [d["id"] for d in queue.json()["donations"]] == [donation.id]

    final = test_client.post(
        f"/v1/approver/donations/{donation.id}/approve", headers=auth_headers(approver)
    )
    assert final.status_code == 200

    row = db_session.get(Donation, donation.id, populate_existing=True)
    assert row.approval_status == DonationApprovalStatus.APPROVED
    assert len(dispatcher.sent) == 2


def test_single_stage_mode_over_http(test_client, db_session, monkeypatch, admin, verified_donor):
    monkeypatch.setenv("BHUB_DONATION_APPROVAL_MODE", "single_stage")
    donation = seed_donation(db_session, verified_donor.id)

    response = test_client.post(
        f"/v1/admin/donations/{donation.id}/approve", headers=auth_headers(admin)
    )

    assert response.json()["approval_status"] == "approved"


def test_matching_routes(
    test_client, db_session, admin, approver, verified_donor, approved_school, recommender
):
    donation = seed_donation(
        db_session,
        verified_donor.id,
        status=DonationStatus.APPROVED,
        approval_status=DonationApprovalStatus.APPROVED,
    )
    application = seed_application(db_session, approved_school.id)
    recommender.recommendations = [
        MatchRecommendation(
            application_id=application.id,
            school_id=approved_school.id,
            match_score=88,
            match_justification="Needs books",
            priority_rank=1,
        )
    ]

    generated = test_client.post(
        f"/v1/admin/donations/{donation.id}/matches/generate", headers=auth_headers(admin)
    )
    assert generated.status_code == 201
    match_id = generated.json()["matches"][0]["id"]

    allocated = test_client.post(
        f"/v1/admin/matches/{match_id}/allocate",
        json={"admin_notes": "Closest"},
        headers=auth_headers(admin),
    )
    assert allocated.status_code == 200

    pending = test_client.get("/v1/approver/matches/pending", headers=auth_headers(approver))
    assert [m["id"] for m in pending.json()["matches"]] == [match_id]

    rejected = test_client.post(
        f"/v1/approver/matches/{match_id}/reject",
        json={"reason": "Already supplied"},
        headers=auth_headers(approver),
    )
    assert rejected.status_code == 200

    history = test_client.get(
        "/v1/approver/matches/history?limit=500", headers=auth_headers(approver)
    )
    assert [m["status"] for m in history.json()["matches"]] == ["rejected_by_approver"]


def test_school_application_routes(test_client, approved_school, admin):
    created = test_client.post(
        "/v1/school/applications?submit=true",
        json={
            "application_title": "Desks",
            "application_type": "furniture",
            "current_situation": "Pupils sit on the floor.",
            "expected_impact": "Every pupil gets a desk.",
            "resources_needed": [{"category": "furniture", "item": "Desk", "quantity": 40}],
        },
        headers=auth_headers(approved_school),
    )
    assert created.status_code == 201
    application_id = created.json()["application_id"]

    # Submitted applications are locked
    edit = test_client.put(
        f"/v1/school/applications/{application_id}",
        json={"application_title": "Chairs"},
        headers=auth_headers(approved_school),
    )
    assert edit.status_code == 409

    reviewed = test_client.post(
        f"/v1/admin/applications/{application_id}/review",
        json={"decision": "approved"},
        headers=auth_headers(admin),
    )
    assert reviewed.json()["status"] == "approved"

    fetched = test_client.get(
        f"/v1/school/applications/{application_id}", headers=auth_headers(approved_school)
    )
    assert fetched.json()["application"]["status"] == "approved"


def test_admin_user_management_routes(test_client, admin, verified_donor):
    enrolled = test_client.post(
        "/v1/admin/users",
        json={
            "email": "reviewer@example.org",
            "password": "correct-horse",
            "full_name": "Grace Mwale",
            "role": "approver",
        },
        headers=auth_headers(admin),
    )
    assert enrolled.status_code == 201

    deactivated = test_client.put(
        f"/v1/admin/users/{verified_donor.id}/status",
        json={"is_active": False},
        headers=auth_headers(admin),
    )
    assert deactivated.json()["is_active"] is False

    approvers = test_client.get("/v1/admin/users?role=approver", headers=auth_headers(admin))
    assert [u["email"] for u in approvers.json()["users"]] == ["reviewer@example.org"]


def test_deactivated_donor_is_forbidden(test_client, db_session, verified_donor):
    db_session.get(Profile, verified_donor.id).is_active = False
    db_session.commit()

    response = test_client.get("/v1/donor/donations", headers=auth_headers(verified_donor))

    assert response.status_code == 403
    assert response.json()["detail"] == "Account is not active"


def test_school_settings_routes(test_client, db_session, approved_school, verified_donor):
    updated = test_client.put(
        "/v1/school/settings",
        json={"total_students": 712, "has_library": True},
        headers=auth_headers(approved_school),
    )
    assert updated.status_code == 200

    head = test_client.put(
        "/v1/school/settings/head-teacher",
        json={
            "full_name": "Chilenje Primary School",
            "head_teacher_name": "Mrs Phiri",
            "head_teacher_email": "head@chilenje.example.org",
            "head_teacher_phone": "+260 96 000 0000",
        },
        headers=auth_headers(approved_school),
    )
    assert head.status_code == 200

    school = test_client.get("/v1/school/settings", headers=auth_headers(approved_school)).json()
    assert school["school"]["total_students"] == 712
    assert school["school"]["head_teacher_email"] == "head@chilenje.example.org"
    assert school["school"]["approval_status"] == "approved"

    donor = test_client.get("/v1/school/settings", headers=auth_headers(verified_donor))
    assert donor.status_code == 403


def test_school_settings_refuse_approval_fields(test_client, approved_school):
    response = test_client.put(
        "/v1/school/settings",
        json={"school_name": "Renamed", "approval_status": "approved", "is_verified": True},
        headers=auth_headers(approved_school),
    )

    assert response.status_code == 422
    assert "body.approval_status" in response.json()["detail"]
