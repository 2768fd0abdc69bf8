"""Registration and staff enrollment.

Donors and schools register themselves and start inactive with a pending
verification; admins approve them through the orchestrator. Admin and
approver accounts are created by an existing admin and are active
immediately.
"""

import logging
from typing import Any, Optional

from bhub_api.approvals.base import OrchestratorBase, not_found
from bhub_api.approvals.errors import UpstreamFailure, ValidationFailed
from bhub_api.approvals.results import OperationResult, operation
from bhub_api.auth.identity import IdentityError, SessionContext, UserIdentity
from bhub_api.db.models import Donor, Profile, School, UserRole, VerificationStatus, utcnow
from bhub_api.db.repo_profiles import DonorRepository, SchoolRepository
from bhub_api.schemas import (
    DonorRegistration,
    ProfileOut,
    SchoolRegistration,
    StaffEnrollment,
)
from bhub_api.utils.sanitize import mask_email

logger = logging.getLogger(__name__)


class OnboardingService(OrchestratorBase):

    def _sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> UserIdentity:
        try:
            return self.identity.sign_up(email, password, metadata)
        except IdentityError as e:
            # Duplicate email, weak password, etc.
            raise ValidationFailed(str(e)) from e

    def _upsert_profile(self, user_id: str, role: UserRole, fields: dict[str, Any]) -> Profile:
        """Create the profile, or fill in one a database trigger already made."""
        existing = self.profiles.get_by_id(user_id)
        if existing is None:
            return self.profiles.create(Profile(id=user_id, role=role, **fields))

        if existing.role != role:
            raise ValidationFailed(
                f"Account already registered as {UserRole(existing.role).value}"
            )
        for key, value in fields.items():
            setattr(existing, key, value)
        self.db.flush()
        return existing

    @operation("register_donor")
    def register_donor(self, data: DonorRegistration) -> OperationResult:
        if not (data.terms_accepted and data.privacy_policy_accepted and data.aml_acknowledgment):
            raise ValidationFailed(
                "Terms, privacy policy and AML acknowledgment must all be accepted"
            )

        user = self._sign_up(
            data.email, data.password, {"role": UserRole.DONOR.value, "full_name": data.full_name}
        )

        self._upsert_profile(
            user.id,
            UserRole.DONOR,
            {
                "email": data.email,
                "full_name": data.full_name,
                "phone_number": data.phone_number,
                "organization_name": data.organization_name,
                "is_active": False,
                "is_verified": False,
                "verification_status": VerificationStatus.PENDING,
            },
        )

        now = utcnow()
        kyc = data.model_dump(
            exclude={
                "email",
                "password",
                "terms_accepted",
                "privacy_policy_accepted",
                "aml_acknowledgment",
            }
        )
        DonorRepository(self.db).create(
            Donor(
                id=user.id,
                **kyc,
                terms_accepted=True,
                terms_accepted_at=now,
                privacy_policy_accepted=True,
                privacy_policy_accepted_at=now,
                aml_acknowledgment=True,
                aml_acknowledged_at=now,
                is_verified=False,
                verification_status=VerificationStatus.PENDING,
            )
        )
        self.db.commit()

        logger.info(
            "Donor registered",
            extra={
                "event": "onboarding.donor.registered",
                "user_id": user.id,
                "email": mask_email(data.email),
            },
        )
        return OperationResult.ok(user_id=user.id, verification_status="pending")

    @operation("register_school")
    def register_school(self, data: SchoolRegistration) -> OperationResult:
        user = self._sign_up(
            data.email,
            data.password,
            {"role": UserRole.SCHOOL.value, "full_name": data.school_name},
        )

        self._upsert_profile(
            user.id,
            UserRole.SCHOOL,
            {
                "email": data.email,
                "full_name": data.school_name,
                "organization_name": data.school_name,
                "phone_number": data.head_teacher_phone,
                "is_active": False,
                "is_verified": False,
                "verification_status": VerificationStatus.PENDING,
            },
        )
        SchoolRepository(self.db).create(
            School(
                id=user.id,
                **data.model_dump(exclude={"email", "password"}),
                approval_status=VerificationStatus.PENDING,
                is_verified=False,
            )
        )
        self.db.commit()

        logger.info(
            "School registered",
            extra={
                "event": "onboarding.school.registered",
                "user_id": user.id,
                "email": mask_email(data.email),
            },
        )
        return OperationResult.ok(user_id=user.id, approval_status="pending")

    @operation("enroll_staff_user")
    def enroll_staff_user(self, data: StaffEnrollment, session: SessionContext) -> OperationResult:
        actor = self._require_actor(session, UserRole.ADMIN)
        role = UserRole(data.role)

        try:
            user = self.identity.create_confirmed_user(
                data.email, data.password, {"role": role.value, "full_name": data.full_name}
            )
        except IdentityError as e:
            raise UpstreamFailure(str(e)) from e

        self._upsert_profile(
            user.id,
            role,
            {
                "email": data.email,
                "full_name": data.full_name,
                "phone_number": data.phone_number,
                "is_active": True,
                "is_verified": True,
                "verification_status": VerificationStatus.APPROVED,
                "verified_by": actor.id,
                "verified_at": utcnow(),
                "created_by": actor.id,
            },
        )
        self.db.commit()

        logger.info(
            "Staff user enrolled",
            extra={
                "event": "onboarding.staff.enrolled",
                "user_id": user.id,
                "role": role.value,
            },
        )
        return OperationResult.ok(user_id=user.id, role=role.value)

    @operation("set_user_active")
    def set_user_active(
        self, user_id: str, is_active: bool, session: SessionContext
    ) -> OperationResult:
        actor = self._require_actor(session, UserRole.ADMIN)
        if user_id == actor.id and not is_active:
            raise ValidationFailed("You cannot deactivate your own account")

        if self.profiles.get_by_id(user_id) is None:
            raise not_found("User")

        self.profiles.update_fields(user_id, {"is_active": is_active, "updated_at": utcnow()})
        self.db.commit()

        logger.info(
            "User activation changed",
            extra={
                "event": "onboarding.user.activation",
                "user_id": user_id,
                "is_active": is_active,
            },
        )
        return OperationResult.ok(user_id=user_id, is_active=is_active)

    @operation("list_users")
    def list_users(self, session: SessionContext, role: Optional[str] = None) -> OperationResult:
        self._require_actor(session, UserRole.ADMIN)
        if role is not None and role not in {r.value for r in UserRole}:
            raise ValidationFailed(f"Unknown role: {role!r}")

        roles = [UserRole(role)] if role else list(UserRole)
        users = [p for r in roles for p in self.profiles.list_by_role(r)]

        return OperationResult.ok(
            users=[ProfileOut.model_validate(p).model_dump(mode="json") for p in users]
        )
