"""School self-service settings.

A school may edit its own details and head teacher contact. Approval
fields (approval_status, is_verified, verified_by, rejection_reason) are
owned by the verification workflow and never written here.
"""

import logging
from typing import Any, Optional

from bhub_api.approvals.base import OrchestratorBase, not_found
from bhub_api.approvals.errors import PartialUpdate, Unauthorized, ValidationFailed
from bhub_api.approvals.results import OperationResult, operation
from bhub_api.auth.identity import SessionContext
from bhub_api.db.models import Profile, School, UserRole, utcnow
from bhub_api.db.repo_profiles import SchoolRepository
from bhub_api.schemas import HeadTeacherProfileUpdate, SchoolInformationUpdate, SchoolOut

logger = logging.getLogger(__name__)

# Columns that cannot be cleared with an explicit null
_NON_NULLABLE = frozenset(
    {
        "school_name",
        "total_students",
        "total_teachers",
        "has_electricity",
        "has_running_water",
        "has_library",
    }
)


class SchoolSettingsWorkflow(OrchestratorBase):

    @property
    def schools(self) -> SchoolRepository:
        return SchoolRepository(self.db)

    def _load_own_school(
        self, school_id: Optional[str], session: SessionContext
    ) -> tuple[Profile, School]:
        """None means the caller's own school."""
        actor = self._require_actor(session, UserRole.SCHOOL)
        if school_id is not None and actor.id != school_id:
            raise Unauthorized("Schools can only manage their own settings")
        school = self.schools.get_by_id(actor.id)
        if school is None:
            raise not_found("School")
        return actor, school

    @operation("get_school_settings")
    def get_school_settings(
        self, school_id: Optional[str], session: SessionContext
    ) -> OperationResult:
        _, school = self._load_own_school(school_id, session)
        return OperationResult.ok(school=SchoolOut.model_validate(school).model_dump(mode="json"))

    @operation("update_school_information")
    def update_school_information(
        self, school_id: Optional[str], data: SchoolInformationUpdate, session: SessionContext
    ) -> OperationResult:
        _, school = self._load_own_school(school_id, session)

        updates: dict[str, Any] = data.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationFailed("No school fields to update")
        cleared = sorted(k for k, v in updates.items() if v is None and k in _NON_NULLABLE)
        if cleared:
            raise ValidationFailed(f"Cannot clear required fields: {', '.join(cleared)}")

        updates["updated_at"] = utcnow()
        self.schools.update_fields(school.id, updates)
        self.db.commit()

        logger.info(
            "School information updated",
            extra={
                "event": "school.settings.updated",
                "school_id": school.id,
                "fields": sorted(k for k in updates if k != "updated_at"),
            },
        )
        return OperationResult.ok(school_id=school.id)

    @operation("update_head_teacher_profile")
    def update_head_teacher_profile(
        self, school_id: Optional[str], data: HeadTeacherProfileUpdate, session: SessionContext
    ) -> OperationResult:
        """Write the account display name and the school's head teacher contact together.

        Raises:
            PartialUpdate: the profile row could not be written; nothing is saved
        """
        _, school = self._load_own_school(school_id, session)

        now = utcnow()
        self.schools.update_fields(
            school.id,
            {
                "head_teacher_name": data.head_teacher_name,
                "head_teacher_email": str(data.head_teacher_email),
                "head_teacher_phone": data.head_teacher_phone,
                "updated_at": now,
            },
        )
        rows = self.profiles.update_fields(
            school.id,
            {"full_name": data.full_name, "updated_at": now},
            conditions={"role": UserRole.SCHOOL},
        )
        if rows != 1:
            self.db.rollback()
            logger.error(
                f"Head teacher profile not saved: profile write matched {rows} rows",
                extra={"event": "school.head_teacher.partial_update", "school_id": school.id},
            )
            raise PartialUpdate(
                "Head teacher details could not be saved to the user profile; "
                "no changes were saved"
            )
        self.db.commit()

        logger.info(
            "Head teacher profile updated",
            extra={"event": "school.head_teacher.updated", "school_id": school.id},
        )
        return OperationResult.ok(school_id=school.id)
