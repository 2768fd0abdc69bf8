"""Resource applications: school-owned drafts, submission and admin review."""

import logging
from typing import Any, Optional

from bhub_api.approvals.base import OrchestratorBase, not_found
from bhub_api.approvals.errors import InvalidState, ValidationFailed
from bhub_api.approvals.results import OperationResult, operation
from bhub_api.approvals.state_machine import APPLICATION_EDITABLE, can_review_application
from bhub_api.auth.identity import SessionContext
from bhub_api.db.models import (
    ApplicationStatus,
    Profile,
    ResourceApplication,
    UserRole,
    utcnow,
)
from bhub_api.db.repo_applications import ApplicationRepository
from bhub_api.schemas import ApplicationCreate, ApplicationOut, ApplicationUpdate

logger = logging.getLogger(__name__)

REVIEW_DECISIONS = frozenset(
    {ApplicationStatus.UNDER_REVIEW, ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}
)


class ApplicationWorkflow(OrchestratorBase):

    @property
    def applications(self) -> ApplicationRepository:
        return ApplicationRepository(self.db)

    def _load_owned(self, application_id: str, actor: Profile) -> ResourceApplication:
        # Another school's application is reported as missing
        app = self.applications.get_by_id(application_id)
        if app is None or app.school_id != actor.id:
            raise not_found("Application")
        return app

    @operation("create_application")
    def create_application(
        self, data: ApplicationCreate, session: SessionContext, submit: bool = False
    ) -> OperationResult:
        actor = self._require_actor(session, UserRole.SCHOOL)

        now = utcnow()
        fields: dict[str, Any] = data.model_dump(mode="json")
        fields["needed_by_date"] = data.needed_by_date
        app = self.applications.create(
            ResourceApplication(
                school_id=actor.id,
                status=ApplicationStatus.SUBMITTED if submit else ApplicationStatus.DRAFT,
                submitted_at=now if submit else None,
                **fields,
            )
        )
        self.db.commit()

        logger.info(
            "Application created",
            extra={
                "event": "application.created",
                "application_id": app.id,
                "submitted": submit,
            },
        )
        return OperationResult.ok(application_id=app.id, status=app.status.value)

    @operation("update_application")
    def update_application(
        self,
        application_id: str,
        data: ApplicationUpdate,
        session: SessionContext,
        submit: bool = False,
    ) -> OperationResult:
        actor = self._require_actor(session, UserRole.SCHOOL)
        app = self._load_owned(application_id, actor)

        if app.status not in APPLICATION_EDITABLE:
            raise InvalidState(
                f"Application is {ApplicationStatus(app.status).value}; "
                "only draft or rejected applications can be edited"
            )

        updates: dict[str, Any] = data.model_dump(mode="json", exclude_unset=True)
        if "needed_by_date" in updates:
            updates["needed_by_date"] = data.needed_by_date
        now = utcnow()
        updates["updated_at"] = now
        if submit:
            updates["status"] = ApplicationStatus.SUBMITTED
            updates["submitted_at"] = now

        rows = self.applications.update_fields(
            application_id,
            updates,
            conditions={"school_id": actor.id, "status": APPLICATION_EDITABLE},
        )
        if rows != 1:
            raise InvalidState("Application was modified concurrently; reload and try again")
        self.db.commit()

        status = ApplicationStatus.SUBMITTED if submit else ApplicationStatus(app.status)
        logger.info(
            "Application updated",
            extra={"event": "application.updated", "application_id": application_id},
        )
        return OperationResult.ok(application_id=application_id, status=status.value)

    @operation("delete_application")
    def delete_application(self, application_id: str, session: SessionContext) -> OperationResult:
        actor = self._require_actor(session, UserRole.SCHOOL)
        app = self._load_owned(application_id, actor)

        if app.status != ApplicationStatus.DRAFT:
            raise InvalidState("Only draft applications can be deleted")

        rows = self.applications.delete_where(
            application_id, {"school_id": actor.id, "status": ApplicationStatus.DRAFT}
        )
        if rows != 1:
            raise InvalidState("Application was modified concurrently; reload and try again")
        self.db.commit()

        logger.info(
            "Application deleted",
            extra={"event": "application.deleted", "application_id": application_id},
        )
        return OperationResult.ok(application_id=application_id)

    @operation("list_applications")
    def list_applications(self, session: SessionContext) -> OperationResult:
        actor = self._require_actor(session, UserRole.SCHOOL)
        apps = self.applications.list_by_school(actor.id)
        return OperationResult.ok(
            applications=[ApplicationOut.model_validate(a).model_dump(mode="json") for a in apps]
        )

    @operation("get_application")
    def get_application(self, application_id: str, session: SessionContext) -> OperationResult:
        actor = self._require_actor(session, UserRole.SCHOOL, UserRole.ADMIN)
        if actor.role == UserRole.ADMIN:
            app = self.applications.get_by_id(application_id)
            if app is None:
                raise not_found("Application")
        else:
            app = self._load_owned(application_id, actor)
        return OperationResult.ok(
            application=ApplicationOut.model_validate(app).model_dump(mode="json")
        )

    @operation("list_applications_for_review")
    def list_applications_for_review(self, session: SessionContext) -> OperationResult:
        self._require_actor(session, UserRole.ADMIN)
        apps = self.applications.list_by_status(
            [ApplicationStatus.SUBMITTED, ApplicationStatus.UNDER_REVIEW]
        )
        return OperationResult.ok(
            applications=[ApplicationOut.model_validate(a).model_dump(mode="json") for a in apps]
        )

    @operation("review_application")
    def review_application(
        self,
        application_id: str,
        decision: str,
        session: SessionContext,
        notes: Optional[str] = None,
    ) -> OperationResult:
        actor = self._require_actor(session, UserRole.ADMIN)
        try:
            target = ApplicationStatus(decision)
        except ValueError:
            target = None
        if target not in REVIEW_DECISIONS:
            raise ValidationFailed(f"Unknown review decision: {decision!r}")

        app = self.applications.get_by_id(application_id)
        if app is None:
            raise not_found("Application")

        current = ApplicationStatus(app.status)
        if not can_review_application(current, target):
            raise InvalidState(f"Application is {current.value}; cannot move to {target.value}")

        now = utcnow()
        rows = self.applications.update_fields(
            application_id,
            {
                "status": target,
                "reviewed_by": actor.id,
                "reviewed_at": now,
                "review_notes": notes,
                "updated_at": now,
            },
            conditions={"status": current},
        )
        if rows != 1:
            raise InvalidState("Application was modified concurrently; reload and try again")
        self.db.commit()

        logger.info(
            "Application reviewed",
            extra={
                "event": "application.reviewed",
                "application_id": application_id,
                "decision": target.value,
            },
        )
        return OperationResult.ok(application_id=application_id, status=target.value)
