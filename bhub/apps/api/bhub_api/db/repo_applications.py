"""Resource application repository."""

from typing import Any, Iterable, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from bhub_api.db._conditions import build_conditions
from bhub_api.db.models import ApplicationStatus, ResourceApplication


class ApplicationRepository:
    """Data access for resource applications."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, application_id: str) -> Optional[ResourceApplication]:
        return self.db.get(ResourceApplication, application_id, populate_existing=True)

    def create(self, application: ResourceApplication) -> ResourceApplication:
        self.db.add(application)
        self.db.flush()
        return application

    def update_fields(
        self,
        application_id: str,
        updates: dict[str, Any],
        conditions: Optional[dict[str, Any]] = None,
    ) -> int:
        """Update one application when its current row matches conditions."""
        stmt = (
            update(ResourceApplication)
            .where(
                ResourceApplication.id == application_id,
                *build_conditions(ResourceApplication, conditions or {}),
            )
            .values(**updates)
            .execution_options(synchronize_session="fetch")
        )
        return self.db.execute(stmt).rowcount

    def delete_where(self, application_id: str, conditions: dict[str, Any]) -> int:
        stmt = (
            delete(ResourceApplication)
            .where(
                ResourceApplication.id == application_id,
                *build_conditions(ResourceApplication, conditions),
            )
            .execution_options(synchronize_session="fetch")
        )
        return self.db.execute(stmt).rowcount

    def list_by_school(self, school_id: str) -> list[ResourceApplication]:
        stmt = (
            select(ResourceApplication)
            .where(ResourceApplication.school_id == school_id)
            .order_by(ResourceApplication.created_at.desc())
        )
        return list(self.db.scalars(stmt))

    def list_by_status(self, statuses: Iterable[ApplicationStatus]) -> list[ResourceApplication]:
        stmt = (
            select(ResourceApplication)
            .where(ResourceApplication.status.in_(list(statuses)))
            .order_by(ResourceApplication.created_at.asc())
        )
        return list(self.db.scalars(stmt))
