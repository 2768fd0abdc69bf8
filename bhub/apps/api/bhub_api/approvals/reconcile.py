"""Verification mirror reconciliation.

Donor and school records are the source of truth for verification; the
profile mirrors verification_status and is_verified. This job reports
profiles that disagree and, with repair=True, rewrites them from the role
record.

Profile.is_active is not compared: admins toggle it independently with
set_user_active. A repair resets it only when the verification status
itself drifted, i.e. the approve/reject decision never reached the profile.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy.orm import Session

from bhub_api.db.models import VerificationStatus, utcnow
from bhub_api.db.repo_profiles import DonorRepository, ProfileRepository, SchoolRepository

logger = logging.getLogger(__name__)


@dataclass
class MirrorDrift:
    user_id: str
    entity: str  # "donor" | "school"
    expected_status: str
    profile_status: Optional[str]
    profile_verified: Optional[bool]
    missing_profile: bool = False


@dataclass
class ReconcileReport:
    checked: int = 0
    drifted: list[MirrorDrift] = field(default_factory=list)
    repaired: int = 0

    @property
    def clean(self) -> bool:
        return not self.drifted


def reconcile_verification_mirrors(db: Session, repair: bool = False) -> ReconcileReport:
    """Compare every donor/school record with its profile mirror.

    Args:
        db: Database session
        repair: Rewrite drifted profiles from the role record and commit

    Returns:
        ReconcileReport listing every drifted profile
    """
    profiles = ProfileRepository(db)
    report = ReconcileReport()

    records = [
        ("donor", d.id, VerificationStatus(d.verification_status), bool(d.is_verified))
        for d in DonorRepository(db).list_all()
    ] + [
        ("school", s.id, VerificationStatus(s.approval_status), bool(s.is_verified))
        for s in SchoolRepository(db).list_all()
    ]

    for entity, user_id, status, verified in records:
        report.checked += 1
        profile = profiles.get_by_id(user_id)

        if profile is None:
            report.drifted.append(
                MirrorDrift(user_id, entity, status.value, None, None, missing_profile=True)
            )
            continue

        status_drift = profile.verification_status != status
        if not status_drift and bool(profile.is_verified) == verified:
            continue

        report.drifted.append(
            MirrorDrift(
                user_id,
                entity,
                status.value,
                VerificationStatus(profile.verification_status).value
                if profile.verification_status
                else None,
                bool(profile.is_verified),
            )
        )

        if repair:
            updates: dict[str, Any] = {"verification_status": status, "is_verified": verified}
            # is_active follows the decision only when the decision itself was lost
            if status_drift:
                updates["is_active"] = status == VerificationStatus.APPROVED
            updates["updated_at"] = utcnow()
            report.repaired += profiles.update_fields(user_id, updates)

    if repair:
        db.commit()

    for drift in report.drifted:
        logger.warning(
            "Verification mirror drift",
            extra={
                "event": "reconcile.drift",
                "user_id": drift.user_id,
                "entity": drift.entity,
                "expected_status": drift.expected_status,
                "profile_status": drift.profile_status,
                "missing_profile": drift.missing_profile,
            },
        )
    logger.info(
        "Verification mirrors reconciled",
        extra={
            "event": "reconcile.completed",
            "checked": report.checked,
            "drifted": len(report.drifted),
            "repaired": report.repaired,
        },
    )
    return report
