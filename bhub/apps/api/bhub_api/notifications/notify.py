"""Fire-and-forget notification wrappers.

Approval state changes are committed before any of these run; a delivery
failure is logged and never undoes or fails the operation.
"""

import logging
from typing import Callable, Optional

from bhub_api.notifications import templates
from bhub_api.notifications.dispatcher import EmailDispatcher, EmailMessage
from bhub_api.utils.sanitize import mask_email

logger = logging.getLogger(__name__)


def _deliver(
    dispatcher: EmailDispatcher,
    to: Optional[str],
    build: Callable[[], tuple[str, str]],
    event: str,
) -> bool:
    if not to:
        logger.warning(
            "Notification skipped: no recipient address",
            extra={"event": f"{event}.skipped"},
        )
        return False

    try:
        subject, text = build()
        dispatcher.send_email(EmailMessage(to=to, subject=subject, text=text))
    except Exception as e:
        logger.warning(
            f"Notification failed: {type(e).__name__}",
            extra={"event": f"{event}.failed", "to": mask_email(to)},
            exc_info=True,
        )
        return False

    logger.info("Notification sent", extra={"event": event, "to": mask_email(to)})
    return True


def notify_donation_approved(
    dispatcher: EmailDispatcher, to: Optional[str], donor_name: str, title: str
) -> bool:
    return _deliver(
        dispatcher, to,
        lambda: templates.donation_approved(donor_name, title),
        "notify.donation.approved",
    )


def notify_donation_screened(
    dispatcher: EmailDispatcher, to: Optional[str], donor_name: str, title: str
) -> bool:
    return _deliver(
        dispatcher, to,
        lambda: templates.donation_screened(donor_name, title),
        "notify.donation.screened",
    )


def notify_donation_rejected(
    dispatcher: EmailDispatcher, to: Optional[str], donor_name: str, title: str, reason: str
) -> bool:
    return _deliver(
        dispatcher, to,
        lambda: templates.donation_rejected(donor_name, title, reason),
        "notify.donation.rejected",
    )


def notify_donor_approved(
    dispatcher: EmailDispatcher, to: Optional[str], donor_name: str
) -> bool:
    return _deliver(
        dispatcher, to, lambda: templates.donor_approved(donor_name), "notify.donor.approved"
    )


def notify_donor_rejected(
    dispatcher: EmailDispatcher, to: Optional[str], donor_name: str, reason: str
) -> bool:
    return _deliver(
        dispatcher, to,
        lambda: templates.donor_rejected(donor_name, reason),
        "notify.donor.rejected",
    )


def notify_school_approved(
    dispatcher: EmailDispatcher, to: Optional[str], school_name: str
) -> bool:
    return _deliver(
        dispatcher, to, lambda: templates.school_approved(school_name), "notify.school.approved"
    )


def notify_school_rejected(
    dispatcher: EmailDispatcher, to: Optional[str], school_name: str, reason: str
) -> bool:
    return _deliver(
        dispatcher, to,
        lambda: templates.school_rejected(school_name, reason),
        "notify.school.rejected",
    )


def notify_donation_allocated(
    dispatcher: EmailDispatcher, to: Optional[str], school_name: str, title: str, match_score: float
) -> bool:
    return _deliver(
        dispatcher, to,
        lambda: templates.donation_allocated(school_name, title, match_score),
        "notify.donation.allocated",
    )
