"""Plain-text email templates.

Each builder returns (subject, body). Bodies are signed with the sender
display name so demo deployments can rebrand through EMAIL_FROM_NAME.
"""

from bhub_api.config.env import get_email_from_name


def _sign(body: str) -> str:
    return f"{body}\n\n{get_email_from_name()}"


def donation_approved(donor_name: str, donation_title: str) -> tuple[str, str]:
    return (
        f"Donation Approved: {donation_title}",
        _sign(
            f"Dear {donor_name},\n\n"
            f'Your donation "{donation_title}" has been approved! '
            "It is now visible to schools in need.\n\n"
            "Thank you for your generosity!"
        ),
    )


def donation_screened(donor_name: str, donation_title: str) -> tuple[str, str]:
    return (
        f"Donation Under Final Review: {donation_title}",
        _sign(
            f"Dear {donor_name},\n\n"
            f'Your donation "{donation_title}" has passed initial screening '
            "and is awaiting final approval. We will let you know once it is approved."
        ),
    )


def donation_rejected(donor_name: str, donation_title: str, reason: str) -> tuple[str, str]:
    return (
        f"Donation Status Update: {donation_title}",
        _sign(
            f"Dear {donor_name},\n\n"
            f'Your donation "{donation_title}" could not be approved.\n\n'
            f"Reason: {reason}\n\n"
            "Please contact us if you have questions."
        ),
    )


def donor_approved(donor_name: str) -> tuple[str, str]:
    return (
        "Donor Registration Approved",
        _sign(
            f"Dear {donor_name},\n\n"
            "Your donor registration has been approved! Log in to start making donations.\n\n"
            "Thank you for making a difference!"
        ),
    )


def donor_rejected(donor_name: str, reason: str) -> tuple[str, str]:
    return (
        "Donor Registration Status Update",
        _sign(
            f"Dear {donor_name},\n\n"
            "Unfortunately, we are unable to approve your donor registration at this time.\n\n"
            f"Reason: {reason}\n\n"
            "Please contact us if you have questions."
        ),
    )


def school_approved(school_name: str) -> tuple[str, str]:
    return (
        "School Registration Approved",
        _sign(
            f"Dear {school_name},\n\n"
            "Your school registration has been approved! "
            "Log in to start submitting resource applications."
        ),
    )


def school_rejected(school_name: str, reason: str) -> tuple[str, str]:
    return (
        "School Registration Status Update",
        _sign(
            f"Dear {school_name},\n\n"
            "Unfortunately, we are unable to approve your school registration at this time.\n\n"
            f"Reason: {reason}\n\n"
            "Please contact us if you have questions."
        ),
    )


def donation_allocated(school_name: str, donation_title: str, match_score: float) -> tuple[str, str]:
    return (
        f"Donation Allocated: {donation_title}",
        _sign(
            f"Dear {school_name},\n\n"
            f"Great news! A donation has been allocated to your school: {donation_title}\n\n"
            f"Match Score: {round(match_score)}%\n\n"
            "The allocation is pending final approval. "
            "You will receive handover details once approved."
        ),
    )
