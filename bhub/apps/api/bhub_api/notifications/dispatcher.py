"""Email dispatchers.

Dispatcher selection (get_default_dispatcher):
  BHUB_EMAIL_ENABLED=false -> LogOnlyDispatcher (nothing leaves the process)
  otherwise                -> SesEmailDispatcher (AWS SES via boto3)

EMAIL_TEST_RECIPIENT (demo mode) redirects every message to one inbox;
the original recipient is kept on the message and prefixed into the body.

Test helpers:
  FailingDispatcher -> always raises RuntimeError
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Optional, Protocol, runtime_checkable

from bhub_api.config.env import (
    assert_no_custom_endpoint_in_prod,
    get_aws_region,
    get_email_from,
    get_email_from_name,
    get_email_test_recipient,
    is_email_enabled,
)
from bhub_api.utils.sanitize import mask_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    text: str
    original_recipient: Optional[str] = None


def apply_test_recipient(message: EmailMessage) -> EmailMessage:
    """Redirect the message to EMAIL_TEST_RECIPIENT when demo mode is on."""
    test_recipient = get_email_test_recipient()
    if not test_recipient or test_recipient == message.to:
        return message

    return replace(
        message,
        to=test_recipient,
        text=f"[DEMO MODE - Originally for: {message.to}]\n\n{message.text}",
        original_recipient=message.to,
    )


@runtime_checkable
class EmailDispatcher(Protocol):
    """Minimal interface for all email dispatchers."""

    def send_email(self, message: EmailMessage) -> None:
        """Deliver one message.

        Raises:
            RuntimeError: If delivery fails
        """
        ...


class SesEmailDispatcher:
    """Send email through AWS SES (SendEmail, plain-text body)."""

    def __init__(
        self,
        sender: Optional[str] = None,
        sender_name: Optional[str] = None,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ) -> None:
        self._sender = sender or get_email_from()
        self._sender_name = sender_name or get_email_from_name()

        if client is not None:
            self._client = client
            return

        import boto3

        endpoint = endpoint_url or os.getenv("SES_ENDPOINT_URL")
        assert_no_custom_endpoint_in_prod(endpoint, "ses")
        self._client = boto3.client(
            "ses",
            region_name=region or get_aws_region(),
            endpoint_url=endpoint,
        )

    def send_email(self, message: EmailMessage) -> None:
        message = apply_test_recipient(message)
        try:
            response = self._client.send_email(
                Source=f"{self._sender_name} <{self._sender}>",
                Destination={"ToAddresses": [message.to]},
                Message={
                    "Subject": {"Data": message.subject, "Charset": "UTF-8"},
                    "Body": {"Text": {"Data": message.text, "Charset": "UTF-8"}},
                },
            )
        except Exception as exc:
            logger.error(
                "EMAIL_SEND_FAILED",
                extra={"to": mask_email(message.to), "error": type(exc).__name__},
            )
            raise RuntimeError(f"SES send failed: {exc}") from exc

        logger.info(
            "EMAIL_SENT",
            extra={
                "to": mask_email(message.to),
                "subject": message.subject,
                "message_id": response.get("MessageId"),
                "demo_redirect": message.original_recipient is not None,
            },
        )


class LogOnlyDispatcher:
    """Email disabled: log what would have been sent."""

    def send_email(self, message: EmailMessage) -> None:
        message = apply_test_recipient(message)
        logger.info(
            "EMAIL_DISABLED_WOULD_SEND",
            extra={"to": mask_email(message.to), "subject": message.subject},
        )


class FailingDispatcher:
    """Always raises RuntimeError. Used in tests to simulate delivery failure."""

    def send_email(self, message: EmailMessage) -> None:
        raise RuntimeError("FailingDispatcher: intentional failure for testing")


def get_default_dispatcher() -> EmailDispatcher:
    """Return the dispatcher for the current environment."""
    if not is_email_enabled():
        logger.info("EMAIL_DISPATCHER_LOG_ONLY")
        return LogOnlyDispatcher()

    logger.info("EMAIL_DISPATCHER_SES")
    return SesEmailDispatcher()
