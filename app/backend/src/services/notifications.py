"""Outbound user notifications.

Email delivery is an external collaborator; the default notifier records the
message in the structured log instead of sending it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import structlog

from app.backend.src.services.metrics import notification_failures_total

LOGGER = structlog.get_logger(__name__)


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    body: str
    kind: str


class Notifier(Protocol):
    def send(self, message: EmailMessage) -> None:
        """Deliver ``message`` or raise."""


class LoggingNotifier:
    """Log that an email would have been sent."""

    def send(self, message: EmailMessage) -> None:
        LOGGER.info(
            "email_dispatched",
            kind=message.kind,
            recipient=message.to,
            subject=message.subject,
        )


def welcome_email(email: str, *, full_name: str, temporary_password: str, login_url: str) -> EmailMessage:
    body = (
        f"Hello {full_name},\n\n"
        "Welcome to the Cash Call Management System!\n\n"
        "Your account has been approved and created.\n\n"
        "Login Credentials:\n"
        f"Email: {email}\n"
        f"Temporary Password: {temporary_password}\n\n"
        "Please change your password after first login.\n\n"
        f"Login at: {login_url}\n"
    )
    return EmailMessage(
        to=email,
        subject="Account Created - Cash Call Management System",
        body=body,
        kind="welcome",
    )


def rejection_email(email: str, *, reason: str, notes: str | None = None) -> EmailMessage:
    body = (
        "Your request for access to the Cash Call Management System was not approved.\n\n"
        f"Reason: {reason}\n"
    )
    if notes:
        body += f"\nAdditional notes: {notes}\n"
    return EmailMessage(
        to=email,
        subject="Account Request Update - Cash Call Management System",
        body=body,
        kind="rejection",
    )


def information_request_email(email: str, *, message: str) -> EmailMessage:
    body = (
        "We need more information to review your request for access to the "
        "Cash Call Management System.\n\n"
        f"{message}\n"
    )
    return EmailMessage(
        to=email,
        subject="Additional Information Required - Cash Call Management System",
        body=body,
        kind="information_request",
    )


def dispatch(notifier: Notifier | None, message: EmailMessage) -> bool:
    """Send ``message``; failures are logged and reported as ``False``."""

    if notifier is None:
        return False
    try:
        notifier.send(message)
    except Exception as exc:
        notification_failures_total.labels(kind=message.kind).inc()
        LOGGER.warning(
            "email_dispatch_failed",
            kind=message.kind,
            recipient=message.to,
            error=str(exc),
        )
        return False
    return True


__all__ = [
    "EmailMessage",
    "LoggingNotifier",
    "Notifier",
    "dispatch",
    "information_request_email",
    "rejection_email",
    "welcome_email",
]
