"""Lightweight SMTP/Mailgun helper for moderation emails."""
from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Any, Callable
from uuid import UUID

import requests
from sqlalchemy.orm import Session

from ..config import get_settings
from ..models import EmailLog, User
from ..security.secrets import MissingSecretError, is_placeholder, require_secret

logger = logging.getLogger(__name__)


class EmailDeliveryError(RuntimeError):
    """Raised when no configured transport can deliver a message."""


def _resolve_secret(name: str) -> str:
    try:
        return require_secret(name)
    except MissingSecretError as exc:
        raise EmailDeliveryError(str(exc)) from exc


def _send_via_smtp(to_address: str, subject: str, body: str) -> None:
    settings = get_settings()
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = settings.email_from_address
    message["To"] = to_address
    message.set_content(body)

    username = (settings.email_username or "").strip()

    try:
        with smtplib.SMTP(settings.email_host, settings.email_port, timeout=20) as smtp:
            if settings.email_use_tls:
                smtp.starttls()
            if username:
                smtp.login(username, _resolve_secret("EMAIL_PASSWORD"))
            smtp.send_message(message)
    except EmailDeliveryError:
        raise
    except Exception as exc:  # pragma: no cover - network interactions
        logger.exception("SMTP delivery failed for %s", to_address)
        raise EmailDeliveryError(str(exc)) from exc


def _send_via_mailgun(to_address: str, subject: str, body: str) -> None:
    settings = get_settings()
    api_key = _resolve_secret("MAILGUN_API_KEY")

    url = f"https://api.mailgun.net/v3/{settings.mailgun_domain}/messages"
    try:
        response = requests.post(
            url,
            auth=("api", api_key),
            data={
                "from": settings.email_from_address,
                "to": to_address,
                "subject": subject,
                "text": body,
            },
            timeout=20,
        )
    except requests.RequestException as exc:  # pragma: no cover - network interactions
        logger.exception("Mailgun request failed for %s", to_address)
        raise EmailDeliveryError(str(exc)) from exc

    if response.status_code >= 400:
        logger.error("Mailgun returned %s: %s", response.status_code, response.text)
        raise EmailDeliveryError(f"Mailgun delivery failed with status {response.status_code}")


Transport = Callable[[str, str, str], None]


def _configured_transports() -> list[tuple[str, Transport]]:
    """Return the usable transports in delivery order: SMTP first, then Mailgun."""

    settings = get_settings()
    if not settings.email_from_address:
        return []

    transports: list[tuple[str, Transport]] = []
    if settings.email_host:
        transports.append(("SMTP", _send_via_smtp))
    api_key = settings.mailgun_api_key
    if settings.mailgun_domain and api_key and not is_placeholder(api_key):
        transports.append(("Mailgun", _send_via_mailgun))
    return transports


def email_delivery_enabled() -> bool:
    return bool(_configured_transports())


def send_email(to_address: str, subject: str, body: str) -> bool:
    """Send a plaintext email through the first transport that accepts it.

    Returns ``True`` once a transport took the message. Raises
    ``EmailDeliveryError`` for an incomplete payload, when nothing is
    configured, or when the last transport fails.
    """

    if not to_address or not subject or not body:
        raise EmailDeliveryError("Email payload is incomplete")

    transports = _configured_transports()
    if not transports:
        raise EmailDeliveryError(
            "Email delivery is not configured. Provide SMTP settings or Mailgun credentials."
        )

    for position, (name, deliver) in enumerate(transports, start=1):
        try:
            deliver(to_address, subject, body)
            return True
        except EmailDeliveryError as exc:
            if position == len(transports):
                raise
            logger.warning("%s delivery failed, falling back: %s", name, exc)

    raise EmailDeliveryError("All email transports failed")


# ─── Templates ───


def _base_url() -> str:
    return get_settings().public_base_url.rstrip("/")


def moderation_approved_email(post_title: str, post_slug: str | None) -> tuple[str, str]:
    body = (
        f'Your post "{post_title}" was reviewed by our moderators and approved. Everyone can see it now.\n\n'
        f"View it here: {_base_url()}/post/{post_slug or ''}"
    )
    return "Your post was approved", body


def moderation_rejected_email(post_title: str, reason: str | None, decision_code: str) -> tuple[str, str]:
    body = (
        f'Your post "{post_title}" was reviewed by our moderators and removed.\n\n'
        f"Decision No: #{decision_code}\n"
        f"Reason: {reason or 'Not specified'}\n\n"
        f"Quote the decision number to appeal: {_base_url()}/help"
    )
    return "Your post was removed", body


def account_moderation_email(username: str) -> tuple[str, str]:
    body = (
        f"Dear @{username}, your account has been placed under review under our community guidelines.\n"
        "Access to your account is limited while the review is in progress.\n\n"
        f"Get help: {_base_url()}/help"
    )
    return "Your account is under review", body


def withdrawal_status_email(status: str, amount: int, reason: str | None = None) -> tuple[str, str]:
    if status == "completed":
        subject = "Your withdrawal was completed"
        body = f"Your withdrawal request for {amount} coins has been approved and paid out."
    else:
        subject = "Your withdrawal was rejected"
        body = f"Your withdrawal request for {amount} coins was rejected and the coins were returned to your wallet."
        if reason:
            body += f"\nReason: {reason}"
    return subject, f"{body}\n\nOpen your wallet: {_base_url()}/dashboard/coins"


EMAIL_TEMPLATES: dict[str, Callable[..., tuple[str, str]]] = {
    "moderation_approved": moderation_approved_email,
    "moderation_rejected": moderation_rejected_email,
    "account_moderation": account_moderation_email,
    "withdrawal_status": withdrawal_status_email,
}

# Templates gated by the account's moderation email preference.
_MODERATION_TEMPLATES = {"moderation_approved", "moderation_rejected", "account_moderation"}


def get_email_if_enabled(db: Session, user_id: UUID, template: str) -> str | None:
    """Return the account's address when it accepts ``template`` emails, else ``None``."""

    user = db.get(User, user_id)
    if user is None or not user.email:
        return None
    if template in _MODERATION_TEMPLATES and not user.email_moderation:
        return None
    return str(user.email)


def send_template_email(db: Session, *, user_id: UUID, template: str, template_args: dict[str, Any]) -> bool:
    """Render ``template`` and deliver it to ``user_id`` when their preferences allow.

    Every attempt that reaches a transport is recorded in ``email_logs``.
    """

    renderer = EMAIL_TEMPLATES.get(template)
    if renderer is None:
        raise ValueError(f"Unknown email template: {template}")

    address = get_email_if_enabled(db, user_id, template)
    if address is None:
        return False

    subject, body = renderer(**template_args)
    if not email_delivery_enabled():
        logger.debug("Email delivery disabled; skipping %s for %s", template, user_id)
        _record_email(db, user_id, address, template, subject, "skipped")
        return False

    try:
        delivered = send_email(address, subject, body)
    except EmailDeliveryError:
        _record_email(db, user_id, address, template, subject, "failed")
        raise

    _record_email(db, user_id, address, template, subject, "sent" if delivered else "failed")
    return delivered


def _record_email(db: Session, user_id: UUID, address: str, template: str, subject: str, status: str) -> None:
    db.add(EmailLog(user_id=user_id, email_to=address, template=template, subject=subject, status=status))
    db.commit()


__all__ = [
    "EMAIL_TEMPLATES",
    "EmailDeliveryError",
    "email_delivery_enabled",
    "get_email_if_enabled",
    "send_email",
    "send_template_email",
]
