"""
Email delivery: configuration, message structure, template rendering
and SMTP sending.

This module provides:
- EmailMessage: validated email message dataclass.
- EmailConfig: SMTP configuration taken from settings.
- render_email: render a subject/body pair from the bundled templates.
- send_email / send_email_async: SMTP-based sending functions.

Senders return ``False`` instead of raising so a failed email never undoes
the state change that triggered it.
"""

import asyncio
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

from budget_hotel.config.settings import settings
from budget_hotel.core.exceptions import EmailServiceError
from budget_hotel.core.logging import get_logger
from budget_hotel.utils.datetime_utils import format_us_date

logger = get_logger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent.parent / "templates" / "email"


@dataclass
class EmailMessage:
    """Email message structure with validation."""
    subject: str
    to: List[str]
    body_text: Optional[str] = None
    body_html: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.subject.strip():
            raise EmailServiceError("Subject cannot be empty")
        if not self.to:
            raise EmailServiceError("At least one recipient is required")
        if not self.body_text and not self.body_html:
            raise EmailServiceError("Either body_text or body_html must be provided")


@dataclass
class EmailConfig:
    """SMTP configuration."""
    smtp_host: Optional[str]
    smtp_port: int
    username: Optional[str]
    password: Optional[str]
    use_tls: bool = True
    timeout: int = 15
    from_email: Optional[str] = None
    from_name: Optional[str] = None

    @classmethod
    def from_settings(cls) -> "EmailConfig":
        return cls(
            smtp_host=settings.SMTP_HOST,
            smtp_port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_TLS,
            timeout=settings.SMTP_TIMEOUT,
            from_email=settings.EMAIL_FROM_ADDRESS,
            from_name=settings.EMAIL_FROM_NAME,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)


@lru_cache()
def get_template_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_email(template_name: str, context: Dict[str, Any]) -> Tuple[str, str]:
    """
    Render ``<template_name>.subject.txt`` and ``<template_name>.html``.

    Returns:
        (subject, html body)
    """
    env = get_template_env()
    context = {"app_name": settings.APP_NAME, "currency": settings.CURRENCY, **context}
    subject = env.get_template(f"{template_name}.subject.txt").render(**context).strip()
    body = env.get_template(f"{template_name}.html").render(**context)
    return subject, body


def _deliver(message: EmailMessage, config: EmailConfig) -> None:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = message.subject
    sender = config.from_email or config.username
    msg["From"] = f"{config.from_name} <{sender}>" if config.from_name else sender
    msg["To"] = ", ".join(message.to)

    if message.body_text:
        msg.attach(MIMEText(message.body_text, "plain"))
    if message.body_html:
        msg.attach(MIMEText(message.body_html, "html"))

    with smtplib.SMTP(config.smtp_host, config.smtp_port, timeout=config.timeout) as server:
        if config.use_tls:
            server.starttls()
        if config.username and config.password:
            server.login(config.username, config.password)
        server.send_message(msg, to_addrs=message.to)


def send_email(message: EmailMessage, config: Optional[EmailConfig] = None) -> bool:
    """
    Send an email using SMTP.

    Returns:
        True when the SMTP server accepted the message
    """
    config = config or EmailConfig.from_settings()
    if not config.is_configured:
        logger.warning(
            "Email not sent: SMTP is not configured",
            extra={"subject": message.subject},
        )
        return False

    try:
        _deliver(message, config)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send email: {e}", extra={"subject": message.subject})
        return False

    logger.info(f"Email sent successfully to {len(message.to)} recipients")
    return True


async def send_email_async(message: EmailMessage, config: Optional[EmailConfig] = None) -> bool:
    """Send email without blocking the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, send_email, message, config)


def send_templated_email(to: str, template_name: str, context: Dict[str, Any]) -> bool:
    subject, body = render_email(template_name, context)
    return send_email(EmailMessage(subject=subject, to=[to], body_html=body))


# ----------------------------------------------------------------------
# Application emails
# ----------------------------------------------------------------------

def send_otp_email(to: str, full_name: str, code: str) -> bool:
    return send_templated_email(
        to,
        "otp_verification",
        {"full_name": full_name, "code": code, "expires_minutes": settings.OTP_EXPIRE_MINUTES},
    )


def send_password_reset_email(to: str, full_name: str, code: str) -> bool:
    return send_templated_email(
        to,
        "password_reset",
        {"full_name": full_name, "code": code, "expires_minutes": settings.OTP_EXPIRE_MINUTES},
    )


def send_booking_confirmation(booking) -> bool:
    """Confirmation for a paid booking; ``booking`` must have room and user loaded"""
    room_type = booking.room.room_type
    return send_templated_email(
        booking.user.email,
        "booking_confirmation",
        {
            "full_name": booking.user.full_name,
            "booking_id": booking.id,
            "hotel_name": room_type.hotel.name,
            "room_type": room_type.name,
            "room_number": booking.room.room_number,
            "check_in": format_us_date(booking.check_in_date),
            "check_out": format_us_date(booking.check_out_date),
            "nights": booking.nights,
            "total_price": f"{booking.total_price:.2f}",
            "transaction_id": booking.transaction_id,
            "qr_token": booking.qr_token,
        },
    )
