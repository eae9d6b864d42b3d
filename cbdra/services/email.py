"""SMTP-backed delivery of verification, assignment and support emails."""
import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from html import escape
from typing import Optional

from starlette.concurrency import run_in_threadpool

from cbdra.core.config import settings

logger = logging.getLogger("cbdra.email")

BRAND = "CBDRA"
TAGLINE = "Community Based Disaster Response Application"
FOOTER = "This is an automated message from CDRA. Please do not reply to this email."


class EmailDeliveryError(Exception):
    """Raised when email dispatch fails."""


def _sender() -> str:
    return f'"{settings.MAIL_FROM_NAME}" <{settings.MAIL_FROM_EMAIL}>'


def _wrap_html(title: str, body_html: str) -> str:
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{escape(title)}</title></head>"
        "<body style=\"font-family: Arial, sans-serif; line-height: 1.6; color: #333; "
        "max-width: 600px; margin: 0 auto; padding: 20px;\">"
        "<div style=\"background: #667eea; padding: 30px; text-align: center; border-radius: 10px 10px 0 0;\">"
        f"<h1 style=\"color: white; margin: 0;\">{BRAND}</h1>"
        f"<p style=\"color: white; margin: 10px 0 0 0;\">{TAGLINE}</p></div>"
        "<div style=\"background: #f8f9fa; padding: 30px; border-radius: 0 0 10px 10px;\">"
        f"{body_html}"
        f"<p style=\"color: #6c757d; font-size: 12px; text-align: center;\">{FOOTER}</p>"
        "</div></body></html>"
    )


def build_message(to: str, subject: str, text_body: str, html_body: Optional[str] = None) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = _sender()
    msg["To"] = to
    msg["Subject"] = subject
    msg["Date"] = formatdate(localtime=False)
    msg["Message-ID"] = make_msgid(domain=settings.MAIL_FROM_EMAIL.split("@")[-1])
    msg.set_content(text_body)
    if html_body:
        msg.add_alternative(html_body, subtype="html")
    return msg


def _deliver(msg: EmailMessage) -> None:
    """Blocking SMTP hand-off; always called from the threadpool."""
    if settings.MAIL_SUPPRESS_SEND:
        logger.info(f"Mail suppressed: to={msg['To']}, subject={msg['Subject']}")
        return
    if not settings.MAIL_HOST:
        raise EmailDeliveryError("MAIL_HOST is not configured")
    try:
        if settings.MAIL_PORT == 465:
            with smtplib.SMTP_SSL(settings.MAIL_HOST, settings.MAIL_PORT, context=ssl.create_default_context()) as server:
                if settings.MAIL_USERNAME and settings.MAIL_PASSWORD:
                    server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
                server.send_message(msg)
        else:
            with smtplib.SMTP(settings.MAIL_HOST, settings.MAIL_PORT, timeout=30) as server:
                server.ehlo()
                if settings.MAIL_USE_TLS:
                    server.starttls(context=ssl.create_default_context())
                if settings.MAIL_USERNAME and settings.MAIL_PASSWORD:
                    server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
                server.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        raise EmailDeliveryError(str(exc)) from exc


async def send_email(to: str, subject: str, text_body: str, html_body: Optional[str] = None) -> None:
    msg = build_message(to, subject, text_body, html_body)
    await run_in_threadpool(_deliver, msg)


async def send_otp_email(email: str, otp: str, name: Optional[str] = None) -> None:
    """
    Send the email verification code.

    Raises EmailDeliveryError so the caller can roll the registration back.
    """
    greeting = f"Hello {name}," if name else "Hello,"
    text_body = (
        f"CDRA - Email Verification\n\n{greeting}\n\n"
        "Thank you for registering with CDRA. To complete your account setup, "
        "please verify your email address using the code below:\n\n"
        f"Verification Code: {otp}\n\n"
        f"This code expires in {settings.OTP_EXPIRE_MINUTES} minutes.\n\n"
        "If you didn't create an account with CDRA, please ignore this email.\n"
    )
    html_body = _wrap_html(
        "Email Verification",
        "<h2>Verify Your Email Address</h2>"
        f"<p>{escape(greeting)}</p>"
        "<p>Thank you for registering with CDRA. Please verify your email address using the code below:</p>"
        "<div style=\"background: white; border: 2px solid #667eea; border-radius: 8px; padding: 20px; text-align: center;\">"
        f"<div style=\"font-size: 32px; font-weight: bold; letter-spacing: 8px;\">{escape(otp)}</div>"
        f"<p>This code expires in {settings.OTP_EXPIRE_MINUTES} minutes</p></div>"
        "<p>If you didn't create an account with CDRA, please ignore this email.</p>",
    )
    try:
        await send_email(email, "Verify Your Email - CBDRA Account", text_body, html_body)
    except EmailDeliveryError:
        logger.error(f"Error sending OTP email: to={email}", exc_info=True)
        raise
    logger.info(f"OTP email sent: to={email}")


async def send_allocation_email(
    to_email: str,
    incident_title: str,
    incident_id: int,
    to_name: Optional[str] = None,
    allocation_note: Optional[str] = None,
) -> None:
    """
    Tell a responder an incident was assigned to them.

    Delivery is best effort: failures are logged and never raised.
    """
    greeting = f"Hello {to_name}," if to_name else "Hello,"
    note = f"Note: {allocation_note}\n\n" if allocation_note else ""
    text_body = (
        f"CBDRA - Incident Assignment\n\n{greeting}\n\n"
        "An incident has been assigned to you via CDRA:\n"
        f"- Incident: {incident_title}\n"
        f"- Reference ID: {incident_id}\n\n"
        f"{note}"
        "Please log in to your dashboard to review details and take action.\n"
    )
    note_html = f"<p><strong>Note:</strong> {escape(allocation_note)}</p>" if allocation_note else ""
    html_body = _wrap_html(
        "Incident Assignment",
        "<h2>Incident Assigned To You</h2>"
        f"<p>{escape(greeting)}</p>"
        "<p>An incident has been assigned to you via CDRA:</p>"
        f"<ul><li><strong>Incident:</strong> {escape(incident_title)}</li>"
        f"<li><strong>Reference ID:</strong> {incident_id}</li></ul>"
        f"{note_html}"
        "<p>Please log in to your dashboard to review details and take action.</p>",
    )
    try:
        await send_email(to_email, f"New Incident Assigned: {incident_title}", text_body, html_body)
        logger.info(f"Allocation email sent: to={to_email}, incident_id={incident_id}")
    except Exception:
        logger.error(f"Error sending allocation email: to={to_email}, incident_id={incident_id}", exc_info=True)


async def send_support_email(
    message: str,
    from_name: Optional[str] = None,
    from_email: Optional[str] = None,
    role: Optional[str] = None,
    user_id: Optional[int] = None,
) -> None:
    """
    Forward a help request to the support inbox.
    """
    details = [
        ("Name", from_name or "N/A"),
        ("Email", from_email or "N/A"),
        ("Role", role or "N/A"),
        ("User ID", str(user_id) if user_id is not None else "N/A"),
    ]
    text_body = "New Support Request\n\n" + "\n".join(f"{k}: {v}" for k, v in details)
    text_body += f"\n\nMessage:\n{message}"
    html_body = _wrap_html(
        "Support Request",
        "<h2>New Support Request</h2>"
        + "".join(f"<p><strong>{k}:</strong> {escape(v)}</p>" for k, v in details)
        + f"<p><strong>Message:</strong></p><div style=\"white-space: pre-wrap;\">{escape(message)}</div>",
    )
    subject = "CDRA Support Request" + (f" - {from_name}" if from_name else "")
    try:
        await send_email(settings.SUPPORT_EMAIL, subject, text_body, html_body)
    except EmailDeliveryError:
        logger.error("Error sending support email", exc_info=True)
        raise
    logger.info(f"Support email sent: to={settings.SUPPORT_EMAIL}")
