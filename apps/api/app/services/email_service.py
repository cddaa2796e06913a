"""Transactional email via the Resend API.

Every send is best-effort from the caller's point of view: functions return
``(success, error)`` and never raise for delivery problems.
"""

from __future__ import annotations

import html
import logging
import re
from urllib.parse import quote

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_TIMEOUT_SECONDS = 20.0


def _html_to_text(content: str) -> str:
    """Plain-text alternative for inbox previews."""
    text = re.sub(r"<(script|style)[^>]*>.*?</\1>", "", content, flags=re.DOTALL | re.I)
    text = re.sub(r"<br\s*/?>|</p>|</h\d>", "\n", text, flags=re.I)
    text = re.sub(r"<[^>]+>", " ", text)
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n\s*\n+", "\n\n", text).strip()
    return html.unescape(text)


async def send_email(to_email: str, subject: str, body_html: str) -> tuple[bool, str | None]:
    """
    Send one email.

    Returns:
        (success, error_message). Skipped sends (no RESEND_API_KEY) report failure.
    """
    if not settings.RESEND_API_KEY:
        logger.info("RESEND_API_KEY not set, skipping email: %s", subject)
        return False, "Email service not configured"

    payload: dict[str, object] = {
        "from": settings.FROM_EMAIL,
        "to": [to_email],
        "subject": subject,
        "html": body_html,
    }
    text = _html_to_text(body_html)
    if text:
        payload["text"] = text

    try:
        async with httpx.AsyncClient(timeout=RESEND_TIMEOUT_SECONDS) as client:
            response = await client.post(
                RESEND_SEND_URL,
                headers={
                    "Authorization": f"Bearer {settings.RESEND_API_KEY}",
                    "Content-Type": "application/json",
                },
                json=payload,
            )
    except httpx.HTTPError as e:
        logger.warning("Resend request failed for %r: %s", subject, e)
        return False, str(e)

    if response.status_code >= 400:
        logger.warning("Resend returned %s for %r", response.status_code, subject)
        return False, f"Resend API error: {response.status_code}"
    return True, None


# =============================================================================
# Templates
# =============================================================================

def _layout(heading: str, body: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<h2 style="color: #1f2937;">{heading}</h2>{body}'
        '<p style="color: #6b7280; font-size: 12px;">RFP Response Generator</p></div>'
    )


def _button(url: str, label: str) -> str:
    return (
        f'<p><a href="{html.escape(url)}" style="background: #4f46e5; color: #fff; '
        f'padding: 10px 18px; border-radius: 6px; text-decoration: none;">{label}</a></p>'
    )


async def send_team_invitation(
    to_email: str,
    inviter_company: str,
    proposal_title: str,
    role: str,
    invitation_link: str,
) -> tuple[bool, str | None]:
    body = (
        f"<p><strong>{html.escape(inviter_company)}</strong> invited you to join the team for "
        f"<strong>{html.escape(proposal_title)}</strong> as <strong>{html.escape(role)}</strong>.</p>"
        + _button(invitation_link, "View invitation")
    )
    return await send_email(
        to_email,
        f"You're invited to join {proposal_title}",
        _layout("Team invitation", body),
    )


async def send_invitation_response(
    to_email: str,
    member_email: str,
    proposal_title: str,
    accepted: bool,
) -> tuple[bool, str | None]:
    verb = "accepted" if accepted else "declined"
    body = (
        f"<p>{html.escape(member_email)} has {verb} your invitation to join "
        f"<strong>{html.escape(proposal_title)}</strong>.</p>"
    )
    return await send_email(
        to_email,
        f"Invitation {verb}: {proposal_title}",
        _layout(f"Invitation {verb}", body),
    )


async def send_lead_notification(
    to_email: str,
    lead_company: str,
    contact_name: str,
    lead_email: str,
    phone: str,
    message: str | None = None,
) -> tuple[bool, str | None]:
    rows = [
        ("Company", lead_company),
        ("Contact", contact_name),
        ("Email", lead_email),
        ("Phone", phone),
    ]
    if message:
        rows.append(("Message", message))
    table = "".join(
        f"<tr><td><strong>{label}</strong></td><td>{html.escape(value)}</td></tr>" for label, value in rows
    )
    return await send_email(
        to_email,
        f"New Lead from QR Code: {lead_company}",
        _layout("New lead captured", f"<table>{table}</table>"),
    )


async def send_lead_welcome(to_email: str, contact_name: str, company_name: str) -> tuple[bool, str | None]:
    signup_url = f"{settings.FRONTEND_URL}/signup?email={quote(to_email)}"
    body = (
        f"<p>Hi {html.escape(contact_name)},</p>"
        f"<p>Thanks for connecting with <strong>{html.escape(company_name)}</strong>. "
        "Create a free account to build your own AI-assisted proposals.</p>"
        + _button(signup_url, "Create your account")
    )
    return await send_email(to_email, f"Thanks for connecting with {company_name}", _layout("Welcome", body))


async def send_password_reset(to_email: str, reset_link: str) -> tuple[bool, str | None]:
    body = (
        "<p>We received a request to reset your password. The link expires in "
        f"{settings.RESET_TOKEN_EXPIRES_MINUTES} minutes.</p>" + _button(reset_link, "Reset password")
    )
    return await send_email(to_email, "Reset your password", _layout("Password reset", body))
