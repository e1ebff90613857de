from datetime import datetime, timezone
from html import escape
import logging

from core.config import settings
from core.errors import InvalidInput
from schemas.partner_schema import NudgeRequest
from services.notifier import Notifier
from services.otp_service import EMAIL_PATTERN
from utils.email import OutboundEmail, default_sender

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = [
    ("recipient_email", "recipientEmail"),
    ("recipient_name", "recipientName"),
    ("referrer_name", "referrerName"),
    ("nudge_type", "nudgeType"),
    ("tier", "tier"),
    ("partner_id", "partnerId"),
]

RISK_WARNING = (
    "Risk Warning: Trading financial instruments involves significant risk and may not be "
    "suitable for all investors. This message is sent to you by an Independent Partner of "
    "Nommia. Independent Partners are not employees, agents, or representatives of Nommia Ltd."
)


def _render_html(recipient_name: str, referrer_name: str, paragraphs: list, cta_label: str, cta_url: str) -> str:
    body = "".join(f"<p style='margin:0 0 16px 0;'>{p}</p>" for p in paragraphs)
    return f"""
    <div style='font-family: Poppins, Arial, sans-serif; line-height: 1.6; max-width: 672px; margin: 0 auto;'>
      <p style='margin:0 0 16px 0;'>Hi {escape(recipient_name)},</p>
      <p style='margin:0 0 16px 0;'>My name is <strong>{escape(referrer_name)}</strong>, and I'm a Nommia partner associated with your account.</p>
      {body}
      <p style='margin:24px 0;'><a href="{cta_url}" style='background-color:#E7B744; color:#ffffff; font-weight:700; padding:14px 32px; border-radius:8px; text-decoration:none;'>{cta_label}</a></p>
      <p style='margin:0;font-weight:600;'>{escape(referrer_name)}</p>
      <p style='margin:4px 0 0 0;color:#6b7280;'>Nommia Authorized Independent Partner</p>
      <p style='font-size:11px;color:#9ca3af;'>{RISK_WARNING}</p>
    </div>
    """


def _render_text(recipient_name: str, referrer_name: str, paragraphs: list, cta_label: str, cta_url: str) -> str:
    lines = [
        f"Hi {recipient_name},",
        f"My name is {referrer_name}, and I'm a Nommia partner associated with your account.",
        *paragraphs,
        f"{cta_label}: {cta_url}",
        referrer_name,
        "Nommia Authorized Independent Partner",
        RISK_WARNING,
    ]
    return "\n\n".join(lines)


class NudgeTemplate:
    def __init__(self, subject: str, paragraphs: list, cta_label: str, cta_url: str):
        self.subject = subject
        self.paragraphs = paragraphs
        self.cta_label = cta_label
        self.cta_url = cta_url

    def html(self, recipient_name: str, referrer_name: str) -> str:
        return _render_html(recipient_name, referrer_name, self.paragraphs, self.cta_label, self.cta_url)

    def text(self, recipient_name: str, referrer_name: str) -> str:
        return _render_text(recipient_name, referrer_name, self.paragraphs, self.cta_label, self.cta_url)


NUDGE_TEMPLATES = {
    "Complete KYC": NudgeTemplate(
        subject="Complete Your KYC Verification - Nommia IB",
        paragraphs=[
            "I noticed you recently started your journey with Nommia but haven't quite finished your account verification (KYC) yet.",
            "Completing this step unlocks live trading and deposits, risk management tools, and social trading options.",
        ],
        cta_label="Complete My Verification",
        cta_url="https://login.nommia.io/#/login",
    ),
    "Fund Account": NudgeTemplate(
        subject="Fund Your Trading Account - Start Trading Today with Nommia",
        paragraphs=[
            "Your account is all set and verified! It's time to fund it and start your trading journey.",
            "Deposit by card, bank transfer, e-wallet or cryptocurrency. Minimum deposit: $10 USD.",
        ],
        cta_label="Fund Your Account Now",
        cta_url="https://login.nommia.io/#/cashier",
    ),
}


def _validate(request: NudgeRequest) -> NudgeTemplate:
    missing = [label for attr, label in REQUIRED_FIELDS if not (getattr(request, attr) or "").strip()]
    if missing:
        raise InvalidInput(f"Missing required fields: {', '.join(missing)}")
    template = NUDGE_TEMPLATES.get(request.nudge_type)
    if template is None:
        raise InvalidInput(f"Invalid nudgeType. Must be one of: {', '.join(NUDGE_TEMPLATES)}")
    if not EMAIL_PATTERN.match(request.recipient_email.strip()):
        raise InvalidInput("Invalid email address")
    return template


async def send_nudge(request: NudgeRequest, notifier: Notifier) -> dict:
    """Send a partner nudge; delivery and configuration errors propagate to the caller."""
    template = _validate(request)
    recipient = request.recipient_email.strip()
    sender_name, sender_email = default_sender()
    message = OutboundEmail(
        sender_name=sender_name,
        sender_email=sender_email,
        recipients=[recipient],
        subject=template.subject,
        html_body=template.html(request.recipient_name, request.referrer_name),
        text_body=template.text(request.recipient_name, request.referrer_name),
    )

    logger.info(f"[Nudge] Sending {request.nudge_type} to {recipient} for partner {request.partner_id}")
    result = await notifier.send(message)
    logger.info(f"[Nudge] Sent to {recipient}")

    return {
        "success": True,
        "message": f"{request.nudge_type} nudge sent to {recipient}",
        "messageId": result["delivery_id"],
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "recipientEmail": recipient,
        "nudgeType": request.nudge_type,
        "tier": request.tier,
    }


def nudge_health(notifier: Notifier) -> tuple:
    healthy = notifier.configured
    body = {
        "status": "healthy" if healthy else "unhealthy",
        "email": "configured" if healthy else "not configured",
        "service": f"smtp:{settings.SMTP_HOST}" if healthy else "smtp",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return body, 200 if healthy else 503
