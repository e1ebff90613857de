import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import List, Optional
from core.config import settings
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutboundEmail:
    sender_name: str
    sender_email: str
    recipients: List[str]
    subject: str
    html_body: str
    text_body: str = ""
    headers: dict = field(default_factory=dict)


def _build_message(message: OutboundEmail, message_id: str) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = message.subject
    msg["From"] = formataddr((message.sender_name, message.sender_email)) if message.sender_name else message.sender_email
    msg["To"] = ", ".join(message.recipients)
    msg["Message-ID"] = message_id
    for name, value in message.headers.items():
        msg[name] = value
    if message.text_body:
        msg.set_content(message.text_body)
    msg.add_alternative(message.html_body, subtype="html")
    return msg


class SmtpTransport:
    """Blocking SMTP delivery; one connection per message."""

    def __init__(
        self,
        host: Optional[str],
        port: int,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_ssl: bool = True,
        use_tls: bool = True,
        timeout: int = 15,
        debug: bool = False,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.use_tls = use_tls
        self.timeout = timeout or 15
        self.debug = 1 if debug else 0

    @classmethod
    def from_settings(cls) -> "SmtpTransport":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            use_ssl=settings.SMTP_USE_SSL,
            use_tls=settings.SMTP_USE_TLS,
            timeout=settings.SMTP_TIMEOUT,
            debug=settings.SMTP_DEBUG,
        )

    @property
    def configured(self) -> bool:
        return bool(self.host)

    def _connect(self) -> smtplib.SMTP:
        # SSL (SMTPS) or STARTTLS
        if self.use_ssl:
            server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        server.set_debuglevel(self.debug)
        if not self.use_ssl and self.use_tls:
            server.starttls()
        if self.username and self.password:
            server.login(self.username, self.password)
        return server

    def deliver(self, message: OutboundEmail) -> str:
        """Send ``message`` and return its Message-ID. Raises on any SMTP or socket error."""
        domain = message.sender_email.split("@", 1)[-1] if message.sender_email else None
        message_id = make_msgid(domain=domain)
        msg = _build_message(message, message_id)
        with self._connect() as server:
            server.send_message(msg)
        logger.info(f"Sent email to {', '.join(message.recipients)} with subject '{message.subject}'")
        return message_id

    def verify(self) -> bool:
        """Connect and authenticate without sending; used as a startup probe."""
        if not self.configured:
            return False
        try:
            with self._connect() as server:
                server.noop()
            return True
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(f"SMTP connection check failed: {exc}")
            return False


def default_sender() -> tuple:
    return settings.SMTP_FROM_NAME or "", settings.SMTP_FROM_EMAIL or "no-reply@example.com"


def build_otp_email(to_email: str, otp_code: str, purpose: str, ttl_seconds: int) -> OutboundEmail:
    minutes = max(1, ttl_seconds // 60)
    brand = settings.SMTP_FROM_NAME or "Nommia"
    if purpose == "password-reset":
        heading = "Reset your password"
        intro = "Use the following One-Time Password (OTP) to reset your password."
        footer = "If you did not request a password reset, you can safely ignore this email."
    else:
        heading = "Verify your email address"
        intro = "Use the following One-Time Password (OTP) to verify your email address."
        footer = "If you did not request this code, you can safely ignore this email."
    text = f"Your {brand} code is {otp_code}. It expires in {minutes} minutes.\n\n{footer}"
    html = f"""
    <div style='font-family: Arial, sans-serif; line-height: 1.5;'>
      <h2>{heading}</h2>
      <p>{intro} This code will expire in <strong>{minutes} minutes</strong>.</p>
      <p style='font-size: 24px; font-weight: bold; letter-spacing: 4px;'>{otp_code}</p>
      <p>{footer}</p>
      <p>{brand} Team</p>
    </div>
    """
    sender_name, sender_email = default_sender()
    return OutboundEmail(
        sender_name=sender_name,
        sender_email=sender_email,
        recipients=[to_email],
        subject=f"Your {brand} verification code" if purpose != "password-reset" else f"Your {brand} password reset code",
        html_body=html,
        text_body=text,
    )
