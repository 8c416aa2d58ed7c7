# ==== EMAIL DELIVERY ==== #

"""
Outbound email with PDF attachments.

Providers:
    console   - logs the message, nothing leaves the process (default)
    smtp      - stdlib ``smtplib`` run in a worker thread
    sendgrid  - SendGrid v3 mail API over HTTPX

SMTP and SendGrid calls are retried with backoff and guarded by the ``email``
circuit breaker; an open breaker surfaces as ``CircuitBreakerError``.
"""

import asyncio
import base64
import smtplib
import uuid
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import List, Optional

import httpx

from backoffice.business.errors import ExternalServiceError
from backoffice.observability.logging import ContextualLogger
from backoffice.observability.tracing import get_tracer
from backoffice.resilience import email_resilient
from backoffice.settings import settings


tracer = get_tracer(__name__)
logger = ContextualLogger(__name__)

PROVIDERS = ("console", "smtp", "sendgrid")


@dataclass
class EmailAttachment:
    filename: str
    content: bytes
    content_type: str = "application/pdf"


@dataclass
class OutgoingEmail:
    to: List[str]
    subject: str
    body: str
    cc: List[str] = field(default_factory=list)
    attachments: List[EmailAttachment] = field(default_factory=list)
    reply_to: Optional[str] = None


@dataclass
class EmailResult:
    provider: str
    status: str
    message_id: Optional[str] = None


class EmailService:
    """Send ``OutgoingEmail`` messages through the configured provider."""

    def __init__(self, provider: Optional[str] = None):
        self.provider = (provider or settings.EMAIL_PROVIDER).lower()
        if self.provider not in PROVIDERS:
            raise ValueError(f"Unsupported email provider: {self.provider}")

    @property
    def sender(self) -> str:
        if settings.EMAIL_FROM_NAME:
            return formataddr((settings.EMAIL_FROM_NAME, settings.EMAIL_FROM))
        return settings.EMAIL_FROM

    async def send(self, message: OutgoingEmail) -> EmailResult:
        """
        Deliver a message.

        Raises:
            ExternalServiceError: Provider rejected the message
            CircuitBreakerError: Too many recent delivery failures
        """
        with tracer.start_as_current_span("email_send") as span:
            span.set_attribute("email.provider", self.provider)
            span.set_attribute("email.recipients", len(message.to) + len(message.cc))

            try:
                if self.provider == "smtp":
                    result = await self._send_smtp(message)
                elif self.provider == "sendgrid":
                    result = await self._send_sendgrid(message)
                else:
                    result = self._send_console(message)
            except httpx.HTTPStatusError as e:
                logger.error(
                    "Mail API rejected message",
                    provider=self.provider,
                    status_code=e.response.status_code,
                    response=e.response.text[:500],
                )
                raise ExternalServiceError(
                    f"Email provider returned HTTP {e.response.status_code}",
                    code="EMAIL_DELIVERY_FAILED",
                    provider=self.provider,
                ) from e
            except smtplib.SMTPException as e:
                logger.error("SMTP delivery failed", provider=self.provider, error=str(e))
                raise ExternalServiceError(
                    f"SMTP delivery failed: {e}",
                    code="EMAIL_DELIVERY_FAILED",
                    provider=self.provider,
                ) from e

            span.set_attribute("email.message_id", result.message_id or "")
            logger.info(
                "Email sent",
                provider=result.provider,
                status=result.status,
                to=message.to,
                subject=message.subject,
                attachments=[a.filename for a in message.attachments],
                message_id=result.message_id,
            )
            return result

    # --► CONSOLE

    def _send_console(self, message: OutgoingEmail) -> EmailResult:
        message_id = f"console-{uuid.uuid4().hex[:12]}"
        logger.info(
            "Console email (not delivered)",
            sender=self.sender,
            to=message.to,
            cc=message.cc,
            subject=message.subject,
            body=message.body[:500],
            message_id=message_id,
        )
        return EmailResult(provider="console", status="logged", message_id=message_id)

    # --► SMTP

    def build_mime_message(self, message: OutgoingEmail) -> EmailMessage:
        mime = EmailMessage()
        mime["From"] = self.sender
        mime["To"] = ", ".join(message.to)
        if message.cc:
            mime["Cc"] = ", ".join(message.cc)
        if message.reply_to:
            mime["Reply-To"] = message.reply_to
        mime["Subject"] = message.subject
        mime["Message-ID"] = make_msgid(domain=settings.EMAIL_FROM.split("@")[-1])
        mime.set_content(message.body)

        for attachment in message.attachments:
            maintype, _, subtype = attachment.content_type.partition("/")
            mime.add_attachment(
                attachment.content,
                maintype=maintype,
                subtype=subtype or "octet-stream",
                filename=attachment.filename,
            )
        return mime

    def _deliver_smtp(self, mime: EmailMessage) -> None:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS) as server:
            if settings.SMTP_USE_TLS:
                server.starttls()
            if settings.SMTP_USERNAME and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.send_message(mime)

    @email_resilient("smtp_send")
    async def _send_smtp(self, message: OutgoingEmail) -> EmailResult:
        mime = self.build_mime_message(message)
        await asyncio.to_thread(self._deliver_smtp, mime)
        return EmailResult(provider="smtp", status="sent", message_id=mime["Message-ID"])

    # --► SENDGRID

    def build_sendgrid_payload(self, message: OutgoingEmail) -> dict:
        personalization = {"to": [{"email": address} for address in message.to]}
        if message.cc:
            personalization["cc"] = [{"email": address} for address in message.cc]

        sender = {"email": settings.EMAIL_FROM}
        if settings.EMAIL_FROM_NAME:
            sender["name"] = settings.EMAIL_FROM_NAME

        payload = {
            "personalizations": [personalization],
            "from": sender,
            "subject": message.subject,
            "content": [{"type": "text/plain", "value": message.body}],
        }
        if message.reply_to:
            payload["reply_to"] = {"email": message.reply_to}
        if message.attachments:
            payload["attachments"] = [
                {
                    "content": base64.b64encode(attachment.content).decode("ascii"),
                    "filename": attachment.filename,
                    "type": attachment.content_type,
                    "disposition": "attachment",
                }
                for attachment in message.attachments
            ]
        return payload

    @email_resilient("sendgrid_send")
    async def _send_sendgrid(self, message: OutgoingEmail) -> EmailResult:
        if not settings.SENDGRID_API_KEY:
            raise ExternalServiceError("SENDGRID_API_KEY is not configured", code="EMAIL_NOT_CONFIGURED")

        async with httpx.AsyncClient(timeout=settings.SMTP_TIMEOUT_SECONDS) as client:
            response = await client.post(
                settings.SENDGRID_API_URL,
                json=self.build_sendgrid_payload(message),
                headers={"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"},
            )
            response.raise_for_status()

        return EmailResult(
            provider="sendgrid",
            status="sent",
            message_id=response.headers.get("X-Message-Id"),
        )


def get_email_service() -> EmailService:
    return EmailService()
