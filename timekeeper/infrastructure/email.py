"""Email transports used by the EMAIL delivery channel.

Two transports are available: plain SMTP (also used for the ``gmail`` and
``mailgun`` providers, which expose SMTP relays) and the SendGrid REST API.
Both keep their underlying connection or client after the first use.
"""

from __future__ import annotations

import json
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from typing import Any, Protocol

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, ReplyTo

from timekeeper.config import Settings

logger = logging.getLogger(__name__)


class EmailConfigurationError(RuntimeError):
    """Raised when the transport cannot be configured or reached."""


class EmailDeliveryError(RuntimeError):
    """Raised when a single message could not be handed to the transport."""


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    html: str
    text: str


class EmailTransport(Protocol):
    def verify(self) -> None:  # pragma: no cover - Protocol
        ...

    def send(self, email: OutgoingEmail) -> None:  # pragma: no cover - Protocol
        ...

    def close(self) -> None:  # pragma: no cover - Protocol
        ...


class SmtpTransport:
    """SMTP transport holding one lazily opened connection."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        secure: bool,
        username: str | None,
        password: str | None,
        from_address: str,
        from_name: str,
        reply_to: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.secure = secure
        self.username = username
        self.password = password
        self.from_address = from_address
        self.from_name = from_name
        self.reply_to = reply_to
        self.timeout = timeout
        self._connection: smtplib.SMTP | None = None

    @property
    def connected(self) -> bool:
        return self._connection is not None

    def verify(self) -> None:
        try:
            connection = self._ensure_connection()
            status, _ = connection.noop()
        except (smtplib.SMTPException, OSError) as exc:
            self.close()
            raise EmailConfigurationError(
                f"Could not connect to SMTP server {self.host}:{self.port}: {exc}"
            ) from exc
        if status != 250:
            self.close()
            raise EmailConfigurationError(
                f"SMTP server {self.host}:{self.port} answered NOOP with status {status}"
            )

    def send(self, email: OutgoingEmail) -> None:
        message = self._build_message(email)
        try:
            self._ensure_connection().send_message(message)
        except smtplib.SMTPServerDisconnected:
            # The server dropped an idle connection; reconnect once.
            self.close()
            try:
                self._ensure_connection().send_message(message)
            except (smtplib.SMTPException, OSError) as exc:
                self.close()
                raise EmailDeliveryError(str(exc)) from exc
        except (smtplib.SMTPException, OSError) as exc:
            self.close()
            raise EmailDeliveryError(str(exc)) from exc

    def close(self) -> None:
        connection, self._connection = self._connection, None
        if connection is None:
            return
        try:
            connection.quit()
        except (smtplib.SMTPException, OSError):
            logger.debug("Ignoring error while closing SMTP connection", exc_info=True)

    def _ensure_connection(self) -> smtplib.SMTP:
        if self._connection is not None:
            return self._connection

        context = ssl.create_default_context()
        if self.secure:
            connection: smtplib.SMTP = smtplib.SMTP_SSL(
                self.host, self.port, timeout=self.timeout, context=context
            )
        else:
            connection = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            connection.ehlo()
            if connection.has_extn("starttls"):
                connection.starttls(context=context)
                connection.ehlo()
        if self.username and self.password:
            connection.login(self.username, self.password)
        self._connection = connection
        return connection

    def _build_message(self, email: OutgoingEmail) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = email.subject
        message["From"] = formataddr((self.from_name, self.from_address))
        message["To"] = email.to
        if self.reply_to:
            message["Reply-To"] = self.reply_to
        message.set_content(email.text)
        if email.html:
            message.add_alternative(email.html, subtype="html")
        return message


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages: list[str] = []
            for item in errors:
                if not isinstance(item, dict):
                    continue
                message = item.get("message")
                help_link = item.get("help")
                if message and help_link:
                    messages.append(f"{message} (help: {help_link})")
                elif message:
                    messages.append(str(message))
            if messages:
                return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


def _describe_sendgrid_failure(status_code: Any, body: Any) -> str:
    details = _extract_sendgrid_error_details(body)
    if status_code and details:
        return f"SendGrid API request failed with status {status_code}: {details}"
    if status_code:
        return f"SendGrid API request failed with status {status_code}"
    if details:
        return f"SendGrid API request failed: {details}"
    return "SendGrid API request failed"


class SendGridTransport:
    """Transport that delivers email through the SendGrid REST API."""

    def __init__(
        self,
        *,
        api_key: str | None,
        from_address: str,
        from_name: str,
        reply_to: str | None = None,
    ) -> None:
        self.api_key = api_key
        self.from_address = from_address
        self.from_name = from_name
        self.reply_to = reply_to
        self._client: SendGridAPIClient | None = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    def verify(self) -> None:
        if not self.api_key:
            raise EmailConfigurationError("SendGrid API key is not configured")
        self._ensure_client()

    def send(self, email: OutgoingEmail) -> None:
        message = Mail(
            from_email=(self.from_address, self.from_name),
            to_emails=email.to,
            subject=email.subject,
            html_content=email.html,
            plain_text_content=email.text,
        )
        if self.reply_to:
            message.reply_to = ReplyTo(self.reply_to)

        try:
            response = self._ensure_client().send(message)
        except EmailConfigurationError:
            raise
        except Exception as exc:  # python-http-client raises one class per status code
            description = _describe_sendgrid_failure(
                getattr(exc, "status_code", None), getattr(exc, "body", None)
            )
            raise EmailDeliveryError(description) from exc

        status_code = getattr(response, "status_code", None)
        if not isinstance(status_code, int) or not 200 <= status_code < 300:
            raise EmailDeliveryError(
                _describe_sendgrid_failure(status_code, getattr(response, "body", None))
            )

    def close(self) -> None:
        self._client = None

    def _ensure_client(self) -> SendGridAPIClient:
        if self._client is None:
            if not self.api_key:
                raise EmailConfigurationError("SendGrid API key is not configured")
            self._client = SendGridAPIClient(self.api_key)
        return self._client


def build_transport(settings: Settings) -> EmailTransport:
    """Return the transport matching ``settings.email_provider``."""

    if settings.email_provider == "sendgrid":
        return SendGridTransport(
            api_key=settings.sendgrid_api_key,
            from_address=settings.email_from,
            from_name=settings.email_from_name,
            reply_to=settings.email_reply_to,
        )
    return SmtpTransport(
        host=settings.email_host,
        port=settings.email_port,
        secure=settings.email_secure,
        username=settings.email_username,
        password=settings.email_password,
        from_address=settings.email_from,
        from_name=settings.email_from_name,
        reply_to=settings.email_reply_to,
    )


__all__ = [
    "EmailConfigurationError",
    "EmailDeliveryError",
    "EmailTransport",
    "OutgoingEmail",
    "SendGridTransport",
    "SmtpTransport",
    "build_transport",
]
