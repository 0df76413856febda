from __future__ import annotations

import json
import logging
import smtplib
import urllib.error
import urllib.request
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from flask import current_app

logger = logging.getLogger(__name__)


class EmailError(RuntimeError):
    pass


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    text: str
    html: str | None = None
    reply_to: str | None = None


class Mailer:
    def send(self, message: EmailMessage) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class ResendMailer(Mailer):
    api_key: str
    sender: str
    base_url: str = "https://api.resend.com"
    timeout_seconds: int = 15

    def send(self, message: EmailMessage) -> None:
        if not self.api_key:
            raise EmailError("RESEND_API_KEY not configured; email sending disabled")

        body: dict[str, object] = {
            "from": self.sender,
            "to": [message.to],
            "subject": message.subject,
            "text": message.text,
        }
        if message.html:
            body["html"] = message.html
        if message.reply_to:
            body["reply_to"] = message.reply_to

        req = urllib.request.Request(
            self.base_url.rstrip("/") + "/emails",
            data=json.dumps(body).encode("utf-8"),
            method="POST",
        )
        req.add_header("Authorization", f"Bearer {self.api_key}")
        req.add_header("Content-Type", "application/json")
        req.add_header("Accept", "application/json")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_seconds) as resp:
                resp.read()
        except urllib.error.HTTPError as e:
            try:
                detail = e.read().decode("utf-8", errors="ignore")
            except Exception:
                detail = ""
            raise EmailError(f"HTTP {e.code} from Resend: {detail[:300]}") from e
        except (urllib.error.URLError, OSError) as e:
            raise EmailError(f"Resend request failed: {e}") from e


@dataclass(frozen=True)
class SmtpMailer(Mailer):
    host: str
    port: int
    username: str
    password: str
    sender: str

    def send(self, message: EmailMessage) -> None:
        if not self.username or not self.password:
            raise EmailError("SMTP credentials not configured")

        msg = MIMEMultipart("alternative")
        msg["From"] = self.sender
        msg["To"] = message.to
        msg["Subject"] = message.subject
        if message.reply_to:
            msg["Reply-To"] = message.reply_to
        msg.attach(MIMEText(message.text, "plain"))
        if message.html:
            msg.attach(MIMEText(message.html, "html"))

        try:
            with smtplib.SMTP(self.host, self.port) as server:
                server.starttls()
                server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailError(f"SMTP send failed: {e}") from e


@dataclass(frozen=True)
class LogMailer(Mailer):
    """Development backend: records that a message would have been sent."""

    def send(self, message: EmailMessage) -> None:
        logger.info("Email (log backend) to=%s subject=%r", message.to, message.subject)


def mailer_from_config(config: dict) -> Mailer:
    backend = (config.get("EMAIL_BACKEND") or "resend").strip().lower()
    sender = (config.get("EMAIL_FROM") or "").strip()
    if backend == "smtp":
        return SmtpMailer(
            host=(config.get("SMTP_HOST") or "smtp.gmail.com").strip(),
            port=int(config.get("SMTP_PORT") or 587),
            username=(config.get("SMTP_USER") or "").strip(),
            password=config.get("SMTP_PASSWORD") or "",
            sender=sender,
        )
    if backend == "log":
        return LogMailer()
    return ResendMailer(api_key=(config.get("RESEND_API_KEY") or "").strip(), sender=sender)


def current_mailer() -> Mailer:
    return current_app.extensions["mailer"]
