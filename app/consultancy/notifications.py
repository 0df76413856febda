from __future__ import annotations

from typing import TYPE_CHECKING

from flask import current_app, render_template

from app.consultancy.mailer import EmailMessage, Mailer

if TYPE_CHECKING:
    from app.consultancy.models import User
    from app.consultancy.modules.contacts.models import Attachment, Contact


def size_kb(size_bytes: int) -> int:
    """Whole kilobytes, rounding half up."""
    return int(size_bytes / 1024 + 0.5)


def attachment_lines(attachments: list["Attachment"]) -> list[str]:
    return [f"{a.original_name} ({size_kb(a.size)}KB)" for a in attachments]


def build_contact_notification(contact: "Contact", attachments: list["Attachment"]) -> EmailMessage:
    lines = attachment_lines(attachments)
    text = [
        "New Contact Form Submission",
        "",
        f"Name: {contact.name}",
        f"Email: {contact.email}",
    ]
    if contact.company:
        text.append(f"Company: {contact.company}")
    text += ["Message:", contact.message, ""]
    if lines:
        text.append(f"Attachments ({len(lines)}):")
        text += [f"- {line}" for line in lines]
    else:
        text.append("Attachments: None")
    text += ["", "Submitted via the website contact form"]

    html = render_template("email/contact_notification.html", contact=contact, attachment_lines=lines)
    return EmailMessage(
        to=current_app.config["CONTACT_NOTIFY_EMAIL"],
        subject=f"New Contact Form Submission from {contact.name}",
        text="\n".join(text),
        html=html,
        reply_to=contact.email,
    )


def build_code_email(user: "User", code: str, *, purpose: str, expires_in: str) -> EmailMessage:
    site = current_app.config.get("SITE_NAME") or "Consultancy"
    if purpose == "login_2fa":
        subject = f"{site} admin console login verification code"
        intro = "You requested access to the admin console. Use this verification code to complete your login:"
    else:
        subject = f"Verify your {site} email address"
        intro = "Use this code to verify the email address on your admin account:"

    text = "\n".join(
        [
            f"Hello {user.username},",
            "",
            intro,
            "",
            f"Verification Code: {code}",
            "",
            f"This code will expire in {expires_in}.",
            "",
            "If you didn't request this code, please ignore this email. Never share this code with anyone.",
        ]
    )
    html = render_template(
        "email/verification_code.html",
        username=user.username,
        intro=intro,
        code=code,
        expires_in=expires_in,
        site_name=site,
    )
    return EmailMessage(to=user.email, subject=subject, text=text, html=html)


def send_contact_notification(mailer: Mailer, contact: "Contact", attachments: list["Attachment"]) -> None:
    mailer.send(build_contact_notification(contact, attachments))


def send_login_code(mailer: Mailer, user: "User", code: str) -> None:
    mailer.send(build_code_email(user, code, purpose="login_2fa", expires_in="10 minutes"))


def send_email_verification_code(mailer: Mailer, user: "User", code: str) -> None:
    mailer.send(build_code_email(user, code, purpose="email_verification", expires_in="24 hours"))
