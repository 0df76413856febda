"""
Contact submission workflow.

Attachments arrive already staged on disk (see ``app.consultancy.uploads``);
this module records the contact and its attachment rows as one unit and then
notifies the site owner.

INVARIANTS:
- A contact is never left behind with only some of its attachment rows.
- The owner notification is sent only after commit, and its failure never
  fails the submission.
"""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.consultancy.errors import NotFound
from app.consultancy.mailer import EmailError, Mailer
from app.consultancy.modules.contacts.models import Attachment, Contact
from app.consultancy.modules.contacts.schemas import ContactRequest
from app.consultancy.notifications import send_contact_notification
from app.consultancy.uploads import StagedFile

logger = logging.getLogger(__name__)


def get_contact(s: Session, contact_id: str) -> Contact | None:
    return s.get(Contact, contact_id)


def require_contact(s: Session, contact_id: str) -> Contact:
    c = get_contact(s, contact_id)
    if c is None:
        raise NotFound("Contact not found")
    return c


def list_contacts(s: Session) -> list[Contact]:
    return s.query(Contact).order_by(Contact.created_at.asc(), Contact.id.asc()).all()


def get_attachments(s: Session, contact_id: str) -> list[Attachment]:
    return (
        s.query(Attachment)
        .filter(Attachment.contact_id == contact_id)
        .order_by(Attachment.created_at.asc(), Attachment.id.asc())
        .all()
    )


def get_attachment(s: Session, contact_id: str, attachment_id: str) -> Attachment:
    a = s.get(Attachment, attachment_id)
    if a is None or a.contact_id != contact_id:
        raise NotFound("Attachment not found")
    return a


def create_contact(s: Session, req: ContactRequest) -> Contact:
    c = Contact(
        name=req.name,
        email=req.email,
        company=req.company,
        message=req.message,
        created_at=datetime.utcnow(),
    )
    s.add(c)
    s.flush()
    return c


def create_attachment(s: Session, contact: Contact, staged: StagedFile) -> Attachment:
    a = Attachment(
        contact_id=contact.id,
        file_name=staged.file_name,
        original_name=staged.original_name,
        mime_type=staged.mime_type,
        size=staged.size,
        file_path=staged.path,
        created_at=datetime.utcnow(),
    )
    s.add(a)
    s.flush()
    return a


def _compensate(s: Session, contact: Contact, created: list[Attachment]) -> None:
    """Undo a half-written submission: attachment rows first, then the contact."""
    logger.warning("Rolling back contact %s after attachment failure (%s rows written)", contact.id, len(created))
    try:
        for a in created:
            s.delete(a)
        s.delete(contact)
        s.flush()
    except SQLAlchemyError as e:
        # A failed flush leaves the session needing a rollback, which follows.
        logger.warning("Compensating deletes for contact %s not flushed: %s", contact.id, e)
    finally:
        s.rollback()


def submit_contact(s: Session, req: ContactRequest, staged: list[StagedFile], mailer: Mailer) -> tuple[Contact, list[Attachment]]:
    contact = create_contact(s, req)

    created: list[Attachment] = []
    try:
        for sf in staged:
            created.append(create_attachment(s, contact, sf))
    except Exception:
        _compensate(s, contact, created)
        raise

    s.commit()
    logger.info("Contact %s stored with %s attachment(s)", contact.id, len(created))

    try:
        send_contact_notification(mailer, contact, created)
    except EmailError as e:
        logger.warning("Contact notification for %s not sent: %s", contact.id, e)
    except Exception:
        # The submission is already committed; never report it as failed.
        logger.exception("Contact notification for %s failed", contact.id)
    return contact, created


def delete_contact(s: Session, contact: Contact) -> None:
    """Hard delete; attachment rows cascade and their files are removed best-effort."""
    paths = [a.file_path for a in contact.attachments]
    s.delete(contact)
    s.commit()
    for p in paths:
        try:
            Path(p).unlink(missing_ok=True)
        except OSError as e:
            logger.error("Could not remove attachment file %s: %s", p, e)
