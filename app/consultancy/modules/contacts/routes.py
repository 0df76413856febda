from __future__ import annotations

from pathlib import Path

from flask import Blueprint, current_app, jsonify, request, send_file

from app.consultancy.db import db_session
from app.consultancy.errors import NotFound
from app.consultancy.mailer import current_mailer
from app.consultancy.modules.contacts.schemas import ContactRequest
from app.consultancy.modules.contacts.service import (
    delete_contact,
    get_attachment,
    get_attachments,
    list_contacts,
    require_contact,
    submit_contact,
)
from app.consultancy.rbac import require_admin
from app.consultancy.storage import storage_from_config
from app.consultancy.uploads import discard_staged, stage_uploads

bp = Blueprint("contacts", __name__)


@bp.post("/contacts")
def contacts_create():
    # Validate the form before anything touches the disk.
    req = ContactRequest.from_payload(request.form.to_dict())

    storage = storage_from_config(current_app.config)
    staged = stage_uploads(storage, request.files)
    try:
        contact, attachments = submit_contact(db_session(), req, staged, current_mailer())
    except Exception:
        discard_staged(storage, staged)
        raise

    return (
        jsonify(
            {
                "success": True,
                "contact": contact.to_dict(),
                "attachments": [a.to_dict() for a in attachments],
            }
        ),
        201,
    )


@bp.get("/contacts")
@require_admin
def contacts_list():
    contacts = list_contacts(db_session())
    return jsonify({"success": True, "contacts": [c.to_dict() for c in contacts]})


@bp.get("/contacts/<contact_id>")
@require_admin
def contacts_detail(contact_id: str):
    s = db_session()
    contact = require_contact(s, contact_id)
    return jsonify(
        {
            "success": True,
            "contact": contact.to_dict(),
            "attachments": [a.to_dict() for a in get_attachments(s, contact.id)],
        }
    )


@bp.get("/contacts/<contact_id>/attachments/<attachment_id>")
@require_admin
def contacts_attachment_download(contact_id: str, attachment_id: str):
    a = get_attachment(db_session(), contact_id, attachment_id)
    path = Path(a.file_path)
    if not path.is_file():
        current_app.logger.error("Attachment %s missing on disk at %s", a.id, a.file_path)
        raise NotFound("Attachment file not found")
    return send_file(path, mimetype=a.mime_type, as_attachment=True, download_name=a.original_name)


@bp.delete("/contacts/<contact_id>")
@require_admin
def contacts_delete(contact_id: str):
    s = db_session()
    delete_contact(s, require_contact(s, contact_id))
    return jsonify({"success": True})
