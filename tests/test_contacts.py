"""Tests for the contact form: submission, attachment limits, cleanup and admin access."""
import io
import re
from pathlib import Path

import pytest
from werkzeug.security import generate_password_hash

from app.consultancy import create_app
from app.consultancy.db import session_scope
from app.consultancy.mailer import EmailError, Mailer
from app.consultancy.models import Base, User
from app.consultancy.modules.contacts import service as contact_service
from app.consultancy.modules.contacts.models import Attachment, Contact


class RecordingMailer(Mailer):
    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, message):
        if self.fail:
            raise EmailError("provider down")
        self.sent.append(message)


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("EMAIL_BACKEND", "log")
    monkeypatch.setenv("CONTACT_NOTIFY_EMAIL", "owner@example.com")

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)
    app.extensions["mailer"] = RecordingMailer()

    with session_scope(app) as s:
        s.add(User(username="admin", email="admin@example.com", password_hash=generate_password_hash("password123")))

    return app.test_client()


def _login(client):
    client.post("/api/login", json={"username": "admin", "password": "password123"})
    text = client.application.extensions["mailer"].sent[-1].text
    code = re.search(r"Verification Code: (\d{6})", text).group(1)
    r = client.post("/api/verify-2fa", json={"code": code})
    assert r.status_code == 200


def _form(**extra):
    data = {"name": "Bob", "email": "bob@example.com", "company": "Acme", "message": "Hello there"}
    data.update(extra)
    return data


def _file(size=2048, name="notes.txt", content_type="text/plain"):
    return (io.BytesIO(b"x" * size), name, content_type)


def _uploaded_files(client):
    root = Path(client.application.config["UPLOAD_DIR"])
    return [p for p in root.rglob("*") if p.is_file()]


def _counts(client):
    with session_scope(client.application) as s:
        return s.query(Contact).count(), s.query(Attachment).count()


def test_submit_with_attachment(client):
    data = _form(attachments=[_file()])
    r = client.post("/api/contacts", data=data, content_type="multipart/form-data")
    assert r.status_code == 201
    body = r.json
    assert body["success"] is True
    assert body["contact"]["name"] == "Bob"
    assert body["contact"]["company"] == "Acme"

    [att] = body["attachments"]
    assert att["originalName"] == "notes.txt"
    assert att["size"] == 2048
    assert att["mimeType"] == "text/plain"
    assert att["contactId"] == body["contact"]["id"]
    assert re.match(r"^notes_\d+-\d+\.txt$", att["fileName"])
    assert Path(att["filePath"]).is_file()
    assert "/contacts/" in att["filePath"].replace("\\", "/")

    msg = client.application.extensions["mailer"].sent[-1]
    assert msg.to == "owner@example.com"
    assert msg.reply_to == "bob@example.com"
    assert "notes.txt (2KB)" in msg.text


def test_submit_without_attachments(client):
    r = client.post("/api/contacts", data=_form(company=""), content_type="multipart/form-data")
    assert r.status_code == 201
    assert r.json["attachments"] == []
    assert r.json["contact"]["company"] is None
    assert "Attachments: None" in client.application.extensions["mailer"].sent[-1].text


def test_submit_validation_failure_writes_nothing(client):
    r = client.post(
        "/api/contacts",
        data={"name": "", "email": "not-an-email", "message": "", "attachments": [_file()]},
        content_type="multipart/form-data",
    )
    assert r.status_code == 400
    fields = {d["field"] for d in r.json["details"]}
    assert fields == {"name", "email", "message"}
    assert _counts(client) == (0, 0)
    assert _uploaded_files(client) == []


def test_too_many_files(client):
    data = _form(attachments=[_file(name=f"f{i}.txt") for i in range(6)])
    r = client.post("/api/contacts", data=data, content_type="multipart/form-data")
    assert r.status_code == 400
    assert r.json["error"] == "Too many files. Maximum 5 files allowed."
    assert _counts(client) == (0, 0)


def test_disallowed_file_type(client):
    data = _form(attachments=[_file(name="run.exe", content_type="application/x-msdownload")])
    r = client.post("/api/contacts", data=data, content_type="multipart/form-data")
    assert r.status_code == 400
    assert r.json["error"] == "File type application/x-msdownload is not allowed"
    assert _uploaded_files(client) == []


def test_oversize_file(client):
    data = _form(attachments=[_file(), _file(size=10 * 1024 * 1024 + 1, name="big.pdf", content_type="application/pdf")])
    r = client.post("/api/contacts", data=data, content_type="multipart/form-data")
    assert r.status_code == 413
    assert r.json["error"] == "File too large. Maximum size is 10MB per file."
    # The first, valid file was staged and must have been removed again.
    assert _uploaded_files(client) == []
    assert _counts(client) == (0, 0)


def test_five_files_at_size_limit_accepted(client):
    files = [_file(name=f"f{i}.txt") for i in range(4)]
    files.append(_file(size=10 * 1024 * 1024, name="max.pdf", content_type="application/pdf"))
    r = client.post("/api/contacts", data=_form(attachments=files), content_type="multipart/form-data")
    assert r.status_code == 201
    attachments = r.json["attachments"]
    assert len(attachments) == 5
    assert max(a["size"] for a in attachments) == 10 * 1024 * 1024
    assert _counts(client) == (1, 5)
    contact_id = r.json["contact"]["id"]

    _login(client)
    r = client.get(f"/api/contacts/{contact_id}")
    assert r.status_code == 200
    assert {a["id"] for a in r.json["attachments"]} == {a["id"] for a in attachments}


def test_unexpected_file_field(client):
    data = _form(resume=_file())
    r = client.post("/api/contacts", data=data, content_type="multipart/form-data")
    assert r.status_code == 400
    assert r.json["error"] == "Unexpected file field. Please use the attachments field."


def test_attachment_failure_rolls_back_everything(client, monkeypatch):
    real_create = contact_service.create_attachment
    calls = {"n": 0}

    def flaky_create(s, contact, staged):
        calls["n"] += 1
        if calls["n"] == 2:
            raise RuntimeError("disk quota exceeded")
        return real_create(s, contact, staged)

    monkeypatch.setattr(contact_service, "create_attachment", flaky_create)

    data = _form(attachments=[_file(name="a.txt"), _file(name="b.txt"), _file(name="c.txt")])
    r = client.post("/api/contacts", data=data, content_type="multipart/form-data")
    assert r.status_code == 500
    assert r.json["success"] is False
    assert _counts(client) == (0, 0)
    assert _uploaded_files(client) == []
    assert client.application.extensions["mailer"].sent == []


def test_notification_failure_still_succeeds(client):
    client.application.extensions["mailer"].fail = True
    r = client.post("/api/contacts", data=_form(attachments=[_file()]), content_type="multipart/form-data")
    assert r.status_code == 201
    assert _counts(client) == (1, 1)
    assert len(_uploaded_files(client)) == 1


def test_admin_endpoints_require_login(client):
    assert client.get("/api/contacts").status_code == 401
    assert client.get("/api/contacts/nope").status_code == 401
    assert client.delete("/api/contacts/nope").status_code == 401


def test_admin_list_detail_download_delete(client):
    r = client.post("/api/contacts", data=_form(attachments=[_file(size=10)]), content_type="multipart/form-data")
    contact_id = r.json["contact"]["id"]
    att = r.json["attachments"][0]

    _login(client)
    r = client.get("/api/contacts")
    assert r.status_code == 200
    assert [c["id"] for c in r.json["contacts"]] == [contact_id]

    r = client.get(f"/api/contacts/{contact_id}")
    assert r.status_code == 200
    assert r.json["attachments"][0]["id"] == att["id"]

    r = client.get(f"/api/contacts/{contact_id}/attachments/{att['id']}")
    assert r.status_code == 200
    assert r.data == b"x" * 10
    assert "notes.txt" in r.headers["Content-Disposition"]
    r.close()

    r = client.delete(f"/api/contacts/{contact_id}")
    assert r.json == {"success": True}
    assert _counts(client) == (0, 0)
    assert not Path(att["filePath"]).exists()
    assert client.get(f"/api/contacts/{contact_id}").status_code == 404
