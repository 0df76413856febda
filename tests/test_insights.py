"""Tests for the insights admin API and public pages."""
import re
from datetime import datetime

import pytest
from werkzeug.security import generate_password_hash

from app.consultancy import create_app
from app.consultancy.db import session_scope
from app.consultancy.mailer import Mailer
from app.consultancy.models import Base, User
from app.consultancy.modules.insights.models import Insight


class RecordingMailer(Mailer):
    def __init__(self):
        self.sent = []

    def send(self, message):
        self.sent.append(message)


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("EMAIL_BACKEND", "log")

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
    assert client.post("/api/verify-2fa", json={"code": code}).status_code == 200


def _payload(**extra):
    data = {
        "title": "Why Governance Fails",
        "excerpt": "Short summary",
        "content": "<p>Long form body</p>",
        "published": True,
    }
    data.update(extra)
    return data


def test_create_requires_admin(client):
    r = client.post("/api/insights", json=_payload())
    assert r.status_code == 401
    with session_scope(client.application) as s:
        assert s.query(Insight).count() == 0


def test_create_derives_slug(client):
    _login(client)
    r = client.post("/api/insights", json=_payload())
    assert r.status_code == 201
    insight = r.json["insight"]
    assert insight["slug"] == "why-governance-fails"
    assert insight["published"] is True
    assert insight["createdAt"] == insight["updatedAt"]


def test_create_validation(client):
    _login(client)
    r = client.post("/api/insights", json={"title": "x", "slug": "Bad Slug!"})
    assert r.status_code == 400
    fields = {d["field"] for d in r.json["details"]}
    assert {"slug", "excerpt", "content"} <= fields


def test_duplicate_slug_conflict(client):
    _login(client)
    assert client.post("/api/insights", json=_payload(slug="same")).status_code == 201
    r = client.post("/api/insights", json=_payload(title="Other", slug="same"))
    assert r.status_code == 409
    assert r.json["success"] is False

    r = client.get("/api/insights/same")
    assert r.json["insight"]["title"] == "Why Governance Fails"
    assert r.json["insight"]["excerpt"] == "Short summary"
    assert len(client.get("/api/insights").json["insights"]) == 1


def test_update_partial_merge_keeps_slug(client):
    _login(client)
    created = client.post("/api/insights", json=_payload()).json["insight"]

    r = client.put(f"/api/insights/{created['id']}", json={"title": "A New Title"})
    assert r.status_code == 200
    updated = r.json["insight"]
    assert updated["title"] == "A New Title"
    assert updated["slug"] == created["slug"]
    assert updated["excerpt"] == created["excerpt"]
    assert datetime.fromisoformat(updated["updatedAt"]) >= datetime.fromisoformat(created["updatedAt"])


def test_update_duplicate_slug_leaves_row_unmodified(client):
    _login(client)
    client.post("/api/insights", json=_payload(slug="first"))
    second = client.post("/api/insights", json=_payload(title="Second", slug="second")).json["insight"]

    r = client.put(f"/api/insights/{second['id']}", json={"slug": "first", "title": "Changed"})
    assert r.status_code == 409

    r = client.get("/api/insights/second")
    assert r.status_code == 200
    assert r.json["insight"]["title"] == "Second"


def test_update_and_delete_unknown_id(client):
    _login(client)
    assert client.put("/api/insights/missing", json={"title": "x"}).status_code == 404
    assert client.delete("/api/insights/missing").status_code == 404


def test_published_filtering_and_draft_visibility(client):
    _login(client)
    client.post("/api/insights", json=_payload(title="Live", published=True))
    client.post("/api/insights", json=_payload(title="Draft", published=False))

    r = client.get("/api/insights?published=false")
    assert {i["slug"] for i in r.json["insights"]} == {"live", "draft"}
    assert client.get("/api/insights/draft").status_code == 200

    client.post("/api/logout")
    r = client.get("/api/insights")
    assert [i["slug"] for i in r.json["insights"]] == ["live"]
    assert client.get("/api/insights?published=true").json["insights"][0]["slug"] == "live"
    assert client.get("/api/insights?published=false").status_code == 401
    assert client.get("/api/insights/draft").status_code == 404
    assert client.get("/api/insights/live").json["insight"]["title"] == "Live"


def test_delete(client):
    _login(client)
    created = client.post("/api/insights", json=_payload()).json["insight"]
    r = client.delete(f"/api/insights/{created['id']}")
    assert r.json == {"success": True}
    assert client.get(f"/api/insights/{created['slug']}").status_code == 404


def test_public_pages(client):
    _login(client)
    client.post("/api/insights", json=_payload(title="Live", published=True))
    client.post("/api/insights", json=_payload(title="Draft", published=False))
    client.post("/api/logout")

    r = client.get("/")
    assert r.status_code == 200
    assert b"Live" in r.data
    assert b"/insights/draft" not in r.data

    r = client.get("/insights/live")
    assert r.status_code == 200
    assert b"<p>Long form body</p>" in r.data
    assert client.get("/insights/draft").status_code == 404
