"""Tests for the case studies admin API."""
import re

import pytest
from werkzeug.security import generate_password_hash

from app.consultancy import create_app
from app.consultancy.db import session_scope
from app.consultancy.mailer import Mailer
from app.consultancy.models import Base, User


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
        "title": "Post-Merger Brand Integration",
        "summary": "Two brands, one voice.",
        "challenge": "<p>Conflicting guidelines</p>",
        "solution": "<p>A shared governance model</p>",
        "results": "<p>Adoption across all regions</p>",
        "clientType": "Global manufacturer",
        "duration": "6 months",
        "keyOutcomes": ["One brand system", "  ", "", "90% template adoption"],
        "published": True,
    }
    data.update(extra)
    return data


def test_mutations_require_admin(client):
    assert client.post("/api/case-studies", json=_payload()).status_code == 401
    assert client.put("/api/case-studies/x", json={"title": "t"}).status_code == 401
    assert client.delete("/api/case-studies/x").status_code == 401


def test_create_and_fetch(client):
    _login(client)
    r = client.post("/api/case-studies", json=_payload())
    assert r.status_code == 201
    cs = r.json["caseStudy"]
    assert cs["slug"] == "post-merger-brand-integration"
    assert cs["clientType"] == "Global manufacturer"
    assert cs["keyOutcomes"] == ["One brand system", "90% template adoption"]

    client.post("/api/logout")
    r = client.get(f"/api/case-studies/{cs['slug']}")
    assert r.status_code == 200
    assert r.json["caseStudy"]["id"] == cs["id"]

    r = client.get(f"/case-studies/{cs['slug']}")
    assert r.status_code == 200
    assert b"90% template adoption" in r.data


def test_create_missing_fields(client):
    _login(client)
    r = client.post("/api/case-studies", json={"title": "Only a title", "keyOutcomes": "not a list"})
    assert r.status_code == 400
    fields = {d["field"] for d in r.json["details"]}
    assert {"summary", "challenge", "solution", "results", "clientType", "duration", "keyOutcomes"} <= fields


def test_duplicate_slug_conflict(client):
    _login(client)
    assert client.post("/api/case-studies", json=_payload()).status_code == 201
    r = client.post("/api/case-studies", json=_payload(summary="Another"))
    assert r.status_code == 409

    cs = client.get("/api/case-studies/post-merger-brand-integration").json["caseStudy"]
    assert cs["title"] == "Post-Merger Brand Integration"
    assert cs["summary"] == "Two brands, one voice."
    assert len(client.get("/api/case-studies").json["caseStudies"]) == 1


def test_update_replaces_outcomes_and_keeps_slug(client):
    _login(client)
    cs = client.post("/api/case-studies", json=_payload()).json["caseStudy"]

    r = client.put(f"/api/case-studies/{cs['id']}", json={"title": "Renamed", "keyOutcomes": ["Only one"]})
    assert r.status_code == 200
    updated = r.json["caseStudy"]
    assert updated["title"] == "Renamed"
    assert updated["slug"] == cs["slug"]
    assert updated["keyOutcomes"] == ["Only one"]
    assert updated["duration"] == "6 months"


def test_drafts_hidden_from_public(client):
    _login(client)
    client.post("/api/case-studies", json=_payload(title="Draft Study", published=False))
    assert len(client.get("/api/case-studies?published=false").json["caseStudies"]) == 1

    client.post("/api/logout")
    assert client.get("/api/case-studies").json["caseStudies"] == []
    assert client.get("/api/case-studies/draft-study").status_code == 404
    assert client.get("/case-studies/draft-study").status_code == 404


def test_delete(client):
    _login(client)
    cs = client.post("/api/case-studies", json=_payload()).json["caseStudy"]
    assert client.delete(f"/api/case-studies/{cs['id']}").json == {"success": True}
    assert client.delete(f"/api/case-studies/{cs['id']}").status_code == 404
