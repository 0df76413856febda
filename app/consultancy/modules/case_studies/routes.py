from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.consultancy.auth import json_payload
from app.consultancy.db import db_session
from app.consultancy.errors import NotFound
from app.consultancy.modules.case_studies.schemas import CaseStudyCreate, CaseStudyUpdate
from app.consultancy.modules.case_studies.service import (
    create_case_study,
    delete_case_study,
    get_case_study_by_slug,
    list_case_studies,
    require_case_study,
    update_case_study,
)
from app.consultancy.rbac import current_user, ensure_admin, is_admin

bp = Blueprint("case_studies", __name__)


def _include_drafts() -> bool:
    return request.args.get("published") == "false"


@bp.before_request
def _admin_gate():
    if request.method not in ("GET", "HEAD", "OPTIONS") or _include_drafts():
        ensure_admin()


@bp.get("/case-studies")
def case_studies_list():
    items = list_case_studies(db_session(), published_only=not _include_drafts())
    return jsonify({"success": True, "caseStudies": [cs.to_dict() for cs in items]})


@bp.get("/case-studies/<slug>")
def case_studies_by_slug(slug: str):
    cs = get_case_study_by_slug(db_session(), slug)
    # Drafts are invisible to anonymous callers.
    if cs is None or not (cs.published or is_admin(current_user())):
        raise NotFound("Case study not found")
    return jsonify({"success": True, "caseStudy": cs.to_dict()})


@bp.post("/case-studies")
def case_studies_create():
    cs = create_case_study(db_session(), CaseStudyCreate.from_payload(json_payload()))
    return jsonify({"success": True, "caseStudy": cs.to_dict()}), 201


@bp.put("/case-studies/<case_study_id>")
def case_studies_update(case_study_id: str):
    s = db_session()
    cs = require_case_study(s, case_study_id)
    update_case_study(s, cs, CaseStudyUpdate.from_payload(json_payload()))
    return jsonify({"success": True, "caseStudy": cs.to_dict()})


@bp.delete("/case-studies/<case_study_id>")
def case_studies_delete(case_study_id: str):
    s = db_session()
    delete_case_study(s, require_case_study(s, case_study_id))
    return jsonify({"success": True})
