from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.consultancy.auth import json_payload
from app.consultancy.db import db_session
from app.consultancy.errors import NotFound
from app.consultancy.modules.insights.schemas import InsightCreate, InsightUpdate
from app.consultancy.modules.insights.service import (
    create_insight,
    delete_insight,
    get_insight_by_slug,
    list_insights,
    require_insight,
    update_insight,
)
from app.consultancy.rbac import current_user, ensure_admin, is_admin

bp = Blueprint("insights", __name__)


def _include_drafts() -> bool:
    return request.args.get("published") == "false"


@bp.before_request
def _admin_gate():
    # Writes and the draft-inclusive listing are admin-only; handlers do not re-check.
    if request.method not in ("GET", "HEAD", "OPTIONS") or _include_drafts():
        ensure_admin()


@bp.get("/insights")
def insights_list():
    insights = list_insights(db_session(), published_only=not _include_drafts())
    return jsonify({"success": True, "insights": [i.to_dict() for i in insights]})


@bp.get("/insights/<slug>")
def insights_by_slug(slug: str):
    i = get_insight_by_slug(db_session(), slug)
    if i is None or not (i.published or is_admin(current_user())):
        raise NotFound("Insight not found")
    return jsonify({"success": True, "insight": i.to_dict()})


@bp.post("/insights")
def insights_create():
    req = InsightCreate.from_payload(json_payload())
    i = create_insight(db_session(), req)
    return jsonify({"success": True, "insight": i.to_dict()}), 201


@bp.put("/insights/<insight_id>")
def insights_update(insight_id: str):
    s = db_session()
    i = require_insight(s, insight_id)
    req = InsightUpdate.from_payload(json_payload())
    update_insight(s, i, req)
    return jsonify({"success": True, "insight": i.to_dict()})


@bp.delete("/insights/<insight_id>")
def insights_delete(insight_id: str):
    s = db_session()
    delete_insight(s, require_insight(s, insight_id))
    return jsonify({"success": True})
