from flask import Blueprint, abort, render_template

from app.consultancy.db import db_session
from app.consultancy.modules.case_studies.service import get_case_study_by_slug, list_case_studies
from app.consultancy.modules.insights.service import get_insight_by_slug, list_insights

bp = Blueprint("routes", __name__)

SERVICES = (
    {
        "title": "The Governance Blueprint",
        "description": "Brand, content, and compliance standards embedded into your tools, workflows, and templates.",
    },
    {
        "title": "Adoption-as-a-Service",
        "description": "An ongoing enablement program: live training, playbooks, certifications, and cultural nudges.",
    },
    {
        "title": "M&A Brand Integration Lab",
        "description": "A time-boxed war room for aligning brand, governance, and content operations during transitions.",
    },
    {
        "title": "Executive Shadow Partner",
        "description": "A discreet advisory seat for brand, operations, and digital transformation decisions.",
    },
)

EXPERTISE = (
    {"title": "Global Content Operations", "description": "Enterprise-scale programs across multiple markets and languages"},
    {"title": "Enterprise Taxonomy & Governance", "description": "Governance frameworks adopted organization-wide"},
    {"title": "Platform Migration & Adoption", "description": "Transitions with measurable team adoption and engagement"},
)


@bp.get("/")
def index():
    s = db_session()
    return render_template(
        "public/index.html",
        services=SERVICES,
        expertise=EXPERTISE,
        case_studies=list_case_studies(s, published_only=True),
        insights=list_insights(s, published_only=True),
    )


@bp.get("/insights/<slug>")
def insight_page(slug: str):
    insight = get_insight_by_slug(db_session(), slug)
    if insight is None or not insight.published:
        abort(404)
    return render_template("public/insight.html", insight=insight)


@bp.get("/case-studies/<slug>")
def case_study_page(slug: str):
    case_study = get_case_study_by_slug(db_session(), slug)
    if case_study is None or not case_study.published:
        abort(404)
    return render_template("public/case_study.html", case_study=case_study)


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for load-balancer probes. No DB access.
    """
    return "ok", 200
