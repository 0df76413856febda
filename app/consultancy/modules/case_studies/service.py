from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.consultancy.errors import Conflict, NotFound
from app.consultancy.modules.case_studies.models import CaseStudy
from app.consultancy.modules.case_studies.schemas import CaseStudyCreate, CaseStudyUpdate

logger = logging.getLogger(__name__)


def list_case_studies(s: Session, *, published_only: bool = True) -> list[CaseStudy]:
    q = s.query(CaseStudy)
    if published_only:
        q = q.filter(CaseStudy.published.is_(True))
    return q.order_by(CaseStudy.created_at.desc(), CaseStudy.id.desc()).all()


def get_case_study(s: Session, case_study_id: str) -> CaseStudy | None:
    return s.get(CaseStudy, case_study_id)


def get_case_study_by_slug(s: Session, slug: str) -> CaseStudy | None:
    return s.query(CaseStudy).filter(CaseStudy.slug == slug).one_or_none()


def require_case_study(s: Session, case_study_id: str) -> CaseStudy:
    cs = get_case_study(s, case_study_id)
    if cs is None:
        raise NotFound("Case study not found")
    return cs


def _commit_unique(s: Session, slug: str | None) -> None:
    try:
        s.commit()
    except IntegrityError as e:
        s.rollback()
        logger.info("Case study slug conflict slug=%s", slug)
        raise Conflict("A case study with this slug already exists") from e


def create_case_study(s: Session, req: CaseStudyCreate) -> CaseStudy:
    now = datetime.utcnow()
    cs = CaseStudy(
        title=req.title,
        slug=req.slug,
        summary=req.summary,
        challenge=req.challenge,
        solution=req.solution,
        results=req.results,
        client_type=req.client_type,
        duration=req.duration,
        key_outcomes=list(req.key_outcomes),
        published=req.published,
        created_at=now,
        updated_at=now,
    )
    s.add(cs)
    _commit_unique(s, req.slug)
    return cs


def update_case_study(s: Session, cs: CaseStudy, req: CaseStudyUpdate) -> CaseStudy:
    for attr, value in req.changes.items():
        setattr(cs, attr, list(value) if attr == "key_outcomes" else value)
    cs.updated_at = datetime.utcnow()
    _commit_unique(s, req.changes.get("slug"))
    return cs


def delete_case_study(s: Session, cs: CaseStudy) -> None:
    s.delete(cs)
    s.commit()
