from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.consultancy.errors import Conflict, NotFound
from app.consultancy.modules.insights.models import Insight
from app.consultancy.modules.insights.schemas import InsightCreate, InsightUpdate

logger = logging.getLogger(__name__)


def list_insights(s: Session, *, published_only: bool = True) -> list[Insight]:
    q = s.query(Insight)
    if published_only:
        q = q.filter(Insight.published.is_(True))
    return q.order_by(Insight.created_at.desc(), Insight.id.desc()).all()


def get_insight(s: Session, insight_id: str) -> Insight | None:
    return s.get(Insight, insight_id)


def get_insight_by_slug(s: Session, slug: str) -> Insight | None:
    return s.query(Insight).filter(Insight.slug == slug).one_or_none()


def require_insight(s: Session, insight_id: str) -> Insight:
    i = get_insight(s, insight_id)
    if i is None:
        raise NotFound("Insight not found")
    return i


def _commit_unique(s: Session, slug: str | None) -> None:
    # Slug uniqueness is enforced by the unique index, not pre-checked.
    try:
        s.commit()
    except IntegrityError as e:
        s.rollback()
        logger.info("Insight slug conflict slug=%s", slug)
        raise Conflict("An insight with this slug already exists") from e


def create_insight(s: Session, req: InsightCreate) -> Insight:
    now = datetime.utcnow()
    i = Insight(
        title=req.title,
        slug=req.slug,
        excerpt=req.excerpt,
        content=req.content,
        published=req.published,
        created_at=now,
        updated_at=now,
    )
    s.add(i)
    _commit_unique(s, req.slug)
    return i


def update_insight(s: Session, i: Insight, req: InsightUpdate) -> Insight:
    """Partial merge; the slug changes only when one is supplied."""
    for attr, value in req.changes.items():
        setattr(i, attr, value)
    i.updated_at = datetime.utcnow()
    _commit_unique(s, req.changes.get("slug"))
    return i


def delete_insight(s: Session, i: Insight) -> None:
    s.delete(i)
    s.commit()
