from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.consultancy.models import Base, iso, new_id


class CaseStudy(Base):
    __tablename__ = "case_studies"
    __table_args__ = (
        Index("idx_case_studies_published", "published"),
        Index("idx_case_studies_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    # Rich text sections
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    challenge: Mapped[str] = mapped_column(Text, nullable=False)
    solution: Mapped[str] = mapped_column(Text, nullable=False)
    results: Mapped[str] = mapped_column(Text, nullable=False)

    client_type: Mapped[str] = mapped_column(String(255), nullable=False)  # e.g. "Mid-size SaaS"
    duration: Mapped[str] = mapped_column(String(128), nullable=False)  # e.g. "6 months"
    key_outcomes: Mapped[list] = mapped_column(JSON, nullable=False, default=list)  # ordered list of strings

    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "summary": self.summary,
            "challenge": self.challenge,
            "solution": self.solution,
            "results": self.results,
            "clientType": self.client_type,
            "duration": self.duration,
            "keyOutcomes": list(self.key_outcomes or []),
            "published": self.published,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
