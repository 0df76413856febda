from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from app.consultancy.schemas import FieldErrors, content_fields

INSIGHT_FIELDS = (
    ("title", "title", "Title"),
    ("excerpt", "excerpt", "Excerpt"),
    ("content", "content", "Content"),
)


@dataclass(frozen=True)
class InsightCreate:
    title: str
    slug: str
    excerpt: str
    content: str
    published: bool = False

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "InsightCreate":
        errors = FieldErrors()
        values = content_fields(payload, INSIGHT_FIELDS, errors, partial=False)
        errors.raise_if_any()
        return cls(**values)


@dataclass(frozen=True)
class InsightUpdate:
    changes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "InsightUpdate":
        errors = FieldErrors()
        changes = content_fields(payload, INSIGHT_FIELDS, errors, partial=True)
        errors.raise_if_any()
        return cls(changes=changes)
