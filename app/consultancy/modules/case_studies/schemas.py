from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from app.consultancy.schemas import FieldErrors, content_fields

CASE_STUDY_FIELDS = (
    ("title", "title", "Title"),
    ("summary", "summary", "Summary"),
    ("challenge", "challenge", "Challenge"),
    ("solution", "solution", "Solution"),
    ("results", "results", "Results"),
    ("clientType", "client_type", "Client type"),
    ("duration", "duration", "Duration"),
)


def key_outcomes_field(payload: dict[str, Any], errors: FieldErrors) -> list[str] | None:
    raw = payload.get("keyOutcomes")
    if raw is None:
        return None
    if not isinstance(raw, list) or not all(isinstance(x, str) for x in raw):
        errors.add("keyOutcomes", "Key outcomes must be a list of strings")
        return None
    # Blank entries come from empty rows in the admin form.
    return [x.strip() for x in raw if x.strip()]


@dataclass(frozen=True)
class CaseStudyCreate:
    title: str
    slug: str
    summary: str
    challenge: str
    solution: str
    results: str
    client_type: str
    duration: str
    key_outcomes: list[str] = field(default_factory=list)
    published: bool = False

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "CaseStudyCreate":
        errors = FieldErrors()
        values = content_fields(payload, CASE_STUDY_FIELDS, errors, partial=False)
        values["key_outcomes"] = key_outcomes_field(payload, errors) or []
        errors.raise_if_any()
        return cls(**values)


@dataclass(frozen=True)
class CaseStudyUpdate:
    changes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "CaseStudyUpdate":
        errors = FieldErrors()
        changes = content_fields(payload, CASE_STUDY_FIELDS, errors, partial=True)
        if "keyOutcomes" in payload:
            outcomes = key_outcomes_field(payload, errors)
            if outcomes is not None:
                changes["key_outcomes"] = outcomes
        errors.raise_if_any()
        return cls(changes=changes)
