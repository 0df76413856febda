from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.consultancy.schemas import FieldErrors, email_field, text_field


@dataclass(frozen=True)
class ContactRequest:
    name: str
    email: str
    message: str
    company: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ContactRequest":
        errors = FieldErrors()
        name = text_field(payload, "name", errors, label="Name")
        email = email_field(payload, "email", errors)
        message = text_field(payload, "message", errors, label="Message")
        # Blank company is stored as NULL.
        company = text_field(payload, "company", errors, label="Company", required=False)
        errors.raise_if_any()
        return cls(name=name, email=email, message=message, company=company)  # type: ignore[arg-type]
