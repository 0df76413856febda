"""
Request structs for the JSON API.

Each endpoint parses its loosely-typed payload into a frozen dataclass at the
boundary; anything malformed raises ``ValidationFailure`` listing every bad field.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from app.consultancy.errors import ValidationFailure, field_error
from app.consultancy.verification import is_code_format

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class FieldErrors:
    """Collects per-field problems while a payload is parsed."""

    def __init__(self) -> None:
        self.items: list[dict[str, str]] = []

    def add(self, field: str, message: str) -> None:
        self.items.append(field_error(field, message))

    def raise_if_any(self) -> None:
        if self.items:
            raise ValidationFailure(details=self.items)


def text_field(
    payload: dict[str, Any],
    key: str,
    errors: FieldErrors,
    *,
    label: str,
    required: bool = True,
    min_length: int = 1,
    strip: bool = True,
) -> str | None:
    raw = payload.get(key)
    if raw is None or (isinstance(raw, str) and not (raw.strip() if strip else raw)):
        if required:
            errors.add(key, f"{label} is required")
        return None
    if not isinstance(raw, str):
        errors.add(key, f"{label} must be a string")
        return None
    value = raw.strip() if strip else raw
    if len(value) < min_length:
        errors.add(key, f"{label} must be at least {min_length} characters")
        return None
    return value


def email_field(payload: dict[str, Any], key: str, errors: FieldErrors, *, label: str = "Email") -> str | None:
    value = text_field(payload, key, errors, label=label)
    if value is not None and not EMAIL_RE.match(value):
        errors.add(key, "Invalid email address")
        return None
    return value


def bool_field(payload: dict[str, Any], key: str, errors: FieldErrors, *, label: str) -> bool | None:
    raw = payload.get(key)
    if raw is None:
        return None
    if not isinstance(raw, bool):
        errors.add(key, f"{label} must be true or false")
        return None
    return raw


def slugify(title: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


def slug_field(payload: dict[str, Any], errors: FieldErrors, *, required: bool) -> str | None:
    value = text_field(payload, "slug", errors, label="Slug", required=required)
    if value is not None and not SLUG_RE.match(value):
        errors.add("slug", "Slug may only contain lowercase letters, digits and single hyphens")
        return None
    return value


@dataclass(frozen=True)
class RegisterRequest:
    username: str
    email: str
    password: str

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "RegisterRequest":
        errors = FieldErrors()
        username = text_field(payload, "username", errors, label="Username", min_length=3)
        email = email_field(payload, "email", errors)
        password = text_field(payload, "password", errors, label="Password", min_length=8, strip=False)
        errors.raise_if_any()
        return cls(username=username, email=email.lower(), password=password)  # type: ignore[arg-type,union-attr]


@dataclass(frozen=True)
class LoginRequest:
    username: str
    password: str

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "LoginRequest":
        errors = FieldErrors()
        username = text_field(payload, "username", errors, label="Username")
        password = text_field(payload, "password", errors, label="Password", min_length=6, strip=False)
        errors.raise_if_any()
        return cls(username=username, password=password)  # type: ignore[arg-type]


@dataclass(frozen=True)
class CodeRequest:
    code: str

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "CodeRequest":
        errors = FieldErrors()
        code = text_field(payload, "code", errors, label="Verification code")
        if code is not None and not is_code_format(code):
            errors.add("code", "Verification code must be 6 digits")
        errors.raise_if_any()
        return cls(code=code)  # type: ignore[arg-type]


def content_fields(
    payload: dict[str, Any],
    fields: tuple[tuple[str, str, str], ...],
    errors: FieldErrors,
    *,
    partial: bool,
) -> dict[str, Any]:
    """
    Parse the shared shape of admin-managed content (insights, case studies).

    ``fields`` holds ``(json_key, attribute, label)`` triples for required text.
    With ``partial`` only keys present in the payload are parsed (update); otherwise
    every field is required and a missing slug is derived from the title (create).
    Returns model attribute -> value.
    """
    values: dict[str, Any] = {}
    for key, attr, label in fields:
        if partial and key not in payload:
            continue
        value = text_field(payload, key, errors, label=label)
        if value is not None:
            values[attr] = value

    if "slug" in payload and payload.get("slug") not in (None, ""):
        slug = slug_field(payload, errors, required=True)
        if slug is not None:
            values["slug"] = slug
    elif partial and "slug" in payload:
        errors.add("slug", "Slug cannot be empty")
    elif not partial and values.get("title"):
        derived = slugify(values["title"])
        if derived:
            values["slug"] = derived
        else:
            errors.add("slug", "Slug could not be derived from the title")

    if not partial or "published" in payload:
        published = bool_field(payload, "published", errors, label="Published")
        if published is not None:
            values["published"] = published
        elif not partial:
            values["published"] = False
    return values
