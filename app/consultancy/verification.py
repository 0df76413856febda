from __future__ import annotations

import re
import secrets
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.consultancy.models import User, VerificationCode

LOGIN_2FA = "login_2fa"
EMAIL_VERIFICATION = "email_verification"
CODE_TYPES = (LOGIN_2FA, EMAIL_VERIFICATION)

LOGIN_CODE_TTL = timedelta(minutes=10)
EMAIL_CODE_TTL = timedelta(hours=24)

_CODE_RE = re.compile(r"^\d{6}$")
_MASK_RE = re.compile(r"(.{1,3}).*(@.*)")


def generate_code() -> str:
    """Six-digit numeric code, never starting with 0."""
    return str(100000 + secrets.randbelow(900000))


def is_code_format(value: str) -> bool:
    return bool(_CODE_RE.match(value or ""))


def mask_email(email: str) -> str:
    """Keep the first 1-3 characters and the domain: ``alice@x.com`` -> ``ali***@x.com``."""
    return _MASK_RE.sub(r"\1***\2", email, count=1)


def issue_code(s: Session, user: User, code_type: str, ttl: timedelta, *, now: datetime | None = None) -> VerificationCode:
    if code_type not in CODE_TYPES:
        raise ValueError(f"Unknown verification code type: {code_type!r}")
    now = now or datetime.utcnow()
    vc = VerificationCode(
        user_id=user.id,
        code=generate_code(),
        type=code_type,
        expires_at=now + ttl,
        used=False,
        created_at=now,
    )
    s.add(vc)
    s.flush()
    return vc


def purge_expired_codes(s: Session, *, now: datetime | None = None) -> int:
    now = now or datetime.utcnow()
    return (
        s.query(VerificationCode)
        .filter(VerificationCode.expires_at < now)
        .delete(synchronize_session=False)
    )


def find_unused_code(s: Session, user_id: str, code: str, code_type: str) -> VerificationCode | None:
    return (
        s.query(VerificationCode)
        .filter(
            VerificationCode.user_id == user_id,
            VerificationCode.code == code,
            VerificationCode.type == code_type,
            VerificationCode.used.is_(False),
        )
        .order_by(VerificationCode.created_at.desc())
        .first()
    )


def consume_code(s: Session, user_id: str, code: str, code_type: str, *, now: datetime | None = None) -> VerificationCode | None:
    """
    Mark a matching, unused, unexpired code as used and return it.
    Returns None when nothing valid matches; a consumed code never matches again.
    """
    now = now or datetime.utcnow()
    purge_expired_codes(s, now=now)
    vc = find_unused_code(s, user_id, code, code_type)
    if vc is None or vc.expires_at < now:
        return None
    vc.used = True
    s.flush()
    return vc
