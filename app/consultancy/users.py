from __future__ import annotations

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session
from werkzeug.security import generate_password_hash

from app.consultancy.models import User


def get_user(s: Session, user_id: str) -> User | None:
    return s.get(User, user_id)


def get_user_by_username(s: Session, username: str) -> User | None:
    return s.query(User).filter(User.username == username).one_or_none()


def count_users(s: Session) -> int:
    return int(s.query(func.count(User.id)).scalar() or 0)


def create_user(s: Session, *, username: str, email: str, password: str) -> User:
    """Adds an admin user with a salted password hash. Caller commits."""
    now = datetime.utcnow()
    u = User(
        username=username,
        email=email.strip().lower(),
        password_hash=generate_password_hash(password),
        is_admin=True,
        email_verified=False,
        created_at=now,
        updated_at=now,
    )
    s.add(u)
    return u


def update_user(s: Session, user: User, **changes) -> User:
    for attr, value in changes.items():
        setattr(user, attr, value)
    user.updated_at = datetime.utcnow()
    return user
