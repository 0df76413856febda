from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import g

from app.consultancy.errors import AdminRequired, AuthenticationRequired
from app.consultancy.models import User


def current_user() -> User | None:
    return getattr(g, "current_user", None)


def is_admin(user: User | None) -> bool:
    return bool(user and user.is_admin)


def require_auth(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        if current_user() is None:
            raise AuthenticationRequired()
        return fn(*args, **kwargs)

    return wrapped


def require_admin(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        ensure_admin()
        return fn(*args, **kwargs)

    return wrapped


def ensure_admin() -> User:
    user = current_user()
    # Unauthenticated -> 401, authenticated but not admin -> 403
    if user is None:
        raise AuthenticationRequired()
    if not is_admin(user):
        raise AdminRequired()
    return user
