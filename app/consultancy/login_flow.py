"""
Admin login with an emailed one-time code.

States: anonymous -> pending-2fa -> authenticated. The session only ever
holds opaque user ids; the user row is re-fetched on every request.
"""
from __future__ import annotations

import logging
from collections.abc import MutableMapping
from functools import lru_cache
from typing import Any

from flask import session
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from app.consultancy.errors import (
    Conflict,
    InvalidCredentials,
    InvalidOrExpiredCode,
    NoPendingLogin,
    NotificationFailure,
    RegistrationClosed,
)
from app.consultancy.mailer import EmailError, Mailer
from app.consultancy.models import User
from app.consultancy.notifications import send_email_verification_code, send_login_code
from app.consultancy.schemas import CodeRequest, LoginRequest, RegisterRequest
from app.consultancy.users import count_users, create_user, get_user, get_user_by_username, update_user
from app.consultancy.verification import (
    EMAIL_CODE_TTL,
    EMAIL_VERIFICATION,
    LOGIN_2FA,
    LOGIN_CODE_TTL,
    consume_code,
    issue_code,
    mask_email,
)

logger = logging.getLogger(__name__)


class AuthSession:
    """Explicit view of the auth-related keys of a session mapping."""

    USER_KEY = "user_id"
    PENDING_KEY = "pending_user_id"

    def __init__(self, store: MutableMapping[str, Any]) -> None:
        self._store = store

    @property
    def user_id(self) -> str | None:
        return self._store.get(self.USER_KEY)

    @property
    def pending_user_id(self) -> str | None:
        return self._store.get(self.PENDING_KEY)

    def begin_pending(self, user_id: str) -> None:
        # At most one pending identity; a new attempt replaces the old one.
        self._store.pop(self.USER_KEY, None)
        self._store[self.PENDING_KEY] = user_id

    def drop_pending(self) -> None:
        self._store.pop(self.PENDING_KEY, None)

    def establish(self, user_id: str) -> None:
        self._store.pop(self.PENDING_KEY, None)
        self._store[self.USER_KEY] = user_id

    def clear(self) -> None:
        self._store.pop(self.USER_KEY, None)
        self._store.pop(self.PENDING_KEY, None)


def auth_session() -> AuthSession:
    return AuthSession(session)


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return generate_password_hash("not-a-real-password")


def register(s: Session, ctx: AuthSession, req: RegisterRequest, mailer: Mailer) -> User:
    """Create the single admin account and log it in."""
    if count_users(s):
        raise RegistrationClosed()

    user = create_user(s, username=req.username, email=req.email, password=req.password)
    try:
        s.flush()
    except IntegrityError as e:
        s.rollback()
        raise Conflict("Username or email already exists") from e

    vc = issue_code(s, user, EMAIL_VERIFICATION, EMAIL_CODE_TTL, now=user.created_at)
    s.commit()

    try:
        send_email_verification_code(mailer, user, vc.code)
    except EmailError as e:
        logger.warning("Email verification code not sent to user_id=%s: %s", user.id, e)

    ctx.establish(user.id)
    logger.info("Admin account registered user_id=%s", user.id)
    return user


def begin_login(s: Session, ctx: AuthSession, req: LoginRequest, mailer: Mailer) -> str:
    """
    Check credentials, issue and email a login code, and mark the login pending.
    Returns the masked email address the code went to.
    """
    user = get_user_by_username(s, req.username)
    if user is None:
        # Same hashing cost whether or not the username exists.
        check_password_hash(_dummy_hash(), req.password)
        logger.info("Login failed: unknown username=%s", req.username)
        raise InvalidCredentials()
    if not check_password_hash(user.password_hash, req.password):
        logger.info("Login failed: bad password for username=%s", req.username)
        raise InvalidCredentials()

    vc = issue_code(s, user, LOGIN_2FA, LOGIN_CODE_TTL)
    try:
        send_login_code(mailer, user, vc.code)
    except EmailError as e:
        s.rollback()
        ctx.drop_pending()
        logger.error("Login code email failed for user_id=%s: %s", user.id, e)
        raise NotificationFailure() from e
    s.commit()

    ctx.begin_pending(user.id)
    logger.info("Login code issued for user_id=%s", user.id)
    return mask_email(user.email)


def complete_login(s: Session, ctx: AuthSession, req: CodeRequest) -> User:
    pending_user_id = ctx.pending_user_id
    if not pending_user_id:
        raise NoPendingLogin()

    vc = consume_code(s, pending_user_id, req.code, LOGIN_2FA)
    if vc is None:
        s.commit()  # keep the expired-code purge
        raise InvalidOrExpiredCode()

    user = get_user(s, pending_user_id)
    if user is None:
        s.rollback()
        ctx.clear()
        raise NoPendingLogin("User not found")

    s.commit()
    ctx.establish(user.id)
    logger.info("Login completed for user_id=%s", user.id)
    return user


def logout(ctx: AuthSession) -> None:
    try:
        ctx.clear()
    except Exception:
        logger.exception("Session teardown failed during logout")


def confirm_email(s: Session, user: User, req: CodeRequest) -> User:
    vc = consume_code(s, user.id, req.code, EMAIL_VERIFICATION)
    if vc is None:
        s.commit()
        raise InvalidOrExpiredCode()
    update_user(s, user, email_verified=True)
    s.commit()
    return user
