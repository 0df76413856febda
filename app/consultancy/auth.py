from __future__ import annotations

import uuid

from flask import Blueprint, current_app, g, jsonify, request, session

from app.consultancy import login_flow
from app.consultancy.db import db_session
from app.consultancy.errors import AuthenticationRequired
from app.consultancy.login_flow import auth_session
from app.consultancy.mailer import current_mailer
from app.consultancy.models import User
from app.consultancy.rbac import current_user, require_auth
from app.consultancy.schemas import CodeRequest, LoginRequest, RegisterRequest

bp = Blueprint("auth", __name__)


def json_payload() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def load_current_user() -> None:
    """
    Loads g.current_user from the signed session cookie.
    Also assigns a simple per-request request_id (for log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    if request.path.startswith(("/static/", "/health", "/healthz")):
        g.current_user = None
        return

    ctx = auth_session()
    user_id = ctx.user_id
    if not user_id:
        g.current_user = None
        return

    try:
        s = db_session()
        user = s.get(User, str(user_id))
    except Exception as e:
        current_app.logger.error("load_current_user DB error (clearing session): %s", e)
        ctx.clear()
        g.current_user = None
        return
    if user is None:
        ctx.clear()
    g.current_user = user


@bp.post("/register")
def register():
    req = RegisterRequest.from_payload(json_payload())
    user = login_flow.register(db_session(), auth_session(), req, current_mailer())
    session.permanent = True
    return jsonify({"success": True, **user.to_dict()}), 201


@bp.post("/login")
def login():
    req = LoginRequest.from_payload(json_payload())
    masked = login_flow.begin_login(db_session(), auth_session(), req, current_mailer())
    session.permanent = True
    return jsonify(
        {
            "success": True,
            "message": "2FA code sent to your email",
            "requiresVerification": True,
            "email": masked,
        }
    )


@bp.post("/verify-2fa")
def verify_2fa():
    req = CodeRequest.from_payload(json_payload())
    user = login_flow.complete_login(db_session(), auth_session(), req)
    return jsonify({"success": True, **user.to_dict()})


@bp.post("/logout")
def logout():
    login_flow.logout(auth_session())
    return jsonify({"success": True, "message": "Logged out successfully"})


@bp.get("/user")
def get_user():
    user = current_user()
    if user is None:
        raise AuthenticationRequired("Not authenticated")
    return jsonify({"success": True, **user.to_dict()})


@bp.post("/verify-email")
@require_auth
def verify_email():
    req = CodeRequest.from_payload(json_payload())
    user = login_flow.confirm_email(db_session(), current_user(), req)
    return jsonify({"success": True, **user.to_dict()})
