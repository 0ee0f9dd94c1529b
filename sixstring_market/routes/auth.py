from flask import Blueprint, current_app, g

from ..auth import current_user, make_token, require_user
from ..services.user_service import login_svc, logout_svc, register_user_svc
from ..utils.responses import ok
from ..validators import calculate_password_strength
from . import request_data

bp = Blueprint("auth", __name__, url_prefix="/auth")


@bp.post("/register")
def register():
    u = register_user_svc(request_data())
    return ok({"id": u.id, "username": u.username}, 201)


@bp.post("/login")
def login():
    d = request_data()
    u = login_svc(d.get("username"), d.get("password") or "")
    current_app.logger.info("user %s logged in", u.username)
    return ok({"access_token": make_token(u), "role": u.role.value, "user": u.to_dict()})


@bp.post("/logout")
@require_user
def logout():
    logout_svc(g.token.get("jti"))
    return ok({"ok": True})


@bp.get("/me")
@require_user
def me():
    return ok(current_user().to_dict())


@bp.post("/password-strength")
def password_strength():
    return ok({"strength": calculate_password_strength(request_data().get("password") or "")})
