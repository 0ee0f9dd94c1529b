from flask import Blueprint

from ..auth import current_user, require_user
from ..services.user_service import change_password_svc, get_user_svc, update_profile_svc
from ..utils.responses import ok
from . import request_data

bp = Blueprint("users", __name__, url_prefix="/users")


@bp.get("/<int:user_id>")
def public_profile(user_id: int):
    u = get_user_svc(user_id)
    return ok({"id": u.id, "username": u.username, "registration_date": u.registration_date.isoformat()})


@bp.get("/profile")
@require_user
def get_profile():
    return ok(current_user().to_dict())


@bp.put("/profile")
@require_user
def update_profile():
    u = update_profile_svc(current_user(), request_data())
    return ok(u.to_dict())


@bp.post("/password")
@require_user
def change_password():
    d = request_data()
    change_password_svc(current_user(), d.get("old_password"), d.get("new_password"))
    return ok({"ok": True})
