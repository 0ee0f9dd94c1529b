from flask import Blueprint

from ..auth import current_user, require_admin
from ..models import UserRole
from ..services.order_service import all_orders_svc
from ..services.user_service import change_user_role_svc, create_admin_svc, delete_user_svc, list_users_svc
from ..utils.parsing import parse_enum
from ..utils.responses import ok
from . import request_data

bp = Blueprint("admin", __name__, url_prefix="/admin")


@bp.get("/users")
@require_admin
def list_users():
    return ok({"data": [u.to_dict() for u in list_users_svc(current_user())]})


@bp.post("/users")
@require_admin
def create_admin():
    d = request_data()
    u = create_admin_svc(current_user(), d.get("username"), d.get("password") or "", d.get("email"))
    return ok(u.to_dict(), 201)


@bp.patch("/users/<int:user_id>/role")
@require_admin
def update_role(user_id: int):
    role = parse_enum(UserRole, request_data().get("role"), "role", required=True)
    return ok(change_user_role_svc(current_user(), user_id, role).to_dict())


@bp.delete("/users/<int:user_id>")
@require_admin
def delete_user(user_id: int):
    delete_user_svc(current_user(), user_id)
    return ok({"ok": True})


@bp.get("/orders")
@require_admin
def list_orders():
    return ok({"data": [o.to_dict() for o in all_orders_svc(current_user())]})
