from flask import Blueprint, request

from ..auth import current_user, require_user
from ..errors import PermissionDenied, ValidationError
from ..services.order_service import (
    cancel_order_svc,
    can_view_order,
    confirm_order_svc,
    create_order_svc,
    get_order_svc,
    orders_by_buyer_svc,
    orders_by_seller_svc,
    orders_for_user_svc,
)
from ..services.payment_service import payments_for_order_svc
from ..utils.parsing import parse_int
from ..utils.responses import ok
from . import request_data

bp = Blueprint("orders", __name__, url_prefix="/orders")


@bp.post("")
@require_user
def create_order():
    guitar_id = parse_int(request_data().get("guitar_id"))
    if guitar_id is None:
        raise ValidationError("missing_guitar_id", "guitar_id is required")
    o = create_order_svc(guitar_id, current_user())
    return ok(o.to_dict(), 201)


@bp.get("/history")
@require_user
def history():
    u = current_user()
    role = request.args.get("role", "all")  # buyer|seller|all
    if role == "buyer":
        data = orders_by_buyer_svc(u.id)
    elif role == "seller":
        data = orders_by_seller_svc(u.id)
    else:
        data = orders_for_user_svc(u.id)
    return ok({"data": [o.to_dict() for o in data]})


@bp.get("/<int:order_id>")
@require_user
def get_order(order_id: int):
    o = get_order_svc(order_id)
    if not can_view_order(current_user(), o):
        raise PermissionDenied(message="This order belongs to someone else")
    return ok({**o.to_dict(), "payments": [p.to_dict() for p in payments_for_order_svc(o.id)]})


@bp.post("/<int:order_id>/confirm")
@require_user
def confirm_order(order_id: int):
    return ok(confirm_order_svc(order_id, current_user()).to_dict())


@bp.post("/<int:order_id>/cancel")
@require_user
def cancel_order(order_id: int):
    return ok(cancel_order_svc(order_id, current_user()).to_dict())
