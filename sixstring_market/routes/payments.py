from flask import Blueprint

from ..auth import current_user, require_user
from ..errors import PermissionDenied
from ..models import PaymentStatus
from ..services.order_service import can_view_order
from ..services.payment_service import get_payment_svc, update_payment_status_svc
from ..utils.parsing import parse_enum
from ..utils.responses import ok
from . import request_data

bp = Blueprint("payments", __name__, url_prefix="/payments")


@bp.get("/<int:payment_id>")
@require_user
def get_payment(payment_id: int):
    pay = get_payment_svc(payment_id)
    if not can_view_order(current_user(), pay.order):
        raise PermissionDenied(message="This payment belongs to someone else")
    return ok(pay.to_dict())


@bp.patch("/<int:payment_id>/status")
@require_user
def update_status(payment_id: int):
    status = parse_enum(PaymentStatus, request_data().get("status"), "status", required=True)
    pay = update_payment_status_svc(current_user(), payment_id, status)
    return ok(pay.to_dict())
