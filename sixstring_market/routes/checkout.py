from flask import Blueprint, current_app

from ..auth import current_user, require_user
from ..services.checkout_service import Checkout, run_checkout_svc
from ..utils.responses import ok
from . import request_data

bp = Blueprint("checkout", __name__, url_prefix="/checkout")


@bp.get("/<int:guitar_id>")
@require_user
def summary(guitar_id: int):
    return ok(Checkout(guitar_id, current_user(), current_app.config).summary())


@bp.post("/<int:guitar_id>")
@require_user
def checkout(guitar_id: int):
    """Body: {"method": "credit_card" | "cash_on_delivery" | "bank_transfer", ...method fields}."""
    d = request_data()
    result = run_checkout_svc(guitar_id, current_user(), d.get("method"), d, current_app.config)
    return ok(result.to_dict(), 201)
