# routes/guitars.py
from flask import Blueprint, current_app, request, send_from_directory

from ..auth import current_user, require_user
from ..errors import ValidationError
from ..models import GuitarStatus
from ..services.guitar_service import (
    add_guitar_svc,
    available_brands_svc,
    get_guitar_svc,
    guitars_by_seller_svc,
    guitars_by_status_svc,
    remove_guitar_svc,
    search_guitars_svc,
    update_guitar_svc,
)
from ..services.review_service import average_rating_svc
from ..utils.parsing import parse_decimal, parse_enum
from ..utils.responses import ok
from . import request_data

bp = Blueprint("guitars", __name__, url_prefix="/guitars")


def _uploaded_image():
    f = request.files.get("image")
    return f if f and f.filename else None


@bp.get("")
def list_guitars():
    a = request.args
    status = parse_enum(GuitarStatus, a.get("status"), "status")
    if status is not None and status != GuitarStatus.ACTIVE:
        return ok({"data": [x.to_dict() for x in guitars_by_status_svc(status)]})

    min_price = parse_decimal(a.get("min_price"))
    max_price = parse_decimal(a.get("max_price"))
    if min_price is not None and max_price is not None and min_price > max_price:
        raise ValidationError("invalid_price_range", "min_price is greater than max_price")
    data = search_guitars_svc(
        keyword=a.get("q"),
        type=a.get("type") or None,
        brand=a.get("brand"),
        min_price=min_price,
        max_price=max_price,
        condition=a.get("condition") or None,
    )
    return ok({"data": [x.to_dict() for x in data]})


@bp.get("/brands")
def brands():
    return ok({"data": available_brands_svc()})


@bp.get("/seller/<int:seller_id>")
def by_seller(seller_id: int):
    return ok({"data": [x.to_dict() for x in guitars_by_seller_svc(seller_id)]})


@bp.get("/<int:guitar_id>")
def get_guitar(guitar_id: int):
    g = get_guitar_svc(guitar_id)
    return ok({**g.to_dict(), "average_rating": average_rating_svc(g.id)})


@bp.post("")
@require_user
def create_guitar():
    g = add_guitar_svc(current_user(), request_data(), image=_uploaded_image())
    return ok(g.to_dict(), 201)


@bp.put("/<int:guitar_id>")
@require_user
def update_guitar(guitar_id: int):
    g = update_guitar_svc(current_user(), guitar_id, request_data(), image=_uploaded_image())
    return ok(g.to_dict())


@bp.delete("/<int:guitar_id>")
@require_user
def delete_guitar(guitar_id: int):
    g = remove_guitar_svc(current_user(), guitar_id)
    return ok({"ok": True, "status": g.status.value})


@bp.get("/images/<path:name>")
def guitar_image(name):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], name)
