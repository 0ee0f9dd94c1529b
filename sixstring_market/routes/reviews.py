from flask import Blueprint

from ..auth import current_user, require_user
from ..services.review_service import (
    add_review_svc,
    average_rating_svc,
    delete_review_svc,
    reviews_for_guitar_svc,
    update_review_svc,
)
from ..utils.responses import ok
from . import request_data

bp = Blueprint("reviews", __name__, url_prefix="/reviews")


@bp.get("/guitar/<int:guitar_id>")
def list_reviews(guitar_id: int):
    """Reviews of one guitar, newest first, with the average rating."""
    data = [r.to_dict() for r in reviews_for_guitar_svc(guitar_id)]
    return ok({"data": data, "average": average_rating_svc(guitar_id), "count": len(data)})


@bp.post("/guitar/<int:guitar_id>")
@require_user
def create_review(guitar_id: int):
    d = request_data()
    r = add_review_svc(current_user(), guitar_id, d.get("rating"), d.get("comment"))
    return ok(r.to_dict(), 201)


@bp.put("/<int:review_id>")
@require_user
def update_review(review_id: int):
    d = request_data()
    r = update_review_svc(current_user(), review_id, d.get("rating"), d.get("comment"))
    return ok(r.to_dict())


@bp.delete("/<int:review_id>")
@require_user
def delete_review(review_id: int):
    delete_review_svc(current_user(), review_id)
    return ok({"ok": True})
