from flask import Blueprint

from ..auth import current_user, require_user
from ..services.saved_guitar_service import is_saved_svc, save_guitar_svc, saved_guitars_svc, unsave_guitar_svc
from ..utils.responses import ok

bp = Blueprint("saved", __name__, url_prefix="/saved")


@bp.get("")
@require_user
def list_saved():
    return ok({"data": [s.to_dict() for s in saved_guitars_svc(current_user().id)]})


@bp.get("/<int:guitar_id>")
@require_user
def check_saved(guitar_id: int):
    return ok({"saved": is_saved_svc(current_user().id, guitar_id)})


@bp.post("/<int:guitar_id>")
@require_user
def save(guitar_id: int):
    s = save_guitar_svc(current_user(), guitar_id)
    return ok({"id": s.id, "saved": True}, 201)


@bp.delete("/<int:guitar_id>")
@require_user
def unsave(guitar_id: int):
    return ok({"removed": unsave_guitar_svc(current_user(), guitar_id)})
