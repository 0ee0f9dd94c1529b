from sqlalchemy import func

from ..auth import ensure_actor, ensure_owner
from ..db import db
from ..errors import NotFoundError, ValidationError
from ..models import GuitarReview, User
from ..utils.parsing import clean_str, parse_int
from ..utils.responses import commit_or_rollback
from .guitar_service import get_guitar_svc


def clamp_rating(v) -> int:
    n = parse_int(v)
    if n is None:
        raise ValidationError("invalid_rating", "Rating must be a whole number from 1 to 5")
    return max(1, min(5, n))


def get_review_svc(review_id: int) -> GuitarReview:
    r = db.session.get(GuitarReview, review_id)
    if not r:
        raise NotFoundError("review_not_found", "Review does not exist")
    return r


def add_review_svc(actor: User, guitar_id: int, rating, comment=None) -> GuitarReview:
    ensure_actor(actor)
    get_guitar_svc(guitar_id)
    r = GuitarReview(
        guitar_id=guitar_id,
        user_id=actor.id,
        rating=clamp_rating(rating),
        comment=clean_str(comment),
    )
    db.session.add(r)
    commit_or_rollback()
    return r


def update_review_svc(actor: User, review_id: int, rating=None, comment=None) -> GuitarReview:
    r = get_review_svc(review_id)
    ensure_owner(actor, r.user_id)
    if rating is not None:
        r.rating = clamp_rating(rating)
    if comment is not None:
        r.comment = clean_str(comment)
    commit_or_rollback()
    return r


def delete_review_svc(actor: User, review_id: int) -> bool:
    r = get_review_svc(review_id)
    ensure_owner(actor, r.user_id)
    db.session.delete(r)
    commit_or_rollback()
    return True


def reviews_for_guitar_svc(guitar_id: int) -> list[GuitarReview]:
    return (
        GuitarReview.query.filter_by(guitar_id=guitar_id)
        .order_by(GuitarReview.review_date.desc(), GuitarReview.id.desc())
        .all()
    )


def average_rating_svc(guitar_id: int) -> float:
    avg = (
        db.session.query(func.avg(GuitarReview.rating))
        .filter(GuitarReview.guitar_id == guitar_id)
        .scalar()
    )
    return float(avg) if avg is not None else 0.0
