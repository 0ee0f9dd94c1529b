from sqlalchemy.exc import IntegrityError

from ..auth import ensure_actor
from ..db import db
from ..models import SavedGuitar, User
from ..utils.responses import commit_or_rollback
from .guitar_service import get_guitar_svc


def is_saved_svc(user_id: int, guitar_id: int) -> bool:
    return SavedGuitar.query.filter_by(user_id=user_id, guitar_id=guitar_id).first() is not None


def save_guitar_svc(actor: User, guitar_id: int) -> SavedGuitar:
    """Bookmark a guitar; saving it again returns the existing bookmark."""
    ensure_actor(actor)
    get_guitar_svc(guitar_id)
    existing = SavedGuitar.query.filter_by(user_id=actor.id, guitar_id=guitar_id).first()
    if existing:
        return existing
    s = SavedGuitar(user_id=actor.id, guitar_id=guitar_id)
    db.session.add(s)
    try:
        db.session.commit()
    except IntegrityError:
        # saved concurrently by another request
        db.session.rollback()
        return SavedGuitar.query.filter_by(user_id=actor.id, guitar_id=guitar_id).one()
    return s


def unsave_guitar_svc(actor: User, guitar_id: int) -> bool:
    ensure_actor(actor)
    n = SavedGuitar.query.filter_by(user_id=actor.id, guitar_id=guitar_id).delete()
    commit_or_rollback()
    return n > 0


def saved_guitars_svc(user_id: int) -> list[SavedGuitar]:
    return (
        SavedGuitar.query.filter_by(user_id=user_id)
        .order_by(SavedGuitar.date_saved.desc(), SavedGuitar.id.desc())
        .all()
    )
