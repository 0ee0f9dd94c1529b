import logging
from decimal import Decimal

from flask import current_app
from sqlalchemy import or_

from ..auth import ensure_actor, ensure_owner
from ..db import db
from ..errors import NotFoundError, PersistenceError, ValidationError
from ..models import Condition, Guitar, GuitarStatus, GuitarType, User
from ..utils.parsing import clean_str, parse_enum, parse_decimal
from ..utils.responses import commit_or_rollback
from ..validators import is_valid_price, is_valid_year, normalize_search_term
from .image_store import ImageStore

log = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def _images(images: ImageStore | None) -> ImageStore:
    return images or ImageStore.from_config(current_app.config)


def _clean_fields(data: dict, base: Guitar | None = None) -> dict:
    """Validate listing fields; on update, missing keys keep ``base`` values."""
    def pick(key):
        if key in data:
            return data.get(key)
        return getattr(base, key) if base is not None else None

    title = clean_str(pick("title"))
    brand = clean_str(pick("brand"))
    if not title:
        raise ValidationError("missing_title", "Title is required")
    if not brand:
        raise ValidationError("missing_brand", "Brand is required")

    price = pick("price")
    if not is_valid_price(price):
        raise ValidationError("invalid_price", "Price must be a positive number")

    year = pick("manufacturing_year")
    if year in ("", None):
        year = None
    elif not is_valid_year(year):
        raise ValidationError("invalid_year", "Manufacturing year must be between 1900 and this year")

    return {
        "title": title,
        "brand": brand,
        "model": clean_str(pick("model")),
        "type": parse_enum(GuitarType, pick("type"), "type") or GuitarType.OTHER,
        "condition": parse_enum(Condition, pick("condition"), "condition") or Condition.USED,
        "manufacturing_year": int(year) if year is not None else None,
        "price": parse_decimal(price).quantize(CENTS),
        "description": clean_str(pick("description")),
    }


def _commit_or_discard(store: ImageStore | None, new_path: str | None):
    """Commit; on failure delete the file stored for this change and re-raise."""
    try:
        commit_or_rollback()
    except PersistenceError:
        if store and new_path:
            store.delete(new_path)
        raise


def add_guitar_svc(actor: User, data: dict, image=None, images: ImageStore | None = None) -> Guitar:
    ensure_actor(actor)
    fields = _clean_fields(data)
    g = Guitar(seller_id=actor.id, status=GuitarStatus.ACTIVE, **fields)
    store = _images(images) if image is not None else None
    if store:
        g.image_path = store.store(image, "guitars")
    db.session.add(g)
    _commit_or_discard(store, g.image_path)
    log.info("guitar %s listed by %s", g.id, actor.username)
    return g


def get_guitar_svc(guitar_id: int) -> Guitar:
    g = db.session.get(Guitar, guitar_id)
    if not g:
        raise NotFoundError("guitar_not_found", "Guitar does not exist")
    return g


def update_guitar_svc(actor: User, guitar_id: int, data: dict, image=None,
                      images: ImageStore | None = None) -> Guitar:
    g = get_guitar_svc(guitar_id)
    ensure_owner(actor, g.seller_id)
    if g.status == GuitarStatus.REMOVED:
        raise ValidationError("guitar_removed", "A removed listing cannot be edited")
    fields = _clean_fields(data, base=g)
    for k, v in fields.items():
        setattr(g, k, v)

    store = _images(images) if image is not None else None
    new_path = store.store(image, "guitars") if store else None
    old_path = g.image_path
    if new_path:
        g.image_path = new_path
    _commit_or_discard(store, new_path)
    # the old file goes only once the row no longer points at it
    if new_path and old_path:
        store.delete(old_path)
    return g


def remove_guitar_svc(actor: User, guitar_id: int, images: ImageStore | None = None) -> Guitar:
    g = get_guitar_svc(guitar_id)
    ensure_owner(actor, g.seller_id)
    if g.status == GuitarStatus.REMOVED:
        return g
    if g.status != GuitarStatus.ACTIVE:
        raise ValidationError("guitar_has_order", "Only an active listing can be removed")
    old_path = g.image_path
    g.image_path = None
    g.status = GuitarStatus.REMOVED
    commit_or_rollback()
    if old_path:
        _images(images).delete(old_path)
    log.info("guitar %s removed by %s", g.id, actor.username)
    return g


def active_guitars_svc() -> list[Guitar]:
    return guitars_by_status_svc(GuitarStatus.ACTIVE)


def guitars_by_seller_svc(seller_id: int) -> list[Guitar]:
    return Guitar.query.filter_by(seller_id=seller_id).order_by(Guitar.date_added.desc()).all()


def guitars_by_status_svc(status: GuitarStatus) -> list[Guitar]:
    return Guitar.query.filter_by(status=status).order_by(Guitar.date_added.desc()).all()


def search_guitars_svc(keyword=None, type=None, brand=None, min_price=None, max_price=None,
                       condition=None) -> list[Guitar]:
    """Search active listings. Every criterion is optional."""
    q = Guitar.query.filter(Guitar.status == GuitarStatus.ACTIVE)

    kw = normalize_search_term(keyword)
    if kw:
        like = f"%{kw}%"
        q = q.filter(or_(
            Guitar.title.ilike(like),
            Guitar.brand.ilike(like),
            Guitar.model.ilike(like),
            Guitar.description.ilike(like),
        ))
    if type is not None:
        q = q.filter(Guitar.type == parse_enum(GuitarType, type, "type"))
    brand = clean_str(brand)
    if brand:
        q = q.filter(Guitar.brand.ilike(brand))
    if min_price is not None:
        q = q.filter(Guitar.price >= min_price)
    if max_price is not None:
        q = q.filter(Guitar.price <= max_price)
    if condition is not None:
        q = q.filter(Guitar.condition == parse_enum(Condition, condition, "condition"))
    return q.order_by(Guitar.date_added.desc()).all()


def available_brands_svc() -> list[str]:
    rows = (
        db.session.query(Guitar.brand)
        .filter(Guitar.status == GuitarStatus.ACTIVE, Guitar.brand.isnot(None))
        .distinct()
        .all()
    )
    return sorted({b for (b,) in rows if b})

