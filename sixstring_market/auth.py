# auth.py
import uuid
from datetime import datetime, timedelta
from functools import wraps

import jwt
from flask import current_app, g, request

from .db import db
from .errors import NotAuthenticated, PermissionDenied
from .models import RevokedToken, User


# ---------- Tokens ----------
def make_token(u: User) -> str:
    payload = {
        "sub": str(u.id),
        "username": u.username,
        "role": u.role.value,
        "jti": uuid.uuid4().hex,
        "exp": datetime.utcnow() + timedelta(hours=current_app.config["JWT_TTL_HOURS"]),
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=current_app.config["JWT_ALGO"])


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGO"]],
        )
    except jwt.PyJWTError:
        raise NotAuthenticated("invalid_token", "Token is invalid or expired") from None


def bearer_token() -> str | None:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None


def is_revoked(jti: str | None) -> bool:
    return bool(jti) and RevokedToken.query.filter_by(jti=jti).first() is not None


def current_user() -> User | None:
    """Resolve the caller of this request from its bearer token (cached on ``g``)."""
    if "user" in g:
        return g.user
    g.user, g.token = None, None
    token = bearer_token()
    if token:
        payload = decode_token(token)
        if is_revoked(payload.get("jti")):
            raise NotAuthenticated("token_revoked", "You have been logged out")
        u = db.session.get(User, int(payload.get("sub", 0)))
        if not u:
            raise NotAuthenticated("user_not_found", "The account no longer exists")
        g.user, g.token = u, payload
    return g.user


# ---------- Guards ----------
def ensure_actor(actor: User | None) -> User:
    if actor is None:
        raise NotAuthenticated(message="You need to log in first")
    return actor


def ensure_admin(actor: User | None) -> User:
    ensure_actor(actor)
    if not actor.is_admin:
        raise PermissionDenied("not_admin", "Administrator rights required")
    return actor


def has_permission(actor: User | None, owner_id: int) -> bool:
    if actor is None:
        return False
    return actor.is_admin or actor.id == owner_id


def ensure_owner(actor: User | None, owner_id: int) -> User:
    ensure_actor(actor)
    if not has_permission(actor, owner_id):
        raise PermissionDenied(message="You can only modify your own resources")
    return actor


def require_user(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        ensure_actor(current_user())
        return func(*args, **kwargs)

    return wrapper


def require_admin(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        ensure_admin(current_user())
        return func(*args, **kwargs)

    return wrapper
