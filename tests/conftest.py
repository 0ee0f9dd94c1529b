"""
tests/conftest.py

Builds the app against an in-memory SQLite database and a temporary upload
folder, and seeds a seller, a buyer, an admin and one active guitar.
"""
from decimal import Decimal

import pytest

from sixstring_market import create_app
from sixstring_market.auth import make_token
from sixstring_market.config import TestConfig
from sixstring_market.db import db
from sixstring_market.models import Guitar, GuitarStatus, GuitarType, Condition, UserRole
from sixstring_market.services.user_service import create_user

PASSWORD = "Secret12"


@pytest.fixture
def app(tmp_path):
    class _Config(TestConfig):
        UPLOAD_FOLDER = str(tmp_path / "uploads")

    app = create_app(_Config)
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seller(app):
    return create_user("seller_one", PASSWORD, "seller@example.com", "0888123456", "1 Main Street, Sofia")


@pytest.fixture
def buyer(app):
    return create_user("buyer_one", PASSWORD, "buyer@example.com", "0888654321", "2 Side Street, Plovdiv")


@pytest.fixture
def other_buyer(app):
    return create_user("buyer_two", PASSWORD, "buyer2@example.com")


@pytest.fixture
def admin(app):
    return create_user("root_admin", PASSWORD, "admin@example.com", role=UserRole.ADMIN)


def make_guitar(seller, price="500.00", status=GuitarStatus.ACTIVE, **kw):
    fields = dict(
        seller_id=seller.id,
        title="Fender Stratocaster",
        brand="Fender",
        model="Stratocaster",
        type=GuitarType.ELECTRIC,
        condition=Condition.USED,
        manufacturing_year=2015,
        price=Decimal(price),
        description="Sunburst, maple neck",
        status=status,
    )
    fields.update(kw)
    g = Guitar(**fields)
    db.session.add(g)
    db.session.commit()
    return g


@pytest.fixture
def guitar(seller):
    return make_guitar(seller)


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        return {"Authorization": f"Bearer {make_token(user)}"}

    return _headers
