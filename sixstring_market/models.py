# models.py
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Enum, Index
from .db import db


class GuitarType(PyEnum):
    ACOUSTIC = "ACOUSTIC"
    ELECTRIC = "ELECTRIC"
    CLASSICAL = "CLASSICAL"
    BASS = "BASS"
    OTHER = "OTHER"


class Condition(PyEnum):
    NEW = "NEW"
    USED = "USED"
    VINTAGE = "VINTAGE"


class GuitarStatus(PyEnum):
    ACTIVE = "ACTIVE"
    RESERVED = "RESERVED"
    SOLD = "SOLD"
    REMOVED = "REMOVED"


class OrderStatus(PyEnum):
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class UserRole(PyEnum):
    USER = "USER"
    ADMIN = "ADMIN"


class PaymentMethodType(PyEnum):
    CREDIT_CARD = "CREDIT_CARD"
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"
    BANK_TRANSFER = "BANK_TRANSFER"


class PaymentStatus(PyEnum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


def _money(v):
    return f"{v:.2f}" if v is not None else None


def _iso(dt):
    return dt.isoformat() if dt else None


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    password = db.Column(db.String(255), nullable=False)  # werkzeug hash
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(20))
    address = db.Column(db.String(255))
    role = db.Column(Enum(UserRole, name="user_role"), nullable=False, default=UserRole.USER)
    registration_date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "role": self.role.value,
            "registration_date": _iso(self.registration_date),
        }

    def __repr__(self):
        return f"<User {self.username} {'(Admin)' if self.is_admin else ''}>"


class Guitar(db.Model):
    __tablename__ = "guitars"

    id = db.Column(db.Integer, primary_key=True)
    seller_id = db.Column(db.Integer, index=True, nullable=False)
    title = db.Column(db.String(180), nullable=False, index=True)
    brand = db.Column(db.String(80), nullable=False, index=True)
    model = db.Column(db.String(80))
    type = db.Column(Enum(GuitarType, name="guitar_type"), nullable=False, default=GuitarType.ELECTRIC)
    condition = db.Column(Enum(Condition, name="guitar_condition"), nullable=False, default=Condition.USED)
    manufacturing_year = db.Column(db.Integer)
    price = db.Column(db.Numeric(10, 2), nullable=False, index=True)
    description = db.Column(db.Text)
    image_path = db.Column(db.String(255))
    date_added = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    status = db.Column(
        Enum(GuitarStatus, name="guitar_status"),
        nullable=False,
        default=GuitarStatus.ACTIVE,
        index=True,
    )

    def to_dict(self):
        return {
            "id": self.id,
            "seller_id": self.seller_id,
            "title": self.title,
            "brand": self.brand,
            "model": self.model,
            "type": self.type.value,
            "condition": self.condition.value,
            "manufacturing_year": self.manufacturing_year,
            "price": _money(self.price),
            "description": self.description,
            "image_path": self.image_path,
            "date_added": _iso(self.date_added),
            "status": self.status.value,
        }

    def __repr__(self):
        return f"<Guitar {self.id} {self.title!r} {self.status.value}>"


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    guitar_id = db.Column(db.Integer, db.ForeignKey("guitars.id"), nullable=False, index=True)
    buyer_id = db.Column(db.Integer, index=True, nullable=False)
    seller_id = db.Column(db.Integer, index=True, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    order_date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    status = db.Column(
        Enum(OrderStatus, name="order_status"),
        nullable=False,
        default=OrderStatus.PROCESSING,
    )

    guitar = db.relationship("Guitar", lazy="joined")
    payments = db.relationship("Payment", back_populates="order", lazy=True, cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_order_status_date", "status", "order_date"),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)

    def to_dict(self):
        return {
            "id": self.id,
            "guitar_id": self.guitar_id,
            "guitar_title": self.guitar.title if self.guitar else None,
            "buyer_id": self.buyer_id,
            "seller_id": self.seller_id,
            "price": _money(self.price),
            "order_date": _iso(self.order_date),
            "status": self.status.value,
        }


class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    method = db.Column(Enum(PaymentMethodType, name="payment_method"), nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    payment_date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    status = db.Column(
        Enum(PaymentStatus, name="payment_status"),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    reference = db.Column(db.Text)

    order = db.relationship("Order", back_populates="payments")

    def to_dict(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "method": self.method.value,
            "amount": _money(self.amount),
            "payment_date": _iso(self.payment_date),
            "status": self.status.value,
            "reference": self.reference,
        }


class SavedGuitar(db.Model):
    __tablename__ = "saved_guitars"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, index=True, nullable=False)
    guitar_id = db.Column(db.Integer, db.ForeignKey("guitars.id"), nullable=False)
    date_saved = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    guitar = db.relationship("Guitar")

    __table_args__ = (
        db.UniqueConstraint("user_id", "guitar_id", name="uq_user_guitar"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "guitar_id": self.guitar_id,
            "date_saved": _iso(self.date_saved),
            "guitar": self.guitar.to_dict() if self.guitar else None,
        }


class GuitarReview(db.Model):
    __tablename__ = "guitar_reviews"

    id = db.Column(db.Integer, primary_key=True)
    guitar_id = db.Column(db.Integer, db.ForeignKey("guitars.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, index=True, nullable=False)
    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text)
    review_date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    guitar = db.relationship("Guitar")

    def to_dict(self):
        return {
            "id": self.id,
            "guitar_id": self.guitar_id,
            "user_id": self.user_id,
            "rating": self.rating,
            "comment": self.comment,
            "review_date": _iso(self.review_date),
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<GuitarReview id={self.id} guitar_id={self.guitar_id} rating={self.rating}>"


class RevokedToken(db.Model):
    __tablename__ = "revoked_tokens"

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(64), unique=True, nullable=False, index=True)
    revoked_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)


__all__ = [
    "db",
    "User",
    "Guitar",
    "Order",
    "Payment",
    "SavedGuitar",
    "GuitarReview",
    "RevokedToken",
    "GuitarType",
    "Condition",
    "GuitarStatus",
    "OrderStatus",
    "UserRole",
    "PaymentMethodType",
    "PaymentStatus",
]
