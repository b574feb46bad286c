"""
Derived relations over the four tables.

Every function takes an open session and returns SQLAlchemy rows with named
columns; the report layer turns them into response models. Joins are inner
joins unless noted, so rows whose references do not resolve are skipped.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple

from sqlalchemy import Numeric, func, type_coerce
from sqlalchemy.orm import Session

from shopreports.models import Order, OrderDetail, OrderStatus, Product, User

CENTS = Decimal("0.01")


class OrderTotal(NamedTuple):
    order_id: int
    customer_name: str
    total_amount: Decimal


def delivery_status_text(expected_delivery_date: date, today: date) -> str:
    """Describe delivery timing from dates alone.

    A future expected date reads ``"within N days"``; today or any past date
    reads ``"Delivered"`` whatever the order's status field says.
    """
    if expected_delivery_date > today:
        days = (expected_delivery_date - today).days
        return f"within {days} days"
    return "Delivered"


def order_line_view(db: Session):
    return (
        db.query(
            User.name.label("customer_name"),
            Product.name.label("product_name"),
            Order.order_date,
            Order.expected_delivery_date,
        )
        .select_from(OrderDetail)
        .join(Order, OrderDetail.order_id == Order.id)
        .join(Product, OrderDetail.product_id == Product.id)
        .join(User, Order.user_id == User.id)
        .order_by(Order.id, OrderDetail.id)
        .all()
    )


def undelivered_orders(db: Session):
    return (
        db.query(
            Order.id.label("order_id"),
            User.name.label("customer_name"),
            Order.status,
            Order.order_date,
            Order.expected_delivery_date,
        )
        .join(User, Order.user_id == User.id)
        .filter(Order.status != OrderStatus.DELIVERED)
        .order_by(Order.id)
        .all()
    )


def recent_orders(db: Session, n: int = 5):
    # same-date orders come back in insertion (id) order
    return (
        db.query(
            Order.id.label("order_id"),
            User.name.label("customer_name"),
            Order.order_date,
            Order.status,
        )
        .join(User, Order.user_id == User.id)
        .order_by(Order.order_date.desc(), Order.id)
        .limit(n)
        .all()
    )


def user_order_counts(db: Session):
    return (
        db.query(
            User.id.label("user_id"),
            User.name,
            func.count(Order.id).label("total_orders"),
        )
        .join(Order, Order.user_id == User.id)
        .group_by(User.id, User.name)
        .order_by(User.id)
        .all()
    )


def users_without_orders(db: Session):
    return (
        db.query(User.id.label("user_id"), User.name)
        .outerjoin(Order, Order.user_id == User.id)
        .filter(Order.id.is_(None))
        .order_by(User.id)
        .all()
    )


def product_sales(db: Session):
    return (
        db.query(
            Product.id.label("product_id"),
            Product.name,
            func.sum(OrderDetail.quantity).label("total_quantity"),
        )
        .join(OrderDetail, OrderDetail.product_id == Product.id)
        .group_by(Product.id, Product.name)
        .order_by(Product.id)
        .all()
    )


def order_totals(db: Session):
    """Sum of price x quantity per order, with the owning user's name.

    Orders without line items have no total and are left out.
    """
    total = type_coerce(func.sum(Product.price * OrderDetail.quantity), Numeric(12, 2))
    rows = (
        db.query(
            Order.id.label("order_id"),
            User.name.label("customer_name"),
            total.label("total_amount"),
        )
        .select_from(OrderDetail)
        .join(Order, OrderDetail.order_id == Order.id)
        .join(Product, OrderDetail.product_id == Product.id)
        .join(User, Order.user_id == User.id)
        .group_by(Order.id, User.name)
        .order_by(Order.id)
        .all()
    )
    return [
        OrderTotal(
            row.order_id,
            row.customer_name,
            Decimal(str(row.total_amount)).quantize(CENTS, rounding=ROUND_HALF_UP),
        )
        for row in rows
    ]
