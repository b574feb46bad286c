"""
Row validation for the four entity kinds.

Each ``validate_*`` function takes a candidate field mapping and returns the
normalized values ready to be stored, or raises ``ConstraintViolation`` naming
the first rule that failed. Nothing is written here; the data store calls these
before it touches the session so a rejected row never becomes visible.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict

from sqlalchemy.orm import Session

from shopreports.errors import ConstraintViolation
from shopreports.models import Order, OrderStatus, Product, User

CENTS = Decimal("0.01")
MAX_PRICE = Decimal("99999999.99")

# SQLite and Postgres BIGINT bounds
MIN_INTEGER = -(2 ** 63)
MAX_INTEGER = 2 ** 63 - 1

USER_FIELDS = {"name", "email"}
PRODUCT_FIELDS = {"name", "price"}
ORDER_FIELDS = {"user_id", "order_date", "expected_delivery_date", "status"}
ORDER_DETAIL_FIELDS = {"order_id", "product_id", "quantity"}


def fits_integer_column(value: Any) -> bool:
    # bool is an int subclass but never a valid id or quantity
    return isinstance(value, int) and not isinstance(value, bool) and MIN_INTEGER <= value <= MAX_INTEGER


def _check_fields(table: str, fields: Dict[str, Any], allowed: set) -> None:
    unknown = sorted(set(fields) - allowed)
    if unknown:
        raise ConstraintViolation(
            f"{table}.unknown_field",
            f"Unknown field(s) for {table}: {', '.join(unknown)}",
        )


def _require_text(table: str, column: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConstraintViolation(f"{table}.{column}.not_null", f"{table}.{column} must be a non-empty string")
    return value


def _require_date(table: str, column: str, value: Any) -> date:
    if value is None:
        raise ConstraintViolation(f"{table}.{column}.not_null", f"{table}.{column} is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise ConstraintViolation(f"{table}.{column}.type", f"{table}.{column} must be a date, got {value!r}")


def _require_int(table: str, column: str, value: Any) -> int:
    if not fits_integer_column(value):
        raise ConstraintViolation(f"{table}.{column}.type", f"{table}.{column} must be a 64-bit integer, got {value!r}")
    return value


def _require_exists(session: Session, table: str, column: str, model, value: Any) -> int:
    if value is None:
        raise ConstraintViolation(f"{table}.{column}.not_null", f"{table}.{column} is required")
    if not fits_integer_column(value) or session.get(model, value) is None:
        raise ConstraintViolation(
            f"{table}.{column}.foreign_key",
            f"{table}.{column}={value!r} does not reference an existing {model.__tablename__} row",
        )
    return value


def to_price(value: Any) -> Decimal:
    if value is None:
        raise ConstraintViolation("products.price.not_null", "products.price is required")
    if isinstance(value, bool):
        raise ConstraintViolation("products.price.type", f"products.price must be a number, got {value!r}")
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ConstraintViolation("products.price.type", f"products.price must be a number, got {value!r}")
    if not price.is_finite():
        raise ConstraintViolation("products.price.type", f"products.price must be finite, got {value!r}")
    if abs(price) > MAX_PRICE:
        raise ConstraintViolation("products.price.check", f"products.price must be between 0 and {MAX_PRICE}, got {value!r}")
    try:
        price = price.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ConstraintViolation("products.price.type", f"products.price must be a number, got {value!r}")
    if price > MAX_PRICE:
        raise ConstraintViolation("products.price.check", f"products.price must be between 0 and {MAX_PRICE}, got {value!r}")
    return price


def to_status(value: Any) -> OrderStatus:
    if value is None:
        return OrderStatus.PENDING
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ConstraintViolation("orders.status.check", f"orders.status must be one of {allowed}, got {value!r}")


def validate_user(session: Session, fields: Dict[str, Any]) -> Dict[str, Any]:
    _check_fields("users", fields, USER_FIELDS)
    name = _require_text("users", "name", fields.get("name"))
    email = _require_text("users", "email", fields.get("email"))
    if session.query(User.id).filter(User.email == email).first() is not None:
        raise ConstraintViolation("users.email.unique", f"Email {email!r} is already registered")
    return {"name": name, "email": email}


def validate_product(session: Session, fields: Dict[str, Any]) -> Dict[str, Any]:
    _check_fields("products", fields, PRODUCT_FIELDS)
    name = _require_text("products", "name", fields.get("name"))
    price = to_price(fields.get("price"))
    if price < 0:
        raise ConstraintViolation("products.price.check", f"products.price must be >= 0, got {price}")
    return {"name": name, "price": price}


def validate_order(session: Session, fields: Dict[str, Any]) -> Dict[str, Any]:
    _check_fields("orders", fields, ORDER_FIELDS)
    user_id = _require_exists(session, "orders", "user_id", User, fields.get("user_id"))
    order_date = _require_date("orders", "order_date", fields.get("order_date"))
    expected = _require_date("orders", "expected_delivery_date", fields.get("expected_delivery_date"))
    status = to_status(fields.get("status"))
    return {
        "user_id": user_id,
        "order_date": order_date,
        "expected_delivery_date": expected,
        "status": status,
    }


def validate_order_detail(session: Session, fields: Dict[str, Any]) -> Dict[str, Any]:
    _check_fields("order_details", fields, ORDER_DETAIL_FIELDS)
    order_id = _require_exists(session, "order_details", "order_id", Order, fields.get("order_id"))
    product_id = _require_exists(session, "order_details", "product_id", Product, fields.get("product_id"))
    quantity = fields.get("quantity")
    if quantity is None:
        quantity = 1
    quantity = _require_int("order_details", "quantity", quantity)
    if quantity <= 0:
        raise ConstraintViolation("order_details.quantity.check", f"order_details.quantity must be > 0, got {quantity}")
    return {"order_id": order_id, "product_id": product_id, "quantity": quantity}


VALIDATORS = {
    "user": validate_user,
    "product": validate_product,
    "order": validate_order,
    "order_detail": validate_order_detail,
}
