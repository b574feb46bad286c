import logging
from datetime import date
from decimal import Decimal

from shopreports.models import OrderStatus
from shopreports.store import DataStore

logger = logging.getLogger(__name__)

USERS = [
    ("Alice Johnson", "alice@example.com"),
    ("Bob Smith", "bob@example.com"),
    ("Charlie Brown", "charlie@example.com"),
    ("David Lee", "david@example.com"),
    ("Eve Taylor", "eve@example.com"),
]

PRODUCTS = [
    ("Laptop", Decimal("1200.00")),
    ("Smartphone", Decimal("800.00")),
    ("Tablet", Decimal("500.00")),
    ("Headphones", Decimal("150.00")),
    ("Smartwatch", Decimal("250.00")),
    ("Keyboard", Decimal("75.00")),
]

# user (position in USERS), order_date, expected_delivery_date, status
ORDERS = [
    (1, date(2024, 1, 10), date(2024, 1, 15), OrderStatus.DELIVERED),
    (2, date(2024, 1, 12), date(2024, 1, 18), OrderStatus.SHIPPED),
    (3, date(2024, 1, 15), date(2024, 1, 20), OrderStatus.PENDING),
    (1, date(2024, 1, 20), date(2024, 1, 25), OrderStatus.DELIVERED),
    (2, date(2024, 1, 22), date(2024, 1, 28), OrderStatus.CANCELLED),
    (4, date(2024, 1, 25), date(2024, 1, 30), OrderStatus.PENDING),
]

# order (position in ORDERS), product (position in PRODUCTS), quantity
ORDER_DETAILS = [
    (1, 1, 1),
    (1, 4, 2),
    (2, 2, 1),
    (2, 4, 1),
    (3, 3, 1),
    (3, 6, 2),
    (4, 5, 1),
    (4, 4, 1),
    (5, 1, 1),
    (6, 6, 3),
]


def load_seed_data(store: DataStore) -> None:
    """Insert the demo dataset in one transaction.

    Orders and line items point at the rows created here whatever ids the
    database hands out, so existing rows are left alone. If any row is
    rejected, for instance because a demo email is already registered,
    nothing is inserted.
    """
    with store.batch():
        user_ids = [store.insert_user(name, email) for name, email in USERS]
        product_ids = [store.insert_product(name, price) for name, price in PRODUCTS]
        order_ids = [
            store.insert_order(user_ids[user - 1], order_date, expected, status)
            for user, order_date, expected, status in ORDERS
        ]
        for order, product, quantity in ORDER_DETAILS:
            store.insert_order_detail(order_ids[order - 1], product_ids[product - 1], quantity)
    logger.info(
        f"Seeded {len(USERS)} users, {len(PRODUCTS)} products, "
        f"{len(ORDERS)} orders, {len(ORDER_DETAILS)} order details"
    )
