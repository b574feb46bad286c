"""
Named report operations.

Each ``fetch_*`` function reads the current contents of the store through an
open session and returns a list of row models. Empty results are valid. The
current date is never read from the system clock directly: reports that need
it take a ``clock`` callable.
"""

from datetime import date
from typing import Callable, List

from sqlalchemy.orm import Session

from shopreports import queries, ranking
from shopreports.constraints import MAX_INTEGER
from shopreports.schemas import (
    ActiveUser,
    InactiveUser,
    PriceExtreme,
    ProductSales,
    RecentOrder,
    UndeliveredOrder,
    UserOrderLine,
)

Clock = Callable[[], date]

DEFAULT_LIMIT = 5


def _check_limit(limit: int) -> None:
    if not 0 <= limit <= MAX_INTEGER:
        raise ValueError(f"limit must be between 0 and {MAX_INTEGER}, got {limit}")


def fetch_user_order_list(db: Session, clock: Clock = date.today) -> List[UserOrderLine]:
    today = clock()
    return [
        UserOrderLine(
            customer_name=row.customer_name,
            product_name=row.product_name,
            order_date=row.order_date,
            expected_delivery_date_text=queries.delivery_status_text(row.expected_delivery_date, today),
        )
        for row in queries.order_line_view(db)
    ]


def fetch_undelivered_orders(db: Session) -> List[UndeliveredOrder]:
    return [
        UndeliveredOrder(
            order_id=row.order_id,
            customer_name=row.customer_name,
            status=row.status,
            order_date=row.order_date,
            expected_delivery_date=row.expected_delivery_date,
        )
        for row in queries.undelivered_orders(db)
    ]


def fetch_recent_orders(db: Session, limit: int = DEFAULT_LIMIT) -> List[RecentOrder]:
    _check_limit(limit)
    return [
        RecentOrder(
            order_id=row.order_id,
            customer_name=row.customer_name,
            order_date=row.order_date,
            status=row.status,
        )
        for row in queries.recent_orders(db, limit)
    ]


def fetch_top_active_users(db: Session, limit: int = DEFAULT_LIMIT) -> List[ActiveUser]:
    """Users with the most orders, exactly ``limit`` rows at most.

    Tied users are ordered by id and a tie straddling the boundary is cut,
    not expanded. Users without orders never appear.
    """
    _check_limit(limit)
    ranked = ranking.competition_rank(
        queries.user_order_counts(db),
        key=lambda row: row.total_orders,
        descending=True,
    )
    return [
        ActiveUser(user_id=row.user_id, name=row.name, total_orders=row.total_orders)
        for _, row in ranking.limit(ranked, limit)
    ]


def fetch_inactive_users(db: Session) -> List[InactiveUser]:
    return [InactiveUser(user_id=row.user_id, name=row.name) for row in queries.users_without_orders(db)]


def fetch_top_products(db: Session, limit: int = DEFAULT_LIMIT) -> List[ProductSales]:
    _check_limit(limit)
    ranked = ranking.competition_rank(
        queries.product_sales(db),
        key=lambda row: row.total_quantity,
        descending=True,
    )
    return [
        ProductSales(product_id=row.product_id, name=row.name, total_quantity=row.total_quantity)
        for _, row in ranking.limit(ranked, limit)
    ]


def fetch_price_extremes(db: Session) -> List[PriceExtreme]:
    """Cheapest and most expensive orders by total amount.

    Every order tied at either end is returned. Cheapest rows come first; an
    order that is both cheapest and most expensive appears twice.
    """
    totals = queries.order_totals(db)
    extremes = []
    for order_type, descending in (("Cheapest", False), ("Most Expensive", True)):
        ranked = ranking.competition_rank(totals, key=lambda row: row.total_amount, descending=descending)
        extremes.extend(
            PriceExtreme(
                order_id=row.order_id,
                customer_name=row.customer_name,
                total_amount=row.total_amount,
                order_type=order_type,
            )
            for _, row in ranking.at_rank(ranked, 1)
        )
    return extremes
