from datetime import date
from decimal import Decimal
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict

from shopreports.models import OrderStatus


# Request bodies stay loose; the data store owns the constraint checks so the
# API reports the same rule names as direct callers.

class UserIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class ProductIn(BaseModel):
    name: Optional[str] = None
    price: Optional[Union[Decimal, str]] = None


class OrderIn(BaseModel):
    user_id: Optional[int] = None
    order_date: Optional[Union[date, str]] = None
    expected_delivery_date: Optional[Union[date, str]] = None
    status: Optional[str] = None


class OrderDetailIn(BaseModel):
    order_id: Optional[int] = None
    product_id: Optional[int] = None
    quantity: int = 1


class Created(BaseModel):
    id: int


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: Decimal


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    order_date: date
    expected_delivery_date: date
    status: OrderStatus


class OrderDetailOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    product_id: int
    quantity: int


# Report rows

class UserOrderLine(BaseModel):
    customer_name: str
    product_name: str
    order_date: date
    expected_delivery_date_text: str


class UndeliveredOrder(BaseModel):
    order_id: int
    customer_name: str
    status: OrderStatus
    order_date: date
    expected_delivery_date: date


class RecentOrder(BaseModel):
    order_id: int
    customer_name: str
    order_date: date
    status: OrderStatus


class ActiveUser(BaseModel):
    user_id: int
    name: str
    total_orders: int


class InactiveUser(BaseModel):
    user_id: int
    name: str


class ProductSales(BaseModel):
    product_id: int
    name: str
    total_quantity: int


class PriceExtreme(BaseModel):
    order_id: int
    customer_name: str
    total_amount: Decimal
    order_type: Literal["Cheapest", "Most Expensive"]
