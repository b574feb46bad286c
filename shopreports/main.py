import logging
from datetime import date
from typing import List

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from shopreports import __version__, reports
from shopreports.constraints import MAX_INTEGER
from shopreports.database import SessionLocal, engine, get_db, load_schema
from shopreports.errors import ConstraintViolation, NotFound
from shopreports.schemas import (
    ActiveUser,
    Created,
    InactiveUser,
    OrderDetailIn,
    OrderDetailOut,
    OrderIn,
    OrderOut,
    PriceExtreme,
    ProductIn,
    ProductOut,
    ProductSales,
    RecentOrder,
    UndeliveredOrder,
    UserIn,
    UserOrderLine,
    UserOut,
)
from shopreports.seed import load_seed_data
from shopreports.settings import LOG_FORMAT, settings
from shopreports.store import DataStore

logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Shop Reports",
    description="Users, products and orders with analytical order reports",
    version=__version__,
)

load_schema(engine)

if settings.seed_on_startup:
    with SessionLocal() as session:
        seed_store = DataStore(session)
        if seed_store.count("user") == 0:
            load_seed_data(seed_store)


def get_store(db: Session = Depends(get_db)) -> DataStore:
    return DataStore(db)


def get_clock():
    return date.today


@app.exception_handler(ConstraintViolation)
async def constraint_violation_handler(request: Request, exc: ConstraintViolation):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": exc.message, "rule": exc.rule},
    )


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.get("/", tags=["Root"])
def read_root():
    return {"message": "Shop Reports is running!"}


# Users
@app.post("/api/users", tags=["Users"], summary="Add a new user", response_model=Created, status_code=201)
def add_user(user: UserIn, store: DataStore = Depends(get_store)):
    return {"id": store.insert("user", user.model_dump())}


@app.get("/api/users", tags=["Users"], summary="List all users", response_model=List[UserOut])
def list_users(
    skip: int = Query(0, ge=0, le=MAX_INTEGER),
    limit: int = Query(100, ge=0, le=MAX_INTEGER),
    store: DataStore = Depends(get_store),
):
    return store.get_all("user", skip=skip, limit=limit)


@app.get("/api/users/{user_id}", tags=["Users"], summary="Get a user", response_model=UserOut)
def get_user(user_id: int, store: DataStore = Depends(get_store)):
    return store.get_by_id("user", user_id)


@app.delete("/api/users/{user_id}", tags=["Users"], summary="Delete a user without orders")
def delete_user(user_id: int, store: DataStore = Depends(get_store)):
    store.delete("user", user_id)
    return {"message": "User deleted successfully"}


# Products
@app.post("/api/products", tags=["Products"], summary="Add a new product", response_model=Created, status_code=201)
def add_product(product: ProductIn, store: DataStore = Depends(get_store)):
    return {"id": store.insert("product", product.model_dump())}


@app.get("/api/products", tags=["Products"], summary="List all products", response_model=List[ProductOut])
def list_products(
    skip: int = Query(0, ge=0, le=MAX_INTEGER),
    limit: int = Query(100, ge=0, le=MAX_INTEGER),
    store: DataStore = Depends(get_store),
):
    return store.get_all("product", skip=skip, limit=limit)


@app.get("/api/products/{product_id}", tags=["Products"], summary="Get a product", response_model=ProductOut)
def get_product(product_id: int, store: DataStore = Depends(get_store)):
    return store.get_by_id("product", product_id)


@app.delete("/api/products/{product_id}", tags=["Products"], summary="Delete a product never ordered")
def delete_product(product_id: int, store: DataStore = Depends(get_store)):
    store.delete("product", product_id)
    return {"message": "Product deleted successfully"}


# Orders
@app.post("/api/orders", tags=["Orders"], summary="Create a new order", response_model=Created, status_code=201)
def create_order(order: OrderIn, store: DataStore = Depends(get_store)):
    return {"id": store.insert("order", order.model_dump())}


@app.get("/api/orders", tags=["Orders"], summary="List all orders", response_model=List[OrderOut])
def list_orders(
    skip: int = Query(0, ge=0, le=MAX_INTEGER),
    limit: int = Query(100, ge=0, le=MAX_INTEGER),
    store: DataStore = Depends(get_store),
):
    return store.get_all("order", skip=skip, limit=limit)


@app.get("/api/orders/{order_id}", tags=["Orders"], summary="Get an order", response_model=OrderOut)
def get_order(order_id: int, store: DataStore = Depends(get_store)):
    return store.get_by_id("order", order_id)


@app.delete("/api/orders/{order_id}", tags=["Orders"], summary="Delete an order without line items")
def delete_order(order_id: int, store: DataStore = Depends(get_store)):
    store.delete("order", order_id)
    return {"message": "Order deleted successfully"}


@app.post(
    "/api/order-details",
    tags=["Orders"],
    summary="Add a line item to an order",
    response_model=Created,
    status_code=201,
)
def add_order_detail(detail: OrderDetailIn, store: DataStore = Depends(get_store)):
    return {"id": store.insert("order_detail", detail.model_dump())}


@app.get("/api/order-details", tags=["Orders"], summary="List all line items", response_model=List[OrderDetailOut])
def list_order_details(
    skip: int = Query(0, ge=0, le=MAX_INTEGER),
    limit: int = Query(100, ge=0, le=MAX_INTEGER),
    store: DataStore = Depends(get_store),
):
    return store.get_all("order_detail", skip=skip, limit=limit)


@app.get("/api/order-details/{detail_id}", tags=["Orders"], summary="Get a line item", response_model=OrderDetailOut)
def get_order_detail(detail_id: int, store: DataStore = Depends(get_store)):
    return store.get_by_id("order_detail", detail_id)


# Reports
@app.get("/api/reports/user-orders", tags=["Reports"], summary="Products ordered by each user", response_model=List[UserOrderLine])
def user_order_list(db: Session = Depends(get_db), clock=Depends(get_clock)):
    return reports.fetch_user_order_list(db, clock=clock)


@app.get(
    "/api/reports/undelivered-orders",
    tags=["Reports"],
    summary="Orders not yet delivered",
    response_model=List[UndeliveredOrder],
)
def undelivered_orders(db: Session = Depends(get_db)):
    return reports.fetch_undelivered_orders(db)


@app.get("/api/reports/recent-orders", tags=["Reports"], summary="Most recent orders", response_model=List[RecentOrder])
def recent_orders(limit: int = Query(settings.default_report_limit, ge=0, le=MAX_INTEGER), db: Session = Depends(get_db)):
    return reports.fetch_recent_orders(db, limit=limit)


@app.get("/api/reports/top-users", tags=["Reports"], summary="Users with the most orders", response_model=List[ActiveUser])
def top_users(limit: int = Query(settings.default_report_limit, ge=0, le=MAX_INTEGER), db: Session = Depends(get_db)):
    return reports.fetch_top_active_users(db, limit=limit)


@app.get("/api/reports/inactive-users", tags=["Reports"], summary="Users without orders", response_model=List[InactiveUser])
def inactive_users(db: Session = Depends(get_db)):
    return reports.fetch_inactive_users(db)


@app.get(
    "/api/reports/top-products",
    tags=["Reports"],
    summary="Best selling products by quantity",
    response_model=List[ProductSales],
)
def top_products(limit: int = Query(settings.default_report_limit, ge=0, le=MAX_INTEGER), db: Session = Depends(get_db)):
    return reports.fetch_top_products(db, limit=limit)


@app.get(
    "/api/reports/price-extremes",
    tags=["Reports"],
    summary="Cheapest and most expensive orders",
    response_model=List[PriceExtreme],
)
def price_extremes(db: Session = Depends(get_db)):
    return reports.fetch_price_extremes(db)

