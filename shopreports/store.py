import logging
import re
from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shopreports.constraints import VALIDATORS, fits_integer_column
from shopreports.errors import ConstraintViolation, NotFound
from shopreports.models import MODELS, Order, OrderDetail, OrderStatus

logger = logging.getLogger(__name__)

# parent kind -> (child model, foreign key column) pairs that block a delete
DEPENDENTS = {
    "user": [(Order, "user_id")],
    "product": [(OrderDetail, "product_id")],
    "order": [(OrderDetail, "order_id")],
    "order_detail": [],
}


def _model_for(kind: str):
    try:
        return MODELS[kind]
    except KeyError:
        raise ValueError(f"Unknown entity kind {kind!r}; expected one of {', '.join(MODELS)}")


def _rule_from_integrity_error(model, exc: IntegrityError) -> str:
    text = str(exc.orig).lower()
    table = model.__tablename__
    if "unique" in text or "duplicate" in text:
        # sqlite names the column: "UNIQUE constraint failed: users.email"
        match = re.search(r"unique constraint failed: (\w+)\.(\w+)", text)
        if match:
            return f"{match.group(1)}.{match.group(2)}.unique"
        return f"{table}.unique"
    if "foreign key" in text:
        return f"{table}.foreign_key"
    if "not null" in text:
        return f"{table}.not_null"
    return f"{table}.check"


class DataStore:
    """Owns every row of the four entity kinds.

    Writes go through the constraint layer first; a row is either committed
    and visible to later reads, or rejected with ``ConstraintViolation`` and the
    session rolled back.
    """

    def __init__(self, db: Session):
        self.db = db
        self._in_batch = False

    @contextmanager
    def batch(self):
        """Group several inserts into one transaction.

        Rows are flushed as they are inserted, so their ids are available
        inside the block, and committed together on exit. Any exception rolls
        back every row inserted in the block.
        """
        self._in_batch = True
        try:
            yield self
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        finally:
            self._in_batch = False

    def insert(self, kind: str, fields: Dict[str, Any]) -> int:
        model = _model_for(kind)
        try:
            values = VALIDATORS[kind](self.db, dict(fields))
        except ConstraintViolation as exc:
            logger.warning(f"Rejected {kind} insert: {exc.rule}")
            raise
        row = model(**values)
        self.db.add(row)
        try:
            if self._in_batch:
                self.db.flush()
            else:
                self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            rule = _rule_from_integrity_error(model, exc)
            logger.warning(f"Rejected {kind} insert by database: {rule}")
            raise ConstraintViolation(rule, str(exc.orig)) from exc
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Inserted {kind} id={row.id}")
        return row.id

    def get_all(self, kind: str, skip: int = 0, limit: int = None) -> List[Any]:
        model = _model_for(kind)
        query = self.db.query(model).order_by(model.id).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def get_by_id(self, kind: str, entity_id: int):
        model = _model_for(kind)
        if not fits_integer_column(entity_id):
            raise NotFound(kind, entity_id)
        row = self.db.get(model, entity_id)
        if row is None:
            raise NotFound(kind, entity_id)
        return row

    def count(self, kind: str) -> int:
        return self.db.query(_model_for(kind)).count()

    def delete(self, kind: str, entity_id: int) -> None:
        row = self.get_by_id(kind, entity_id)
        for child, column in DEPENDENTS[kind]:
            in_use = self.db.query(child.id).filter(getattr(child, column) == entity_id).first()
            if in_use is not None:
                rule = f"{child.__tablename__}.{column}.foreign_key"
                logger.warning(f"Refused to delete {kind} id={entity_id}: referenced by {child.__tablename__}")
                raise ConstraintViolation(
                    rule,
                    f"{kind} with ID {entity_id} is still referenced by {child.__tablename__}",
                )
        self.db.delete(row)
        self.db.commit()
        logger.info(f"Deleted {kind} id={entity_id}")

    def insert_user(self, name: str, email: str) -> int:
        return self.insert("user", {"name": name, "email": email})

    def insert_product(self, name: str, price) -> int:
        return self.insert("product", {"name": name, "price": price})

    def insert_order(
        self,
        user_id: int,
        order_date: date,
        expected_delivery_date: date,
        status: OrderStatus = OrderStatus.PENDING,
    ) -> int:
        return self.insert(
            "order",
            {
                "user_id": user_id,
                "order_date": order_date,
                "expected_delivery_date": expected_delivery_date,
                "status": status,
            },
        )

    def insert_order_detail(self, order_id: int, product_id: int, quantity: int = 1) -> int:
        return self.insert(
            "order_detail",
            {"order_id": order_id, "product_id": product_id, "quantity": quantity},
        )
