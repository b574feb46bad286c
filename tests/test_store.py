"""
Tests for the data store and its constraint checks.
"""

import sqlite3
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from shopreports.errors import ConstraintViolation, NotFound
from shopreports.models import OrderDetail, OrderStatus, Product, User
from shopreports.store import _rule_from_integrity_error


@pytest.fixture
def customer(store):
    return store.insert_user("Alice Johnson", "alice@example.com")


@pytest.fixture
def laptop(store):
    return store.insert_product("Laptop", Decimal("1200.00"))


@pytest.fixture
def order(store, customer):
    return store.insert_order(customer, date(2024, 1, 10), date(2024, 1, 15), OrderStatus.PENDING)


class TestIdentity:
    """Ids are assigned per kind, increase monotonically and are never reused."""

    def test_ids_start_at_one_per_kind(self, store):
        assert store.insert_user("Alice Johnson", "alice@example.com") == 1
        assert store.insert_product("Laptop", "1200.00") == 1

    def test_ids_strictly_increase(self, store):
        ids = [store.insert_user(f"User {i}", f"user{i}@example.com") for i in range(5)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 5

    def test_ids_not_reused_after_delete(self, store):
        store.insert_user("Alice Johnson", "alice@example.com")
        second = store.insert_user("Bob Smith", "bob@example.com")
        store.delete("user", second)
        third = store.insert_user("Charlie Brown", "charlie@example.com")
        assert third > second


class TestUserConstraints:

    def test_insert_and_read_back(self, store, customer):
        user = store.get_by_id("user", customer)
        assert user.name == "Alice Johnson"
        assert user.email == "alice@example.com"

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_blank_name_rejected(self, store, name):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert("user", {"name": name, "email": "x@example.com"})
        assert exc_info.value.rule == "users.name.not_null"
        assert store.count("user") == 0

    def test_missing_email_rejected(self, store):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert("user", {"name": "Alice"})
        assert exc_info.value.rule == "users.email.not_null"

    def test_duplicate_email_rejected(self, store, customer):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert_user("Another Alice", "alice@example.com")
        assert exc_info.value.rule == "users.email.unique"
        assert store.count("user") == 1

    def test_unknown_field_rejected(self, store):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert("user", {"name": "Alice", "email": "a@example.com", "role": "admin"})
        assert exc_info.value.rule == "users.unknown_field"


class TestProductConstraints:

    def test_price_stored_with_two_places(self, store):
        product_id = store.insert_product("Mouse", "19.999")
        assert store.get_by_id("product", product_id).price == Decimal("20.00")

    def test_zero_price_allowed(self, store):
        product_id = store.insert_product("Sticker", 0)
        assert store.get_by_id("product", product_id).price == Decimal("0.00")

    @pytest.mark.parametrize("price", [Decimal("-0.01"), -5, "-100"])
    def test_negative_price_rejected(self, store, laptop, price):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert_product("Broken", price)
        assert exc_info.value.rule == "products.price.check"
        assert store.count("product") == 1

    def test_non_numeric_price_rejected(self, store):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert_product("Broken", "cheap")
        assert exc_info.value.rule == "products.price.type"

    def test_missing_price_rejected(self, store):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert("product", {"name": "Broken"})
        assert exc_info.value.rule == "products.price.not_null"


class TestOrderConstraints:

    def test_status_defaults_to_pending(self, store, customer):
        order_id = store.insert(
            "order",
            {"user_id": customer, "order_date": date(2024, 1, 1), "expected_delivery_date": date(2024, 1, 5)},
        )
        assert store.get_by_id("order", order_id).status is OrderStatus.PENDING

    def test_status_accepts_exact_value_string(self, store, customer):
        order_id = store.insert_order(customer, date(2024, 1, 1), date(2024, 1, 5), "Shipped")
        assert store.get_by_id("order", order_id).status is OrderStatus.SHIPPED

    @pytest.mark.parametrize("status", ["Lost", "shipped", "", "DELIVERED"])
    def test_status_outside_enumeration_rejected(self, store, customer, status):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert_order(customer, date(2024, 1, 1), date(2024, 1, 5), status)
        assert exc_info.value.rule == "orders.status.check"
        assert store.count("order") == 0

    def test_unknown_user_rejected(self, store):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert_order(42, date(2024, 1, 1), date(2024, 1, 5))
        assert exc_info.value.rule == "orders.user_id.foreign_key"

    def test_iso_date_strings_accepted(self, store, customer):
        order_id = store.insert_order(customer, "2024-02-01", "2024-02-07")
        order = store.get_by_id("order", order_id)
        assert order.order_date == date(2024, 2, 1)
        assert order.expected_delivery_date == date(2024, 2, 7)

    def test_bad_date_rejected(self, store, customer):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert_order(customer, "next tuesday", date(2024, 2, 7))
        assert exc_info.value.rule == "orders.order_date.type"

    def test_missing_expected_date_rejected(self, store, customer):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert("order", {"user_id": customer, "order_date": date(2024, 1, 1)})
        assert exc_info.value.rule == "orders.expected_delivery_date.not_null"


class TestOrderDetailConstraints:

    def test_quantity_defaults_to_one(self, store, order, laptop):
        detail_id = store.insert("order_detail", {"order_id": order, "product_id": laptop})
        assert store.get_by_id("order_detail", detail_id).quantity == 1

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_rejected(self, store, order, laptop, quantity):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert_order_detail(order, laptop, quantity)
        assert exc_info.value.rule == "order_details.quantity.check"
        assert store.count("order_detail") == 0

    @pytest.mark.parametrize("quantity", [1.5, "2", True])
    def test_non_integer_quantity_rejected(self, store, order, laptop, quantity):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert_order_detail(order, laptop, quantity)
        assert exc_info.value.rule == "order_details.quantity.type"

    def test_unknown_order_rejected(self, store, laptop):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert_order_detail(99, laptop)
        assert exc_info.value.rule == "order_details.order_id.foreign_key"

    def test_unknown_product_rejected(self, store, order):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert_order_detail(order, 99)
        assert exc_info.value.rule == "order_details.product_id.foreign_key"


class TestLookupsAndDeletes:

    def test_get_by_missing_id(self, store):
        with pytest.raises(NotFound) as exc_info:
            store.get_by_id("product", 7)
        assert exc_info.value.entity_kind == "product"
        assert exc_info.value.entity_id == 7

    def test_get_all_in_id_order(self, seeded_store):
        names = [user.name for user in seeded_store.get_all("user")]
        assert names == ["Alice Johnson", "Bob Smith", "Charlie Brown", "David Lee", "Eve Taylor"]

    def test_get_all_paging(self, seeded_store):
        products = seeded_store.get_all("product", skip=2, limit=2)
        assert [p.id for p in products] == [3, 4]

    def test_unknown_kind(self, store):
        with pytest.raises(ValueError):
            store.get_all("invoice")

    @pytest.mark.parametrize(
        "kind, entity_id, rule",
        [
            ("user", 1, "orders.user_id.foreign_key"),
            ("order", 1, "order_details.order_id.foreign_key"),
            ("product", 1, "order_details.product_id.foreign_key"),
        ],
    )
    def test_delete_referenced_row_fails(self, seeded_store, kind, entity_id, rule):
        before = seeded_store.count(kind)
        with pytest.raises(ConstraintViolation) as exc_info:
            seeded_store.delete(kind, entity_id)
        assert exc_info.value.rule == rule
        assert seeded_store.count(kind) == before

    def test_delete_unreferenced_user(self, seeded_store):
        seeded_store.delete("user", 5)
        with pytest.raises(NotFound):
            seeded_store.get_by_id("user", 5)

    def test_delete_missing_row(self, store):
        with pytest.raises(NotFound):
            store.delete("order", 3)


class TestOutOfRangeNumbers:
    """Integers beyond 64 bits and oversized prices are rejected, not passed to the database."""

    def test_huge_quantity_rejected_and_store_still_usable(self, store, order, laptop):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert_order_detail(order, laptop, 2 ** 70)
        assert exc_info.value.rule == "order_details.quantity.type"
        assert store.count("order_detail") == 0

        assert store.insert_user("Bob Smith", "bob@example.com") == 2
        assert store.insert_order_detail(order, laptop, 3) == 1

    @pytest.mark.parametrize("field", ["order_id", "product_id"])
    def test_huge_reference_rejected(self, store, order, laptop, field):
        fields = {"order_id": order, "product_id": laptop, field: 2 ** 70}
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert("order_detail", fields)
        assert exc_info.value.rule == f"order_details.{field}.foreign_key"

    def test_huge_user_reference_rejected(self, store):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert_order(-(2 ** 64), date(2024, 1, 1), date(2024, 1, 5))
        assert exc_info.value.rule == "orders.user_id.foreign_key"

    def test_largest_integer_quantity_accepted(self, store, order, laptop):
        detail_id = store.insert_order_detail(order, laptop, 2 ** 63 - 1)
        assert store.get_by_id("order_detail", detail_id).quantity == 2 ** 63 - 1

    @pytest.mark.parametrize("price", ["1e30", "-1e30", "100000000", "99999999.995"])
    def test_oversized_price_rejected(self, store, laptop, price):
        with pytest.raises(ConstraintViolation) as exc_info:
            store.insert_product("Yacht", price)
        assert exc_info.value.rule == "products.price.check"
        assert store.count("product") == 1

    def test_largest_price_accepted(self, store):
        product_id = store.insert_product("Yacht", "99999999.99")
        assert store.get_by_id("product", product_id).price == Decimal("99999999.99")

    @pytest.mark.parametrize("kind", ["user", "product", "order", "order_detail"])
    def test_lookup_of_huge_id_is_not_found(self, store, kind):
        with pytest.raises(NotFound) as exc_info:
            store.get_by_id(kind, 2 ** 70)
        assert exc_info.value.entity_id == 2 ** 70

    def test_delete_of_huge_id_is_not_found(self, store):
        with pytest.raises(NotFound):
            store.delete("user", 2 ** 70)


class TestFailedWrites:

    def test_database_error_rolls_back_and_reraises(self, store, monkeypatch):
        real_commit = store.db.commit
        calls = []

        def failing_commit():
            if not calls:
                calls.append(1)
                raise OperationalError("INSERT INTO users", {}, Exception("disk I/O error"))
            real_commit()

        monkeypatch.setattr(store.db, "commit", failing_commit)
        with pytest.raises(OperationalError):
            store.insert_user("Alice Johnson", "alice@example.com")

        assert store.count("user") == 0
        assert store.insert_user("Alice Johnson", "alice@example.com") >= 1
        assert store.count("user") == 1

    def test_batch_rolls_back_every_row(self, store):
        with pytest.raises(ConstraintViolation):
            with store.batch():
                store.insert_user("Alice Johnson", "alice@example.com")
                store.insert_product("Laptop", "1200.00")
                store.insert_user("Alice Again", "alice@example.com")
        assert store.count("user") == 0
        assert store.count("product") == 0

    def test_batch_commits_on_exit(self, store):
        with store.batch():
            user_id = store.insert_user("Alice Johnson", "alice@example.com")
            order_id = store.insert_order(user_id, date(2024, 1, 1), date(2024, 1, 5))
        assert store.get_by_id("order", order_id).user_id == user_id


class TestIntegrityErrorRules:

    @staticmethod
    def integrity_error(message):
        return IntegrityError("INSERT", {}, sqlite3.IntegrityError(message))

    def test_unique_rule_names_the_failing_column(self):
        exc = self.integrity_error("UNIQUE constraint failed: users.email")
        assert _rule_from_integrity_error(User, exc) == "users.email.unique"

    def test_unique_rule_follows_the_table(self):
        exc = self.integrity_error("UNIQUE constraint failed: products.name")
        assert _rule_from_integrity_error(Product, exc) == "products.name.unique"

    def test_unique_rule_without_column_uses_model_table(self):
        exc = self.integrity_error('duplicate key value violates unique constraint "products_pkey"')
        assert _rule_from_integrity_error(Product, exc) == "products.unique"

    def test_foreign_key_rule(self):
        exc = self.integrity_error("FOREIGN KEY constraint failed")
        assert _rule_from_integrity_error(OrderDetail, exc) == "order_details.foreign_key"

    def test_check_rule(self):
        exc = self.integrity_error("CHECK constraint failed: ck_products_price")
        assert _rule_from_integrity_error(Product, exc) == "products.check"
