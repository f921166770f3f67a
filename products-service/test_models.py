"""
Unit tests for the in-memory product store and value coercion.
"""
import math
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from models import Product, ProductStore
from schemas import ProductCreate, is_truthy, to_boolean, to_number


@pytest.fixture
def store():
    return ProductStore()


def make_product(product_id: str) -> Product:
    return Product(id=product_id, name="Mug", description="Ceramic mug", price=8, category="kitchen")


class TestProductStore:

    def test_seed_set(self, store):
        assert [p.name for p in store] == ["Laptop", "Smartphone", "Coffee Maker"]
        assert len(store) == 3

    def test_next_id_is_count_plus_one(self, store):
        assert store.next_id() == "4"

    def test_next_id_skips_ids_in_use(self, store):
        store.remove("2")
        # count + 1 == "3" is still taken
        assert store.next_id() == "4"

    def test_next_id_reuses_freed_tail_id(self, store):
        store.remove("3")
        assert store.next_id() == "3"

    def test_insert_appends(self, store):
        store.insert(make_product("4"))
        assert [p.id for p in store.all()] == ["1", "2", "3", "4"]

    def test_insert_duplicate_id(self, store):
        with pytest.raises(ValueError):
            store.insert(make_product("1"))
        assert len(store) == 3

    def test_replace_in_place(self, store):
        updated = store.get("2").model_copy(update={"price": 999})
        assert store.replace(updated) is updated
        assert store.all()[1].price == 999

    def test_replace_unknown(self, store):
        assert store.replace(make_product("9")) is None

    def test_remove(self, store):
        assert store.remove("1") is True
        assert store.get("1") is None
        assert store.remove("1") is False

    def test_all_returns_copy(self, store):
        store.all().clear()
        assert len(store) == 3

    def test_reset(self, store):
        store.reset([make_product("7")])
        assert [p.id for p in store] == ["7"]
        store.reset()
        assert len(store) == 3


class TestCoercion:

    @pytest.mark.parametrize("value,expected", [
        (None, 0),
        (True, 1),
        (12, 12),
        (12.0, 12),
        (3.25, 3.25),
        ("42", 42),
        (" 7.5 ", 7.5),
        ("", 0),
        ("1e3", 1000),
        ("abc", None),
        ("12abc", None),
        ([], 0),
        ([7], 7),
        ([["3"]], 3),
        ([None], 0),
        ([True], None),
        ([1, 2], None),
        ("0x10", 16),
        ("0b101", 5),
        ("0o17", 15),
        ("-0x10", None),
        ({"a": 1}, None),
        (math.inf, None),
    ])
    def test_to_number(self, value, expected):
        assert to_number(value) == expected

    @pytest.mark.parametrize("value,expected", [
        (None, False),
        (0, False),
        ("", False),
        (math.nan, False),
        ("false", True),
        ([], True),
        ({}, True),
        (1, True),
    ])
    def test_to_boolean(self, value, expected):
        assert to_boolean(value) is expected
        assert is_truthy(value) is expected

    def test_complete_create_payload(self):
        payload = ProductCreate(name="Mug", description="Ceramic", price="8", category="kitchen")
        assert payload.is_complete()
        assert not ProductCreate(name="Mug", description="Ceramic", price=0, category="kitchen").is_complete()
