import json
import logging
from decimal import Decimal

import pytest

from notestore.client.cart import CartStore, CartLine, CART_STORAGE_KEY
from notestore.client.storage import MemoryStorage, JsonFileStorage


class _BrokenStorage(MemoryStorage):
    def set_item(self, key, value):
        raise OSError("disk full")


def test_add_accumulates_and_keeps_insertion_order():
    cart = CartStore()
    cart.add("tax-law-notes")
    cart.add("company-law-notes", 2)
    cart.add("tax-law-notes", 1)

    assert cart.list() == [CartLine("tax-law-notes", 2), CartLine("company-law-notes", 2)]


def test_add_ignores_non_positive_quantity():
    cart = CartStore()
    cart.add("tax-law-notes", 0)
    cart.add("tax-law-notes", -3)
    assert cart.list() == []


def test_set_quantity_below_one_is_a_noop():
    cart = CartStore()
    cart.add("tax-law-notes", 3)

    cart.set_quantity("tax-law-notes", 0)
    cart.set_quantity("tax-law-notes", -1)

    # Ni suppression ni mise à zéro: la quantité précédente reste
    assert cart.list() == [CartLine("tax-law-notes", 3)]


def test_set_quantity_updates_existing_line_only():
    cart = CartStore()
    cart.add("tax-law-notes")
    cart.set_quantity("tax-law-notes", 4)
    cart.set_quantity("unknown", 2)
    assert cart.list() == [CartLine("tax-law-notes", 4)]


def test_remove_and_clear():
    cart = CartStore()
    cart.add("a")
    cart.add("b")
    cart.remove("a")
    cart.remove("missing")
    assert [l.product_id for l in cart.list()] == ["b"]
    cart.clear()
    assert cart.list() == []


def test_total_uses_lookup_and_skips_unknown_prices():
    cart = CartStore()
    cart.add("tax-law-notes", 2)
    cart.add("company-law-notes")
    cart.add("gone")
    prices = {"tax-law-notes": Decimal("19.99"), "company-law-notes": "24.50"}

    assert cart.total(prices.get) == Decimal("64.48")


def test_listeners_notified_after_each_effective_mutation():
    cart = CartStore()
    seen = []
    unsubscribe = cart.subscribe(lambda store: seen.append(len(store.list())))

    cart.add("a")
    cart.add("b")
    cart.set_quantity("a", 0)  # sans effet: pas de notification
    cart.remove("a")
    unsubscribe()
    cart.clear()

    assert seen == [1, 2, 1]


def test_listener_error_does_not_break_mutation(caplog):
    cart = CartStore()

    def _boom(_):
        raise RuntimeError("listener failure")

    cart.subscribe(_boom)
    with caplog.at_level(logging.ERROR):
        cart.add("a")
    assert cart.list() == [CartLine("a", 1)]
    assert "abonné en erreur" in caplog.text


def test_persistence_failure_keeps_in_memory_state(caplog):
    cart = CartStore(storage=_BrokenStorage())
    with caplog.at_level(logging.ERROR):
        cart.add("tax-law-notes", 2)

    assert cart.list() == [CartLine("tax-law-notes", 2)]
    assert "persistance impossible" in caplog.text


def test_state_is_reloaded_from_storage():
    storage = MemoryStorage()
    first = CartStore(storage=storage)
    first.add("tax-law-notes", 2)
    first.add("company-law-notes")

    assert json.loads(storage.get_item(CART_STORAGE_KEY)) == [
        {"id": "tax-law-notes", "quantity": 2},
        {"id": "company-law-notes", "quantity": 1},
    ]
    second = CartStore(storage=storage)
    assert second.list() == first.list()


def test_unreadable_storage_starts_empty():
    storage = MemoryStorage({CART_STORAGE_KEY: "{not json"})
    assert CartStore(storage=storage).list() == []

    storage = MemoryStorage({CART_STORAGE_KEY: json.dumps([{"id": "a", "quantity": 0}, {"id": "", "quantity": 2}, "x"])})
    assert CartStore(storage=storage).list() == []


def test_json_file_storage_round_trip(tmp_path):
    path = tmp_path / "state" / "client.json"
    cart = CartStore(storage=JsonFileStorage(path))
    cart.add("tax-law-notes")

    reloaded = CartStore(storage=JsonFileStorage(path))
    assert reloaded.list() == [CartLine("tax-law-notes", 1)]
    # Aucun fichier temporaire laissé derrière
    assert [p.name for p in path.parent.iterdir()] == ["client.json"]


def test_json_file_storage_remove_item(tmp_path):
    storage = JsonFileStorage(tmp_path / "s.json")
    assert storage.get_item("k") is None
    storage.set_item("k", "v")
    storage.remove_item("k")
    assert storage.get_item("k") is None


def test_cart_line_rejects_zero_quantity():
    with pytest.raises(ValueError):
        CartLine("a", 0)
