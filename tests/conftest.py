"""Shared fixtures and fakes for the external services."""
import threading
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from cart_engine import CartEngine
from cart_store import MemoryStore
from models import Product


class FakeOrderCounts:
    """Records increments instead of talking to Firebase."""

    def __init__(self):
        self.increments = []
        self.counts = {}

    def increment_order_count(self, product_id, amount=1):
        self.increments.append((product_id, amount))
        self.counts[product_id] = self.counts.get(product_id, 0) + amount

    def get_order_count(self, product_id):
        return self.counts.get(product_id, 0)


class FakeRegistration:
    def __init__(self, ref, callback):
        self.ref = ref
        self.callback = callback

    def close(self):
        self.ref.listeners.remove(self.callback)


class FakeReference:
    """Minimal stand-in for firebase_admin.db.Reference over a shared dict."""

    def __init__(self, data=None, path=(), lock=None):
        self.data = data if data is not None else {}
        self.path = path
        self.lock = lock or threading.Lock()
        self.listeners = []
        self._children = {}

    def child(self, name):
        if name not in self._children:
            self._children[name] = FakeReference(self.data, self.path + (name,), self.lock)
        return self._children[name]

    def get(self):
        node = self.data
        for key in self.path:
            if not isinstance(node, dict) or key not in node:
                return None
            node = node[key]
        return node

    def set(self, value):
        node = self.data
        for key in self.path[:-1]:
            node = node.setdefault(key, {})
        node[self.path[-1]] = value
        for listener in list(self.listeners):
            listener(SimpleNamespace(event_type="put", path="/", data=value))

    def transaction(self, update):
        with self.lock:
            new_value = update(self.get())
            self.set(new_value)
            return new_value

    def listen(self, callback):
        self.listeners.append(callback)
        callback(SimpleNamespace(event_type="put", path="/", data=self.get()))
        return FakeRegistration(self, callback)


@pytest.fixture
def backpack():
    return Product(
        id=1,
        title="Fjallraven - Foldsack No. 1 Backpack",
        price=10.00,
        description="Your perfect pack for everyday use",
        category="men's clothing",
        image="https://fakestoreapi.com/img/81fPKd-2AYL._AC_SL1500_.jpg",
    )


@pytest.fixture
def jacket():
    return Product(
        id=3,
        title="Mens Cotton Jacket",
        price=55.99,
        description="Great outerwear jacket",
        category="men's clothing",
        image="https://fakestoreapi.com/img/71li-ujtlUL._AC_UX679_.jpg",
    )


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def order_counts():
    return FakeOrderCounts()


@pytest.fixture
def engine(store, order_counts):
    return CartEngine(store, order_counts)


@pytest.fixture
def fake_root():
    return FakeReference()


@pytest.fixture
def test_client(engine, order_counts):
    from main import app, get_cart_engine, get_order_counts

    app.dependency_overrides[get_cart_engine] = lambda: engine
    app.dependency_overrides[get_order_counts] = lambda: order_counts
    yield TestClient(app)
    app.dependency_overrides.clear()


class BrokenReference:
    """RTDB reference whose transactions are always rejected."""

    def child(self, name):
        return self

    def transaction(self, update):
        raise RuntimeError("permission denied")


@pytest.fixture
def broken_root():
    return BrokenReference()
