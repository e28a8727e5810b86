import pytest
from fastapi.testclient import TestClient

from illuminous.cart_api import CartApi
from illuminous.cart_store import CartStore
from illuminous.catalog import InMemoryCatalog
from illuminous.config import Settings
from illuminous.main import create_app
from illuminous.schemas import Product


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def make_product():
    def _make(product_id=1, available_quantity=10, price=10.0, sizes=(1,), **extra):
        return Product(
            id=product_id,
            name=extra.pop("name", f"Lamp {product_id}"),
            price=price,
            image=extra.pop("image", f"/images/lamp-{product_id}.jpg"),
            available_quantity=available_quantity,
            sizes=sizes,
            features=extra.pop("features", ("Warm light",)),
        )

    return _make


@pytest.fixture
def store():
    return CartStore(max_product_quantity=5)


@pytest.fixture
def cart(store):
    return CartApi(store)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def catalog(make_product):
    return InMemoryCatalog(
        [
            make_product(1, available_quantity=10, price=49.99, sizes=(1, 2), name="Aurora Desk Lamp"),
            make_product(2, available_quantity=2, price=7.5, sizes=(1, 4, 8), name="Lumen Edison Bulb"),
            make_product(3, available_quantity=0, price=19.95, name="Glow String Lights"),
        ]
    )


@pytest.fixture
def app_settings():
    return Settings(
        max_product_quantity=3,
        added_message_seconds=1.0,
        session_cookie="test_session",
        session_idle_seconds=60.0,
    )


@pytest.fixture
def app(app_settings, catalog, clock):
    return create_app(app_settings, catalog=catalog, clock=clock)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
