import pytest
from fastapi.testclient import TestClient

from illuminous.cart import build_summary


# ---- CartApi ----

def test_cart_api_delegates_to_store(cart, store, make_product):
    p = make_product(available_quantity=2)

    assert cart.add_to_cart(p) is True
    assert cart.can_add(p) is True
    assert cart.add_to_cart(p) is True
    assert cart.can_add(p) is False
    assert cart.add_to_cart(p) is False

    assert cart.get_cart_entries() is store.snapshot()
    assert cart.get_cart_entries().items_ordered() == [(p, 2)]
    assert cart.max_product_quantity == 5


def test_cart_api_remove_of_absent_product_is_noop(cart, make_product):
    seen = []
    cart.on_change(seen.append)

    assert cart.remove_from_cart(make_product(9)) is False
    assert seen == []


def test_cart_api_rejects_raw_values(cart):
    with pytest.raises(TypeError):
        cart.add_to_cart(1)
    with pytest.raises(TypeError):
        cart.remove_from_cart({"id": 1, "quantity": 3})


def test_build_summary_formats_lines(cart, make_product):
    cart.add_to_cart(make_product(1, price=1249.0))
    cart.add_to_cart(make_product(1, price=1249.0))
    cart.add_to_cart(make_product(2, price=0.1))

    summary = build_summary(cart.get_cart_entries())

    assert [(i.product.id, i.quantity, i.subtotal) for i in summary.items] == [
        (1, 2, "$2,498.00"),
        (2, 1, "$0.10"),
    ]
    assert summary.count == 2
    assert summary.badge == "2"
    assert summary.total == "$2,498.10"


# ---- HTTP ----

def test_empty_cart(client):
    r = client.get("/api/cart")
    assert r.status_code == 200
    assert r.json() == {"items": [], "count": 0, "badge": None, "total": "$0.00"}


def test_add_respects_configured_cap(client):
    # app fixture caps every product at 3
    for _ in range(5):
        r = client.post("/api/cart/add", json={"product_id": 1})
        assert r.status_code == 200

    data = client.get("/api/cart").json()
    assert data["items"][0]["quantity"] == 3
    assert data["items"][0]["subtotal"] == "$149.97"


def test_add_respects_available_quantity(client):
    for _ in range(3):
        client.post("/api/cart/add", json={"product_id": 2})
    r = client.post("/api/cart/add", json={"product_id": 3})

    items = r.json()["items"]
    assert [(i["product"]["id"], i["quantity"]) for i in items] == [(2, 2)]


def test_add_unknown_product_is_404(client):
    r = client.post("/api/cart/add", json={"product_id": 999})
    assert r.status_code == 404
    assert r.json()["detail"] == "Product not found"


def test_add_rejects_quantity_field_shape(client):
    r = client.post("/api/cart/add", json={"quantity": 3})
    assert r.status_code == 422


def test_remove_until_empty(client):
    client.post("/api/cart/add", json={"product_id": 1})
    client.post("/api/cart/add", json={"product_id": 1})

    assert client.post("/api/cart/remove", json={"product_id": 1}).json()["items"][0]["quantity"] == 1
    assert client.post("/api/cart/remove", json={"product_id": 1}).json()["items"] == []
    r = client.post("/api/cart/remove", json={"product_id": 1})
    assert r.status_code == 200
    assert r.json()["count"] == 0


def test_remove_unknown_product_is_noop(client):
    client.post("/api/cart/add", json={"product_id": 1})
    r = client.post("/api/cart/remove", json={"product_id": 999})

    assert r.status_code == 200
    assert r.json()["count"] == 1


def test_count_endpoint(client):
    client.post("/api/cart/add", json={"product_id": 1})
    client.post("/api/cart/add", json={"product_id": 2})

    assert client.get("/api/cart/count").json() == {"count": 2, "badge": "2"}


def test_carts_are_per_session(app):
    with TestClient(app) as alice, TestClient(app) as bob:
        alice.post("/api/cart/add", json={"product_id": 1})

        assert alice.get("/api/cart/count").json()["count"] == 1
        assert bob.get("/api/cart/count").json()["count"] == 0
        assert alice.cookies.get("test_session") != bob.cookies.get("test_session")
