"""
Stock movement, bills and customer orders.
"""
import threading
from datetime import datetime, timezone

import pytest

from conftest import bearer
from shopfront import models
from shopfront.errors import Forbidden, InsufficientStock, InvalidNumber, MissingField, NotFound
from shopfront.schemas.order import OrderLine
from shopfront.services import orders as order_service


def _quantity(client, product_id):
    return client.get(f"/api/products/{product_id}").json()["product"]["quantity"]


# -----------------------------
# Stock updates
# -----------------------------
def test_pen_scenario(client, shopkeeper_headers, make_product):
    pen = make_product()

    first = client.post("/api/products/stock", json={"productId": pen["id"], "quantity": 3},
                        headers=shopkeeper_headers)
    assert first.status_code == 200
    body = first.json()
    assert body["success"] is True
    assert body["productId"] == pen["id"]
    assert body["remainingQuantity"] == 2
    assert body["updatedQuantity"] == 2

    second = client.post("/api/products/stock", json={"productId": pen["id"], "quantity": 3},
                         headers=shopkeeper_headers)
    assert second.status_code == 400
    assert second.json()["error"] == "InsufficientStock"
    assert _quantity(client, pen["id"]) == 2


def test_selling_exact_stock_leaves_zero(client, shopkeeper_headers, make_product):
    pen = make_product()
    response = client.post("/api/products/stock", json={"productId": str(pen["id"]), "quantity": 5},
                           headers=shopkeeper_headers)
    assert response.status_code == 200
    assert response.json()["remainingQuantity"] == 0

    empty = client.post("/api/products/stock", json={"productId": pen["id"], "quantity": 1},
                        headers=shopkeeper_headers)
    assert empty.status_code == 400
    assert _quantity(client, pen["id"]) == 0


def test_stock_update_requires_fields(client, shopkeeper_headers):
    response = client.post("/api/products/stock", json={"quantity": 1}, headers=shopkeeper_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "MissingField"


def test_stock_update_bad_id(client, shopkeeper_headers):
    response = client.post("/api/products/stock", json={"productId": "abc", "quantity": 1},
                           headers=shopkeeper_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "InvalidId"


def test_stock_update_unknown_product(client, shopkeeper_headers):
    response = client.post("/api/products/stock", json={"productId": 5555, "quantity": 1},
                           headers=shopkeeper_headers)
    assert response.status_code == 404


@pytest.mark.parametrize("quantity", [0, -2])
def test_stock_update_rejects_non_positive(client, shopkeeper_headers, make_product, quantity):
    pen = make_product()
    response = client.post("/api/products/stock", json={"productId": pen["id"], "quantity": quantity},
                           headers=shopkeeper_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "InvalidNumber"
    assert _quantity(client, pen["id"]) == 5


@pytest.mark.parametrize("field, value, error", [
    ("quantity", True, "InvalidNumber"),
    ("quantity", "2", "InvalidNumber"),
    ("quantity", 10**20, "InvalidNumber"),
    ("productId", True, "InvalidId"),
    ("productId", 10**20, "InvalidId"),
])
def test_stock_update_rejects_bad_values(client, shopkeeper_headers, make_product, field, value, error):
    pen = make_product()
    payload = {"productId": pen["id"], "quantity": 1}
    payload[field] = value
    response = client.post("/api/products/stock", json=payload, headers=shopkeeper_headers)
    assert response.status_code == 400
    assert response.json()["error"] == error
    assert _quantity(client, pen["id"]) == 5


def test_stock_update_needs_shopkeeper(client, customer_headers, make_product):
    pen = make_product()
    response = client.post("/api/products/stock", json={"productId": pen["id"], "quantity": 1},
                           headers=customer_headers)
    assert response.status_code == 403
    assert _quantity(client, pen["id"]) == 5


def test_update_stock_service_rules(db_session, make_product):
    pen = make_product()
    with pytest.raises(MissingField):
        order_service.update_stock(db_session, pen["id"], None)
    with pytest.raises(InvalidNumber):
        order_service.update_stock(db_session, pen["id"], True)
    with pytest.raises(InvalidNumber):
        order_service.update_stock(db_session, pen["id"], 2**31)
    with pytest.raises(NotFound):
        order_service.update_stock(db_session, 987654, 1)
    assert order_service.update_stock(db_session, pen["id"], 4) == 1
    with pytest.raises(InsufficientStock):
        order_service.update_stock(db_session, pen["id"], 2)


def test_concurrent_sales_never_oversell(session_factory, make_product):
    pen = make_product(quantity=3)
    workers = 6
    barrier = threading.Barrier(workers)
    results = []
    lock = threading.Lock()

    def sell():
        db = session_factory()
        try:
            barrier.wait()
            try:
                order_service.update_stock(db, pen["id"], 1)
                outcome = "sold"
            except InsufficientStock:
                outcome = "refused"
        finally:
            db.close()
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=sell) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(results) == ["refused"] * 3 + ["sold"] * 3

    db = session_factory()
    try:
        assert db.get(models.Product, pen["id"]).quantity == 0
    finally:
        db.close()


# -----------------------------
# Bills
# -----------------------------
def test_create_bill(client, shopkeeper_headers, make_product):
    pen = make_product()
    response = client.post("/api/products/bill", headers=shopkeeper_headers, json={
        "items": [
            {"productId": pen["id"], "name": "Pen", "price": 10, "quantity": 2, "category": "stationery"},
            {"name": "Gift wrap", "price": 1.5},
        ],
        "totalAmount": 21.5,
        "date": "2024-05-01T10:30:00Z",
    })
    assert response.status_code == 201
    bill = response.json()["bill"]
    assert bill["kind"] == "bill"
    assert bill["status"] == "completed"
    assert bill["totalAmount"] == 21.5
    assert bill["orderNumber"]
    assert [(i["name"], i["quantity"]) for i in bill["items"]] == [("Pen", 2), ("Gift wrap", 1)]
    assert bill["items"][1]["productId"] is None
    # Bills record a sale; stock moves only through /stock
    assert _quantity(client, pen["id"]) == 5


def test_bill_total_computed_when_omitted(client, shopkeeper_headers):
    response = client.post("/api/products/bill", headers=shopkeeper_headers, json={
        "items": [{"name": "Tea", "price": 2.25, "quantity": 4}],
    })
    assert response.status_code == 201
    assert response.json()["bill"]["totalAmount"] == 9.0


def test_bill_with_unknown_product_keeps_line(client, shopkeeper_headers):
    response = client.post("/api/products/bill", headers=shopkeeper_headers, json={
        "items": [{"productId": 77777, "name": "Ghost", "price": 3}],
    })
    assert response.status_code == 201
    line = response.json()["bill"]["items"][0]
    assert line["productId"] is None
    assert line["name"] == "Ghost"


def test_bill_with_out_of_range_product_id_keeps_line(client, shopkeeper_headers):
    response = client.post("/api/products/bill", headers=shopkeeper_headers, json={
        "items": [{"productId": 10**20, "name": "Ghost", "price": 3}],
    })
    assert response.status_code == 201
    assert response.json()["bill"]["items"][0]["productId"] is None


@pytest.mark.parametrize("item", [
    {"name": "Tea", "price": 2, "quantity": 10**20},
    {"name": "Tea", "price": 10**12, "quantity": 1},
])
def test_bill_numbers_beyond_column_range(client, shopkeeper_headers, item):
    response = client.post("/api/products/bill", headers=shopkeeper_headers, json={"items": [item]})
    assert response.status_code == 400
    assert response.json()["error"] == "InvalidNumber"
    assert client.get("/api/user/orders", headers=shopkeeper_headers).json()["count"] == 0


@pytest.mark.parametrize("payload", [{}, {"items": []}])
def test_bill_without_items(client, shopkeeper_headers, payload):
    response = client.post("/api/products/bill", headers=shopkeeper_headers, json=payload)
    assert response.status_code == 400
    assert response.json()["error"] == "MissingField"


def test_bill_listed_for_its_author(client, register_user):
    token, _ = register_user("till", role="shopkeeper")
    client.post("/api/products/bill", headers=bearer(token), json={"items": [{"name": "Tea", "price": 2}]})
    listing = client.get("/api/user/orders", headers=bearer(token)).json()
    assert listing["count"] == 1
    assert listing["orders"][0]["kind"] == "bill"


# -----------------------------
# Customer orders
# -----------------------------
def test_place_order(client, customer_headers, make_product):
    pen = make_product(discount=10)
    notebook = make_product(name="Notebook", sku="N1", price=4, quantity=10)

    response = client.post("/api/orders", headers=customer_headers, json={
        "items": [{"productId": pen["id"], "quantity": 2}, {"productId": notebook["id"], "quantity": 3}],
    })
    assert response.status_code == 201
    order = response.json()["order"]
    assert order["kind"] == "order"
    # 2 x 9.00 discounted pens + 3 x 4.00 notebooks
    assert order["totalAmount"] == 30.0
    assert order["items"][0]["price"] == 9.0

    assert _quantity(client, pen["id"]) == 3
    assert _quantity(client, notebook["id"]) == 7

    fetched = client.get(f"/api/orders/{order['id']}", headers=customer_headers)
    assert fetched.status_code == 200
    assert fetched.json()["order"]["orderNumber"] == order["orderNumber"]

    mine = client.get("/api/user/orders", headers=customer_headers).json()
    assert mine["count"] == 1


def test_order_rolls_back_on_shortfall(client, customer_headers, make_product):
    pen = make_product()
    scarce = make_product(name="Ink", sku="I1", quantity=1)

    response = client.post("/api/orders", headers=customer_headers, json={
        "items": [{"productId": pen["id"], "quantity": 2}, {"productId": scarce["id"], "quantity": 2}],
    })
    assert response.status_code == 400
    assert response.json()["error"] == "InsufficientStock"

    assert _quantity(client, pen["id"]) == 5
    assert _quantity(client, scarce["id"]) == 1
    assert client.get("/api/user/orders", headers=customer_headers).json()["count"] == 0


def test_order_rolls_back_on_unknown_product(db_session, register_user, make_product):
    pen = make_product()
    _, buyer = register_user("walt")
    user = db_session.get(models.User, buyer["id"])

    with pytest.raises(NotFound):
        order_service.place_order(db_session, user, [
            OrderLine(product_id=pen["id"], quantity=1),
            OrderLine(product_id=123456, quantity=1),
        ])
    assert db_session.get(models.Product, pen["id"]).quantity == 5


def test_order_needs_items(client, customer_headers):
    response = client.post("/api/orders", headers=customer_headers, json={"items": []})
    assert response.status_code == 400
    assert response.json()["error"] == "MissingField"


@pytest.mark.parametrize("line", [
    {"productId": True, "quantity": 1},
    {"quantity": True},
    {"quantity": 10**20},
])
def test_order_rejects_bad_numbers(client, customer_headers, make_product, line):
    pen = make_product()
    response = client.post("/api/orders", headers=customer_headers, json={
        "items": [dict({"productId": pen["id"], "quantity": 1}, **line)],
    })
    assert response.status_code == 400
    assert response.json()["error"] == "InvalidNumber"
    assert _quantity(client, pen["id"]) == 5


def test_order_needs_login(client):
    response = client.post("/api/orders", json={"items": [{"productId": 1, "quantity": 1}]})
    assert response.status_code == 401


def test_customers_cannot_read_each_others_orders(client, register_user, shopkeeper_headers, make_product):
    pen = make_product()
    owner_token, _ = register_user("owner")
    other_token, _ = register_user("snoop")

    order = client.post("/api/orders", headers=bearer(owner_token), json={
        "items": [{"productId": pen["id"], "quantity": 1}],
    }).json()["order"]

    snooped = client.get(f"/api/orders/{order['id']}", headers=bearer(other_token))
    assert snooped.status_code == 403
    assert snooped.json()["error"] == "Forbidden"

    # Staff can look up any order
    staff = client.get(f"/api/orders/{order['id']}", headers=shopkeeper_headers)
    assert staff.status_code == 200


def test_get_order_service_errors(db_session, register_user):
    _, buyer = register_user("quinn")
    user = db_session.get(models.User, buyer["id"])
    with pytest.raises(NotFound):
        order_service.get_order(db_session, user, 4040)

    other = models.Order(order_number="X1", user_id=None, kind="bill", total_amount=1,
                         date=datetime.now(timezone.utc), status="completed")
    db_session.add(other)
    db_session.commit()
    with pytest.raises(Forbidden):
        order_service.get_order(db_session, user, other.id)
