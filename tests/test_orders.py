import pytest


@pytest.fixture
def order(client, customer, listing):
    resp = client.post(
        "/orders", json={"listing_id": listing["id"], "quantity": 2}, headers=customer["headers"]
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["order"]


def set_status(client, cook, order_id, status):
    return client.post(
        f"/cook/orders/{order_id}/status", json={"status": status}, headers=cook["headers"]
    )


def walk_to_completed(client, cook, customer, order_id):
    assert set_status(client, cook, order_id, "accepted").status_code == 200
    resp = client.post(f"/payment/{order_id}/confirm", headers=customer["headers"])
    assert resp.status_code == 200
    for status in ("preparing", "ready", "completed"):
        assert set_status(client, cook, order_id, status).status_code == 200


def test_place_order_prices_quantity(order, listing, cook) -> None:
    assert order["total_price"] == 240
    assert order["status"] == "pending"
    assert order["cook_id"] == cook["id"]
    assert order["payment_method"] is None


def test_cannot_order_hidden_dish(client, customer, listing, cook) -> None:
    client.patch(f"/cook/listings/{listing['id']}/active", headers=cook["headers"])
    resp = client.post(
        "/orders", json={"listing_id": listing["id"], "quantity": 1}, headers=customer["headers"]
    )
    assert resp.status_code == 404


def test_cook_sees_pending_order(client, cook, order) -> None:
    body = client.get("/cook/orders", headers=cook["headers"]).json()
    assert body["pending_count"] == 1
    assert [o["id"] for o in body["orders"]] == [order["id"]]
    assert body["orders"][0]["listing"]["title"] == "Rajma Chawal"
    assert body["orders"][0]["customer_short_id"] == order["customer_id"].split("-")[0]


def test_full_order_lifecycle(client, cook, customer, order) -> None:
    walk_to_completed(client, cook, customer, order["id"])

    history = client.get("/cook/orders?tab=history", headers=cook["headers"]).json()
    assert history["completed_count"] == 1
    assert history["orders"][0]["status"] == "completed"
    assert history["orders"][0]["payment_method"] == "cash"

    active = client.get("/cook/orders", headers=cook["headers"]).json()
    assert active["orders"] == []


def test_payment_needs_accepted_order(client, customer, order) -> None:
    resp = client.post(f"/payment/{order['id']}/confirm", headers=customer["headers"])
    assert resp.status_code == 409

    summary = client.get(f"/payment/{order['id']}", headers=customer["headers"]).json()
    assert summary["can_confirm"] is False


def test_unknown_payment_page_redirects(client, customer) -> None:
    resp = client.get("/payment/missing", headers=customer["headers"], follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/customer/dashboard"
    assert resp.headers["x-notice"] == "Order not found"


def test_status_cannot_go_backwards(client, cook, order) -> None:
    assert set_status(client, cook, order["id"], "accepted").status_code == 200
    resp = set_status(client, cook, order["id"], "pending")
    assert resp.status_code == 409


def test_cook_cannot_confirm_payment(client, cook, order) -> None:
    set_status(client, cook, order["id"], "accepted")
    assert set_status(client, cook, order["id"], "confirmed").status_code == 409


def test_single_review_updates_cook_rating(client, cook, customer, order) -> None:
    early = client.post(
        f"/orders/{order['id']}/review", json={"rating": 5}, headers=customer["headers"]
    )
    assert early.status_code == 409

    walk_to_completed(client, cook, customer, order["id"])
    resp = client.post(
        f"/orders/{order['id']}/review",
        json={"rating": 4, "review": "  Just like home  "},
        headers=customer["headers"],
    )
    assert resp.status_code == 200
    assert resp.json()["cook_rating"] == {"average_rating": 4.0, "total_ratings": 1}

    again = client.post(
        f"/orders/{order['id']}/review", json={"rating": 1}, headers=customer["headers"]
    )
    assert again.status_code == 409

    reviews = client.get("/cook/reviews", headers=cook["headers"]).json()["reviews"]
    assert len(reviews) == 1
    assert reviews[0]["review"] == "Just like home"
    assert reviews[0]["reviewer"].count(" ") == 1


def test_customer_cancels_pending_order(client, customer, order) -> None:
    resp = client.post(f"/orders/{order['id']}/cancel", headers=customer["headers"])
    assert resp.status_code == 200
    assert resp.json()["order"]["status"] == "cancelled"

    again = client.post(f"/orders/{order['id']}/cancel", headers=customer["headers"])
    assert again.status_code == 409


def test_customer_cannot_cancel_once_cooking(client, cook, customer, order) -> None:
    set_status(client, cook, order["id"], "accepted")
    client.post(f"/payment/{order['id']}/confirm", headers=customer["headers"])
    set_status(client, cook, order["id"], "preparing")

    assert client.post(f"/orders/{order['id']}/cancel", headers=customer["headers"]).status_code == 409
    assert client.post(f"/orders/{order['id']}/cancel", headers=cook["headers"]).status_code == 200


def test_stranger_cannot_cancel(client, order) -> None:
    resp = client.post(
        "/auth/signup",
        json={"full_name": "Nosy", "email": "nosy@foodpool.in", "password": "secret123"},
    )
    headers = {"Authorization": f"Bearer {resp.json()['access_token']}"}
    assert client.post(f"/orders/{order['id']}/cancel", headers=headers).status_code == 404


def test_dashboards(client, cook, customer, order) -> None:
    walk_to_completed(client, cook, customer, order["id"])

    mine = client.get("/customer/dashboard", headers=customer["headers"]).json()
    assert mine["stats"]["total_orders"] == 1
    assert mine["stats"]["total_spent"] == 240
    assert mine["orders"][0]["cook"]["full_name"] == "Asha Verma"

    theirs = client.get("/cook/dashboard", headers=cook["headers"]).json()
    assert theirs["stats"]["total_earnings"] == 240
    assert theirs["stats"]["active_listings"] == 1

    earnings = client.get("/cook/earnings", headers=cook["headers"]).json()
    assert earnings["total_orders"] == 1
    assert earnings["top_dish"] == "Rajma Chawal"
    assert earnings["transactions"][0]["total_price"] == 240
