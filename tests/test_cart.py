from conftest import ALICE, BOB


def test_requires_user_header(client):
    resp = client.get("/cart")
    assert resp.status_code == 401


def test_add_item_creates_line_with_hold(client, make_product):
    p = make_product(price_cents=1999)
    resp = client.post("/cart/items", json={"product_id": p.id, "qty": 2}, headers=ALICE)
    assert resp.status_code == 200
    body = resp.json()
    assert body["qty"] == 2
    assert body["kind"] == "BUY"
    assert body["hold_id"].startswith("hold_")
    assert body["product"]["price_cents"] == 1999


def test_repeated_add_keeps_distinct_lines(client, make_product):
    p = make_product()
    client.post("/cart/items", json={"product_id": p.id, "qty": 1}, headers=ALICE)
    client.post("/cart/items", json={"product_id": p.id, "qty": 3}, headers=ALICE)

    items = client.get("/cart", headers=ALICE).json()
    assert [i["qty"] for i in items] == [1, 3]
    assert len({i["hold_id"] for i in items}) == 2


def test_list_is_ordered_by_creation(client, make_product):
    first, second = make_product(), make_product()
    client.post("/cart/items", json={"product_id": second.id}, headers=ALICE)
    client.post("/cart/items", json={"product_id": first.id}, headers=ALICE)

    items = client.get("/cart", headers=ALICE).json()
    assert [i["product_id"] for i in items] == [second.id, first.id]


def test_add_unknown_product_is_404(client):
    resp = client.post("/cart/items", json={"product_id": 999}, headers=ALICE)
    assert resp.status_code == 404


def test_add_rejects_zero_qty(client, make_product):
    p = make_product()
    resp = client.post("/cart/items", json={"product_id": p.id, "qty": 0}, headers=ALICE)
    assert resp.status_code == 422


def test_set_qty_updates_line(client, make_product):
    p = make_product()
    item = client.post("/cart/items", json={"product_id": p.id}, headers=ALICE).json()

    resp = client.patch(f"/cart/items/{item['id']}", json={"qty": 5}, headers=ALICE)
    assert resp.status_code == 200
    assert resp.json()["item"]["qty"] == 5


def test_set_qty_zero_deletes_line(client, make_product):
    p = make_product()
    item = client.post("/cart/items", json={"product_id": p.id}, headers=ALICE).json()

    resp = client.patch(f"/cart/items/{item['id']}", json={"qty": 0}, headers=ALICE)
    assert resp.json() == {"ok": True, "deleted": True, "item": None}
    assert client.get("/cart", headers=ALICE).json() == []


def test_foreign_line_looks_missing(client, make_product):
    p = make_product()
    item = client.post("/cart/items", json={"product_id": p.id}, headers=ALICE).json()

    patch = client.patch(f"/cart/items/{item['id']}", json={"qty": 2}, headers=BOB)
    delete = client.delete(f"/cart/items/{item['id']}", headers=BOB)
    missing = client.delete("/cart/items/12345", headers=BOB)

    assert patch.status_code == delete.status_code == missing.status_code == 404
    assert delete.json() == missing.json()
    assert len(client.get("/cart", headers=ALICE).json()) == 1


def test_remove_line(client, make_product):
    p = make_product()
    item = client.post("/cart/items", json={"product_id": p.id}, headers=ALICE).json()

    assert client.delete(f"/cart/items/{item['id']}", headers=ALICE).json() == {"ok": True}
    assert client.get("/cart", headers=ALICE).json() == []


def test_rent_window_must_be_ordered(client, make_product):
    p = make_product()
    resp = client.post(
        "/cart/items",
        json={
            "product_id": p.id,
            "kind": "RENT",
            "start_date": "2030-01-10T00:00:00Z",
            "end_date": "2030-01-05T00:00:00Z",
        },
        headers=ALICE,
    )
    assert resp.status_code == 400


def test_rent_window_respects_policy(client, make_product):
    p = make_product(rental={"min_days": 2, "max_days": 7, "daily_price_cents": 500})
    too_long = client.post(
        "/cart/items",
        json={
            "product_id": p.id,
            "kind": "RENT",
            "start_date": "2030-01-01T00:00:00Z",
            "end_date": "2030-01-20T00:00:00Z",
        },
        headers=ALICE,
    )
    ok = client.post(
        "/cart/items",
        json={
            "product_id": p.id,
            "kind": "RENT",
            "start_date": "2030-01-01T00:00:00Z",
            "end_date": "2030-01-04T00:00:00Z",
        },
        headers=ALICE,
    )
    assert too_long.status_code == 400
    assert ok.status_code == 200
    assert ok.json()["kind"] == "RENT"
