from .conftest import auth, create_order


def _accept(client, token, order_id):
    return client.post(f"/api/orders/delivery/{order_id}/accept", headers=auth(token))


def _set_status(client, token, order_id, status):
    return client.patch(f"/api/orders/delivery/{order_id}/status", json={"status": status}, headers=auth(token))


def test_available_lists_pending_unassigned(client, vendor_login, dropper_login):
    vendor_token, _ = vendor_login
    dropper_token, _ = dropper_login
    open_order = create_order(client, vendor_token)
    taken = create_order(client, vendor_token)
    cancelled = create_order(client, vendor_token)
    _accept(client, dropper_token, taken["id"])
    client.delete(f"/api/orders/vendor/{cancelled['id']}/cancel", headers=auth(vendor_token))

    resp = client.get("/api/orders/delivery/available", headers=auth(dropper_token))
    assert resp.status_code == 200
    assert [o["id"] for o in resp.json()["data"]] == [open_order["id"]]


def test_available_requires_delivery_role(client, vendor_login):
    resp = client.get("/api/orders/delivery/available", headers=auth(vendor_login[0]))
    assert resp.status_code == 403
    assert resp.json()["success"] is False


def test_accept(client, vendor_login, dropper_login):
    order = create_order(client, vendor_login[0])
    dropper_token, dropper = dropper_login
    resp = _accept(client, dropper_token, order["id"])
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "ASSIGNED"
    assert data["dropperId"] == dropper["id"]
    assert data["dropper"]["name"] == "Rita Rider"


def test_second_accept_conflicts(client, vendor_login, dropper_login, other_dropper_login):
    order = create_order(client, vendor_login[0])
    assert _accept(client, dropper_login[0], order["id"]).status_code == 200
    resp = _accept(client, other_dropper_login[0], order["id"])
    assert resp.status_code == 409
    assert resp.json()["success"] is False


def test_accept_cancelled_order(client, vendor_login, dropper_login):
    order = create_order(client, vendor_login[0], orderValue=0)
    client.delete(f"/api/orders/vendor/{order['id']}/cancel", headers=auth(vendor_login[0]))
    resp = _accept(client, dropper_login[0], order["id"])
    assert resp.status_code == 400
    available = client.get("/api/orders/delivery/available", headers=auth(dropper_login[0])).json()["data"]
    assert order["id"] not in [o["id"] for o in available]


def test_accept_missing_order(client, dropper_login):
    assert _accept(client, dropper_login[0], "nope").status_code == 404


def test_status_progression_and_completion(client, vendor_login, dropper_login):
    order = create_order(client, vendor_login[0])
    token = dropper_login[0]
    _accept(client, token, order["id"])

    assert _set_status(client, token, order["id"], "PICKED_UP").json()["data"]["status"] == "PICKED_UP"
    assert _set_status(client, token, order["id"], "IN_TRANSIT").json()["data"]["status"] == "IN_TRANSIT"
    resp = client.post(f"/api/orders/delivery/{order['id']}/complete", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "DELIVERED"

    deliveries = client.get("/api/orders/delivery/my-deliveries", headers=auth(token)).json()["data"]
    assert [d["status"] for d in deliveries] == ["DELIVERED"]


def test_skipping_is_rejected(client, vendor_login, dropper_login):
    order = create_order(client, vendor_login[0])
    token = dropper_login[0]
    _accept(client, token, order["id"])
    resp = _set_status(client, token, order["id"], "IN_TRANSIT")
    assert resp.status_code == 400
    complete = client.post(f"/api/orders/delivery/{order['id']}/complete", headers=auth(token))
    assert complete.status_code == 400
    current = client.get(f"/api/orders/{order['id']}", headers=auth(token)).json()["data"]
    assert current["status"] == "ASSIGNED"


def test_other_partner_forbidden(client, vendor_login, dropper_login, other_dropper_login):
    order = create_order(client, vendor_login[0])
    _accept(client, dropper_login[0], order["id"])
    resp = _set_status(client, other_dropper_login[0], order["id"], "PICKED_UP")
    assert resp.status_code == 403
    resp = client.post(f"/api/orders/delivery/{order['id']}/complete", headers=auth(other_dropper_login[0]))
    assert resp.status_code == 403


def test_earnings_and_revenue_scenario(client, vendor_login, dropper_login):
    vendor_token, _ = vendor_login
    token, _ = dropper_login
    before_rev = client.get("/api/orders/vendor/stats", headers=auth(vendor_token)).json()["data"]["totalRevenue"]
    before_earn = client.get("/api/orders/delivery/stats", headers=auth(token)).json()["data"]["totalEarnings"]

    order = create_order(client, vendor_token, orderValue=500)
    _accept(client, token, order["id"])
    _set_status(client, token, order["id"], "PICKED_UP")
    _set_status(client, token, order["id"], "IN_TRANSIT")
    _set_status(client, token, order["id"], "DELIVERED")

    stats = client.get("/api/orders/delivery/stats", headers=auth(token)).json()["data"]
    assert stats["totalEarnings"] - before_earn == 100
    assert stats["completedDeliveries"] == 1
    assert stats["totalDeliveries"] == 1
    assert stats["activeDeliveries"] == 0
    vendor_stats = client.get("/api/orders/vendor/stats", headers=auth(vendor_token)).json()["data"]
    assert vendor_stats["totalRevenue"] - before_rev == 500
    assert vendor_stats["deliveredOrders"] == 1
