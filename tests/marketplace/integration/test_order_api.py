"""Integration tests for order, supplier fulfillment and export endpoints via TestClient."""

import pytest


@pytest.fixture()
def order_id(client, cart_id, shipping):
    checkout_id = client.post("/checkout", json={"cart_id": cart_id}).json()["checkout_id"]
    client.put(f"/checkout/{checkout_id}/shipping", json=shipping)
    client.post(f"/checkout/{checkout_id}/advance")
    client.post(f"/checkout/{checkout_id}/advance")
    client.put(f"/checkout/{checkout_id}/payment", json={"method": "card"})
    response = client.post(f"/checkout/{checkout_id}/submit")
    assert response.status_code == 200
    return response.json()["order_id"]


def _deliver_supplier(client, order_id, supplier_id):
    assert client.put(f"/orders/{order_id}/suppliers/{supplier_id}/shipped").status_code == 200
    assert client.put(f"/orders/{order_id}/suppliers/{supplier_id}/delivered").status_code == 200


class TestOrderAPI:
    def test_get_order(self, client, order_id):
        data = client.get(f"/orders/{order_id}").json()
        assert data["subtotal"] == 25.0
        assert data["shipping_fee"] == 5.99
        assert data["total"] == 30.99
        assert len(data["items"]) == 2
        assert data["shipping_address"]["city"] == "Accra"

    def test_status_lifecycle(self, client, order_id):
        for step in ("confirm", "processing", "shipped", "delivered"):
            assert client.put(f"/orders/{order_id}/{step}").status_code == 200
        data = client.get(f"/orders/{order_id}").json()
        assert data["status"] == "Delivered"
        assert data["status_badge"] == "green"

    def test_invalid_transition_returns_400(self, client, order_id):
        response = client.put(f"/orders/{order_id}/delivered")
        assert response.status_code == 400

    def test_cancel(self, client, order_id):
        response = client.put(f"/orders/{order_id}/cancel", json={"reason": "Changed my mind"})
        assert response.status_code == 200
        assert client.get(f"/orders/{order_id}").json()["status_badge"] == "red"
        groups = client.get(f"/orders/{order_id}/suppliers").json()
        assert {g["shipment_status"] for g in groups} == {"cancelled"}

    def test_invoice(self, client, order_id):
        response = client.get(f"/orders/{order_id}/invoice")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "Total Amount: GHS 30.99" in response.text

    def test_csv_export(self, client, order_id):
        response = client.get("/orders/export.csv")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "orders-export-" in response.headers["content-disposition"]
        lines = response.text.split("\n")
        assert lines[0] == "Order ID,Customer,Date,Items,Status,Amount"
        assert lines[1].startswith(f'{order_id},"Ama Mensah",')
        assert lines[1].endswith(",2,Pending,30.99")


class TestSupplierFulfillmentAPI:
    def test_groups(self, client, order_id):
        groups = client.get(f"/orders/{order_id}/suppliers").json()
        assert sorted(g["supplier_id"] for g in groups) == ["farmer-a", "farmer-b"]
        assert sum(g["subtotal"] for g in groups) == 25.0
        assert {g["payment_status"] for g in groups} == {"unpaid"}

    def test_paying_both_suppliers_marks_order_paid(self, client, order_id):
        for supplier_id in ("farmer-a", "farmer-b"):
            _deliver_supplier(client, order_id, supplier_id)
            assert client.put(f"/orders/{order_id}/suppliers/{supplier_id}/pay").status_code == 200

        assert client.get(f"/orders/{order_id}").json()["payment_status"] == "paid"

    def test_paying_before_delivery_returns_400(self, client, order_id):
        response = client.put(f"/orders/{order_id}/suppliers/farmer-a/pay")
        assert response.status_code == 400
