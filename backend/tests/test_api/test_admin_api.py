"""
API tests for admin endpoints: authentication, order management, catalog, bookings and contact messages
"""
from datetime import date, timedelta

import pytest

from storefront.domain.notification import NotificationType

ADMIN = "/api/v1/admin"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct horse battery staple"


@pytest.fixture
def order_id(client, make_payload, dispatcher):
    response = client.post("/api/v1/checkout", json=make_payload([{"product_id": "P1", "quantity": 2}]))
    dispatcher.events.clear()
    return response.json()["data"]["order_id"]


class TestAdminAuth:
    """Session and API key access to admin routes"""

    @pytest.mark.parametrize("method,path", [
        ("get", "/orders"),
        ("patch", "/orders/some-id/status"),
        ("delete", "/orders/some-id"),
        ("get", "/bookings"),
        ("get", "/contacts"),
        ("post", "/products/P1/restock"),
        ("get", "/me"),
    ])
    def test_requires_authentication(self, client, method, path):
        response = getattr(client, method)(f"{ADMIN}{path}")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_unknown_api_key(self, client):
        response = client.get(f"{ADMIN}/orders", headers={"X-API-Key": "guessed"})
        assert response.status_code == 401

    def test_login_issues_session(self, client):
        # Act
        response = client.post(f"{ADMIN}/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})

        # Assert
        assert response.status_code == 200
        assert "admin_session" in response.headers["set-cookie"]
        token = response.json()["data"]["token"]

        me = client.get(f"{ADMIN}/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["data"]["email"] == ADMIN_EMAIL
        assert me.json()["data"]["method"] == "session"

    def test_login_wrong_password(self, client):
        response = client.post(f"{ADMIN}/login", json={"email": ADMIN_EMAIL, "password": "wrong"})

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid email or password"

    def test_forged_token(self, client):
        response = client.get(f"{ADMIN}/me", headers={"Authorization": "Bearer not.a.jwt"})
        assert response.status_code == 401


class TestAdminOrders:
    def test_list_and_filter(self, client, admin_headers, order_id):
        response = client.get(f"{ADMIN}/orders", params={"status": "pending"}, headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["data"][0]["id"] == order_id
        assert body["data"][0]["internal_notes"] is None

        empty = client.get(f"{ADMIN}/orders", params={"status": "SHIPPED"}, headers=admin_headers)
        assert empty.json()["total"] == 0

    def test_search(self, client, admin_headers, order_id):
        response = client.get(f"{ADMIN}/orders", params={"search": "casablanca"}, headers=admin_headers)
        assert [order["id"] for order in response.json()["data"]] == [order_id]

    def test_status_change_and_history(self, client, admin_headers, dispatcher, order_id):
        # Act
        response = client.patch(
            f"{ADMIN}/orders/{order_id}/status",
            json={"status": "confirmed", "note": "stock checked"},
            headers=admin_headers,
        )

        # Assert
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "CONFIRMED"
        assert len(dispatcher.of_type(NotificationType.ORDER_STATUS_UPDATE)) == 1

        detail = client.get(f"{ADMIN}/orders/{order_id}", headers=admin_headers).json()["data"]
        assert detail["history"][0]["old_status"] == "PENDING"
        assert detail["history"][0]["new_status"] == "CONFIRMED"
        assert detail["history"][0]["note"] == "stock checked"

    def test_invalid_transition_is_409(self, client, admin_headers, order_id):
        response = client.patch(f"{ADMIN}/orders/{order_id}/status", json={"status": "SHIPPED"}, headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_TRANSITION"

    def test_unknown_status_value_is_400(self, client, admin_headers, order_id):
        response = client.patch(f"{ADMIN}/orders/{order_id}/status", json={"status": "LOST"}, headers=admin_headers)
        assert response.status_code == 400

    def test_unknown_order_is_404(self, client, admin_headers):
        response = client.patch(f"{ADMIN}/orders/missing/status", json={"status": "CONFIRMED"}, headers=admin_headers)
        assert response.status_code == 404

    def test_cancel_restocks(self, client, admin_headers, order_id, stock_of):
        assert stock_of("P1") == 3

        response = client.patch(f"{ADMIN}/orders/{order_id}/status", json={"status": "CANCELLED"}, headers=admin_headers)

        assert response.status_code == 200
        assert stock_of("P1") == 5

    def test_notes(self, client, admin_headers, order_id):
        response = client.patch(
            f"{ADMIN}/orders/{order_id}/notes", json={"internal_notes": "fragile"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["internal_notes"] == "fragile"

    def test_manual_payment(self, client, admin_headers, order_id):
        response = client.post(f"{ADMIN}/orders/{order_id}/payment", json={"note": "cash"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["payment_status"] == "paid"
        assert response.json()["data"]["is_paid"] is True

    def test_delete(self, client, admin_headers, order_id):
        response = client.delete(f"{ADMIN}/orders/{order_id}", headers=admin_headers)

        assert response.status_code == 200
        assert client.get(f"{ADMIN}/orders/{order_id}", headers=admin_headers).status_code == 404


class TestAdminCatalog:
    def test_restock(self, client, admin_headers, stock_of):
        response = client.post(f"{ADMIN}/products/P2/restock", json={"quantity": 4}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["stock"] == 6
        assert stock_of("P2") == 6

    def test_restock_rejects_zero(self, client, admin_headers):
        response = client.post(f"{ADMIN}/products/P2/restock", json={"quantity": 0}, headers=admin_headers)
        assert response.status_code == 400

    def test_category_lifecycle(self, client, admin_headers):
        created = client.post(f"{ADMIN}/categories", json={"name": "Outdoor", "slug": "outdoor"}, headers=admin_headers)
        assert created.status_code == 201
        category_id = created.json()["data"]["id"]

        product = client.post(
            f"{ADMIN}/products",
            json={"name": "Teak Bench", "slug": "teak-bench", "price": 7000, "stock": 3, "category_id": category_id},
            headers=admin_headers,
        )
        assert product.status_code == 201

        blocked = client.delete(f"{ADMIN}/categories/{category_id}", headers=admin_headers)
        assert blocked.status_code == 409


class TestAdminBookings:
    def test_list_and_update(self, client, admin_headers):
        created = client.post("/api/v1/bookings", json={
            "full_name": "Youssef Alaoui",
            "email": "youssef@example.com",
            "date": (date.today() + timedelta(days=3)).isoformat(),
            "time_slot": "11:00",
        })
        booking_id = created.json()["data"]["booking_id"]

        listing = client.get(f"{ADMIN}/bookings", headers=admin_headers).json()
        assert listing["total"] == 1

        updated = client.patch(
            f"{ADMIN}/bookings/{booking_id}",
            json={"status": "CONFIRMED", "internal_notes": "studio visit"},
            headers=admin_headers,
        )
        assert updated.status_code == 200
        assert updated.json()["data"]["status"] == "confirmed"

        detail = client.get(f"{ADMIN}/bookings/{booking_id}", headers=admin_headers)
        assert detail.json()["data"]["internal_notes"] == "studio visit"


class TestAdminContacts:
    def test_list(self, client, admin_headers):
        client.post("/api/v1/contact", json={
            "first_name": "Salma",
            "last_name": "Idrissi",
            "email": "salma@example.com",
            "message": "Please call me about a custom wardrobe.",
        })

        listing = client.get(f"{ADMIN}/contacts", headers=admin_headers).json()

        assert listing["total"] == 1
        assert listing["data"][0]["email"] == "salma@example.com"
