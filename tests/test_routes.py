import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app


@pytest.fixture
def client():
    app = create_app(Settings(_env_file=None, DATABASE_TYPE="sqlite", SQLITE_PATH=":memory:"))
    with TestClient(app) as test_client:
        yield test_client


def register(client, username, email, role="customer"):
    return client.post("/register", json={
        "username": username,
        "email": email,
        "password": "secret123",
        "role": role,
        "profile": {"firstName": username.title()},
    })


ITEMS = [{"productId": "p1", "quantity": 2, "price": 4.99, "name": "Tomatoes"}]


def test_health_reports_backend(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"database": "sqlite", "connected": True}


def test_register_returns_user_without_password(client):
    response = register(client, "alice", "Alice@GreenFarm.org")

    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "alice@greenfarm.org"
    assert body["role"] == "customer"
    assert body["isActive"] is True
    assert "password" not in body


def test_register_conflicts(client):
    assert register(client, "alice", "alice@greenfarm.org").status_code == 201

    same_username = register(client, "alice", "other@greenfarm.org")
    same_email = register(client, "alice2", "alice@greenfarm.org")

    assert same_username.status_code == 409
    assert same_username.json()["detail"] == "Username already exists"
    assert same_email.status_code == 409
    assert same_email.json()["detail"] == "Email already exists"


def test_admin_accounts_cannot_be_deleted(client):
    admin = register(client, "root", "root@greenfarm.org", role="admin").json()
    customer = register(client, "bob", "bob@greenfarm.org").json()

    refused = client.delete(f"/admin/users/{admin['id']}")
    assert refused.status_code == 400
    assert refused.json()["detail"] == "Cannot delete admin users"

    assert client.delete(f"/admin/users/{customer['id']}").status_code == 200
    assert client.get(f"/users/{customer['id']}").status_code == 404
    assert client.delete(f"/admin/users/{customer['id']}").status_code == 404


def test_admin_lists_and_changes_roles(client):
    user = register(client, "carol", "carol@greenfarm.org").json()

    changed = client.put(f"/admin/users/{user['id']}/role", json={"role": "farmer"})
    assert changed.status_code == 200
    assert changed.json()["role"] == "farmer"

    farmers = client.get("/admin/users", params={"role": "farmer"}).json()
    assert [u["username"] for u in farmers] == ["carol"]


def test_product_crud(client):
    created = client.post("/products", json={
        "name": "Tomatoes", "price": 4.99, "sku": "TOM-001", "farmerId": "f1", "stock": 100,
    })
    assert created.status_code == 201
    product = created.json()
    assert product["category"] == "other"

    listed = client.get("/products", params={"farmerId": "f1", "inStock": True}).json()
    assert [p["sku"] for p in listed] == ["TOM-001"]

    updated = client.put(f"/products/{product['id']}", json={"stock": 0})
    assert updated.json()["stock"] == 0
    assert client.get("/products", params={"inStock": True}).json() == []

    assert client.delete(f"/products/{product['id']}").status_code == 200
    assert client.get(f"/products/{product['id']}").status_code == 404


def test_duplicate_sku_maps_to_conflict(client):
    payload = {"name": "Eggs", "category": "dairy", "price": 3.0, "sku": "EGG-12", "farmerId": "f1"}
    assert client.post("/products", json=payload).status_code == 201

    response = client.post("/products", json=payload)

    assert response.status_code == 409
    assert response.json()["field"] == "sku"


def test_product_rejects_unknown_category(client):
    response = client.post("/products", json={
        "name": "Steak", "category": "meat", "price": 12.0, "sku": "BEEF-1", "farmerId": "f1",
    })

    assert response.status_code == 422


def test_order_status_flow(client):
    created = client.post("/orders", json={
        "customerId": "c1", "items": ITEMS, "totalAmount": 9.98, "shippingAddress": "1 Farm Lane",
    })
    assert created.status_code == 201
    order = created.json()
    assert order["status"] == "pending"
    assert order["shippingAddress"] == "1 Farm Lane"

    skip = client.patch(f"/orders/{order['id']}/status", json={"status": "delivered"})
    assert skip.status_code == 400

    for status in ("confirmed", "shipped", "delivered"):
        response = client.patch(f"/orders/{order['id']}/status", json={"status": status})
        assert response.status_code == 200
        assert response.json()["status"] == status

    final = client.patch(f"/orders/{order['id']}/status", json={"status": "cancelled"})
    assert final.status_code == 400

    mine = client.get("/orders", params={"customerId": "c1", "status": "delivered"}).json()
    assert [o["id"] for o in mine] == [order["id"]]


def test_order_validation(client):
    empty = client.post("/orders", json={"customerId": "c1", "items": [], "totalAmount": 5})
    free = client.post("/orders", json={"customerId": "c1", "items": ITEMS, "totalAmount": 0})

    assert empty.status_code == 422
    assert free.status_code == 422


def test_missing_order_is_404(client):
    assert client.get("/orders/999").status_code == 404
    assert client.patch("/orders/999/status", json={"status": "confirmed"}).status_code == 404


def test_cart_save_and_clear(client):
    empty = client.get("/cart/c1").json()
    assert empty["items"] == []
    assert empty["id"] is None

    client.put("/cart/c1", json={"items": ITEMS})
    replacement = [{"productId": "p9", "quantity": 1, "price": 2.5, "name": "Basil"}]
    saved = client.put("/cart/c1", json={"items": replacement})
    assert saved.status_code == 200

    assert client.get("/cart/c1").json()["items"] == replacement

    assert client.delete("/cart/c1").json()["items"] == []
    assert client.get("/cart/c1").json()["id"] is None


def test_product_update_cannot_null_required_field(client):
    product = client.post("/products", json={
        "name": "Basil", "category": "herbs", "price": 2.5, "sku": "BASIL-1", "farmerId": "f1",
    }).json()

    response = client.put(f"/products/{product['id']}", json={"name": None})

    assert response.status_code == 422
    assert client.get(f"/products/{product['id']}").json()["name"] == "Basil"


def test_order_delivery_date_is_returned_in_utc(client):
    created = client.post("/orders", json={
        "customerId": "c1", "items": ITEMS, "totalAmount": 9.98,
        "deliveryDate": "2025-06-01T10:00:00+02:00",
    }).json()

    order = client.get(f"/orders/{created['id']}").json()

    assert order["deliveryDate"] == "2025-06-01T08:00:00Z"
