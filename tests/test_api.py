import pytest
from fastapi.testclient import TestClient

from lending.config import settings
from lending.database import get_db
from lending.main import app
from lending.services.auth import ensure_admin
from lending.services.desk import get_desk


@pytest.fixture
def client(library):
    ensure_admin(library.db)
    app.dependency_overrides[get_db] = lambda: library.db
    app.dependency_overrides[get_desk] = lambda: library
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(client):
    response = client.post(
        "/api/auth/login",
        json={"username": settings.admin_username, "password": settings.admin_password},
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def borrow(client, patron_id="P001", media_id="B1", media_type="BOOK", today="2024-01-01"):
    return client.post(
        "/api/loans/borrow",
        json={"patron_id": patron_id, "media_id": media_id, "media_type": media_type, "today": today},
    )


def test_health(client):
    assert client.get("/api/health").json() == {"status": "healthy"}


def test_borrow_and_return_flow(client):
    response = borrow(client)
    assert response.status_code == 201
    assert response.json()["dueDate"] == "2024-01-29"

    response = client.post("/api/loans/L0001/return", json={"today": "2024-02-05"})
    body = response.json()
    assert response.status_code == 200
    assert body["overdueDays"] == 7
    assert body["fine"]["amount"] == 10.0

    response = client.post("/api/fines/F0001/pay", json={"amount": 15})
    body = response.json()
    assert response.status_code == 200
    assert body["refund"] == 5.0
    assert body["borrowingRestored"] is True


def test_denied_borrow_carries_reason(client):
    borrow(client)
    response = borrow(client, media_id="B2", today="2024-02-05")

    assert response.status_code == 409
    assert response.json()["code"] == "NotEligible"
    assert response.json()["reason"] == "UnpaidFines"


def test_pay_before_return_conflicts(client):
    borrow(client)
    client.post("/api/loans/reconcile/P001", params={"today": "2024-02-05"})

    response = client.post("/api/fines/F0001/pay", json={"amount": 10})

    assert response.status_code == 409
    assert response.json()["code"] == "LoanNotReturned"


def test_unknown_loan_is_404(client):
    response = client.post("/api/loans/L9999/return", json={"today": "2024-01-02"})
    assert response.status_code == 404
    assert response.json()["code"] == "LoanNotFound"


def test_invalid_payment_is_422(client, library):
    library.ledger.apply_manual_fine("P001", 5, "late fee")
    response = client.post("/api/fines/F0001/pay", json={"amount": 0})
    assert response.json()["code"] == "InvalidAmount"


def test_admin_routes_require_token(client):
    response = client.post("/api/fines/", json={"patron_id": "P001", "amount": 5, "reason": "damage"})
    assert response.status_code == 401


def test_manual_fine_and_breakdown(client, admin_headers):
    response = client.post(
        "/api/fines/",
        json={"patron_id": "P001", "amount": 4.5, "reason": "damaged case"},
        headers=admin_headers,
    )
    assert response.status_code == 201

    breakdown = client.get("/api/fines/patron/P001/breakdown").json()
    assert breakdown["manualTotal"] == 4.5
    assert breakdown["total"] == 4.5


def test_register_policy_for_new_media_type(client, admin_headers, library):
    response = client.post(
        "/api/fines/policies",
        json={"media_type": "dvd", "flat_fine": 15},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json() == {"mediaType": "DVD", "flatFine": 15.0}

    client.post(
        "/api/media/",
        json={"identifier": "D1", "media_type": "DVD", "title": "Alien", "creator": "Ridley Scott"},
        headers=admin_headers,
    )
    borrow(client, media_id="D1", media_type="DVD")
    body = client.post("/api/loans/L0001/return", json={"today": "2024-03-01"}).json()
    assert body["fine"]["amount"] == 15.0


def test_patron_lifecycle(client, admin_headers):
    response = client.post("/api/patrons/", json={"name": "Carol", "email": "carol@example.com"})
    assert response.status_code == 201
    patron_id = response.json()["id"]

    response = client.post(f"/api/patrons/{patron_id}/deactivate", headers=admin_headers)
    assert response.json()["active"] is False

    response = borrow(client, patron_id=patron_id)
    assert response.json()["code"] == "AccountInactive"


def test_media_listing(client):
    items = client.get("/api/media/", params={"media_type": "CD"}).json()
    assert [i["id"] for i in items] == ["CD1"]


def test_payment_without_date_reconciles_against_today(client, library):
    borrow(client, media_id="CD1", media_type="CD")
    borrow(client, media_id="B1", media_type="BOOK")
    client.post("/api/loans/L0001/return", json={"today": "2024-01-11"})

    # The book borrowed in 2024 is long overdue by the library's clock
    response = client.post("/api/fines/F0001/pay", json={"amount": 20})
    body = response.json()

    assert response.status_code == 200
    assert body["fullyPaid"] is True
    assert body["borrowingRestored"] is False
    assert library.patrons.get("P001").can_borrow is False
    assert [f.loan_id for f in library.ledger.unpaid_fines("P001")] == ["L0002"]


def test_oversized_payment_is_422(client, library):
    library.ledger.apply_manual_fine("P001", 5, "late fee")

    response = client.post("/api/fines/F0001/pay", json={"amount": 1e30})
    assert response.status_code == 422
    assert response.json()["code"] == "InvalidAmount"

    response = client.post("/api/fines/F0001/pay", json={"amount": "inf"})
    assert response.status_code == 422
