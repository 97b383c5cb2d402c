"""Tests for the invoice and payment HTTP API."""

from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from ledger.main import app
from tests.conftest import (
    ACTOR_ID,
    DEFAULT_JOB_ID,
    DEFAULT_ORG_ID,
    OTHER_ORG_ID,
    UNLINKED_JOB_ID,
)

HEADERS = {"X-Organization-Id": str(DEFAULT_ORG_ID), "X-Actor-Id": ACTOR_ID}


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


def _create_invoice(client, **overrides) -> str:
    body = {
        "job_id": str(DEFAULT_JOB_ID),
        "tax_rate": "0.08",
        "line_items": [{"title": "Labor", "quantity": "2", "unit_price": "50"}],
    }
    body.update(overrides)
    response = client.post("/v1/invoices/", json=body, headers=HEADERS)
    assert response.status_code == 201, response.text
    return response.json()["data"]["invoice_id"]


class TestRoot:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert set(response.json()) == {"name", "version"}


class TestCreateInvoice:
    def test_create_returns_ids(self, client):
        response = client.post(
            "/v1/invoices/",
            json={"job_id": str(DEFAULT_JOB_ID)},
            headers={"X-Actor-Id": ACTOR_ID},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Invoice created"
        assert body["data"]["organization_id"] == str(DEFAULT_ORG_ID)

    def test_requires_actor(self, client):
        response = client.post("/v1/invoices/", json={"job_id": str(DEFAULT_JOB_ID)})
        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "UNAUTHORIZED"

    def test_validation_error_envelope(self, client):
        response = client.post(
            "/v1/invoices/",
            json={
                "job_id": str(DEFAULT_JOB_ID),
                "issue_date": "2025-06-10",
                "due_date": "2025-06-01",
            },
            headers=HEADERS,
        )
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_FAILED"
        assert isinstance(error["detail"], list)

    def test_missing_owner_reference(self, client):
        response = client.post("/v1/invoices/", json={}, headers={"X-Actor-Id": ACTOR_ID})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_OWNER_REFERENCE"

    def test_job_without_bid(self, client):
        response = client.post(
            "/v1/invoices/", json={"job_id": str(UNLINKED_JOB_ID)}, headers=HEADERS
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_OWNER_REFERENCE"

    def test_unknown_job(self, client):
        response = client.post("/v1/invoices/", json={"job_id": str(uuid4())}, headers=HEADERS)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_organization_mismatch(self, client):
        response = client.post(
            "/v1/invoices/",
            json={"job_id": str(DEFAULT_JOB_ID), "organization_id": str(OTHER_ORG_ID)},
            headers={"X-Actor-Id": ACTOR_ID},
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_OWNER"


class TestReadInvoices:
    def test_get_invoice_with_children(self, client):
        invoice_id = _create_invoice(client)

        response = client.get(
            f"/v1/invoices/{invoice_id}", params={"include_history": True}, headers=HEADERS
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "draft"
        assert data["line_item_sub_total"] == "100.00"
        assert data["total_amount"] == "108.00"
        assert len(data["line_items"]) == 1
        assert data["payments"] == []
        assert data["history"][0]["action"] == "created"

    def test_get_invoice_without_sections(self, client):
        invoice_id = _create_invoice(client)
        response = client.get(
            f"/v1/invoices/{invoice_id}",
            params={"include_line_items": False, "include_payments": False},
            headers=HEADERS,
        )
        data = response.json()["data"]
        assert data["line_items"] is None
        assert data["payments"] is None

    def test_other_organization_cannot_read(self, client):
        invoice_id = _create_invoice(client)
        response = client.get(
            f"/v1/invoices/{invoice_id}",
            headers={"X-Organization-Id": str(OTHER_ORG_ID)},
        )
        assert response.status_code == 404

    def test_list_sets_total_count(self, client):
        _create_invoice(client)
        _create_invoice(client)

        response = client.get("/v1/invoices/", params={"limit": 1}, headers=HEADERS)
        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "2"
        assert len(response.json()["data"]) == 1

    def test_list_requires_organization(self, client):
        response = client.get("/v1/invoices/")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "BAD_REQUEST"

    def test_invalid_organization_header(self, client):
        response = client.get("/v1/invoices/", headers={"X-Organization-Id": "not-a-uuid"})
        assert response.status_code == 400


class TestInvoiceCommands:
    def test_update_and_status_flow(self, client):
        invoice_id = _create_invoice(client)

        response = client.put(
            f"/v1/invoices/{invoice_id}", json={"notes": "Gate code 1234"}, headers=HEADERS
        )
        assert response.status_code == 200
        assert response.json()["data"]["notes"] == "Gate code 1234"

        response = client.post(f"/v1/invoices/{invoice_id}/send", headers=HEADERS)
        assert response.json()["data"]["status"] == "sent"

        response = client.post(
            f"/v1/invoices/{invoice_id}/void", json={"reason": "Duplicate"}, headers=HEADERS
        )
        assert response.json()["data"]["status"] == "void"

        response = client.post(f"/v1/invoices/{invoice_id}/send", headers=HEADERS)
        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "INVALID_STATUS_TRANSITION"
        assert error["detail"] == {"current_status": "void", "target_status": "sent"}

    def test_delete_then_not_found(self, client):
        invoice_id = _create_invoice(client)

        response = client.delete(f"/v1/invoices/{invoice_id}", headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["data"] is None

        assert client.get(f"/v1/invoices/{invoice_id}", headers=HEADERS).status_code == 404

    def test_bulk_delete(self, client):
        first = _create_invoice(client)
        second = _create_invoice(client)

        response = client.post(
            "/v1/invoices/bulk_delete",
            json={"ids": [first, second, str(uuid4())]},
            headers=HEADERS,
        )
        assert response.status_code == 200
        assert response.json()["data"] == {"deleted": 2, "skipped": 1}

    def test_null_tax_rate_rejected(self, client):
        invoice_id = _create_invoice(client)

        response = client.put(
            f"/v1/invoices/{invoice_id}", json={"tax_rate": None}, headers=HEADERS
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_FAILED"

        invoice = client.get(f"/v1/invoices/{invoice_id}", headers=HEADERS).json()["data"]
        assert Decimal(invoice["tax_rate"]) == Decimal("0.08")

    def test_null_discount_type_clears_discount(self, client):
        invoice_id = _create_invoice(client, discount_type="fixed", discount_value="10.00")

        response = client.put(
            f"/v1/invoices/{invoice_id}", json={"discount_type": None}, headers=HEADERS
        )
        assert response.status_code == 200
        assert response.json()["data"]["discount_amount"] == "0.00"


class TestLineItemEndpoints:
    def test_add_line_item_updates_totals(self, client):
        invoice_id = _create_invoice(client)

        response = client.post(
            f"/v1/invoices/{invoice_id}/line_items",
            json={"title": "Parts", "unit_price": "25.00"},
            headers=HEADERS,
        )
        assert response.status_code == 201
        line_item_id = response.json()["data"]["id"]

        invoice = client.get(f"/v1/invoices/{invoice_id}", headers=HEADERS).json()["data"]
        assert invoice["line_item_sub_total"] == "125.00"

        response = client.delete(
            f"/v1/invoices/{invoice_id}/line_items/{line_item_id}", headers=HEADERS
        )
        assert response.status_code == 200
        invoice = client.get(f"/v1/invoices/{invoice_id}", headers=HEADERS).json()["data"]
        assert invoice["line_item_sub_total"] == "100.00"

    def test_null_quantity_rejected(self, client):
        invoice_id = _create_invoice(client)
        line_item_id = client.post(
            f"/v1/invoices/{invoice_id}/line_items",
            json={"title": "Parts", "unit_price": "25.00"},
            headers=HEADERS,
        ).json()["data"]["id"]

        for field in ("quantity", "title", "unit_price"):
            response = client.put(
                f"/v1/invoices/{invoice_id}/line_items/{line_item_id}",
                json={field: None},
                headers=HEADERS,
            )
            assert response.status_code == 400, field
            assert response.json()["error"]["code"] == "VALIDATION_FAILED"

    def test_omitted_fields_left_unchanged(self, client):
        invoice_id = _create_invoice(client)
        line_item_id = client.post(
            f"/v1/invoices/{invoice_id}/line_items",
            json={"title": "Parts", "unit_price": "25.00", "quantity": "2"},
            headers=HEADERS,
        ).json()["data"]["id"]

        response = client.put(
            f"/v1/invoices/{invoice_id}/line_items/{line_item_id}",
            json={"notes": "Back-ordered"},
            headers=HEADERS,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert Decimal(data["quantity"]) == 2
        assert data["billed_total"] == "50.00"


class TestPaymentEndpoints:
    def test_record_payment_returns_balance(self, client):
        invoice_id = _create_invoice(client)

        response = client.post(
            f"/v1/invoices/{invoice_id}/payments",
            json={"amount": "108.00", "payment_date": "2025-06-01", "payment_method": "check"},
            headers=HEADERS,
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["payment"]["payment_number"].startswith("PAY-")
        assert data["invoice"] == {"amount_paid": "108.00", "balance_due": "0.00", "status": "paid"}

        payment_id = data["payment"]["id"]
        response = client.get(f"/v1/payments/{payment_id}", headers=HEADERS)
        assert response.status_code == 200

        response = client.get("/v1/payments/", headers=HEADERS)
        assert response.headers["X-Total-Count"] == "1"

    def test_delete_payment_reopens_invoice(self, client):
        invoice_id = _create_invoice(client)
        payment = client.post(
            f"/v1/invoices/{invoice_id}/payments",
            json={"amount": "108.00", "payment_date": "2025-06-01"},
            headers=HEADERS,
        ).json()["data"]["payment"]

        response = client.delete(
            f"/v1/invoices/{invoice_id}/payments/{payment['id']}", headers=HEADERS
        )
        assert response.status_code == 200
        assert response.json()["data"]["balance_due"] == "108.00"
        assert response.json()["data"]["status"] == "draft"

    def test_null_amount_rejected(self, client):
        invoice_id = _create_invoice(client)
        payment = client.post(
            f"/v1/invoices/{invoice_id}/payments",
            json={"amount": "50.00", "payment_date": "2025-06-01"},
            headers=HEADERS,
        ).json()["data"]["payment"]

        for field in ("amount", "payment_date", "payment_method"):
            response = client.put(
                f"/v1/invoices/{invoice_id}/payments/{payment['id']}",
                json={field: None},
                headers=HEADERS,
            )
            assert response.status_code == 400, field
            assert response.json()["error"]["code"] == "VALIDATION_FAILED"

        response = client.get(f"/v1/payments/{payment['id']}", headers=HEADERS)
        assert response.json()["data"]["amount"] == "50.00"

    def test_non_positive_amount_rejected(self, client):
        invoice_id = _create_invoice(client)
        response = client.post(
            f"/v1/invoices/{invoice_id}/payments",
            json={"amount": "0", "payment_date": "2025-06-01"},
            headers=HEADERS,
        )
        assert response.status_code == 400


class TestUnexpectedErrors:
    def test_unhandled_exception_envelope(self):
        client = TestClient(app, raise_server_exceptions=False)
        with patch(
            "ledger.routers.invoices.InvoiceService.list_invoices",
            side_effect=RuntimeError("boom"),
        ):
            response = client.get("/v1/invoices/", headers=HEADERS)

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "UNEXPECTED"
        assert body["message"] == "Internal server error"
