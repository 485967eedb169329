"""Integration tests for API endpoints"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY
from juakali_lend.config import settings


def _apply(client: TestClient, **overrides) -> dict:
    body = {
        "borrower_id": "retailer_1",
        "lender_id": "lender_1",
        "supplier_id": "supplier_1",
        "principal": "50000",
        "daily_interest_rate": "0.05",
        "loan_term_days": 30,
    }
    body.update(overrides)
    response = client.post("/v1/loans", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def _active_loan(client: TestClient, disbursement_date: str = "2026-01-01", **overrides) -> dict:
    loan = _apply(client, **overrides)
    response = client.post(f"/v1/loans/{loan['loan_id']}/approve", json={"disbursement_date": disbursement_date})
    assert response.status_code == 200, response.text
    return response.json()


def _pay(client: TestClient, loan_id: int, amount: str, **extra):
    body = {"loan_id": loan_id, "amount": amount, "payment_method": "mpesa"}
    body.update(extra)
    return client.post("/v1/payments", json=body)


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "X-Request-ID" in response.headers


def test_request_id_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "mpesa-cb-42"})
    assert response.headers["X-Request-ID"] == "mpesa-cb-42"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    _apply(client)
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "juakali_loan_applications_total" in response.text


def test_quote_endpoint(client: TestClient):
    response = client.post(
        "/v1/loans/quote",
        json={"principal": 50000, "daily_interest_rate": 0.05, "loan_term_days": 30},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total_amount"] == "125000.00"
    assert data["daily_payment"] == "4166.67"
    assert data["total_interest"] == "75000.00"


def test_quote_uses_default_rate(client: TestClient):
    response = client.post("/v1/loans/quote", json={"principal": "1000", "loan_term_days": 10})

    assert response.status_code == 200
    assert response.json()["total_amount"] == "1500.00"


def test_quote_invalid_terms(client: TestClient):
    response = client.post("/v1/loans/quote", json={"principal": "1000", "daily_interest_rate": "1.2", "loan_term_days": 10})
    assert response.status_code == 400


def test_apply_creates_pending_loan(client: TestClient):
    data = _apply(client)

    assert data["status"] == "pending"
    assert data["total_amount"] == "125000.00"
    assert data["daily_payment"] == "4166.67"
    assert data["outstanding_balance"] == "125000.00"
    assert data["due_date"] is None

    fetched = client.get(f"/v1/loans/{data['loan_id']}")
    assert fetched.status_code == 200
    assert fetched.json() == data


@pytest.mark.parametrize(
    "overrides",
    [{"principal": "0"}, {"loan_term_days": 0}, {"daily_interest_rate": "-0.01"}],
)
def test_apply_invalid_terms(client: TestClient, overrides: dict):
    body = {"borrower_id": "retailer_1", "principal": "1000", "daily_interest_rate": "0.05", "loan_term_days": 10}
    body.update(overrides)

    response = client.post("/v1/loans", json=body)

    assert response.status_code == 400
    assert client.get("/v1/loans", params={"borrower_id": "retailer_1"}).json()["loans"] == []


def test_apply_missing_borrower(client: TestClient):
    response = client.post("/v1/loans", json={"principal": "1000", "loan_term_days": 10})
    assert response.status_code == 422


def test_get_unknown_loan(client: TestClient):
    assert client.get("/v1/loans/999").status_code == 404
    assert client.post("/v1/loans/999/approve").status_code == 404


def test_list_loans_by_borrower(client: TestClient):
    _apply(client)
    _apply(client, principal="2000")
    _apply(client, borrower_id="retailer_2")

    response = client.get("/v1/loans", params={"borrower_id": "retailer_1"})

    assert response.status_code == 200
    assert len(response.json()["loans"]) == 2


def test_approve_sets_due_date(client: TestClient):
    data = _active_loan(client)

    assert data["status"] == "active"
    assert data["disbursement_date"] == "2026-01-01"
    assert data["due_date"] == "2026-01-31"


def test_approve_without_body_disburses_today(client: TestClient):
    loan = _apply(client, loan_term_days=7)

    response = client.post(f"/v1/loans/{loan['loan_id']}/approve")

    assert response.status_code == 200
    assert response.json()["due_date"] == (date.today() + timedelta(days=7)).isoformat()


def test_reject_then_approve_conflicts(client: TestClient):
    loan = _apply(client)

    rejected = client.post(f"/v1/loans/{loan['loan_id']}/reject")
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "cancelled"

    response = client.post(f"/v1/loans/{loan['loan_id']}/approve")
    assert response.status_code == 409
    assert client.get(f"/v1/loans/{loan['loan_id']}").json()["status"] == "cancelled"


def test_payment_reduces_balance(client: TestClient):
    loan = _active_loan(client)

    response = _pay(client, loan["loan_id"], "4166.67", transaction_reference="QWE123")

    assert response.status_code == 201
    data = response.json()
    assert data["payment"]["amount"] == "4166.67"
    assert data["payment"]["payment_method"] == "mpesa"
    assert data["loan"]["outstanding_balance"] == "120833.33"
    assert data["loan"]["status"] == "active"


def test_full_payment_completes_loan(client: TestClient):
    loan = _active_loan(client)

    response = _pay(client, loan["loan_id"], "125000")

    assert response.status_code == 201
    assert response.json()["loan"]["status"] == "completed"
    assert response.json()["loan"]["outstanding_balance"] == "0.00"


def test_payment_after_completion_is_overpayment(client: TestClient):
    loan = _active_loan(client)
    _pay(client, loan["loan_id"], "125000")

    response = _pay(client, loan["loan_id"], "1")

    assert response.status_code == 400
    stored = client.get(f"/v1/loans/{loan['loan_id']}").json()
    assert stored["status"] == "completed"
    assert stored["outstanding_balance"] == "0.00"
    assert len(client.get(f"/v1/loans/{loan['loan_id']}/payments").json()["payments"]) == 1


def test_overpayment_rejected(client: TestClient):
    loan = _active_loan(client)

    response = _pay(client, loan["loan_id"], "125000.01")

    assert response.status_code == 400
    assert client.get(f"/v1/loans/{loan['loan_id']}").json()["outstanding_balance"] == "125000.00"


def test_payment_on_pending_loan_conflicts(client: TestClient):
    loan = _apply(client)

    response = _pay(client, loan["loan_id"], "100")

    assert response.status_code == 409


def test_duplicate_transaction_reference_rejected(client: TestClient):
    loan = _active_loan(client)
    assert _pay(client, loan["loan_id"], "100", transaction_reference="MPESA-1").status_code == 201

    response = _pay(client, loan["loan_id"], "100", transaction_reference="MPESA-1")

    assert response.status_code == 409
    assert client.get(f"/v1/loans/{loan['loan_id']}").json()["outstanding_balance"] == "124900.00"


def test_payment_unknown_loan(client: TestClient):
    assert _pay(client, 999, "100").status_code == 404


def test_default_overdue_loan(client: TestClient):
    loan = _active_loan(client)

    early = client.post(f"/v1/loans/{loan['loan_id']}/default", json={"as_of": "2026-01-31"})
    assert early.status_code == 409

    response = client.post(f"/v1/loans/{loan['loan_id']}/default", json={"as_of": "2026-02-01"})
    assert response.status_code == 200
    assert response.json()["status"] == "defaulted"


def test_schedule_endpoint(client: TestClient):
    loan = _active_loan(client)
    _pay(client, loan["loan_id"], "5000")

    response = client.get(f"/v1/loans/{loan['loan_id']}/schedule", params={"as_of": "2026-01-03"})

    assert response.status_code == 200
    data = response.json()
    assert len(data["installments"]) == 30
    assert data["installments"][0] == {"due_date": "2026-01-02", "amount": "4166.66"}
    assert data["installments"][-1]["amount"] == "4166.86"
    assert data["amount_due_to_date"] == "8333.32"
    assert data["amount_repaid"] == "5000.00"


def test_schedule_requires_disbursement(client: TestClient):
    loan = _apply(client)
    assert client.get(f"/v1/loans/{loan['loan_id']}/schedule").status_code == 409


def test_credit_default_profile(client: TestClient):
    response = client.get("/v1/credit/retailer_9")

    assert response.status_code == 200
    data = response.json()
    assert data["credit_score"] == 500
    assert data["credit_limit"] == "50000.00"
    assert data["available_credit"] == "50000.00"


def test_credit_profile_update_and_exposure(client: TestClient):
    response = client.put("/v1/credit/retailer_1", json={"credit_score": 750, "loyalty_points": 40})
    assert response.status_code == 200
    assert response.json()["available_credit"] == "75000.00"

    _active_loan(client, principal="10000", loan_term_days=10)  # 15,000 total

    data = client.get("/v1/credit/retailer_1").json()
    assert data["outstanding_amount"] == "15000.00"
    assert data["available_credit"] == "60000.00"
    assert data["loyalty_points"] == 40


def test_credit_profile_invalid_score(client: TestClient):
    response = client.put("/v1/credit/retailer_1", json={"credit_score": 900})
    assert response.status_code == 400


def test_dashboard_empty(client: TestClient):
    response = client.get("/v1/dashboard/retailer_1")

    assert response.status_code == 200
    data = response.json()
    assert data["totalLoans"] == 0
    assert data["activeLoans"] == 0
    assert data["totalRepaid"] == "0.00"
    assert data["outstandingAmount"] == "0.00"
    assert data["creditUtilization"] == "0"
    assert data["pendingPayments"] == 0
    assert data["creditScore"] == 500


def test_dashboard_summary(client: TestClient):
    client.put("/v1/credit/retailer_1", json={"credit_score": 750, "loyalty_points": 10})
    active = _active_loan(client, principal="10000", loan_term_days=10)
    done = _active_loan(client, principal="4000", loan_term_days=10)
    _apply(client, principal="1000")
    _pay(client, active["loan_id"], "4500")
    _pay(client, done["loan_id"], "6000")

    response = client.get("/v1/dashboard/retailer_1", params={"as_of": "2026-01-11"})

    assert response.status_code == 200
    data = response.json()
    assert data["totalLoans"] == 3
    assert data["activeLoans"] == 1
    assert data["completedLoans"] == 1
    assert data["totalPrincipal"] == "15000.00"
    assert data["totalRepaid"] == "10500.00"
    assert data["outstandingAmount"] == "10500.00"
    assert data["availableCredit"] == "64500.00"
    assert data["creditUtilization"] == "0.1400"
    assert data["pendingPayments"] == 1
    assert data["loyaltyPoints"] == 10


def test_apply_sub_cent_principal_rejected(client: TestClient):
    response = client.post(
        "/v1/loans",
        json={"borrower_id": "retailer_1", "principal": "0.004", "daily_interest_rate": "0.05", "loan_term_days": 10},
    )

    assert response.status_code == 400
    assert client.get("/v1/loans", params={"borrower_id": "retailer_1"}).json()["loans"] == []


def test_stored_rate_reproduces_total(client: TestClient):
    created = _apply(client, principal="100000", daily_interest_rate="0.051234")

    stored = client.get(f"/v1/loans/{created['loan_id']}").json()

    assert stored == created
    rate = Decimal(stored["daily_interest_rate"])
    expected_total = Decimal(stored["principal"]) * (1 + rate * stored["loan_term_days"])
    assert Decimal(stored["total_amount"]) == expected_total.quantize(Decimal("0.01"))


def test_apply_rate_beyond_storable_precision_rejected(client: TestClient):
    response = client.post(
        "/v1/loans",
        json={"borrower_id": "retailer_1", "principal": "100000", "daily_interest_rate": "0.0512345", "loan_term_days": 30},
    )
    assert response.status_code == 400


@pytest.mark.parametrize("principal", ["1e20", "1000000.01"])
def test_apply_principal_above_maximum_rejected(client: TestClient, principal: str):
    response = client.post(
        "/v1/loans",
        json={"borrower_id": "retailer_1", "principal": principal, "loan_term_days": 30},
    )
    assert response.status_code == 400


def test_sub_cent_payment_rejected(client: TestClient):
    loan = _active_loan(client)

    response = _pay(client, loan["loan_id"], "10.005")

    assert response.status_code == 400
    assert client.get(f"/v1/loans/{loan['loan_id']}").json()["outstanding_balance"] == "125000.00"
    assert client.get(f"/v1/loans/{loan['loan_id']}/payments").json()["payments"] == []


def test_list_loans_by_lender(client: TestClient):
    _apply(client, lender_id="lender_1")
    _apply(client, borrower_id="retailer_2", lender_id="lender_1")
    _apply(client, lender_id="lender_2")

    response = client.get("/v1/loans", params={"lender_id": "lender_1"})

    assert response.status_code == 200
    data = response.json()
    assert data["lender_id"] == "lender_1"
    assert data["borrower_id"] is None
    assert {loan["borrower_id"] for loan in data["loans"]} == {"retailer_1", "retailer_2"}


@pytest.mark.parametrize("params", [{}, {"borrower_id": "retailer_1", "lender_id": "lender_1"}])
def test_list_loans_requires_one_filter(client: TestClient, params: dict):
    assert client.get("/v1/loans", params=params).status_code == 400


def test_statement_endpoint(client: TestClient):
    loan = _active_loan(client)
    _pay(client, loan["loan_id"], "4166.66", paid_at="2026-01-02T10:00:00Z")
    _pay(client, loan["loan_id"], "1000", paid_at="2026-01-10T10:00:00Z")

    response = client.get(
        f"/v1/loans/{loan['loan_id']}/statement",
        params={"start": "2026-01-02", "end": "2026-01-04"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total_expected"] == "12499.98"
    assert data["total_paid"] == "4166.66"
    assert data["shortfall"] == "8333.32"
    assert data["outstanding_balance"] == "119833.34"
    assert len(data["payments"]) == 1


def test_statement_rejects_reversed_period(client: TestClient):
    loan = _active_loan(client)

    response = client.get(
        f"/v1/loans/{loan['loan_id']}/statement",
        params={"start": "2026-01-10", "end": "2026-01-02"},
    )

    assert response.status_code == 400


def test_statement_requires_disbursement(client: TestClient):
    loan = _apply(client)
    response = client.get(
        f"/v1/loans/{loan['loan_id']}/statement",
        params={"start": "2026-01-01", "end": "2026-01-31"},
    )
    assert response.status_code == 409


def test_dashboard_score_outside_policy_is_counted(client: TestClient, monkeypatch):
    client.put("/v1/credit/retailer_1", json={"credit_score": 800})
    monkeypatch.setattr(settings, "credit_score_max", 700)
    labels = {"operation": "dashboard", "error_kind": "InvalidScoreError"}
    before = REGISTRY.get_sample_value("juakali_rejected_operations_total", labels) or 0

    response = client.get("/v1/dashboard/retailer_1")

    assert response.status_code == 400
    assert REGISTRY.get_sample_value("juakali_rejected_operations_total", labels) == before + 1
