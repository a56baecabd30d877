"""
API tests for the data entry and data management endpoints.

Tests cover:
- Transaction templates CRUD
- Batch transaction creation
- Balance updates and history
- Loan schedule changes and payment reset
- JSON export and import
"""

from datetime import datetime, timedelta, timezone

import pytest

from tests.conftest import register_user


def _iso(days: int = 0) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def _create_account(client, name: str, type: str, currency: str = "CNY") -> dict:
    category = client.post("/api/categories", json={"name": f"{name} category", "type": type})
    assert category.status_code == 201, category.text
    response = client.post("/api/accounts", json={
        "name": name,
        "categoryId": category.json()["data"]["categoryId"],
        "currencyCode": currency,
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]


# =============================================================================
# TRANSACTION TEMPLATES
# =============================================================================


class TestTemplatesAPI:
    """Tests for /api/transaction-templates."""

    @pytest.fixture
    def food(self, auth_client) -> dict:
        return _create_account(auth_client, "Food", "EXPENSE")

    def test_crud(self, auth_client, food):
        created = auth_client.post("/api/transaction-templates", json={
            "name": "Lunch",
            "accountId": food["accountId"],
            "type": "EXPENSE",
            "description": "Lunch at work",
        })
        assert created.status_code == 201
        template = created.json()["data"]
        assert template["currencyId"] == food["currencyId"]

        path = f"/api/transaction-templates/{template['templateId']}"
        renamed = auth_client.put(path, json={"name": "Team lunch"}).json()["data"]
        assert renamed["name"] == "Team lunch"
        assert renamed["description"] == "Lunch at work"

        listing = auth_client.get("/api/transaction-templates", params={"type": "EXPENSE"}).json()["data"]
        assert [t["name"] for t in listing] == ["Team lunch"]
        assert auth_client.get("/api/transaction-templates", params={"type": "INCOME"}).json()["data"] == []

        deleted = auth_client.delete(path)
        assert deleted.json()["data"] == {"message": "Transaction template deleted"}
        assert auth_client.get(path).status_code == 404

    def test_duplicate_name(self, auth_client, food):
        payload = {
            "name": "Lunch",
            "accountId": food["accountId"],
            "type": "EXPENSE",
            "description": "Lunch",
        }
        auth_client.post("/api/transaction-templates", json=payload)

        response = auth_client.post("/api/transaction-templates", json=payload)

        assert response.status_code == 409

    def test_type_must_match_account(self, auth_client, food):
        response = auth_client.post("/api/transaction-templates", json={
            "name": "Bonus",
            "accountId": food["accountId"],
            "type": "INCOME",
            "description": "Bonus",
        })

        assert response.status_code == 400


# =============================================================================
# BATCH CREATE
# =============================================================================


class TestBatchAPI:
    """Tests for /api/transactions/batch."""

    def test_limits(self, auth_client):
        data = auth_client.get("/api/transactions/batch").json()["data"]

        assert data["maxBatchSize"] == 100
        assert "EXPENSE" in data["supportedTypes"]

    def test_partial_success(self, auth_client):
        """
        GIVEN a batch with one zero amount among valid items
        WHEN it is posted
        THEN the valid items are created and the bad one is reported by index
        """
        food = _create_account(auth_client, "Food", "EXPENSE")
        item = {"accountId": food["accountId"], "type": "EXPENSE", "description": "Snack"}

        response = auth_client.post("/api/transactions/batch", json={"transactions": [
            dict(item, amount="12"),
            dict(item, amount="0"),
            dict(item, amount="8.50"),
        ]})

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["summary"] == {"total": 3, "created": 2, "failed": 1}
        assert [e["index"] for e in data["errors"]] == [1]
        assert auth_client.get("/api/transactions").json()["data"]["total"] == 2

    def test_nothing_created(self, auth_client):
        food = _create_account(auth_client, "Food", "EXPENSE")

        response = auth_client.post("/api/transactions/batch", json={"transactions": [
            {"accountId": food["accountId"], "type": "INCOME", "amount": "5", "description": "Wrong"},
        ]})

        assert response.status_code == 200
        assert response.json()["data"]["summary"]["created"] == 0

    def test_empty_batch(self, auth_client):
        response = auth_client.post("/api/transactions/batch", json={"transactions": []})

        assert response.status_code == 422


# =============================================================================
# BALANCE UPDATES
# =============================================================================


class TestBalanceUpdateAPI:
    """Tests for /api/balance-update."""

    @pytest.fixture
    def bank(self, auth_client) -> dict:
        return _create_account(auth_client, "Bank", "ASSET")

    def test_set_then_correct_same_day(self, auth_client, bank):
        """
        GIVEN an asset account without history
        WHEN its balance is set and then corrected on the same day
        THEN the second call replaces the first snapshot
        """
        first = auth_client.post("/api/balance-update", json={
            "accountId": bank["accountId"],
            "newBalance": "1500",
        })
        assert first.status_code == 201
        data = first.json()["data"]
        assert data["isUpdate"] is False
        assert data["formattedBalance"] == "¥1,500.00"
        assert float(data["balanceChange"]) == pytest.approx(1500)

        second = auth_client.post("/api/balance-update", json={
            "accountId": bank["accountId"],
            "newBalance": "1800",
        })
        assert second.status_code == 200
        corrected = second.json()["data"]
        assert corrected["isUpdate"] is True
        assert corrected["transaction"]["txnId"] == data["transaction"]["txnId"]

        history = auth_client.get("/api/balance-update", params={"accountId": bank["accountId"]}).json()["data"]
        assert [float(t["amount"]) for t in history] == [1800]

    def test_flow_account_rejected(self, auth_client):
        food = _create_account(auth_client, "Food", "EXPENSE")

        response = auth_client.post("/api/balance-update", json={
            "accountId": food["accountId"],
            "newBalance": "10",
        })

        assert response.status_code == 400

    def test_history_requires_account(self, auth_client):
        response = auth_client.get("/api/balance-update")

        assert response.status_code == 400
        assert response.json()["error"] == "accountId is required"


# =============================================================================
# LOAN SCHEDULE CHANGES
# =============================================================================


class TestLoanScheduleChangesAPI:
    """Tests for editing loan terms and resetting payments."""

    def _contract(self, client, start: str) -> dict:
        mortgage = _create_account(client, "Car loan", "LIABILITY")
        repayments = _create_account(client, "Loan repayments", "EXPENSE")
        response = client.post("/api/loan-contracts", json={
            "accountId": mortgage["accountId"],
            "contractName": "Car loan",
            "loanAmount": "12000",
            "interestRate": "0.12",
            "totalPeriods": 12,
            "repaymentType": "EQUAL_PRINCIPAL",
            "startDate": start,
            "paymentDay": 1,
            "paymentAccountId": repayments["accountId"],
        })
        assert response.status_code == 201, response.text
        return response.json()["data"]

    def test_rate_change_rebuilds_schedule(self, auth_client):
        contract = self._contract(auth_client, _iso(40))

        response = auth_client.put(
            f"/api/loan-contracts/{contract['contractId']}", json={"interestRate": "0.06"}
        )

        assert response.status_code == 200
        schedule = auth_client.get(f"/api/loan-contracts/{contract['contractId']}/schedule").json()["data"]
        assert len(schedule) == 12
        assert float(schedule[0]["interestAmount"]) == pytest.approx(60)

    def test_reset_processed_payments(self, auth_client):
        """
        GIVEN a contract whose past periods were booked by a sync
        WHEN its payments are reset
        THEN every booked period is PENDING again and its transactions are gone
        """
        contract = self._contract(auth_client, _iso(-100))
        auth_client.post("/api/sync/trigger")
        path = f"/api/loan-contracts/{contract['contractId']}"
        booked = [p for p in auth_client.get(f"{path}/schedule").json()["data"] if p["status"] == "COMPLETED"]
        assert booked

        response = auth_client.post(f"{path}/reset-payments", json={})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["resetCount"] == len(booked)
        assert data["deletedTransactions"] == 3 * len(booked)
        schedule = auth_client.get(f"{path}/schedule").json()["data"]
        assert all(p["status"] == "PENDING" for p in schedule)
        assert auth_client.get(path).json()["data"]["currentPeriod"] == 0

    def test_reset_with_nothing_booked(self, auth_client):
        contract = self._contract(auth_client, _iso(40))

        response = auth_client.post(f"/api/loan-contracts/{contract['contractId']}/reset-payments", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "No completed payments to reset"


# =============================================================================
# EXPORT AND IMPORT
# =============================================================================


class TestDataAPI:
    """Tests for /api/user/data."""

    def test_export_is_attachment(self, auth_client):
        _create_account(auth_client, "Bank", "ASSET")

        response = auth_client.get("/api/user/data/export")

        assert response.status_code == 200
        assert response.headers["content-disposition"].startswith('attachment; filename="flow-balance-export-')
        document = response.json()
        assert document["user"]["email"] == "bob@example.com"
        assert [a["name"] for a in document["accounts"]] == ["Bank"]

    def test_import_into_another_user(self, auth_client):
        """
        GIVEN Bob's export
        WHEN Carol imports it
        THEN Carol gets Bob's accounts and transactions
        """
        bank = _create_account(auth_client, "Bank", "ASSET")
        auth_client.post("/api/balance-update", json={"accountId": bank["accountId"], "newBalance": "900"})
        document = auth_client.get("/api/user/data/export").json()

        register_user(auth_client, email="carol@example.com")
        response = auth_client.post("/api/user/data/import", json={"data": document})

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["success"] is True
        assert data["errors"] == []
        assert data["statistics"]["failed"] == 0
        accounts = auth_client.get("/api/accounts").json()["data"]
        assert [a["name"] for a in accounts] == ["Bank"]
        assert auth_client.get("/api/transactions").json()["data"]["total"] == 1

    def test_import_rejects_non_export(self, auth_client):
        response = auth_client.post("/api/user/data/import", json={"data": {"hello": "world"}})

        assert response.status_code == 400

    def test_requires_login(self, client):
        assert client.get("/api/user/data/export").status_code == 401
