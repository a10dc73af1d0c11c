"""HTTP tests for the Flask blueprints, wired to in-memory fakes."""

from decimal import Decimal

import pytest

from db.connection import DatabaseBusyError
from main import Services, create_app
from models.classification import Expense
from services.message_service import MessageService
from services.reminder_service import ReminderService
from tests.conftest import TODAY, FakeReminderRepository

USER = {"X-User-Id": "1"}
CRON = {"Authorization": "Bearer cron-secret"}


@pytest.fixture
def services(user_repo, bill_service, transaction_service, messenger, classifier):
    user_repo.ensure_whatsapp_user("5511999990000")
    return Services(
        users=user_repo,
        bills=bill_service,
        transactions=transaction_service,
        messages=MessageService(user_repo, transaction_service, messenger, classifier),
        reminders=ReminderService(FakeReminderRepository(), messenger, today=lambda: TODAY),
    )


@pytest.fixture
def app(services):
    return create_app(
        services=services,
        overrides={
            "TESTING": True,
            "META_VERIFY_TOKEN": "verify-me",
            "REMINDER_CRON_SECRET": "cron-secret",
        },
    )


@pytest.fixture
def client(app):
    return app.test_client()


class TestWebhook:

    def test_verification_echoes_challenge(self, client):
        res = client.get(
            "/api/whatsapp/webhook",
            query_string={"hub.mode": "subscribe", "hub.verify_token": "verify-me", "hub.challenge": "12345"},
        )
        assert res.status_code == 200
        assert res.get_data(as_text=True) == "12345"

    def test_verification_rejects_wrong_token(self, client):
        res = client.get(
            "/api/whatsapp/webhook",
            query_string={"hub.mode": "subscribe", "hub.verify_token": "nope", "hub.challenge": "12345"},
        )
        assert res.status_code == 403

    def test_inbound_message_is_processed(self, client, classifier, messenger, make_payload):
        classifier.result = Expense(amount=Decimal("50.00"), category="Alimentação")

        res = client.post("/api/whatsapp/webhook", json=make_payload(text="Gastei 50 no mercado"))

        assert res.status_code == 200
        assert res.get_json() == {"success": True}
        assert len(messenger.sent) == 1

    def test_status_callback_is_acknowledged(self, client, messenger):
        res = client.post("/api/whatsapp/webhook", json={"entry": [{"changes": [{"value": {"statuses": []}}]}]})
        assert res.status_code == 200
        assert messenger.sent == []

    def test_processing_failure_returns_500(self, client, services, make_payload):
        def boom(payload):
            raise RuntimeError("db down")

        services.messages.handle_inbound = boom
        res = client.post("/api/whatsapp/webhook", json=make_payload(text="oi"))
        assert res.status_code == 500
        assert res.get_json() == {"error": "Internal server error"}


class TestReminderDispatch:

    def test_requires_secret(self, client):
        assert client.post("/api/reminders/dispatch").status_code == 401
        res = client.post("/api/reminders/dispatch", headers={"Authorization": "Bearer wrong"})
        assert res.status_code == 401

    def test_non_ascii_token_is_unauthorized(self, client):
        res = client.post("/api/reminders/dispatch", headers={"Authorization": "Bearer é"})
        assert res.status_code == 401
        assert res.get_json() == {"error": "Unauthorized"}

    def test_dispatch(self, client):
        res = client.post("/api/reminders/dispatch", headers=CRON)
        assert res.status_code == 200
        assert res.get_json() == {"success": True, "sent": 0}


class TestBills:

    def test_requires_user(self, client):
        res = client.get("/api/bills/payable")
        assert res.status_code == 401
        assert client.get("/api/bills/payable", headers={"X-User-Id": "abc"}).status_code == 401
        assert client.get("/api/bills/payable", headers={"X-User-Id": "²"}).status_code == 401

    def test_create_recurring_then_list(self, client):
        res = client.post("/api/bills/payable", headers=USER, json={
            "amount": "150",
            "due_date": "2024-01-31",
            "party_name": "Imobiliária Central",
            "is_recurring": True,
            "recurrence_interval": "monthly",
            "recurrence_count": 3,
        })
        assert res.status_code == 201
        body = res.get_json()
        assert body["created"] == 3
        assert [b["due_date"] for b in body["bills"]] == ["2024-01-31", "2024-03-02", "2024-04-02"]
        assert body["bills"][0]["supplier_name"] == "Imobiliária Central"

        listed = client.get("/api/bills/payable", headers=USER).get_json()
        assert [b["status"] for b in listed["bills"]] == ["overdue"] * 3
        assert listed["outstanding_total"] == 450.0

    def test_validation_error_is_400(self, client):
        res = client.post("/api/bills/receivable", headers=USER, json={"amount": "0"})
        assert res.status_code == 400
        assert "valor" in res.get_json()["error"].lower()

    @pytest.mark.parametrize("amount", ["1e30", "99999999999999"])
    def test_unstorable_amount_is_400(self, client, amount):
        res = client.post("/api/bills/payable", headers=USER, json={
            "amount": amount, "due_date": "2024-07-10", "party_name": "Fornecedor",
        })
        assert res.status_code == 400
        assert res.get_json()["error"].startswith("Valor inválido")

    def test_exhausted_pool_is_503(self, client, services):
        def busy(*args, **kwargs):
            raise DatabaseBusyError("All database connections are in use.")

        services.bills.list_bills = busy
        res = client.get("/api/bills/payable", headers=USER)
        assert res.status_code == 503
        assert res.get_json() == {"error": "Database busy, try again"}

    def test_unknown_kind_is_404(self, client):
        assert client.get("/api/bills/invoices", headers=USER).status_code == 404

    def test_mark_paid_and_delete(self, client):
        created = client.post("/api/bills/receivable", headers=USER, json={
            "amount": "80", "due_date": "2024-07-01", "party_name": "Cliente A",
        }).get_json()
        bill_id = created["bills"][0]["id"]
        assert created["bills"][0]["client_name"] == "Cliente A"

        assert client.post(f"/api/bills/receivable/{bill_id}/paid", headers=USER).status_code == 200
        (bill,) = client.get("/api/bills/receivable", headers=USER).get_json()["bills"]
        assert bill["status"] == "paid"

        assert client.delete(f"/api/bills/receivable/{bill_id}", headers=USER).status_code == 200
        assert client.delete(f"/api/bills/receivable/{bill_id}", headers=USER).status_code == 404


class TestTransactions:

    def test_create_list_and_balance(self, client):
        res = client.post("/api/transactions", headers=USER, json={
            "type": "income", "amount": "1000", "category": "Salário", "date": "2024-06-01",
        })
        assert res.status_code == 201
        client.post("/api/transactions", headers=USER, json={
            "type": "expense", "amount": "250.50", "category": "Mercado", "date": "2024-05-20",
        })

        rows = client.get("/api/transactions", headers=USER, query_string={"month": "2024-06"}).get_json()
        assert [t["category"] for t in rows["transactions"]] == ["Salário"]

        balance = client.get("/api/transactions/balance", headers=USER).get_json()
        assert balance["all_time"]["balance"] == 749.5
        assert balance["this_month"]["net"] == 1000.0

    def test_reports(self, client):
        client.post("/api/transactions", headers=USER, json={
            "type": "expense", "amount": "40", "category": "Lazer", "date": "2024-06-03",
        })
        body = client.get("/api/reports", headers=USER).get_json()
        assert body["monthly"] == [{"month": "2024-06", "income": 0.0, "expense": 40.0}]
        assert body["categories"] == [{"category": "Lazer", "total": 40.0}]

    def test_bad_month_is_400(self, client):
        res = client.get("/api/transactions", headers=USER, query_string={"month": "junho"})
        assert res.status_code == 400


class TestProfile:

    def test_get_and_update(self, client):
        assert client.get("/api/profile", headers=USER).get_json()["whatsapp_number"] == "5511999990000"

        res = client.put("/api/profile", headers=USER, json={
            "name": "Ana", "currency": "usd", "whatsapp_number": "+55 (11) 98888-7777",
        })
        assert res.status_code == 200
        body = res.get_json()
        assert body["name"] == "Ana"
        assert body["currency"] == "USD"
        assert body["whatsapp_number"] == "5511988887777"

    def test_rejects_unknown_currency(self, client):
        res = client.put("/api/profile", headers=USER, json={"currency": "JPY"})
        assert res.status_code == 400

    def test_unknown_user_is_404(self, client):
        assert client.get("/api/profile", headers={"X-User-Id": "42"}).status_code == 404


class TestUnconfigured:

    @pytest.fixture
    def client(self, app):
        app.extensions["services"] = None
        return app.test_client()

    @pytest.mark.parametrize("method,path", [
        ("get", "/api/bills/payable"),
        ("get", "/api/transactions"),
        ("get", "/api/profile"),
        ("post", "/api/whatsapp/webhook"),
    ])
    def test_database_not_configured(self, client, method, path):
        res = getattr(client, method)(path, headers=USER, json={})
        assert res.status_code == 500
        assert res.get_json() == {"error": "Database not configured"}

    def test_dispatch_not_configured(self, client):
        res = client.post("/api/reminders/dispatch", headers=CRON)
        assert res.status_code == 500

    def test_health_reports_missing_database(self, client):
        assert client.get("/health").get_json() == {"status": "ok", "database": False}
