from datetime import date
from decimal import Decimal

import pytest

from models.bill import PaymentMethod
from models.classification import Expense, Income
from services.errors import NotFoundError, ValidationError


def _add(service, **form):
    form.setdefault("type", "expense")
    form.setdefault("amount", "10")
    return service.add(1, form)


class TestRecord:

    def test_records_classified_expense_dated_today(self, transaction_service, transaction_repo):
        tx = transaction_service.record(
            1, Expense(amount=Decimal("50.00"), category="Alimentação", description="Mercado")
        )
        assert tx.id == 1
        assert tx.type == "expense"
        assert tx.date == date(2024, 6, 15)
        assert tx.category == "Alimentação"
        assert transaction_repo.rows == [tx]

    def test_records_income_with_payment_method(self, transaction_service):
        tx = transaction_service.record(
            1, Income(amount=Decimal("1000.00"), category="Salário", payment_method=PaymentMethod.PIX)
        )
        assert tx.is_income()
        assert tx.payment_method is PaymentMethod.PIX


class TestForm:

    def test_defaults(self, transaction_service):
        tx = _add(transaction_service, amount="12,5")
        assert tx.amount == Decimal("12.50")
        assert tx.category == "Outros"
        assert tx.date == date(2024, 6, 15)
        assert tx.payment_method is PaymentMethod.CASH

    @pytest.mark.parametrize("form", [
        {"type": "transfer", "amount": "10"},
        {"type": "expense", "amount": "0"},
        {"type": "expense", "amount": "dez"},
        {"type": "expense", "amount": "10", "date": "ontem"},
        {"type": "expense", "amount": "10", "payment_method": "cheque"},
        {"type": "expense", "amount": "1e30"},
        {"type": "income", "amount": "10000000000"},
    ])
    def test_rejects_invalid_forms(self, transaction_service, form):
        with pytest.raises(ValidationError):
            transaction_service.add(1, form)

    def test_update_and_delete(self, transaction_service, transaction_repo):
        tx = _add(transaction_service, category="Lazer")
        updated = transaction_service.update(1, tx.id, {"type": "income", "amount": "99"})
        assert updated.id == tx.id
        assert transaction_repo.rows[0].type == "income"

        transaction_service.delete(1, tx.id)
        assert transaction_repo.rows == []

    def test_update_or_delete_of_someone_elses_row(self, transaction_service):
        tx = _add(transaction_service)
        with pytest.raises(NotFoundError):
            transaction_service.update(2, tx.id, {"type": "expense", "amount": "1"})
        with pytest.raises(NotFoundError):
            transaction_service.delete(2, tx.id)


class TestQueries:

    @pytest.fixture
    def seeded(self, transaction_service):
        _add(transaction_service, type="income", amount="3000", category="Salário", date="2024-05-05")
        _add(transaction_service, amount="120", category="Alimentação", description="Mercado", date="2024-05-10")
        _add(transaction_service, amount="80", category="Transporte", description="Uber", date="2024-06-02")
        _add(transaction_service, amount="200", category="Alimentação", description="Restaurante", date="2024-06-10")
        _add(transaction_service, type="income", amount="500", category="Freelance", date="2024-06-12")
        return transaction_service

    def test_month_filter(self, seeded):
        rows = seeded.list_transactions(1, month="2024-05")
        assert {t.date for t in rows} == {date(2024, 5, 5), date(2024, 5, 10)}

    def test_category_and_search_filters(self, seeded):
        assert len(seeded.list_transactions(1, category="aliment")) == 2
        (uber,) = seeded.list_transactions(1, search="UBER")
        assert uber.category == "Transporte"
        assert len(seeded.list_transactions(1, search="transporte")) == 1

    def test_balance(self, seeded):
        totals = seeded.get_balance(1)
        assert totals["total_income"] == Decimal("3500.00")
        assert totals["total_expenses"] == Decimal("400.00")
        assert totals["balance"] == Decimal("3100.00")

    def test_month_summary_uses_current_month(self, seeded):
        totals = seeded.get_month_summary(1)
        assert totals["total_income"] == Decimal("500.00")
        assert totals["total_expenses"] == Decimal("280.00")
        assert totals["net"] == Decimal("220.00")

    def test_monthly_report_oldest_first(self, seeded):
        assert seeded.monthly_report(1) == [
            {"month": "2024-05", "income": Decimal("3000.00"), "expense": Decimal("120.00")},
            {"month": "2024-06", "income": Decimal("500.00"), "expense": Decimal("280.00")},
        ]

    def test_category_report_largest_first(self, seeded):
        assert seeded.category_report(1) == [
            {"category": "Alimentação", "total": Decimal("320.00")},
            {"category": "Transporte", "total": Decimal("80.00")},
        ]

    def test_empty_user(self, transaction_service):
        assert transaction_service.get_balance(9)["balance"] == 0
        assert transaction_service.monthly_report(9) == []
        assert transaction_service.category_report(9) == []
