"""
services/transaction_service.py
-------------------------------
Business logic for income and expense transactions: recording what the
AI classified, dashboard CRUD, balances and reports.
"""

from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Callable, Optional, Union

from models.bill import PaymentMethod
from models.classification import Expense, Income
from models.transaction import DEFAULT_CATEGORY, TRANSACTION_TYPES, Transaction
from repositories.transaction_repo import TransactionRepository
from services.bill_service import month_range, parse_amount
from services.errors import NotFoundError, ValidationError
from services.recurrence import coerce_date
from utils.logger import get_logger

logger = get_logger(__name__)


class TransactionService:
    """
    Handles all business logic related to financial transactions.

    Args:
        repo: Persistence for the transactions table.
        today: Clock used for new entries and the monthly summary.
    """

    def __init__(self, repo: TransactionRepository, today: Callable[[], date] = date.today):
        self.repo = repo
        self.today = today

    # ── Recording ─────────────────────────────────────────

    def record(self, user_id: int, intent: Union[Income, Expense]) -> Transaction:
        """Persist a classified message as a transaction dated today."""
        tx = Transaction(
            user_id=user_id,
            type=intent.type,
            amount=intent.amount,
            category=intent.category,
            description=intent.description,
            payment_method=intent.payment_method,
            date=self.today(),
        )
        return self.repo.add(tx)

    def parse_form(self, user_id: int, form: dict) -> Transaction:
        """
        Validate a dashboard transaction form.

        Raises:
            ValidationError: With a message meant for the user.
        """
        tx_type = str(form.get("type") or "").strip().lower()
        if tx_type not in TRANSACTION_TYPES:
            raise ValidationError("Tipo inválido: use receita (income) ou despesa (expense).")

        amount = parse_amount(form.get("amount"))

        raw_date = form.get("date")
        tx_date = coerce_date(raw_date) if raw_date else self.today()
        if tx_date is None:
            raise ValidationError("Data inválida.")

        raw_method = str(form.get("payment_method") or PaymentMethod.CASH.value).strip().lower()
        try:
            payment_method = PaymentMethod(raw_method)
        except ValueError:
            raise ValidationError("Forma de pagamento inválida.") from None

        return Transaction(
            user_id=user_id,
            type=tx_type,
            amount=amount,
            category=str(form.get("category") or "").strip() or DEFAULT_CATEGORY,
            description=str(form.get("description") or "").strip(),
            payment_method=payment_method,
            date=tx_date,
        )

    # ── Dashboard CRUD ────────────────────────────────────

    def add(self, user_id: int, form: dict) -> Transaction:
        return self.repo.add(self.parse_form(user_id, form))

    def update(self, user_id: int, tx_id: int, form: dict) -> Transaction:
        tx = self.parse_form(user_id, form)
        tx.id = tx_id
        if not self.repo.update(tx):
            raise NotFoundError(f"Transação #{tx_id} não encontrada.")
        return tx

    def delete(self, user_id: int, tx_id: int) -> None:
        if not self.repo.delete(tx_id, user_id):
            raise NotFoundError(f"Transação #{tx_id} não encontrada.")

    def list_transactions(
        self,
        user_id: int,
        month: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Transaction]:
        """
        List transactions with the dashboard filters.

        Args:
            month: 'YYYY-MM'; overrides start/end.
            category: Case-insensitive substring of the category.
            search: Case-insensitive substring of description or category.
        """
        start_date, end_date = self._date_range(month, start, end)
        rows = self.repo.find(user_id, start_date, end_date)

        if category and category.strip():
            term = category.strip().lower()
            rows = [t for t in rows if term in t.category.lower()]
        if search and search.strip():
            term = search.strip().lower()
            rows = [
                t for t in rows
                if term in t.description.lower() or term in t.category.lower()
            ]
        return rows

    # ── Balances & reports ────────────────────────────────

    def get_balance(self, user_id: int) -> dict:
        """All-time income, expenses and balance."""
        totals = self.repo.get_totals(user_id)
        totals["balance"] = totals["total_income"] - totals["total_expenses"]
        return totals

    def get_month_summary(self, user_id: int) -> dict:
        """Income, expenses and net for the current month."""
        start, end = month_range(self.today().strftime("%Y-%m"))
        totals = self.repo.get_totals(user_id, start, end)
        totals["net"] = totals["total_income"] - totals["total_expenses"]
        return totals

    def monthly_report(
        self, user_id: int, month: Optional[str] = None,
        start: Optional[str] = None, end: Optional[str] = None,
    ) -> list[dict]:
        """Income and expense per calendar month, oldest month first."""
        start_date, end_date = self._date_range(month, start, end)
        grouped: "OrderedDict[str, dict]" = OrderedDict()
        for tx in sorted(self.repo.find(user_id, start_date, end_date), key=lambda t: t.date):
            key = tx.date.strftime("%Y-%m")
            bucket = grouped.setdefault(key, {"income": Decimal("0"), "expense": Decimal("0")})
            bucket[tx.type] += tx.amount
        return [{"month": m, **values} for m, values in grouped.items()]

    def category_report(
        self, user_id: int, month: Optional[str] = None,
        start: Optional[str] = None, end: Optional[str] = None,
    ) -> list[dict]:
        """Expense totals per category, largest first."""
        start_date, end_date = self._date_range(month, start, end)
        totals: dict[str, Decimal] = {}
        for tx in self.repo.find(user_id, start_date, end_date, tx_type="expense"):
            name = tx.category or DEFAULT_CATEGORY
            totals[name] = totals.get(name, Decimal("0")) + tx.amount
        return [
            {"category": name, "total": total}
            for name, total in sorted(totals.items(), key=lambda x: -x[1])
        ]

    @staticmethod
    def _date_range(month, start, end) -> tuple[Optional[date], Optional[date]]:
        if month:
            return month_range(month)
        return coerce_date(start), coerce_date(end)
