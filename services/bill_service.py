"""
services/bill_service.py
------------------------
Business logic for payable and receivable bills.
Validates the submitted form, expands recurrence and hands the rows
to the BillRepository.
"""

import calendar
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

from models.bill import (
    Bill,
    BillKind,
    BillStatus,
    MAX_AMOUNT,
    Obligation,
    PaymentMethod,
    RecurrencePolicy,
)
from repositories.bill_repo import BillRepository
from services.errors import NotFoundError, ValidationError
from services.recurrence import coerce_count, coerce_date, coerce_interval, expand, to_instance
from utils.logger import get_logger

logger = get_logger(__name__)


def parse_kind(value: str) -> BillKind:
    try:
        return BillKind(value)
    except ValueError:
        raise NotFoundError(f"Unknown bill type: {value!r}") from None


def month_range(month: str) -> tuple[date, date]:
    """
    First and last day of a 'YYYY-MM' month.

    Raises:
        ValidationError: If the value is not a valid month.
    """
    try:
        year_str, month_str = month.split("-")
        year, month_number = int(year_str), int(month_str)
        last_day = calendar.monthrange(year, month_number)[1]
    except (ValueError, calendar.IllegalMonthError):
        raise ValidationError("Mês inválido. Use o formato AAAA-MM.") from None
    return date(year, month_number, 1), date(year, month_number, last_day)


def parse_amount(value) -> Decimal:
    """
    Parse a form amount ('150', '99,90') into a positive Decimal with two places.

    Raises:
        ValidationError: If the value is not a number, not positive, or
            too large for the amount columns.
    """
    try:
        amount = Decimal(str(value if value is not None else "").strip().replace(",", "."))
        if amount.is_finite() and amount >= MAX_AMOUNT:
            raise ValidationError("Valor inválido: informe um valor menor que 10.000.000.000.")
        if amount.is_finite():
            amount = amount.quantize(Decimal("0.01"))
    except InvalidOperation:
        raise ValidationError("Valor inválido: informe um valor maior que 0.") from None
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("Valor inválido: informe um valor maior que 0.")
    return amount


def _truthy(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "on", "yes", "sim")
    return bool(value)


class BillService:
    """
    Handles all business logic for bills.

    Args:
        repo: Persistence for both bill tables.
        today: Clock used for overdue detection and payment dates.
    """

    def __init__(self, repo: BillRepository, today: Callable[[], date] = date.today):
        self.repo = repo
        self.today = today

    # ── Form parsing ──────────────────────────────────────

    def parse_form(self, user_id: int, kind: BillKind, form: dict) -> tuple[Obligation, RecurrencePolicy]:
        """
        Validate a bill form and split it into the base record and its policy.

        Raises:
            ValidationError: With a message meant for the user.
        """
        amount = parse_amount(form.get("amount"))

        party_name = str(form.get("party_name") or "").strip()
        if not party_name:
            raise ValidationError("Nome inválido: informe um nome para a conta.")

        due_date = coerce_date(form.get("due_date"))
        if due_date is None:
            raise ValidationError("Data inválida: informe uma data de vencimento.")

        raw_method = str(form.get("payment_method") or PaymentMethod.PIX.value).strip().lower()
        try:
            payment_method = PaymentMethod(raw_method)
        except ValueError:
            raise ValidationError("Forma de pagamento inválida.") from None

        base = Obligation(
            user_id=user_id,
            kind=kind,
            amount=amount,
            due_date=due_date,
            party_name=party_name,
            payment_method=payment_method,
            description=str(form.get("description") or "").strip(),
        )

        is_recurring = _truthy(form.get("is_recurring"))
        if not is_recurring:
            return base, RecurrencePolicy()

        raw_count = form.get("recurrence_count")
        count = None
        if raw_count not in (None, ""):
            count = coerce_count(raw_count)
            if count is None:
                raise ValidationError("Recorrência inválida: informe uma quantidade válida.")

        raw_end = form.get("recurrence_end_date")
        end_date = coerce_date(raw_end)
        if raw_end and end_date is None:
            raise ValidationError("Data final inválida.")
        if count is None and end_date is not None and end_date < due_date:
            raise ValidationError("A data final deve ser igual ou posterior ao vencimento.")

        policy = RecurrencePolicy(
            is_recurring=True,
            interval=coerce_interval(form.get("recurrence_interval")),
            count=count,
            end_date=end_date,
        )
        return base, policy

    # ── CRUD ──────────────────────────────────────────────

    def create_bills(self, user_id: int, kind: BillKind, form: dict) -> list[Bill]:
        """
        Validate a submission, expand its recurrence and insert every instance.

        Returns:
            The persisted bills ordered by due date.
        """
        base, policy = self.parse_form(user_id, kind, form)
        if policy.is_recurring and policy.count is None and policy.end_date is None:
            logger.warning(
                f"Recurring {kind.value} for user {user_id} has no count or end date; "
                "saving a single bill."
            )
        instances = expand(base, policy)
        return self.repo.add_many(instances)

    def list_bills(
        self,
        user_id: int,
        kind: BillKind,
        month: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[Bill]:
        """
        List bills, flagging pending ones past their due date as overdue.

        Args:
            month: 'YYYY-MM'; when set it overrides start/end.
            start: Earliest due date (YYYY-MM-DD).
            end: Latest due date (YYYY-MM-DD).
            status: pending, paid, overdue or 'all'.
        """
        if month:
            start_date, end_date = month_range(month)
        else:
            start_date, end_date = coerce_date(start), coerce_date(end)

        status_filter = None
        if status and status != "all":
            try:
                status_filter = BillStatus(status)
            except ValueError:
                raise ValidationError("Status inválido.") from None

        bills = self.repo.find(user_id, kind, start_date, end_date, status_filter)

        today = self.today()
        overdue = [b for b in bills if b.status is BillStatus.PENDING and b.due_date < today]
        if overdue:
            self.repo.mark_overdue(kind, [b.id for b in overdue])
            for bill in overdue:
                bill.status = BillStatus.OVERDUE
            if status_filter is BillStatus.PENDING:
                bills = [b for b in bills if b.status is BillStatus.PENDING]
        return bills

    def update_bill(self, user_id: int, kind: BillKind, bill_id: int, form: dict) -> Bill:
        """Edit a single bill in place. Recurrence is recorded but not re-expanded."""
        base, policy = self.parse_form(user_id, kind, form)
        if not self.repo.update(bill_id, to_instance(base, policy)):
            raise NotFoundError(f"Conta #{bill_id} não encontrada.")
        return self.repo.get_by_id(kind, bill_id, user_id)

    def mark_paid(self, user_id: int, kind: BillKind, bill_id: int) -> None:
        if not self.repo.mark_paid(kind, bill_id, user_id, self.today()):
            raise NotFoundError(f"Conta #{bill_id} não encontrada.")
        logger.info(f"{kind.value} #{bill_id} marked as paid by user {user_id}")

    def delete_bill(self, user_id: int, kind: BillKind, bill_id: int) -> None:
        if not self.repo.delete(kind, bill_id, user_id):
            raise NotFoundError(f"Conta #{bill_id} não encontrada.")

    @staticmethod
    def outstanding_total(bills: list[Bill]) -> Decimal:
        """Sum of everything still pending or overdue."""
        return sum((b.amount for b in bills if b.is_open()), Decimal("0"))
