"""
models/bill.py
--------------
Domain models for payable/receivable bills and their recurrence policy.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

# amount columns are NUMERIC(12,2)
MAX_AMOUNT = Decimal("10000000000")


class PaymentMethod(str, Enum):
    PIX = "pix"
    CARD = "card"
    TRANSFER = "transfer"
    CASH = "cash"


class Interval(str, Enum):
    """Calendar step between two instances of a recurring bill."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class BillStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class BillKind(str, Enum):
    """
    Which side of the ledger a bill sits on.

    Payables and receivables live in two tables with the same layout,
    except for the counterparty column.
    """
    PAYABLE = "payable"
    RECEIVABLE = "receivable"

    @property
    def table(self) -> str:
        return "accounts_payable" if self is BillKind.PAYABLE else "accounts_receivable"

    @property
    def party_column(self) -> str:
        return "supplier_name" if self is BillKind.PAYABLE else "client_name"


@dataclass(frozen=True)
class Obligation:
    """
    The base record a user submits before recurrence is applied.

    Attributes:
        user_id: Owning user.
        kind: Payable or receivable.
        amount: Positive currency value.
        due_date: Anchor date for expansion.
        party_name: Supplier (payable) or client (receivable).
        payment_method: One of PaymentMethod.
        description: Optional free text.
    """
    user_id: int
    kind: BillKind
    amount: Decimal
    due_date: date
    party_name: str
    payment_method: PaymentMethod = PaymentMethod.PIX
    description: str = ""


@dataclass(frozen=True)
class RecurrencePolicy:
    """
    Whether and how an obligation repeats.

    `count` wins over `end_date` when it is a positive integer.
    With neither bound, a recurring policy still yields a single instance.
    """
    is_recurring: bool = False
    interval: Interval = Interval.MONTHLY
    count: Optional[int] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class ObligationInstance:
    """One dated occurrence of an obligation, ready to be persisted."""
    user_id: int
    kind: BillKind
    amount: Decimal
    due_date: date
    party_name: str
    payment_method: PaymentMethod
    description: str
    status: BillStatus = BillStatus.PENDING
    is_recurring: bool = False
    recurrence_interval: Optional[Interval] = None
    recurrence_count: Optional[int] = None
    recurrence_end_date: Optional[date] = None


@dataclass
class Bill:
    """
    A persisted payable or receivable row.

    Attributes:
        id: Database primary key.
        status: pending, paid or overdue.
        payment_date: Set when the bill is marked as paid.
    """
    id: int
    user_id: int
    kind: BillKind
    amount: Decimal
    due_date: date
    party_name: str
    payment_method: PaymentMethod
    description: str = ""
    status: BillStatus = BillStatus.PENDING
    payment_date: Optional[date] = None
    is_recurring: bool = False
    recurrence_interval: Optional[Interval] = None
    recurrence_count: Optional[int] = None
    recurrence_end_date: Optional[date] = None
    created_at: Optional[datetime] = None

    def is_open(self) -> bool:
        """Returns True while the bill still has to be settled."""
        return self.status in (BillStatus.PENDING, BillStatus.OVERDUE)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.kind.value,
            "amount": float(self.amount),
            "due_date": self.due_date.isoformat(),
            self.kind.party_column: self.party_name,
            "payment_method": self.payment_method.value,
            "description": self.description,
            "status": self.status.value,
            "payment_date": self.payment_date.isoformat() if self.payment_date else None,
            "is_recurring": self.is_recurring,
            "recurrence_interval": self.recurrence_interval.value if self.recurrence_interval else None,
            "recurrence_count": self.recurrence_count,
            "recurrence_end_date": (
                self.recurrence_end_date.isoformat() if self.recurrence_end_date else None
            ),
        }

    def __str__(self) -> str:
        return f"{self.party_name}: R$ {self.amount:.2f} | {self.due_date} | {self.status.value}"
