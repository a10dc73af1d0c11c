"""
models/transaction.py
---------------------
Domain model for financial transactions (expenses and income).
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from models.bill import PaymentMethod

TRANSACTION_TYPES = ("income", "expense")
DEFAULT_CATEGORY = "Outros"


@dataclass
class Transaction:
    """
    Represents a single financial transaction.

    Attributes:
        id: Database primary key (None for new records).
        user_id: Owning user.
        type: Either 'income' or 'expense'.
        amount: Positive transaction amount.
        category: Free-text category (e.g. Alimentação, Salário).
        description: Optional human-readable note.
        payment_method: pix, card, transfer or cash.
        date: Date of the transaction.
        created_at: Timestamp when the record was created.
    """
    user_id: int
    type: str  # 'income' | 'expense'
    amount: Decimal
    category: str = DEFAULT_CATEGORY
    date: date = field(default_factory=date.today)
    description: str = ""
    payment_method: PaymentMethod = PaymentMethod.CASH
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    def is_expense(self) -> bool:
        """Returns True if this is an expense transaction."""
        return self.type == "expense"

    def is_income(self) -> bool:
        """Returns True if this is an income transaction."""
        return self.type == "income"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "amount": float(self.amount),
            "category": self.category,
            "description": self.description,
            "payment_method": self.payment_method.value,
            "date": self.date.isoformat(),
        }

    def __str__(self) -> str:
        sign = "-" if self.is_expense() else "+"
        return f"{sign}R$ {self.amount:.2f} | {self.category} | {self.date}"
