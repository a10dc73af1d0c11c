"""
models/classification.py
------------------------
Tagged result of classifying a free-form user message.

The AI layer returns raw JSON; `parse_classification` is the only way
to turn it into one of `Query`, `Income` or `Expense`. Anything else is
rejected with `ClassificationError`.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import ClassVar, Union

from models.bill import MAX_AMOUNT, PaymentMethod
from models.transaction import DEFAULT_CATEGORY


class ClassificationError(ValueError):
    """Raised when a classifier payload does not match any known variant."""


@dataclass(frozen=True)
class Query:
    """The message is a question (balance, report, greeting...), not a transaction."""
    type: ClassVar[str] = "query"


@dataclass(frozen=True)
class _TransactionIntent:
    amount: Decimal
    category: str = DEFAULT_CATEGORY
    payment_method: PaymentMethod = PaymentMethod.CASH
    description: str = ""


@dataclass(frozen=True)
class Income(_TransactionIntent):
    type: ClassVar[str] = "income"


@dataclass(frozen=True)
class Expense(_TransactionIntent):
    type: ClassVar[str] = "expense"


Classification = Union[Query, Income, Expense]

_VARIANTS = {"income": Income, "expense": Expense}


def _parse_amount(raw) -> Decimal:
    if isinstance(raw, bool) or raw is None:
        raise ClassificationError(f"Invalid amount: {raw!r}")
    if isinstance(raw, str):
        raw = raw.replace("R$", "").strip().replace(",", ".")
    try:
        amount = Decimal(str(raw))
        if amount.is_finite() and amount >= MAX_AMOUNT:
            raise ClassificationError(f"Amount out of range: {raw!r}")
        if amount.is_finite():
            amount = amount.quantize(Decimal("0.01"))
    except InvalidOperation:
        raise ClassificationError(f"Invalid amount: {raw!r}") from None
    if not amount.is_finite() or amount <= 0:
        raise ClassificationError(f"Amount must be positive: {raw!r}")
    return amount


def _parse_payment_method(raw) -> PaymentMethod:
    try:
        return PaymentMethod(str(raw).strip().lower())
    except ValueError:
        return PaymentMethod.CASH


def parse_classification(payload) -> Classification:
    """
    Validate a decoded classifier response.

    Args:
        payload: The dict decoded from the model's JSON reply.

    Returns:
        Query, Income or Expense.

    Raises:
        ClassificationError: If the payload is not an object, carries an
            unknown `type`, or a transaction has no usable amount.
    """
    if not isinstance(payload, dict):
        raise ClassificationError(f"Expected a JSON object, got {type(payload).__name__}")

    kind = str(payload.get("type", "")).strip().lower()
    if kind == "query":
        return Query()

    variant = _VARIANTS.get(kind)
    if variant is None:
        raise ClassificationError(f"Unknown classification type: {payload.get('type')!r}")

    category = str(payload.get("category") or "").strip() or DEFAULT_CATEGORY
    description = str(payload.get("description") or "").strip()
    return variant(
        amount=_parse_amount(payload.get("amount")),
        category=category,
        payment_method=_parse_payment_method(payload.get("payment_method")),
        description=description,
    )
