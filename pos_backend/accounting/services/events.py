# accounting/services/events.py

"""
======================================================
PATH: accounting/services/events.py
======================================================
BUSINESS EVENTS (ACCOUNTING INPUTS)

What the surrounding workflows hand to the posting adapter.
Order completion, expense recording, purchase receiving and refunds build
one of these and call AccountingService.create_*_entry(event).

Amounts are Decimal-compatible (Decimal, int or numeric str).
Dates may be date or datetime; datetimes are mapped to the local date.
User ids are optional (system actions carry None).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal


@dataclass(frozen=True)
class SaleItem:
    quantity: Decimal | int
    unit_cost: Decimal | int | str


@dataclass(frozen=True)
class Payment:
    method: str
    amount: Decimal | int | str


@dataclass(frozen=True)
class SaleEvent:
    order_id: int | str
    order_number: str
    total: Decimal | int | str
    created_at: datetime | date
    items: tuple[SaleItem, ...] = field(default_factory=tuple)
    payments: tuple[Payment, ...] = field(default_factory=tuple)
    user_id: int | None = None

    @property
    def payment_method(self) -> str | None:
        """Method of the first recorded payment (drives the debit account)."""
        if not self.payments:
            return None
        return self.payments[0].method


@dataclass(frozen=True)
class ExpenseEvent:
    expense_id: int | str
    expense_number: str
    title: str
    category: str
    amount: Decimal | int | str
    expense_date: date
    payment_method: str = "cash"
    user_id: int | None = None


@dataclass(frozen=True)
class PurchaseEvent:
    purchase_order_id: int | str
    po_number: str
    total: Decimal | int | str
    order_date: date
    supplier_name: str = ""
    actor_id: int | None = None


@dataclass(frozen=True)
class RefundEvent:
    refund_id: int | str
    refund_number: str
    amount: Decimal | int | str
    created_at: datetime | date
    actor_id: int | None = None
