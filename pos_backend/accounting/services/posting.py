# accounting/services/posting.py

"""
======================================================
PATH: accounting/services/posting.py
======================================================
POSTING ADAPTER

Build lines for a business event and call create_journal_entry (the engine).

This module should remain a thin adapter:
- It DOES NOT do workflows (orders, expenses, POs and refunds live elsewhere).
- It DOES map business events -> accounting lines.
- It ALWAYS calls create_journal_entry (engine) for atomicity + idempotency.

RECIPES (line order is fixed):
  Sale      Dr Cash/Bank/AR (total)       Cr Sales Revenue (total)
            [+ Dr COGS / Cr Inventory for Σ(unit_cost × qty) when > 0]
  Expense   Dr Operating Expense          Cr Cash (Bank for bank_transfer)
  Purchase  Dr Inventory                  Cr Accounts Payable (Cash fallback)
  Refund    Dr Sales Revenue              Cr Cash

MISCONFIGURATION:
- A missing required account is not an error: the builder logs a WARNING
  and returns None before anything is written.
- A zero or negative amount is logged at INFO and returns None for every
  recipe.

FEATURE GATE:
- AccountingService(enabled=...) receives the gate at construction.
  get_accounting_service() is the one place that reads settings.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.source import SourceKind, SourceRef
from accounting.services import account_registry as registry
from accounting.services.events import ExpenseEvent, PurchaseEvent, RefundEvent, SaleEvent
from accounting.services.exceptions import JournalEntryCreationError
from accounting.services.journal_entry_service import _money, create_journal_entry

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

# Payment methods (lower-cased) that settle into the bank account.
BANK_METHODS = frozenset({"card", "bank_transfer", "bank", "transfer", "pos"})
# Payment methods that leave the customer owing us.
CREDIT_METHODS = frozenset({"credit", "on_account"})


def _norm_method(method: str | None) -> str:
    return (method or "").strip().lower()


def _decimal(value) -> Decimal:
    """Unrounded Decimal for intermediate products (quantity x unit cost)."""
    if value is None or value == "":
        value = "0"
    try:
        amt = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise JournalEntryCreationError(f"Invalid numeric value: {value!r}") from exc
    if not amt.is_finite():
        raise JournalEntryCreationError(f"Invalid numeric value: {value!r}")
    return amt


def _total_cost(items) -> Decimal:
    """Sum of unit_cost x quantity, rounded once to cents."""
    total = sum(
        (_decimal(item.unit_cost) * _decimal(item.quantity) for item in items),
        Decimal("0"),
    )
    return total.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


class AccountingService:
    def __init__(self, *, enabled: bool):
        self._enabled = bool(enabled)

    def is_accounting_enabled(self) -> bool:
        return self._enabled

    # ============================================================
    # ACCOUNT RESOLUTION
    # ============================================================

    def _skip(self, event: str, reason: str) -> None:
        logger.warning("Accounting misconfigured, no %s entry created: %s", event, reason)
        return None

    def _nothing_to_post(self, event: str, number) -> None:
        logger.info("%s %s has no positive amount; nothing to post", event.capitalize(), number)
        return None

    def _sale_payment_account(self, method: str | None) -> Account | None:
        method = _norm_method(method)
        cash = registry.find_by_subtype(registry.CASH)

        if method in BANK_METHODS:
            return registry.find_by_subtype(registry.BANK) or cash
        if method in CREDIT_METHODS:
            return registry.find_by_subtype(registry.ACCOUNTS_RECEIVABLE) or cash
        return cash

    # ============================================================
    # SALE
    # ============================================================

    def create_sale_entry(self, sale: SaleEvent) -> JournalEntry | None:
        if not self._enabled:
            return None

        sales = registry.find_by_subtype(registry.SALES)
        if sales is None:
            return self._skip("sale", "no active 'sales' account")

        payment_account = self._sale_payment_account(sale.payment_method)
        if payment_account is None:
            return self._skip("sale", "no account for the payment method and no cash account")

        total = _money(sale.total)
        if total <= 0:
            return self._nothing_to_post("sale", sale.order_number)

        lines = [
            {"account": payment_account, "debit": total, "description": "Payment received"},
            {"account": sales, "credit": total, "description": "Sales revenue"},
        ]

        cogs = registry.find_by_subtype(registry.COST_OF_GOODS_SOLD)
        inventory = registry.find_by_subtype(registry.INVENTORY)
        if cogs is not None and inventory is not None:
            total_cost = _total_cost(sale.items)
            if total_cost > 0:
                lines += [
                    {"account": cogs, "debit": total_cost, "description": "Cost of goods sold"},
                    {"account": inventory, "credit": total_cost, "description": "Inventory reduction"},
                ]

        return create_journal_entry(
            entry_date=sale.created_at,
            description=f"Sale: Order #{sale.order_number}",
            lines=lines,
            reference=sale.order_number,
            source=JournalEntry.SOURCE_SALES,
            source_ref=SourceRef(kind=SourceKind.ORDER, id=sale.order_id),
            actor_id=sale.user_id,
        )

    # ============================================================
    # EXPENSE
    # ============================================================

    def create_expense_entry(self, expense: ExpenseEvent) -> JournalEntry | None:
        if not self._enabled:
            return None

        expense_account = registry.find_by_subtype(registry.OPERATING_EXPENSE)
        if expense_account is None:
            return self._skip("expense", "no active 'operating_expense' account")

        cash = registry.find_by_subtype(registry.CASH)
        if _norm_method(expense.payment_method) == "bank_transfer":
            payment_account = registry.find_by_subtype(registry.BANK) or cash
        else:
            payment_account = cash
        if payment_account is None:
            return self._skip("expense", "no cash/bank account to pay from")

        amount = _money(expense.amount)
        if amount <= 0:
            return self._nothing_to_post("expense", expense.expense_number)

        category = (expense.category or "").strip()
        line_description = f"{category}: {expense.title}" if category else expense.title

        return create_journal_entry(
            entry_date=expense.expense_date,
            description=f"Expense: {expense.title}",
            lines=[
                {"account": expense_account, "debit": amount, "description": line_description},
                {"account": payment_account, "credit": amount, "description": "Payment for expense"},
            ],
            reference=expense.expense_number,
            source=JournalEntry.SOURCE_EXPENSE,
            source_ref=SourceRef(kind=SourceKind.EXPENSE, id=expense.expense_id),
            actor_id=expense.user_id,
        )

    # ============================================================
    # PURCHASE RECEIPT
    # ============================================================

    def create_purchase_entry(self, purchase: PurchaseEvent) -> JournalEntry | None:
        if not self._enabled:
            return None

        inventory = registry.find_by_subtype(registry.INVENTORY)
        if inventory is None:
            return self._skip("purchase", "no active 'inventory' account")

        credit_account = registry.find_by_subtype(
            registry.ACCOUNTS_PAYABLE
        ) or registry.find_by_subtype(registry.CASH)
        if credit_account is None:
            return self._skip("purchase", "no accounts payable or cash account")

        total = _money(purchase.total)
        if total <= 0:
            return self._nothing_to_post("purchase", purchase.po_number)

        supplier = (purchase.supplier_name or "").strip() or "Supplier"

        return create_journal_entry(
            entry_date=purchase.order_date,
            description=f"Purchase Order: {purchase.po_number}",
            lines=[
                {"account": inventory, "debit": total, "description": f"Inventory purchase from {supplier}"},
                {"account": credit_account, "credit": total, "description": f"Payable to {supplier}"},
            ],
            reference=purchase.po_number,
            source=JournalEntry.SOURCE_PURCHASE,
            source_ref=SourceRef(kind=SourceKind.PURCHASE_ORDER, id=purchase.purchase_order_id),
            actor_id=purchase.actor_id,
        )

    # ============================================================
    # REFUND
    # ============================================================

    def create_refund_entry(self, refund: RefundEvent) -> JournalEntry | None:
        if not self._enabled:
            return None

        sales = registry.find_by_subtype(registry.SALES)
        cash = registry.find_by_subtype(registry.CASH)
        if sales is None or cash is None:
            return self._skip("refund", "refunds need both a 'sales' and a 'cash' account")

        amount = _money(refund.amount)
        if amount <= 0:
            return self._nothing_to_post("refund", refund.refund_number)

        return create_journal_entry(
            entry_date=refund.created_at,
            description=f"Refund: {refund.refund_number}",
            lines=[
                {"account": sales, "debit": amount, "description": "Sales refund"},
                {"account": cash, "credit": amount, "description": "Cash refund"},
            ],
            reference=refund.refund_number,
            source=JournalEntry.SOURCE_REFUND,
            source_ref=SourceRef(kind=SourceKind.REFUND, id=refund.refund_id),
            actor_id=refund.actor_id,
        )


def get_accounting_service() -> AccountingService:
    return AccountingService(enabled=getattr(settings, "ACCOUNTING_POSTING_ENABLED", False))
