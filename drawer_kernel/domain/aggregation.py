"""
Sales aggregation -- expected takings of a cash session.

Responsibility:
    Derive the expected amount per payment bucket for one session from a
    collection of invoice snapshots, and the live figures shown on the
    cashier dashboard while the session is open.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Invoices are
    fetched by the caller (an InvoiceSource) and passed in.

Invariants enforced:
    - Only invoices that are paid AND belong to the session are counted.
    - expected cash = opening float + paid cash sales.  The opening float is
      added here exactly once and nowhere else.
    - Labels not recognized as Cash, Card or Transfer fall into Other.

Usage:
    expected = compute_expected(session_id, invoices, Decimal("50000"))
    expected.cash      # opening float + cash sales
    expected.system_sales
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from drawer_kernel.domain.dtos import ExpectedTotals, InvoiceSnapshot, SessionSalesSummary
from drawer_kernel.domain.money import ZERO, to_money
from drawer_kernel.domain.payment_methods import (
    DEFAULT_CLASSIFIER,
    PaymentClassifier,
    PaymentMethod,
)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _recency_key(invoice: InvoiceSnapshot) -> tuple[bool, datetime]:
    # Undated invoices sort after every dated one
    return (invoice.issue_date is not None, invoice.issue_date or _OLDEST)


def paid_session_invoices(
    session_id: UUID,
    invoices: Iterable[InvoiceSnapshot],
    classifier: PaymentClassifier = DEFAULT_CLASSIFIER,
) -> list[InvoiceSnapshot]:
    """Invoices of the session whose status counts as paid, in input order."""
    return [
        inv
        for inv in invoices
        if inv.cash_session_id == session_id and classifier.is_paid(inv.status)
    ]


def compute_expected(
    session_id: UUID,
    invoices: Iterable[InvoiceSnapshot],
    opening_balance: Decimal,
    classifier: PaymentClassifier = DEFAULT_CLASSIFIER,
) -> ExpectedTotals:
    """
    Bucket the session's paid invoices into expected totals.

    Preconditions: opening_balance is the session's opening float.
    Postconditions: With no qualifying invoice, every bucket is zero except
        cash, which equals opening_balance.  Calling twice with the same
        inputs returns equal results.

    Args:
        session_id: Session whose invoices are counted.
        invoices: Any invoice snapshots; foreign and unpaid ones are skipped.
        opening_balance: Opening float, added to expected cash.
        classifier: Label table for payment methods and paid statuses.

    Returns:
        ExpectedTotals for the session.
    """
    buckets: dict[PaymentMethod, Decimal] = {method: ZERO for method in PaymentMethod}
    paid = paid_session_invoices(session_id, invoices, classifier)
    for inv in paid:
        buckets[classifier.classify(inv.payment_method)] += inv.total

    opening = to_money(opening_balance)
    return ExpectedTotals(
        session_id=session_id,
        opening_balance=opening,
        cash=opening + buckets[PaymentMethod.CASH],
        card=buckets[PaymentMethod.CARD],
        transfer=buckets[PaymentMethod.TRANSFER],
        other=buckets[PaymentMethod.OTHER],
        invoice_count=len(paid),
    )


def summarize_session(
    session_id: UUID,
    invoices: Iterable[InvoiceSnapshot],
    opening_balance: Decimal,
    classifier: PaymentClassifier = DEFAULT_CLASSIFIER,
    recent_limit: int = 5,
) -> SessionSalesSummary:
    """
    Dashboard figures for a session: sales total, transaction count, and the
    most recent paid invoices, newest issue date first.
    """
    invoices = list(invoices)
    paid = paid_session_invoices(session_id, invoices, classifier)
    expected = compute_expected(session_id, invoices, opening_balance, classifier)
    recent = sorted(paid, key=_recency_key, reverse=True)
    return SessionSalesSummary(
        session_id=session_id,
        opening_balance=expected.opening_balance,
        total_sales=sum((inv.total for inv in paid), ZERO),
        transaction_count=len(paid),
        expected=expected,
        recent_invoices=tuple(recent[: max(recent_limit, 0)]),
    )
