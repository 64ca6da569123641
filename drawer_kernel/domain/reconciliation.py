"""
Reconciliation engine -- expected versus counted, per payment bucket.

Responsibility:
    Combine the aggregator's expected totals with the operator's manual
    count into a signed variance report.

Architecture position:
    Kernel > Domain -- pure calculation, zero I/O.  Consumed by
    CashSessionService.close_session and by the facade for previews.

Invariants enforced:
    - Signed variance: difference = counted - expected for every bucket.
      Positive is a surplus, negative a shortage.
    - Conservation: total_difference equals the sum of the four differences.
    - Opening float: expected and counted cash both include it; it is
      subtracted exactly once, when the two sales totals are computed.

Failure modes:
    None.  Negative counts are preserved as operator input and surface as
    variances; nothing here rejects or blocks a close.

Usage:
    result = reconcile(expected, CountedTotals(cash=Decimal("165000")), Decimal("50000"))
    result.cash.difference   # Decimal("-5000")
    result.total_difference  # Decimal("-5000")
"""

from __future__ import annotations

from decimal import Decimal

from drawer_kernel.domain.dtos import (
    CountedTotals,
    ExpectedTotals,
    MethodReconciliation,
    ReconciliationResult,
)
from drawer_kernel.domain.money import to_money
from drawer_kernel.domain.payment_methods import PaymentMethod


def _line(method: PaymentMethod, expected: Decimal, counted: Decimal) -> MethodReconciliation:
    return MethodReconciliation(
        method=method.value,
        expected=expected,
        counted=counted,
        difference=counted - expected,
    )


def reconcile(
    expected: ExpectedTotals,
    counted: CountedTotals,
    opening_balance: Decimal,
) -> ReconciliationResult:
    """
    Build the variance report of a session close.

    Args:
        expected: Aggregator output; expected.cash includes the opening float.
        counted: Operator count; counted.cash includes the opening float.
        opening_balance: The session's opening float.

    Returns:
        ReconciliationResult with per-bucket and total differences.
    """
    opening = to_money(opening_balance)

    cash = _line(PaymentMethod.CASH, expected.cash, counted.cash)
    card = _line(PaymentMethod.CARD, expected.card, counted.card)
    transfer = _line(PaymentMethod.TRANSFER, expected.transfer, counted.transfer)
    other = _line(PaymentMethod.OTHER, expected.other, counted.other)

    non_cash_system = card.expected + transfer.expected + other.expected
    non_cash_counted = card.counted + transfer.counted + other.counted

    total_system_sales = (cash.expected - opening) + non_cash_system
    total_counted_sales = (cash.counted - opening) + non_cash_counted

    return ReconciliationResult(
        opening_balance=opening,
        cash=cash,
        card=card,
        transfer=transfer,
        other=other,
        total_system_sales=total_system_sales,
        total_counted_sales=total_counted_sales,
        total_difference=total_counted_sales - total_system_sales,
    )


def variances_over_threshold(
    result: ReconciliationResult,
    threshold: Decimal,
) -> tuple[MethodReconciliation, ...]:
    """Buckets whose absolute difference is at or above threshold."""
    return tuple(m for m in result.methods if m.difference != 0 and abs(m.difference) >= threshold)
