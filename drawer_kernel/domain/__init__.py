"""
Pure domain layer of the drawer kernel.

Nothing in this package touches the database, the clock, or the
configuration file.  Every function is deterministic given its inputs.
"""

from drawer_kernel.domain.aggregation import compute_expected, summarize_session
from drawer_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from drawer_kernel.domain.dtos import (
    CashClosingRecord,
    CashSessionInfo,
    CountedTotals,
    ExpectedTotals,
    InvoiceSnapshot,
    MethodReconciliation,
    ReconciliationResult,
    SessionSalesSummary,
    VarianceStatus,
)
from drawer_kernel.domain.formatting import CurrencyRegistry, format_money
from drawer_kernel.domain.payment_methods import PaymentClassifier, PaymentMethod
from drawer_kernel.domain.reconciliation import reconcile

__all__ = [
    "CashClosingRecord",
    "CashSessionInfo",
    "Clock",
    "CountedTotals",
    "CurrencyRegistry",
    "DeterministicClock",
    "ExpectedTotals",
    "InvoiceSnapshot",
    "MethodReconciliation",
    "PaymentClassifier",
    "PaymentMethod",
    "ReconciliationResult",
    "SessionSalesSummary",
    "SystemClock",
    "VarianceStatus",
    "compute_expected",
    "format_money",
    "reconcile",
    "summarize_session",
]
