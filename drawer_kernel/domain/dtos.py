"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that flow through the drawer
    close pipeline: InvoiceSnapshot (input), ExpectedTotals and CountedTotals
    (aggregator and operator output), ReconciliationResult (engine output),
    CashSessionInfo and CashClosingRecord (persistence boundary), and the
    SessionSalesSummary read model.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods exist as boundary converters but are only
    invoked from the service and selector layers.

Invariants enforced:
    - Domain logic accepts/returns DTOs, never ORM entities.
    - Monetary fields are Decimal; floats are rejected at construction.

Failure modes:
    - TypeError on a float amount.
    - InvalidAmountError on a NaN or infinite amount.

Data flow:
    InvoiceSnapshot* -> ExpectedTotals --+
                                         +--> ReconciliationResult -> CashClosingRecord
                        CountedTotals ---+
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from drawer_kernel.domain.money import ZERO, to_money

if TYPE_CHECKING:
    from drawer_kernel.models.cash_closing import CashClosingModel
    from drawer_kernel.models.cash_session import CashSession


def _dec(value) -> Decimal:
    """Normalize a driver numeric (Decimal or numeric string) to Decimal."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class VarianceStatus(str, Enum):
    """Direction of a signed difference."""

    BALANCED = "balanced"
    SURPLUS = "surplus"
    SHORTAGE = "shortage"

    @classmethod
    def of(cls, difference: Decimal) -> VarianceStatus:
        if difference > 0:
            return cls.SURPLUS
        if difference < 0:
            return cls.SHORTAGE
        return cls.BALANCED


@dataclass(frozen=True)
class InvoiceSnapshot:
    """
    Read-only view of one invoice as supplied by the invoice store.

    Contract:
        The kernel never mutates invoices.  payment_method and status carry
        the raw labels of the external system; classification into buckets
        happens in the aggregator.
    """

    invoice_id: str
    total: Decimal
    payment_method: str
    status: str
    cash_session_id: UUID | None
    issue_date: datetime | None = None
    customer_name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "total", to_money(self.total, field="total"))
        if self.issue_date is not None and self.issue_date.tzinfo is None:
            # Date-only and naive timestamps are read as UTC
            object.__setattr__(self, "issue_date", self.issue_date.replace(tzinfo=timezone.utc))


@dataclass(frozen=True)
class ExpectedTotals:
    """
    System-derived takings per payment bucket.

    expected_cash INCLUDES the opening float: it is what should physically
    be in the drawer.
    """

    session_id: UUID
    opening_balance: Decimal
    cash: Decimal
    card: Decimal
    transfer: Decimal
    other: Decimal
    invoice_count: int = 0

    @property
    def cash_sales(self) -> Decimal:
        """Cash takings net of the opening float."""
        return self.cash - self.opening_balance

    @property
    def system_sales(self) -> Decimal:
        return self.cash_sales + self.card + self.transfer + self.other


@dataclass(frozen=True)
class CountedTotals:
    """
    Operator-entered count per payment bucket.

    cash is the full physical count of the drawer, opening float included.
    Negative values are accepted and preserved as operator input.
    """

    cash: Decimal
    card: Decimal = ZERO
    transfer: Decimal = ZERO
    other: Decimal = ZERO

    def __post_init__(self) -> None:
        for name in ("cash", "card", "transfer", "other"):
            object.__setattr__(self, name, to_money(getattr(self, name), field=f"counted_{name}"))


@dataclass(frozen=True)
class MethodReconciliation:
    """Expected, counted and signed difference for one payment bucket."""

    method: str
    expected: Decimal
    counted: Decimal
    difference: Decimal

    @property
    def status(self) -> VarianceStatus:
        return VarianceStatus.of(self.difference)


@dataclass(frozen=True)
class ReconciliationResult:
    """
    Output of the reconciliation engine.

    Guarantees:
        - Every difference is counted - expected.
        - total_difference == sum of the four per-method differences.
        - The opening float is excluded from both sales totals.
    """

    opening_balance: Decimal
    cash: MethodReconciliation
    card: MethodReconciliation
    transfer: MethodReconciliation
    other: MethodReconciliation
    total_system_sales: Decimal
    total_counted_sales: Decimal
    total_difference: Decimal

    @property
    def methods(self) -> tuple[MethodReconciliation, ...]:
        return (self.cash, self.card, self.transfer, self.other)

    @property
    def status(self) -> VarianceStatus:
        return VarianceStatus.of(self.total_difference)

    @property
    def is_balanced(self) -> bool:
        return all(m.difference == 0 for m in self.methods)


@dataclass(frozen=True)
class CashSessionInfo:
    """Immutable view of a cash session."""

    id: UUID
    user_id: UUID
    terminal_id: str | None
    scope_key: str
    opening_balance: Decimal
    currency: str
    opened_at: datetime
    status: str
    closed_at: datetime | None = None
    closed_by_id: UUID | None = None

    @property
    def is_open(self) -> bool:
        return self.status == "open"

    @classmethod
    def from_model(cls, model: CashSession) -> CashSessionInfo:
        return cls(
            id=model.id,
            user_id=model.user_id,
            terminal_id=model.terminal_id,
            scope_key=model.scope_key,
            opening_balance=_dec(model.opening_balance),
            currency=model.currency,
            opened_at=model.opened_at,
            status=getattr(model.status, "value", model.status),
            closed_at=model.closed_at,
            closed_by_id=model.closed_by_id,
        )


@dataclass(frozen=True)
class CashClosingRecord:
    """
    Immutable closing record of a session.

    id is None until the closing store has persisted it.
    """

    cash_session_id: UUID
    user_id: UUID
    opening_date: datetime
    closing_date: datetime
    opening_balance: Decimal
    currency: str
    expected_cash: Decimal
    counted_cash: Decimal
    cash_difference: Decimal
    expected_card: Decimal
    counted_card: Decimal
    card_difference: Decimal
    expected_transfer: Decimal
    counted_transfer: Decimal
    transfer_difference: Decimal
    expected_other: Decimal
    counted_other: Decimal
    other_difference: Decimal
    total_system_sales: Decimal
    total_counted_sales: Decimal
    total_difference: Decimal
    notes: str | None = None
    id: UUID | None = None
    created_at: datetime | None = None

    @property
    def status(self) -> VarianceStatus:
        return VarianceStatus.of(self.total_difference)

    @classmethod
    def from_reconciliation(
        cls,
        *,
        session: CashSessionInfo,
        result: ReconciliationResult,
        closing_date: datetime,
        notes: str | None = None,
    ) -> CashClosingRecord:
        return cls(
            cash_session_id=session.id,
            user_id=session.user_id,
            opening_date=session.opened_at,
            closing_date=closing_date,
            opening_balance=result.opening_balance,
            currency=session.currency,
            expected_cash=result.cash.expected,
            counted_cash=result.cash.counted,
            cash_difference=result.cash.difference,
            expected_card=result.card.expected,
            counted_card=result.card.counted,
            card_difference=result.card.difference,
            expected_transfer=result.transfer.expected,
            counted_transfer=result.transfer.counted,
            transfer_difference=result.transfer.difference,
            expected_other=result.other.expected,
            counted_other=result.other.counted,
            other_difference=result.other.difference,
            total_system_sales=result.total_system_sales,
            total_counted_sales=result.total_counted_sales,
            total_difference=result.total_difference,
            notes=notes,
        )

    @classmethod
    def from_model(cls, model: CashClosingModel) -> CashClosingRecord:
        return cls(
            id=model.id,
            created_at=model.created_at,
            cash_session_id=model.cash_session_id,
            user_id=model.user_id,
            opening_date=model.opening_date,
            closing_date=model.closing_date,
            opening_balance=_dec(model.opening_balance),
            currency=model.currency,
            expected_cash=_dec(model.expected_cash),
            counted_cash=_dec(model.counted_cash),
            cash_difference=_dec(model.cash_difference),
            expected_card=_dec(model.expected_card),
            counted_card=_dec(model.counted_card),
            card_difference=_dec(model.card_difference),
            expected_transfer=_dec(model.expected_transfer),
            counted_transfer=_dec(model.counted_transfer),
            transfer_difference=_dec(model.transfer_difference),
            expected_other=_dec(model.expected_other),
            counted_other=_dec(model.counted_other),
            other_difference=_dec(model.other_difference),
            total_system_sales=_dec(model.total_system_sales),
            total_counted_sales=_dec(model.total_counted_sales),
            total_difference=_dec(model.total_difference),
            notes=model.notes,
        )


@dataclass(frozen=True)
class SessionSalesSummary:
    """Live figures for the cashier dashboard of an open session."""

    session_id: UUID
    opening_balance: Decimal
    total_sales: Decimal
    transaction_count: int
    expected: ExpectedTotals
    recent_invoices: tuple[InvoiceSnapshot, ...] = field(default_factory=tuple)
