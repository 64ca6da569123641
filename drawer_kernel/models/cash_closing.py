"""
Module: drawer_kernel.models.cash_closing
Responsibility: ORM persistence for the closing record written when a cash
    session is closed -- the expected, counted and difference amounts for
    every payment-method bucket plus the session totals.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Closing immutability: rows are append-only.  UPDATE and DELETE are
      rejected by the listeners in db/immutability.py.
    - Signed variance: every *_difference column holds counted - expected,
      computed by the reconciliation engine before the row is built.

Failure modes:
    - ImmutabilityViolationError on any UPDATE or DELETE.

Audit relevance:
    The closing row is the audit artifact of a shift.  Several rows for one
    session are tolerated by the schema; the service writes exactly one.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from drawer_kernel.db.base import TrackedBase, UTCDateTime, UUIDString
from drawer_kernel.db.types import Currency, Money


class CashClosingModel(TrackedBase):
    """
    Immutable reconciliation snapshot of one cash session.

    Contract:
        Created once by the closing store during close_session.  Never
        updated, never deleted.

    Guarantees:
        - total_difference == cash + card + transfer + other differences.
        - total_system_sales and total_counted_sales exclude the opening float.
    """

    __tablename__ = "cash_closings"

    __table_args__ = (
        Index("idx_cash_closing_session", "cash_session_id"),
        Index("idx_cash_closing_date", "closing_date"),
    )

    cash_session_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("cash_sessions.id"),
        nullable=False,
    )

    user_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    opening_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    closing_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    opening_balance: Mapped[Money] = mapped_column(nullable=False)

    currency: Mapped[Currency] = mapped_column(String(3), nullable=False)

    # Cash
    expected_cash: Mapped[Money] = mapped_column(nullable=False)
    counted_cash: Mapped[Money] = mapped_column(nullable=False)
    cash_difference: Mapped[Money] = mapped_column(nullable=False)

    # Card
    expected_card: Mapped[Money] = mapped_column(nullable=False)
    counted_card: Mapped[Money] = mapped_column(nullable=False)
    card_difference: Mapped[Money] = mapped_column(nullable=False)

    # Transfer
    expected_transfer: Mapped[Money] = mapped_column(nullable=False)
    counted_transfer: Mapped[Money] = mapped_column(nullable=False)
    transfer_difference: Mapped[Money] = mapped_column(nullable=False)

    # Other
    expected_other: Mapped[Money] = mapped_column(nullable=False)
    counted_other: Mapped[Money] = mapped_column(nullable=False)
    other_difference: Mapped[Money] = mapped_column(nullable=False)

    # Totals
    total_system_sales: Mapped[Money] = mapped_column(nullable=False)
    total_counted_sales: Mapped[Money] = mapped_column(nullable=False)
    total_difference: Mapped[Money] = mapped_column(nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<CashClosing {self.id} session={self.cash_session_id} "
            f"diff={self.total_difference}>"
        )
