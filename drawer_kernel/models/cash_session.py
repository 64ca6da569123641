"""
Module: drawer_kernel.models.cash_session
Responsibility: ORM persistence for the cash drawer session lifecycle, the
    period between an operator placing an opening float in the drawer and
    counting it out again.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Single active session: a partial unique index on scope_key restricted
      to status = 'open' makes a second open row in the same scope
      impossible at the database level.
    - Terminal close: status moves OPEN -> CLOSED once.  The ORM listeners
      in db/immutability.py reject any later change.

Failure modes:
    - IntegrityError (uq_cash_session_open_scope) on a concurrent second
      open; CashSessionService maps it to SessionAlreadyActiveError.
    - ValueError from close() if the session is already closed.

Audit relevance:
    Every session row records who opened it, who closed it, and the
    clock-injected timestamps of both events.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from drawer_kernel.db.base import TrackedBase, UTCDateTime, UUIDString
from drawer_kernel.db.types import Currency, Money


class CashSessionStatus(str, Enum):
    """Lifecycle status of a cash session.

    Contract: OPEN -> CLOSED.  CLOSED is terminal; there is no reopen.
    """

    OPEN = "open"
    CLOSED = "closed"


class CashSession(TrackedBase):
    """
    One drawer session of one operator (or terminal).

    Contract:
        Created OPEN by CashSessionService.open_session and mutated exactly
        once, by close().  Expected and counted amounts do not live here;
        they belong to the closing record written at close time.

    Guarantees:
        - closed_at is NULL while the session is open.
        - opening_balance is never negative (checked by the service).
        - At most one OPEN row per scope_key.

    Non-goals:
        - This model does NOT know about invoices.  Invoices reference the
          session through their own cash_session_id.
    """

    __tablename__ = "cash_sessions"

    __table_args__ = (
        Index(
            "uq_cash_session_open_scope",
            "scope_key",
            unique=True,
            postgresql_where=text("status = 'open'"),
            sqlite_where=text("status = 'open'"),
        ),
        Index("idx_cash_session_user", "user_id"),
        Index("idx_cash_session_status", "status"),
    )

    # Operator who opened the drawer
    user_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    # Physical terminal, when known
    terminal_id: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    # Exclusivity scope ("user:<uuid>" or "terminal:<id>")
    scope_key: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
    )

    opening_balance: Mapped[Money] = mapped_column(nullable=False)

    currency: Mapped[Currency] = mapped_column(
        String(3),
        nullable=False,
    )

    opened_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
    )

    status: Mapped[CashSessionStatus] = mapped_column(
        String(20),
        default=CashSessionStatus.OPEN.value,
        nullable=False,
    )

    closed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    closed_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<CashSession {self.id}: {self.status}>"

    @property
    def is_open(self) -> bool:
        return self.status == CashSessionStatus.OPEN

    @property
    def is_closed(self) -> bool:
        return self.status == CashSessionStatus.CLOSED

    def close(self, actor_id: UUID, closed_at: datetime) -> None:
        """Close the session.

        Preconditions: Session must be OPEN.
        Postconditions: status is CLOSED, closed_at and closed_by_id are set.
        Raises: ValueError if the session is already closed.

        Note: closed_at comes from the injected clock.
        """
        if self.is_closed:
            raise ValueError(f"Cash session {self.id} is already closed")

        self.status = CashSessionStatus.CLOSED.value
        self.closed_at = closed_at
        self.closed_by_id = actor_id
