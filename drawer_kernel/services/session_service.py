"""
CashSessionService -- cash drawer session lifecycle.

Responsibility:
    Enforces the open/close state machine of a drawer session:

        NonExistent --open_session--> Open --close_session--> Closed

    Closed is terminal.  There is no reopen.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by CashDrawerService (drawer_services) with a ClosingStore that
    shares this service's SQLAlchemy session.

Invariants enforced:
    - Single active session: at most one open session per scope.  Checked
      with SELECT ... FOR UPDATE and backed by the partial unique index
      uq_cash_session_open_scope; a concurrent loser's IntegrityError is
      caught inside a savepoint and mapped to SessionAlreadyActiveError.
    - Close atomicity: the closing record is saved first, inside a
      savepoint, and the session is only marked closed if the save
      succeeded.  On failure the savepoint is rolled back and the session
      stays open.
    - Flush-only: never commits the caller's transaction.

Failure modes:
    - InvalidAmountError: negative or non-finite opening balance.  No row is created.
    - SessionAlreadyActiveError: the scope already has an open session.
    - SessionNotFoundError / SessionAlreadyClosedError on close.
    - PersistenceError: the closing record could not be stored.

Audit relevance:
    session_opened and session_closed are logged with the session id, the
    actor, and the amounts involved.  Variances at or above the alert
    threshold are logged at WARNING as variance_detected; they never block
    the close.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from drawer_kernel.domain.clock import Clock, SystemClock
from drawer_kernel.domain.dtos import (
    CashClosingRecord,
    CashSessionInfo,
    ReconciliationResult,
)
from drawer_kernel.domain.money import to_money
from drawer_kernel.domain.reconciliation import variances_over_threshold
from drawer_kernel.exceptions import (
    InvalidAmountError,
    PersistenceError,
    SessionAlreadyActiveError,
    SessionAlreadyClosedError,
    SessionNotFoundError,
)
from drawer_kernel.logging_config import LogContext, get_logger
from drawer_kernel.models.cash_session import CashSession, CashSessionStatus
from drawer_kernel.services.base import BaseService
from drawer_kernel.services.closing_store import ClosingStore

logger = get_logger("services.cash_session")


class SessionScope(str, Enum):
    """What a single active session is exclusive to."""

    OPERATOR = "operator"
    TERMINAL = "terminal"


class CashSessionService(BaseService[CashSession]):
    """
    Service for opening and closing cash drawer sessions.

    Contract:
        Returns frozen CashSessionInfo / CashClosingRecord DTOs, never ORM
        entities.  All writes flush within the caller's transaction.

    Guarantees:
        - At most one open session per scope key.
        - A session is closed if and only if its closing record was saved.
        - closed_at and opened_at come from the injected clock.

    Non-goals:
        - Does NOT compute expected totals or variances (see
          drawer_kernel.domain.aggregation / reconciliation).
        - Does NOT call ``session.commit()``.
    """

    def __init__(
        self,
        session: Session,
        closing_store: ClosingStore,
        clock: Clock | None = None,
        scope: SessionScope | str = SessionScope.OPERATOR,
        currency: str = "COP",
        variance_alert_threshold: Decimal | None = None,
    ):
        super().__init__(session)
        self._store = closing_store
        self._clock = clock or SystemClock()
        self._scope = SessionScope(scope)
        self._currency = currency
        self._alert_threshold = variance_alert_threshold

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def scope_key(self, user_id: UUID, terminal_id: str | None = None) -> str:
        """
        Exclusivity key for the configured scope.

        Raises:
            ValueError: If the scope is TERMINAL and no terminal_id is given.
        """
        if self._scope is SessionScope.TERMINAL:
            if not terminal_id:
                raise ValueError("terminal_id is required when sessions are scoped per terminal")
            return f"terminal:{terminal_id}"
        return f"user:{user_id}"

    def _active_for_update(self, scope_key: str) -> CashSession | None:
        return self.session.execute(
            select(CashSession)
            .where(
                CashSession.scope_key == scope_key,
                CashSession.status == CashSessionStatus.OPEN.value,
            )
            .with_for_update()
        ).scalar_one_or_none()

    def _get_for_update(self, session_id: UUID) -> CashSession | None:
        return self.session.execute(
            select(CashSession).where(CashSession.id == session_id).with_for_update()
        ).scalar_one_or_none()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open_session(
        self,
        opening_balance: Decimal,
        user_id: UUID,
        terminal_id: str | None = None,
    ) -> CashSessionInfo:
        """
        Open a new cash session.

        Preconditions: opening_balance >= 0.
        Postconditions: One new OPEN row exists for the scope, closed_at is
            NULL, opened_at is the clock's now().

        Args:
            opening_balance: Cash float placed in the drawer.
            user_id: Operator opening the drawer.
            terminal_id: Physical terminal, required for terminal scope.

        Returns:
            CashSessionInfo of the new session.

        Raises:
            InvalidAmountError: If opening_balance is negative or not finite.
            SessionAlreadyActiveError: If the scope already has an open session.
        """
        amount = to_money(opening_balance, field="opening_balance")
        if amount < 0:
            logger.warning(
                "session_open_rejected",
                extra={"user_id": str(user_id), "opening_balance": str(amount)},
            )
            raise InvalidAmountError(
                field="opening_balance",
                amount=str(amount),
                reason="opening balance must not be negative",
            )

        scope_key = self.scope_key(user_id, terminal_id)

        existing = self._active_for_update(scope_key)
        if existing is not None:
            logger.warning(
                "session_already_active",
                extra={"scope_key": scope_key, "active_session_id": str(existing.id)},
            )
            raise SessionAlreadyActiveError(scope_key, str(existing.id))

        now = self._clock.now()
        cash_session = CashSession(
            user_id=user_id,
            terminal_id=terminal_id,
            scope_key=scope_key,
            opening_balance=amount,
            currency=self._currency,
            opened_at=now,
            status=CashSessionStatus.OPEN.value,
            created_at=now,
            created_by_id=user_id,
        )

        savepoint = self.session.begin_nested()
        try:
            self.session.add(cash_session)
            self.session.flush()
            savepoint.commit()
        except IntegrityError:
            # A concurrent open in the same scope won the unique index
            savepoint.rollback()
            logger.warning(
                "concurrent_session_open_conflict",
                extra={"scope_key": scope_key},
            )
            raise SessionAlreadyActiveError(scope_key)

        with LogContext.bind(
            session_id=cash_session.id, actor_id=user_id, terminal_id=terminal_id
        ):
            logger.info(
                "session_opened",
                extra={
                    "scope_key": scope_key,
                    "opening_balance": str(amount),
                    "currency": self._currency,
                },
            )

        return CashSessionInfo.from_model(cash_session)

    def close_session(
        self,
        session_id: UUID,
        reconciliation: ReconciliationResult,
        actor_id: UUID | None = None,
        notes: str | None = None,
    ) -> CashClosingRecord:
        """
        Close an open session and persist its closing record.

        The closing record is saved before the status changes, both inside
        one savepoint.  If the store fails, the savepoint is rolled back and
        the session remains OPEN.

        Args:
            session_id: Session to close.
            reconciliation: Output of reconcile() for this session.
            actor_id: Who closes the drawer; defaults to the session's operator.
            notes: Free-text remark stored on the closing record.

        Returns:
            The persisted CashClosingRecord (with id).

        Raises:
            SessionNotFoundError: If the session does not exist.
            SessionAlreadyClosedError: If the session is already closed.
            PersistenceError: If the closing record could not be stored.
        """
        cash_session = self._get_for_update(session_id)
        if cash_session is None:
            raise SessionNotFoundError(str(session_id))

        if cash_session.is_closed:
            raise SessionAlreadyClosedError(
                str(session_id),
                cash_session.closed_at.isoformat() if cash_session.closed_at else None,
            )

        actor = actor_id or cash_session.user_id
        closing_date = self._clock.now()
        record = CashClosingRecord.from_reconciliation(
            session=CashSessionInfo.from_model(cash_session),
            result=reconciliation,
            closing_date=closing_date,
            notes=notes,
        )

        with LogContext.bind(session_id=str(session_id), actor_id=str(actor)):
            savepoint = self.session.begin_nested()
            try:
                saved = self._store.save(record)
                cash_session.close(actor, closing_date)
                self.session.flush()
            except PersistenceError:
                savepoint.rollback()
                logger.error(
                    "session_close_aborted",
                    extra={"reason": "closing_persist_failed"},
                )
                raise
            except SQLAlchemyError as exc:
                savepoint.rollback()
                logger.error(
                    "session_close_aborted",
                    extra={"reason": str(exc)},
                )
                raise PersistenceError(
                    operation="close_session",
                    reason=str(exc),
                    session_id=str(session_id),
                ) from exc
            savepoint.commit()

            self._log_variances(reconciliation)
            logger.info(
                "session_closed",
                extra={
                    "closing_id": str(saved.id),
                    "total_system_sales": str(reconciliation.total_system_sales),
                    "total_counted_sales": str(reconciliation.total_counted_sales),
                    "total_difference": str(reconciliation.total_difference),
                    "variance_status": reconciliation.status.value,
                },
            )

        return saved

    def _log_variances(self, reconciliation: ReconciliationResult) -> None:
        if self._alert_threshold is None:
            return
        for line in variances_over_threshold(reconciliation, self._alert_threshold):
            logger.warning(
                "variance_detected",
                extra={
                    "method": line.method,
                    "expected": str(line.expected),
                    "counted": str(line.counted),
                    "difference": str(line.difference),
                    "variance_status": line.status.value,
                    "threshold": str(self._alert_threshold),
                },
            )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_session(self, session_id: UUID) -> CashSessionInfo:
        """
        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        cash_session = self.session.get(CashSession, session_id)
        if cash_session is None:
            raise SessionNotFoundError(str(session_id))
        return CashSessionInfo.from_model(cash_session)

    def get_active_session(
        self,
        user_id: UUID,
        terminal_id: str | None = None,
    ) -> CashSessionInfo | None:
        """Open session of the caller's scope, or None."""
        scope_key = self.scope_key(user_id, terminal_id)
        cash_session = self.session.execute(
            select(CashSession).where(
                CashSession.scope_key == scope_key,
                CashSession.status == CashSessionStatus.OPEN.value,
            )
        ).scalar_one_or_none()
        if cash_session is None:
            return None
        return CashSessionInfo.from_model(cash_session)
