"""
drawer_services.cash_drawer -- public face of the cash drawer.

Responsibility:
    Compose the kernel pieces into the operations the point-of-sale calls:
    open a drawer, show the live expected totals, close it against the
    operator's count, and browse past closings.  All business rules live in
    the kernel; this class wires invoices, aggregation, reconciliation and
    persistence together.

Architecture position:
    Services -- orchestration over drawer_kernel.  Reads DrawerConfig (via
    from_config) so the kernel never has to.

Invariants enforced:
    - The closing record is derived from ONE compute_expected call and ONE
      reconcile call, both made inside close_session, so the stored expected
      amounts are exactly the ones the differences were computed from.
    - Flush-only: the caller owns the transaction (see
      drawer_kernel.db.engine.session_scope).

Failure modes:
    - Every kernel exception propagates unchanged: InvalidAmountError,
      SessionAlreadyActiveError, SessionNotFoundError,
      SessionAlreadyClosedError, PersistenceError, ClosingNotFoundError.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy.orm import Session

from drawer_kernel.domain.aggregation import compute_expected, summarize_session
from drawer_kernel.domain.clock import Clock, SystemClock
from drawer_kernel.domain.dtos import (
    CashClosingRecord,
    CashSessionInfo,
    CountedTotals,
    ExpectedTotals,
    ReconciliationResult,
    SessionSalesSummary,
)
from drawer_kernel.domain.payment_methods import DEFAULT_CLASSIFIER, PaymentClassifier
from drawer_kernel.domain.reconciliation import reconcile
from drawer_kernel.selectors.closing_selector import CashClosingSelector, ClosingDetail
from drawer_kernel.selectors.session_selector import CashSessionSelector
from drawer_kernel.services.closing_store import ClosingStore, SqlClosingStore
from drawer_kernel.services.invoice_source import InvoiceSource
from drawer_kernel.services.session_service import CashSessionService, SessionScope

if TYPE_CHECKING:
    from drawer_config.schema import DrawerConfig


class CashDrawerService:
    """
    Facade over the cash drawer kernel.

    Contract:
        One instance per SQLAlchemy session (unit of work).  The invoice
        source is read-only; closings go to the injected ClosingStore,
        which defaults to a SqlClosingStore on the same session.

    Non-goals:
        - Does NOT commit.  Wrap calls in session_scope().
        - Does NOT own invoices.
    """

    def __init__(
        self,
        session: Session,
        invoice_source: InvoiceSource,
        clock: Clock | None = None,
        closing_store: ClosingStore | None = None,
        classifier: PaymentClassifier = DEFAULT_CLASSIFIER,
        scope: SessionScope | str = SessionScope.OPERATOR,
        currency: str = "COP",
        variance_alert_threshold: Decimal | None = None,
        recent_invoice_limit: int = 5,
    ) -> None:
        self._session = session
        self._invoices = invoice_source
        self._clock = clock or SystemClock()
        self._store = closing_store or SqlClosingStore(session, self._clock)
        self._classifier = classifier
        self._recent_limit = recent_invoice_limit
        self._sessions = CashSessionService(
            session,
            self._store,
            clock=self._clock,
            scope=scope,
            currency=currency,
            variance_alert_threshold=variance_alert_threshold,
        )
        self._closings = CashClosingSelector(session)
        self._session_list = CashSessionSelector(session)

    @classmethod
    def from_config(
        cls,
        session: Session,
        invoice_source: InvoiceSource,
        config: DrawerConfig,
        clock: Clock | None = None,
        closing_store: ClosingStore | None = None,
    ) -> CashDrawerService:
        """Build the facade with every knob taken from DrawerConfig."""
        return cls(
            session,
            invoice_source,
            clock=clock,
            closing_store=closing_store,
            classifier=config.payment_classifier(),
            scope=config.session_scope,
            currency=config.currency,
            variance_alert_threshold=config.variance_alert_threshold,
            recent_invoice_limit=config.recent_invoice_limit,
        )

    @property
    def session_service(self) -> CashSessionService:
        return self._sessions

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def open_session(
        self,
        opening_balance: Decimal,
        user_id: UUID,
        terminal_id: str | None = None,
    ) -> CashSessionInfo:
        return self._sessions.open_session(opening_balance, user_id, terminal_id)

    def active_session(
        self,
        user_id: UUID,
        terminal_id: str | None = None,
    ) -> CashSessionInfo | None:
        return self._sessions.get_active_session(user_id, terminal_id)

    def compute_expected(self, session_id: UUID) -> ExpectedTotals:
        """
        Expected totals of a session from its paid invoices.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        info = self._sessions.get_session(session_id)
        invoices = self._invoices.invoices_for_session(session_id)
        return compute_expected(session_id, invoices, info.opening_balance, self._classifier)

    def preview(self, session_id: UUID, counted: CountedTotals) -> ReconciliationResult:
        """Variance report for a count, without closing anything."""
        expected = self.compute_expected(session_id)
        return reconcile(expected, counted, expected.opening_balance)

    def close_session(
        self,
        session_id: UUID,
        counted: CountedTotals,
        notes: str | None = None,
        actor_id: UUID | None = None,
    ) -> CashClosingRecord:
        """
        Reconcile the operator's count and close the session.

        Returns:
            The persisted closing record.

        Raises:
            SessionNotFoundError, SessionAlreadyClosedError, PersistenceError.
        """
        result = self.preview(session_id, counted)
        return self._sessions.close_session(
            session_id,
            result,
            actor_id=actor_id,
            notes=notes,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_closings(self, session_id: UUID | None = None) -> tuple[CashClosingRecord, ...]:
        """Closings of one session, or all of them, oldest first."""
        if session_id is None:
            return self._store.list_all()
        return self._store.list_by_session(session_id)

    def session_summary(self, session_id: UUID) -> SessionSalesSummary:
        """Live dashboard figures for a session."""
        info = self._sessions.get_session(session_id)
        return summarize_session(
            session_id,
            self._invoices.invoices_for_session(session_id),
            info.opening_balance,
            self._classifier,
            recent_limit=self._recent_limit,
        )

    def list_sessions(
        self,
        user_id: UUID | None = None,
        status: str | None = None,
    ) -> tuple[CashSessionInfo, ...]:
        """Sessions newest opening first, optionally by operator and status."""
        return self._session_list.list_sessions(user_id=user_id, status=status)

    def open_sessions(self) -> tuple[CashSessionInfo, ...]:
        """Every drawer currently open, across operators and terminals."""
        return self._session_list.open_sessions()

    def closing_history(
        self,
        user_id: UUID | None = None,
        limit: int | None = None,
    ) -> tuple[CashClosingRecord, ...]:
        """Past closings, newest closing date first."""
        return self._closings.history(user_id=user_id, limit=limit)

    def closing_detail(self, closing_id: UUID) -> ClosingDetail:
        """
        Raises:
            ClosingNotFoundError: If no closing has this id.
        """
        return self._closings.detail(closing_id)
