"""
ClosingStore -- append-only persistence of cash closing records.

Responsibility:
    Persist the CashClosingRecord produced at session close and serve it
    back by session or chronologically.

Architecture position:
    Kernel > Services.  ClosingStore is the protocol CashSessionService
    depends on; SqlClosingStore is the SQLAlchemy implementation and must
    share the session of the CashSessionService it is injected into, so
    the record and the session status change commit together.

Invariants enforced:
    - Closing immutability: the store only inserts.  UPDATE and DELETE are
      rejected by the ORM listeners in db/immutability.py.
    - Storage failures never leak driver exceptions: any SQLAlchemyError
      (including a statement timeout) surfaces as PersistenceError.

Failure modes:
    - PersistenceError on any storage failure.  The caller must not mark
      the session closed; there is no automatic retry.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from drawer_kernel.domain.clock import Clock, SystemClock
from drawer_kernel.domain.dtos import CashClosingRecord
from drawer_kernel.exceptions import PersistenceError
from drawer_kernel.logging_config import get_logger
from drawer_kernel.models.cash_closing import CashClosingModel
from drawer_kernel.services.base import BaseService

logger = get_logger("services.closing_store")


@runtime_checkable
class ClosingStore(Protocol):
    """Persistence contract for closing records."""

    def save(self, record: CashClosingRecord) -> CashClosingRecord:
        """Persist record and return it with its generated id."""
        ...

    def list_by_session(self, session_id: UUID) -> tuple[CashClosingRecord, ...]:
        """Closings of one session, oldest first."""
        ...

    def list_all(self) -> tuple[CashClosingRecord, ...]:
        """Every closing, oldest first."""
        ...

    def get(self, closing_id: UUID) -> CashClosingRecord | None:
        ...


class SqlClosingStore(BaseService[CashClosingModel]):
    """
    SQLAlchemy-backed ClosingStore.

    Contract:
        save() inserts one row and flushes; it never commits.

    Guarantees:
        - Several closings for one session are accepted (append-only log).
        - Listing order is closing_date, then created_at, then id.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def save(self, record: CashClosingRecord) -> CashClosingRecord:
        """
        Insert a closing record.

        Raises:
            PersistenceError: If the insert fails for any storage reason.
        """
        model = CashClosingModel(
            cash_session_id=record.cash_session_id,
            user_id=record.user_id,
            created_by_id=record.user_id,
            created_at=self._clock.now(),
            opening_date=record.opening_date,
            closing_date=record.closing_date,
            opening_balance=record.opening_balance,
            currency=record.currency,
            expected_cash=record.expected_cash,
            counted_cash=record.counted_cash,
            cash_difference=record.cash_difference,
            expected_card=record.expected_card,
            counted_card=record.counted_card,
            card_difference=record.card_difference,
            expected_transfer=record.expected_transfer,
            counted_transfer=record.counted_transfer,
            transfer_difference=record.transfer_difference,
            expected_other=record.expected_other,
            counted_other=record.counted_other,
            other_difference=record.other_difference,
            total_system_sales=record.total_system_sales,
            total_counted_sales=record.total_counted_sales,
            total_difference=record.total_difference,
            notes=record.notes,
        )
        try:
            self.session.add(model)
            self.session.flush()
        except SQLAlchemyError as exc:
            logger.error(
                "closing_persist_failed",
                extra={
                    "session_id": str(record.cash_session_id),
                    "error": str(exc),
                },
            )
            raise PersistenceError(
                operation="save_closing",
                reason=str(exc),
                session_id=str(record.cash_session_id),
            ) from exc

        logger.info(
            "closing_saved",
            extra={
                "closing_id": str(model.id),
                "session_id": str(record.cash_session_id),
                "total_difference": str(record.total_difference),
            },
        )
        return CashClosingRecord.from_model(model)

    def _ordered(self):
        return select(CashClosingModel).order_by(
            CashClosingModel.closing_date,
            CashClosingModel.created_at,
            CashClosingModel.id,
        )

    def list_by_session(self, session_id: UUID) -> tuple[CashClosingRecord, ...]:
        rows = self.session.execute(
            self._ordered().where(CashClosingModel.cash_session_id == session_id)
        ).scalars()
        return tuple(CashClosingRecord.from_model(row) for row in rows)

    def list_all(self) -> tuple[CashClosingRecord, ...]:
        rows = self.session.execute(self._ordered()).scalars()
        return tuple(CashClosingRecord.from_model(row) for row in rows)

    def get(self, closing_id: UUID) -> CashClosingRecord | None:
        model = self.session.get(CashClosingModel, closing_id)
        if model is None:
            return None
        return CashClosingRecord.from_model(model)
