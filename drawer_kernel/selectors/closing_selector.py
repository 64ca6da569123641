"""
Module: drawer_kernel.selectors.closing_selector
Responsibility: Read paths for closing history screens -- the list of past
    closings, newest first, and the detail of one closing together with its
    session.
Architecture position: Kernel > Selectors.  Read-only.

Failure modes:
    - ClosingNotFoundError from detail() when the id is unknown.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select

from drawer_kernel.domain.dtos import CashClosingRecord, CashSessionInfo
from drawer_kernel.exceptions import ClosingNotFoundError
from drawer_kernel.models.cash_closing import CashClosingModel
from drawer_kernel.models.cash_session import CashSession
from drawer_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class ClosingDetail:
    """A closing record with the session it reconciles."""

    closing: CashClosingRecord
    session: CashSessionInfo


class CashClosingSelector(BaseSelector[CashClosingModel]):
    """History and detail views over closing records."""

    def history(
        self,
        user_id: UUID | None = None,
        limit: int | None = None,
    ) -> tuple[CashClosingRecord, ...]:
        """Closings ordered by closing date, newest first."""
        stmt = select(CashClosingModel).order_by(
            CashClosingModel.closing_date.desc(),
            CashClosingModel.created_at.desc(),
        )
        if user_id is not None:
            stmt = stmt.where(CashClosingModel.user_id == user_id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return tuple(
            CashClosingRecord.from_model(row) for row in self.session.execute(stmt).scalars()
        )

    def detail(self, closing_id: UUID) -> ClosingDetail:
        """
        Raises:
            ClosingNotFoundError: If no closing has this id.
        """
        closing = self.session.get(CashClosingModel, closing_id)
        if closing is None:
            raise ClosingNotFoundError(str(closing_id))
        cash_session = self.session.get(CashSession, closing.cash_session_id)
        return ClosingDetail(
            closing=CashClosingRecord.from_model(closing),
            session=CashSessionInfo.from_model(cash_session),
        )
