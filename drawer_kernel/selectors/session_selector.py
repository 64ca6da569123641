"""Read-only queries over cash sessions."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select

from drawer_kernel.domain.dtos import CashSessionInfo
from drawer_kernel.models.cash_session import CashSession, CashSessionStatus
from drawer_kernel.selectors.base import BaseSelector


class CashSessionSelector(BaseSelector[CashSession]):
    """Lists and counts of cash sessions, newest opening first."""

    def list_sessions(
        self,
        user_id: UUID | None = None,
        status: CashSessionStatus | str | None = None,
    ) -> tuple[CashSessionInfo, ...]:
        stmt = select(CashSession).order_by(CashSession.opened_at.desc(), CashSession.id)
        if user_id is not None:
            stmt = stmt.where(CashSession.user_id == user_id)
        if status is not None:
            stmt = stmt.where(CashSession.status == CashSessionStatus(status).value)
        return tuple(CashSessionInfo.from_model(row) for row in self.session.execute(stmt).scalars())

    def open_sessions(self) -> tuple[CashSessionInfo, ...]:
        return self.list_sessions(status=CashSessionStatus.OPEN)

    def count_open_in_scope(self, scope_key: str) -> int:
        return self.session.execute(
            select(func.count())
            .select_from(CashSession)
            .where(
                CashSession.scope_key == scope_key,
                CashSession.status == CashSessionStatus.OPEN.value,
            )
        ).scalar_one()
