"""SQLAlchemy ORM models for the drawer kernel."""

from drawer_kernel.models.cash_closing import CashClosingModel
from drawer_kernel.models.cash_session import CashSession, CashSessionStatus

__all__ = [
    "CashClosingModel",
    "CashSession",
    "CashSessionStatus",
]
