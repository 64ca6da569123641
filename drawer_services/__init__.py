"""Orchestration services over the drawer kernel."""

from drawer_services.cash_drawer import CashDrawerService

__all__ = ["CashDrawerService"]
