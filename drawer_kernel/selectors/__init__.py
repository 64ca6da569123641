"""Read-only selectors for the drawer kernel."""

from drawer_kernel.selectors.closing_selector import CashClosingSelector, ClosingDetail
from drawer_kernel.selectors.session_selector import CashSessionSelector

__all__ = [
    "CashClosingSelector",
    "CashSessionSelector",
    "ClosingDetail",
]
