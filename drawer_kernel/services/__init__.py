"""Kernel services: session lifecycle and closing persistence."""

from drawer_kernel.services.closing_store import ClosingStore, SqlClosingStore
from drawer_kernel.services.invoice_source import (
    InMemoryInvoiceSource,
    InvoiceSource,
    invoice_from_mapping,
)
from drawer_kernel.services.session_service import CashSessionService, SessionScope

__all__ = [
    "CashSessionService",
    "ClosingStore",
    "InMemoryInvoiceSource",
    "InvoiceSource",
    "SessionScope",
    "SqlClosingStore",
    "invoice_from_mapping",
]
