"""
Drawer Kernel - cash drawer session accounting.

A small, append-only accounting core for point-of-sale cash drawers:
- Open/close session lifecycle with one active session per scope
- Expected takings per payment method derived from paid invoices
- Signed variance reconciliation against the operator's count
- Immutable closing records for audit and history
"""

__version__ = "0.1.0"
