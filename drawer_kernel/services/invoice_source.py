"""
InvoiceSource -- read-only access to the invoices of a session.

The kernel never owns invoices.  The surrounding application supplies an
InvoiceSource; InMemoryInvoiceSource serves a fixed snapshot (tests, the
command line, batch reconciliation of exported invoices).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from drawer_kernel.domain.aggregation import paid_session_invoices
from drawer_kernel.domain.dtos import InvoiceSnapshot
from drawer_kernel.domain.payment_methods import DEFAULT_CLASSIFIER, PaymentClassifier


@runtime_checkable
class InvoiceSource(Protocol):
    """Query over invoices filtered by session."""

    def invoices_for_session(self, session_id: UUID) -> Sequence[InvoiceSnapshot]:
        ...

    def paid_invoices_for_session(self, session_id: UUID) -> Sequence[InvoiceSnapshot]:
        ...


def invoice_from_mapping(data: Mapping[str, Any]) -> InvoiceSnapshot:
    """
    Build an InvoiceSnapshot from a plain mapping (e.g. a JSON object).

    Accepts snake_case keys and the camelCase keys of the invoice store
    (``paymentMethod``, ``cashSessionId``, ``issueDate``, ``customerName``).

    Raises:
        KeyError: If total, payment method or status is missing.
        TypeError: If total is a float.
    """

    def pick(*keys: str) -> Any:
        for key in keys:
            if key in data:
                return data[key]
        return None

    session_id = pick("cash_session_id", "cashSessionId")
    issue_date = pick("issue_date", "issueDate")
    if isinstance(issue_date, str):
        issue_date = datetime.fromisoformat(issue_date)

    total = data["total"]
    method = pick("payment_method", "paymentMethod")
    if method is None:
        raise KeyError("payment_method")

    return InvoiceSnapshot(
        invoice_id=str(pick("invoice_id", "id") or ""),
        total=total,
        payment_method=method,
        status=data["status"],
        cash_session_id=UUID(str(session_id)) if session_id else None,
        issue_date=issue_date,
        customer_name=pick("customer_name", "customerName"),
    )


class InMemoryInvoiceSource:
    """InvoiceSource over a list of snapshots held in memory."""

    def __init__(
        self,
        invoices: Iterable[InvoiceSnapshot] = (),
        classifier: PaymentClassifier = DEFAULT_CLASSIFIER,
    ):
        self._invoices: list[InvoiceSnapshot] = list(invoices)
        self._classifier = classifier

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        classifier: PaymentClassifier = DEFAULT_CLASSIFIER,
    ) -> InMemoryInvoiceSource:
        return cls((invoice_from_mapping(r) for r in records), classifier)

    def add(self, invoice: InvoiceSnapshot) -> None:
        self._invoices.append(invoice)

    def invoices_for_session(self, session_id: UUID) -> Sequence[InvoiceSnapshot]:
        return tuple(inv for inv in self._invoices if inv.cash_session_id == session_id)

    def paid_invoices_for_session(self, session_id: UUID) -> Sequence[InvoiceSnapshot]:
        return tuple(paid_session_invoices(session_id, self._invoices, self._classifier))

    def __len__(self) -> int:
        return len(self._invoices)
